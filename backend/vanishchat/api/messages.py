# vanishchat/api/messages.py

from fastapi import APIRouter, HTTPException, Request

from vanishchat.core.errors import StorageError
from vanishchat.core.config import MESSAGES_RATE_LIMIT
from vanishchat.core.limiter import limiter
from vanishchat.schemas.events import MessageView

router = APIRouter(prefix="/messages")


@router.get("", response_model=list[MessageView])
@limiter.limit(MESSAGES_RATE_LIMIT)
async def list_messages(request: Request):
    """Every message still alive, decrypted, oldest first (initial load)."""
    service = request.app.state.messages
    try:
        return await service.list_active()
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
