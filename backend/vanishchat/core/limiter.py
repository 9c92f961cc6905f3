# vanishchat/core/limiter.py

from slowapi import Limiter
from slowapi.util import get_remote_address

# Keyed by client address; guards the initial-load endpoint, which decrypts
# every live message on each call
limiter = Limiter(key_func=get_remote_address)
