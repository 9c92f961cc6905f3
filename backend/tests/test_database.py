import pytest
from fastapi.testclient import TestClient

from vanishchat.infra.database import build_engine, check_connection
from vanishchat.main import create_app


@pytest.fixture
def unreachable_engine(tmp_path):
    # SQLite cannot create a file inside a directory that does not exist
    eng = build_engine(f"sqlite:///{tmp_path / 'missing' / 'chat.db'}")
    yield eng
    eng.dispose()


def test_check_connection(engine, unreachable_engine):
    assert check_connection(engine) is True
    assert check_connection(unreachable_engine) is False


def test_app_refuses_to_start_without_a_database(unreachable_engine):
    app = create_app(bind=unreachable_engine)
    with pytest.raises(RuntimeError, match="unreachable"):
        with TestClient(app):
            pass
