import os
import tempfile
from pathlib import Path

import pytest

_TMP = Path(tempfile.mkdtemp(prefix="sitechat-tests-"))

os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "secret-pass"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_DISABLED"] = "1"

from fastapi.testclient import TestClient  # noqa: E402

import sitechat.models  # noqa: E402,F401
from sitechat.core import config  # noqa: E402
from sitechat.database.base import Base  # noqa: E402
from sitechat.database.session import SessionLocal, engine, db_state  # noqa: E402
from sitechat.main import app  # noqa: E402
from sitechat.utils.rate_limit import reset_rate_limits  # noqa: E402

from .utils import login_admin  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_database(tmp_path, monkeypatch):
    """Every test gets empty tables and its own upload directory."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db_state["available"] = True
    reset_rate_limits()
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    yield
    db_state["available"] = True


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client():
    with TestClient(app) as c:
        yield login_admin(c)
