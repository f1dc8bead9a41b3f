import os
import pathlib
import sys
import tempfile

import pytest
from fastapi.testclient import TestClient

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read at import time, so the environment goes first.
_TMP = pathlib.Path(tempfile.mkdtemp(prefix="damage_report_tests_"))
os.environ["DATABASE_DSN"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["REDIS_URL"] = ""
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["SECRET_KEY"] = "test-secret"
os.environ["MAX_UPLOAD_MB"] = "1"

from app.core.redis import reset_redis  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.scripts.seed_sample import seed_sample  # noqa: E402

# 1x1 PNG
SIG = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="

# login credentials from the sample seed
DRIVER = {"role": "driver", "vehicle_no": "89하1234", "password": "01099421118"}
OTHER_DRIVER = {"role": "driver", "vehicle_no": "81머5532", "password": "01071029983"}
FIELD = {"role": "field", "name": "김도훈", "password": "01023841156"}
OFFICE = {"role": "office", "name": "이수진", "password": "01049417742"}
ADMIN = {"role": "admin", "name": "관리자", "password": "01012345678"}


@pytest.fixture(autouse=True)
def fresh_db():
    reset_redis()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_sample(db)
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_client():
    """Factory for independent clients, each with its own cookie jar."""

    def _make(credentials: dict | None = None) -> TestClient:
        client = TestClient(app)
        if credentials is not None:
            resp = client.post("/auth/login", json=credentials)
            assert resp.status_code == 200, resp.text
        return client

    return _make


@pytest.fixture
def driver(make_client):
    return make_client(DRIVER)


@pytest.fixture
def field(make_client):
    return make_client(FIELD)


@pytest.fixture
def office(make_client):
    return make_client(OFFICE)


@pytest.fixture
def admin(make_client):
    return make_client(ADMIN)


def create_body(**overrides) -> dict:
    body = {
        "reportDate": "2025-10-01",
        "containerNo": "TCLU8239466",
        "blNo": "CHL20251001",
        "vehicleNo": "89하1234",
        "driverName": "박영호",
        "driverPhone": "010-9942-1118",
        "driverDamage": "우측 도어 찌그러짐",
        "driverSignature": SIG,
        "damagePhotos": ["/uploads/damage_a.jpg"],
    }
    body.update(overrides)
    return body
