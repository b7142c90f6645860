import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.environ.setdefault("COVERAGE_FILE", str(ROOT / ".test_tmp" / ".coverage"))


@pytest.fixture(autouse=True)
def temp_db(monkeypatch, tmp_path):
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("AUTOBLOCK_SCORES_DB_PATH", str(db_path))
    monkeypatch.setenv("AUTOBLOCK_SCORES_BACKEND", "sqlite")
    monkeypatch.setenv("AUTOBLOCK_SCORES_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("AUTOBLOCK_SCORES_API_KEYS", "testkey-a:orgA,testkey-b:orgB")
    import autoblock_scores.config as config
    config._settings = None
    import autoblock_scores.ext.registry as registry
    registry._storage = None
    registry._evaluators = None
    yield


@pytest.fixture
def storage():
    from autoblock_scores.ext.registry import get_storage

    return get_storage()


@pytest.fixture
def make_user(storage):
    def _make(user_id="u1", email="user@spam.org", about=None, confirmed=False, admin=False, organization_id="orgA", contents=()):
        storage.create_user({
            "user_id": user_id,
            "organization_id": organization_id,
            "email": email,
            "about": about,
            "confirmed": confirmed,
            "admin": admin,
        })
        for body in contents:
            storage.add_content(user_id, "comment", body)
        return user_id

    return _make


@pytest.fixture
def client():
    from autoblock_scores.api import app

    return TestClient(app)


def auth_headers(key: str) -> dict:
    return {"X-API-Key": key}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def failing_client():
    from autoblock_scores.api import app

    def _boom():
        raise RuntimeError("boom")

    app.add_api_route("/_boom", _boom, methods=["POST"])
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.router.routes[:] = [route for route in app.router.routes if getattr(route, "path", None) != "/_boom"]
