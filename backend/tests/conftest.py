import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(tmp_path, monkeypatch):
    # point the app at a temporary sqlite file; db reads the env per connection
    monkeypatch.setenv("SWIFTLET_DB_PATH", str(tmp_path / "swiftlet_test.db"))
    from backend.app.main import app

    with TestClient(app) as c:
        yield c
