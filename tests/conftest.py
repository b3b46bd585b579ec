import pytest

from api import create_app
from models import storage
from utils.security import AccessTokenCodec, CredentialHasher

TEST_SECRET = "unit-test-secret-0123456789abcdef0123456789"


@pytest.fixture
def app(tmp_path):
    app = create_app("testing", {"DATABASE_URL": f"sqlite:///{tmp_path / 'tracker.db'}"})
    yield app
    storage.close()
    app.extensions["session_manager"].hasher.shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def manager(app):
    return app.extensions["session_manager"]


@pytest.fixture
def db_session(app):
    session = storage.get_session()
    yield session
    storage.close()


@pytest.fixture
def hasher():
    h = CredentialHasher(time_cost=1, memory_cost=1024, parallelism=1, workers=1)
    yield h
    h.shutdown()


@pytest.fixture
def codec():
    return AccessTokenCodec(secret=TEST_SECRET)


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, username, password="Secret123!"):
    return client.post("/api/v1/auth/register", json={"username": username, "password": password})


def login(client, username, password="Secret123!"):
    return client.post("/api/v1/auth/login", json={"username": username, "password": password})


@pytest.fixture
def signup(client):
    """Register + login; returns the token payload."""
    def _signup(username, password="Secret123!"):
        assert register(client, username, password).status_code == 201
        resp = login(client, username, password)
        assert resp.status_code == 200
        return resp.get_json()

    return _signup
