import os

# Settings are read once per process; pin them before the app is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("SWEEP_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel

from todo_api.config import reset_settings
from todo_api.db.config import create_db_engine, get_session
from todo_api.db.init import init_db
from todo_api.main import app
from todo_api.middleware.auth import create_access_token
from todo_api.models.user import User
from todo_api.routers.auth import get_password_hash
from todo_api.utils.metrics import metrics_collector

PASSWORD = "Secret123!"


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(autouse=True)
def fresh_state():
    metrics_collector.reset()
    reset_settings()
    yield
    reset_settings()


def make_user(session: Session, username: str, email: str) -> User:
    user = User(username=username, email=email, hashed_password=get_password_hash(PASSWORD))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest.fixture
def alice(session):
    return make_user(session, "alice", "alice@todo.io")


@pytest.fixture
def bob(session):
    return make_user(session, "bob", "bob@todo.io")


@pytest.fixture
def client(session):
    app.dependency_overrides[get_session] = lambda: session
    # No context manager: startup would create tables on the configured engine
    yield TestClient(app)
    app.dependency_overrides.clear()
