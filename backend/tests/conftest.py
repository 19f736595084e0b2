import os

import pytest
from fastapi.testclient import TestClient

from app.config.settings import get_settings
from app.db.base import Base
from app.db.session import get_engine, get_sessionmaker, reset_sessionmaker
from app.capabilities.restorers.registry import reset_restorer_registry
from app.main import create_app

import app.db.models  # noqa: F401  registers every mapped table


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    os.environ["DATABASE_URL"] = "sqlite:///./test_ai_undo.db"
    get_settings.cache_clear()
    reset_sessionmaker()
    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture
def db():
    with get_sessionmaker()() as session:
        yield session


@pytest.fixture
def client():
    reset_restorer_registry()
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
