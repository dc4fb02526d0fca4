from __future__ import annotations

import os
from typing import Generator

# Must be configured before the package is imported: the engine is built at import time.
os.environ["DATABASE_URL"] = os.getenv("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ["AUTO_MIGRATE"] = "false"
os.environ["SEED_DEFAULT_TAGS"] = "false"
os.environ.pop("REDIS_URL", None)
os.environ.pop("ANALYZER_SCORER", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from social_analyzer import models
from social_analyzer.db import Base, SessionLocal, engine
from social_analyzer.main import app, run_startup_tasks
from social_analyzer.services import entities


@pytest.fixture(scope="session", autouse=True)
def bootstrap() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    run_startup_tasks()
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def clean_tables() -> Generator[None, None, None]:
    yield
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Create a database session for testing."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def test_user(db: Session) -> models.User:
    return entities.create_user(
        db,
        username="john_doe",
        email="john@example.com",
        password_hash="hashed_password_1",
    )


@pytest.fixture()
def test_post(db: Session, test_user: models.User) -> models.Post:
    return entities.create_post(db, test_user.id, content="Launching our spring campaign today!")


@pytest.fixture()
def test_tag(db: Session) -> models.Tag:
    return entities.create_tag(db, "Campaigns")
