"""
Pytest configuration and fixtures for Story Generator API tests.
"""

import os

# Settings are read at import time, so the environment must be in place first
os.environ["SECRET_KEY"] = "test_secret_key_for_testing_only"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["OPENAI_API_KEY"] = "test_key_123"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["COOKIE_SECURE"] = "false"  # TestClient talks plain http
os.environ["COOKIE_SAMESITE"] = "lax"

import json
import pytest
from typing import Generator
from unittest.mock import AsyncMock, Mock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app.core.auth import create_user_token
from app.core.config import settings
from app.core.database import Base, get_db
from app.models.story import Story
from app.models.user import User
from app.services import stories as story_service
from app.services import users as user_service
from app.services.story_generator import StoryGenerator, get_story_generator


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_PASSWORD = "Sup3r-secret!"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def test_app(db_session):
    """Create a FastAPI test app without lifespan events."""
    from fastapi import FastAPI
    from app.core.errors import register_exception_handlers
    from app.main import include_api_routers

    # Create app without lifespan to avoid event loop issues
    test_app = FastAPI(title="Story Generator - Test", version="1.0.0")
    register_exception_handlers(test_app)
    include_api_routers(test_app)

    # Override database dependency
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    test_app.dependency_overrides[get_db] = override_get_db

    return test_app


@pytest.fixture(scope="function")
def client(test_app) -> TestClient:
    """Create a test client without entering context manager."""
    return TestClient(test_app, raise_server_exceptions=False)


@pytest.fixture(scope="function")
def test_user(db_session) -> User:
    """Create a test user with the default API call allowance."""
    return user_service.create_user(
        db_session, "Test User", "test@example.com", TEST_PASSWORD
    )


@pytest.fixture(scope="function")
def other_user(db_session) -> User:
    return user_service.create_user(
        db_session, "Other User", "other@example.com", TEST_PASSWORD
    )


@pytest.fixture(scope="function")
def admin_user(db_session) -> User:
    """Create an administrator."""
    user = user_service.create_user(
        db_session, "Admin", "admin@example.com", TEST_PASSWORD
    )
    user.is_admin = True
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def auth_headers(test_user) -> dict:
    """Create authentication headers for test requests."""
    return {"Authorization": f"Bearer {create_user_token(test_user)}"}


@pytest.fixture(scope="function")
def authenticated_client(client, test_user) -> TestClient:
    """Create an authenticated test client."""
    client.cookies.set(settings.COOKIE_NAME, create_user_token(test_user))
    return client


@pytest.fixture(scope="function")
def admin_client(test_app, admin_user) -> TestClient:
    """A second client logged in as the administrator."""
    admin = TestClient(test_app, raise_server_exceptions=False)
    admin.cookies.set(settings.COOKIE_NAME, create_user_token(admin_user))
    return admin


@pytest.fixture(scope="function")
def test_story(db_session, test_user) -> Story:
    """Create a saved story with two tags."""
    return story_service.create_story(
        db_session,
        user_id=test_user.id,
        title="The Lost Crown",
        content="Once upon a time a crown went missing.",
        tags=["fantasy", "adventure"],
    )


@pytest.fixture
def generated_story_json() -> str:
    """JSON text in the shape the model is asked to return."""
    return json.dumps(
        {
            "title": "The Lighthouse Keeper",
            "paragraphs": [
                "Mara kept the light burning through every storm.",
                "One night the light answered back.",
            ],
        }
    )


@pytest.fixture
def mock_openai_client(generated_story_json):
    """Mock AsyncOpenAI client whose chat completion returns a story."""
    mock_response = Mock()
    mock_response.choices = [Mock()]
    mock_response.choices[0].message.content = generated_story_json
    mock_response.usage = Mock()

    client = Mock()
    client.chat.completions.create = AsyncMock(return_value=mock_response)
    return client


@pytest.fixture
def story_generator(test_app, mock_openai_client) -> StoryGenerator:
    """Story generator backed by the mock client, wired into the test app."""
    generator = StoryGenerator(client=mock_openai_client)
    test_app.dependency_overrides[get_story_generator] = lambda: generator
    return generator
