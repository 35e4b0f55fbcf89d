# tests/conftest.py
# Shared fixtures: an in-memory database with a seeded user and chat session.
import os

# Must be set before config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_TO_FILE"] = "false"
os.environ["DEV_MODE"] = "false"
os.environ["OPENROUTER_API_KEY"] = "test-key"

import pytest

from models import User
from repositories.chat import ChatSessionRepository
from tests.helpers import FakeSearchClient, OTHER_USER_ID, TEST_DAY, TEST_USER_ID
from utils.db_manager import Base, SessionLocal, engine


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user(db):
    user = User(id=TEST_USER_ID, email="user1@example.com", name="Test User")
    db.add(user)
    db.add(User(id=OTHER_USER_ID, email="user2@example.com", name="Other User"))
    db.commit()
    return user


@pytest.fixture
def chat_session(db, user):
    chat_session, _ = ChatSessionRepository.get_or_create(db, user.id, TEST_DAY)
    return chat_session


@pytest.fixture
def fake_search():
    return FakeSearchClient()
