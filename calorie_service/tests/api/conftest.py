# tests/api/conftest.py
import pytest
from fastapi.testclient import TestClient

from api.middleware import get_current_user_id
from main import app
from services.food_search import get_food_search_client
from services.llm_client import get_llm_client_factory
from tests.helpers import FakeLLMClient, TEST_USER_ID
from utils.db_manager import SessionLocal, get_db


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def client(db, user, fake_llm, fake_search):
    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = lambda: TEST_USER_ID
    app.dependency_overrides[get_llm_client_factory] = lambda: (lambda: fake_llm)
    app.dependency_overrides[get_food_search_client] = lambda: fake_search
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
