import pytest
from fastapi.testclient import TestClient

from application.use_cases import TaskService
from config import Settings
from infrastructure.database import InMemoryTaskStore
from main import create_app


@pytest.fixture
def store():
    return InMemoryTaskStore()


@pytest.fixture
def service(store):
    return TaskService(store)


@pytest.fixture
def settings():
    return Settings(store_backend="memory")


@pytest.fixture
def app(settings, store):
    return create_app(settings, store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
