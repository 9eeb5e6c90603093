"""Shared test fixtures for the Kanban board API and ordering engine."""

import os
from datetime import datetime, timedelta

# Configuration is read at import time; point it at an in-memory database
# before any project module is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from database import engine
from main import app
from ordering.types import Status, Task
from utils.jwt import create_access_token

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture(autouse=True)
def reset_db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Factory: Authorization headers for a user id (and optional email)."""
    def _headers(user_id: str, email: str = None) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id, email)}"}
    return _headers


@pytest.fixture
def make_task():
    """Factory for ordering engine tasks; `age` orders created_at."""
    def _make(task_id, status=Status.TODO, position=None, age=0, board_id="board-1"):
        return Task(
            id=task_id,
            title=f"Task {task_id}",
            status=status,
            board_id=board_id,
            position=position,
            created_at=BASE_TIME + timedelta(minutes=age),
        )
    return _make
