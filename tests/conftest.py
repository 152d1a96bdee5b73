"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock
from lynk.api.auth_client import AuthClient
from lynk.api.task_store_client import TaskStoreClient
from lynk.models.session import User
from lynk.models.task import Task
from lynk.services.session_cache import SessionCacheService
from lynk.services.session_store import SessionStore
from lynk.services.task_board import TaskBoard
from tests.fakes import OWNER_ID, make_session, make_task


@pytest.fixture
def mock_auth_client():
    """Mock identity provider client"""
    client = MagicMock(spec=AuthClient)
    client.sign_in_with_password = AsyncMock(return_value=make_session())
    client.sign_up = AsyncMock(return_value=None)
    client.refresh_session = AsyncMock(return_value=make_session())
    client.get_user = AsyncMock(return_value=User(id=OWNER_ID, email=f"{OWNER_ID}@example.com"))
    client.sign_out = AsyncMock(return_value=None)
    client.close = AsyncMock(return_value=None)
    return client


@pytest.fixture
def mock_store_client():
    """Mock task table client; updates echo the merged row back"""
    client = MagicMock(spec=TaskStoreClient)
    client.rows = {}

    async def list_tasks(session):
        return sorted(client.rows.values(), key=lambda task: task.order_key)

    async def create_task(session, payload):
        task_id = max(client.rows, default=0) + 1
        task = Task(
            id=task_id,
            title=payload.title,
            description=payload.description,
            owner=payload.owner,
            order_key=payload.order_key,
            checklist_items=payload.checklist_items,
            created_at="2025-01-01T10:00:00+00:00",
        )
        client.rows[task_id] = task
        return task

    async def update_task(session, task_id, payload):
        fields = payload.model_dump(exclude_none=True)
        task = Task.model_validate({**client.rows[task_id].model_dump(), **fields})
        client.rows[task_id] = task
        return task

    async def delete_task(session, task_id):
        client.rows.pop(task_id, None)

    client.list_tasks = AsyncMock(side_effect=list_tasks)
    client.create_task = AsyncMock(side_effect=create_task)
    client.update_task = AsyncMock(side_effect=update_task)
    client.delete_task = AsyncMock(side_effect=delete_task)
    client.close = AsyncMock(return_value=None)
    return client


@pytest.fixture
def session_cache_service(tmp_path):
    """Session cache with temporary file"""
    return SessionCacheService(cache_file=str(tmp_path / "session.json"))


@pytest.fixture
def session_store(mock_auth_client, session_cache_service):
    return SessionStore(mock_auth_client, session_cache_service)


@pytest.fixture
def task_board(mock_store_client, session_store):
    """Board with mocked store, not signed in yet"""
    board = TaskBoard(mock_store_client, session_store)
    yield board
    board.close()


@pytest_asyncio.fixture
async def signed_in_board(task_board, session_store, mock_store_client):
    """Board after sign-in with three stored tasks A, B, C"""
    for task in (
        make_task(1, 1000.0, title="A"),
        make_task(2, 2000.0, title="B", checklist_items=[{"text": "step", "completed": False}]),
        make_task(3, 3000.0, title="C"),
    ):
        mock_store_client.rows[task.id] = task

    await session_store.sign_in("user-1@example.com", "secret")
    mock_store_client.list_tasks.reset_mock()
    return task_board
