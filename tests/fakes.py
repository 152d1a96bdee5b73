"""
Test data builders
"""

import time
from lynk.models.session import Session, User
from lynk.models.task import Task

OWNER_ID = "user-1"


def make_task(task_id: int, order_key: float, **fields) -> Task:
    """Task owned by the test user"""
    data = {
        "id": task_id,
        "title": f"Task {task_id}",
        "owner": OWNER_ID,
        "order_key": order_key,
        "created_at": "2025-01-01T10:00:00+00:00",
    }
    data.update(fields)
    return Task(**data)


def make_session(user_id: str = OWNER_ID, expires_in: int = 3600) -> Session:
    return Session(
        access_token=f"token-{user_id}",
        refresh_token=f"refresh-{user_id}",
        expires_at=int(time.time()) + expires_in,
        user=User(id=user_id, email=f"{user_id}@example.com"),
    )
