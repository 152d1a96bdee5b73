"""
Task table client (Supabase PostgREST)

Every request is scoped to the session's user through the ``user_id``
filter, and every returned row goes through the ``Task`` decoder.
"""

from typing import Optional, Dict, Any, List
import httpx
import pydantic
from lynk.api.base_client import BaseAPIClient
from lynk.config.settings import settings
from lynk.config.constants import REST_API_PREFIX
from lynk.models.session import Session
from lynk.models.task import Task, TaskCreate, TaskUpdate
from lynk.utils.error_handler import APIError


class TaskStoreClient(BaseAPIClient):
    """Client for the hosted tasks table"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        table: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize task store client

        Args:
            base_url: Project URL (defaults to SUPABASE_URL)
            anon_key: Public API key (defaults to SUPABASE_ANON_KEY)
            table: Table name (defaults to TASKS_TABLE)
            timeout: Request timeout in seconds
            transport: Optional httpx transport
        """
        super().__init__(
            base_url if base_url is not None else settings.SUPABASE_URL,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
            transport=transport,
        )
        self.anon_key = anon_key if anon_key is not None else settings.SUPABASE_ANON_KEY
        self.table = table or settings.TASKS_TABLE
        self.endpoint = f"{REST_API_PREFIX}/{self.table}"

    def _get_headers(self, session: Session, prefer: Optional[str] = None) -> Dict[str, str]:
        """Get request headers with the user's access token"""
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {session.access_token}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _decode_row(self, row: Dict[str, Any], owner: str) -> Optional[Task]:
        """Validate one row; rows that fail or belong to someone else are dropped"""
        try:
            task = Task.model_validate(row)
        except pydantic.ValidationError as e:
            self.logger.warning(f"Skipping malformed task row {row.get('id')}: {e}")
            return None

        if task.owner != owner:
            self.logger.warning(f"Skipping task {task.id} owned by another user")
            return None

        return task

    def _decode_single(self, data: Any, owner: str, task_id: Optional[int] = None) -> Task:
        rows = data if isinstance(data, list) else [data]
        if not rows or not rows[0]:
            raise APIError(f"Task {task_id} not found", error_code="404")

        task = self._decode_row(rows[0], owner)
        if task is None:
            raise APIError("Store returned a malformed task row")
        return task

    async def list_tasks(self, session: Session) -> List[Task]:
        """
        Get all tasks of the session's user, ascending by order key

        Args:
            session: Current session

        Returns:
            Decoded tasks (may be empty for a new user)
        """
        owner = session.user.id
        data = await self.get(
            endpoint=self.endpoint,
            headers=self._get_headers(session),
            params={
                "select": "*",
                "user_id": f"eq.{owner}",
                "order": "order_index.asc",
            },
        )

        tasks = []
        for row in data or []:
            task = self._decode_row(row, owner)
            if task is not None:
                tasks.append(task)

        self.logger.debug(f"Fetched {len(tasks)} tasks for {owner}")
        return tasks

    async def create_task(self, session: Session, payload: TaskCreate) -> Task:
        """
        Insert a task row

        Returns:
            The stored row with its server-assigned id and timestamps
        """
        data = await self.post(
            endpoint=self.endpoint,
            headers=self._get_headers(session, prefer="return=representation"),
            json_data=payload.to_row(),
        )
        return self._decode_single(data, session.user.id)

    async def update_task(self, session: Session, task_id: int, payload: TaskUpdate) -> Task:
        """
        Partially update a task row scoped to ``(id, owner)``

        Raises:
            APIError: If the call fails or no row matched
        """
        row = payload.to_row()
        if not row:
            raise ValueError("No fields to update")

        data = await self.patch(
            endpoint=self.endpoint,
            headers=self._get_headers(session, prefer="return=representation"),
            params={
                "id": f"eq.{task_id}",
                "user_id": f"eq.{session.user.id}",
            },
            json_data=row,
        )
        return self._decode_single(data, session.user.id, task_id)

    async def delete_task(self, session: Session, task_id: int) -> None:
        """Delete a task row scoped to ``(id, owner)``"""
        await self.delete(
            endpoint=self.endpoint,
            headers=self._get_headers(session, prefer="return=minimal"),
            params={
                "id": f"eq.{task_id}",
                "user_id": f"eq.{session.user.id}",
            },
        )
