"""
Task board service

In-memory ordered list of the signed-in user's tasks, kept in step with
the remote task store. Completion toggles and reordering are applied
locally first and rolled back when the remote write fails; add, edit and
delete only touch the local list once the store has confirmed.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional
import pydantic
from lynk.api.task_store_client import TaskStoreClient
from lynk.config.constants import EMPTY_TITLE_MESSAGE
from lynk.models.session import AuthState, Session
from lynk.models.task import ChecklistItem, Task, TaskCreate, TaskUpdate
from lynk.services.ordering import MoveResult, move, next_order_key, sort_by_order
from lynk.services.session_store import SessionStore
from lynk.utils.date_utils import get_current_timestamp
from lynk.utils.error_handler import (
    APIError,
    NotAuthenticatedError,
    TaskNotFoundError,
    ValidationError,
)
from lynk.utils.logger import logger


def _checklist(items: Optional[Iterable[Any]]) -> List[ChecklistItem]:
    """Build checklist items from strings, dicts or models; blank entries are dropped"""
    result = []
    for item in items or []:
        if isinstance(item, str):
            item = ChecklistItem(text=item)
        elif not isinstance(item, ChecklistItem):
            try:
                item = ChecklistItem.model_validate(item)
            except pydantic.ValidationError as e:
                raise ValidationError(f"Invalid checklist item: {item!r}") from e
        text = item.text.strip()
        if text:
            result.append(ChecklistItem(text=text, completed=item.completed))
    return result


class TaskBoard:
    """View model for the task board"""

    def __init__(self, store: TaskStoreClient, sessions: SessionStore):
        """
        Initialize task board

        Args:
            store: Remote task table client
            sessions: Process-wide session store
        """
        self.store = store
        self.sessions = sessions
        self.tasks: List[Task] = []
        self._locks: Dict[int, asyncio.Lock] = {}
        self.logger = logger
        self._subscription = sessions.subscribe(self._on_session_change)

    def close(self):
        """Stop following session changes"""
        self._subscription.unsubscribe()

    async def _on_session_change(self, state: AuthState, session: Optional[Session]):
        if state == AuthState.AUTHENTICATED:
            try:
                await self.load()
            except APIError as e:
                self.logger.error(f"Error fetching tasks: {e}")
        else:
            self.tasks = []
            self._locks.clear()

    # ---- helpers ----

    def _require_session(self) -> Session:
        if not self.sessions.is_authenticated:
            raise NotAuthenticatedError()
        return self.sessions.session

    def _is_current(self, session: Session) -> bool:
        return self.sessions.is_authenticated and self.sessions.session is session

    def _lock(self, task_id: int) -> asyncio.Lock:
        return self._locks.setdefault(task_id, asyncio.Lock())

    def _index_of(self, task_id: int) -> int:
        for index, task in enumerate(self.tasks):
            if task.id == task_id:
                return index
        raise TaskNotFoundError(task_id)

    def get_task(self, task_id: int) -> Task:
        return self.tasks[self._index_of(task_id)]

    def _replace(self, task: Task):
        """Swap in a newer version of a task that is still on the board"""
        for index, existing in enumerate(self.tasks):
            if existing.id == task.id:
                tasks = list(self.tasks)
                tasks[index] = task
                self.tasks = sort_by_order(tasks)
                return

    def _revert(self, task_id: int, **fields):
        for task in self.tasks:
            if task.id == task_id:
                self._replace(task.model_copy(update=fields))
                return

    # ---- operations ----

    async def load(self) -> List[Task]:
        """
        Fetch all tasks of the signed-in user, ascending by order key

        Returns:
            The loaded tasks; empty without a session (no remote call made)
        """
        if not self.sessions.is_authenticated:
            self.tasks = []
            return []

        session = self.sessions.session
        tasks = await self.store.list_tasks(session)

        if not self._is_current(session):
            self.logger.info("Session changed while loading tasks, discarding result")
            return list(self.tasks)

        self.tasks = sort_by_order(tasks)
        self.logger.info(f"Loaded {len(self.tasks)} tasks")
        return list(self.tasks)

    async def add_task(
        self,
        title: str,
        description: str = "",
        checklist_items: Optional[Iterable[Any]] = None,
    ) -> Task:
        """
        Create a task at the end of the board

        Raises:
            ValidationError: If the title is empty (no remote call is made)
            APIError: If the store rejects the insert; the board is unchanged
        """
        if not title or not title.strip():
            raise ValidationError(EMPTY_TITLE_MESSAGE)

        session = self._require_session()
        payload = TaskCreate(
            title=title.strip(),
            description=description or "",
            owner=session.user.id,
            order_key=next_order_key(self.tasks),
            checklist_items=_checklist(checklist_items),
        )

        try:
            created = await self.store.create_task(session, payload)
        except APIError as e:
            self.logger.error(f"Error adding task: {e}")
            raise

        if self._is_current(session):
            self.tasks = sort_by_order([*self.tasks, created])
        self.logger.info(f"Task created: '{created.title}' ({created.id})")
        return created

    async def edit_task(
        self,
        task_id: int,
        title: str,
        description: Optional[str] = None,
        checklist_items: Optional[Iterable[Any]] = None,
    ) -> Task:
        """
        Update title, description and checklist of a task

        Fields left as None keep their current value.
        """
        if not title or not title.strip():
            raise ValidationError(EMPTY_TITLE_MESSAGE)

        session = self._require_session()
        self.get_task(task_id)

        payload = TaskUpdate(
            title=title.strip(),
            description=description,
            checklist_items=_checklist(checklist_items) if checklist_items is not None else None,
            updated_at=get_current_timestamp(),
        )

        async with self._lock(task_id):
            try:
                updated = await self.store.update_task(session, task_id, payload)
            except APIError as e:
                self.logger.error(f"Error updating task {task_id}: {e}")
                raise
            if self._is_current(session):
                self._replace(updated)

        return updated

    async def delete_task(self, task_id: int):
        """Delete a task; it leaves the board only after the store confirms"""
        session = self._require_session()
        self.get_task(task_id)

        async with self._lock(task_id):
            try:
                await self.store.delete_task(session, task_id)
            except APIError as e:
                self.logger.error(f"Error deleting task {task_id}: {e}")
                raise
            self.tasks = [task for task in self.tasks if task.id != task_id]

        self._locks.pop(task_id, None)
        self.logger.info(f"Task deleted: {task_id}")

    async def toggle_task_completion(self, task_id: int, completed: bool) -> Task:
        """Set the completion flag; reverted locally if the remote write fails"""
        session = self._require_session()

        async with self._lock(task_id):
            task = self.get_task(task_id)
            previous = task.completed
            self._replace(task.model_copy(update={"completed": completed}))

            try:
                updated = await self.store.update_task(
                    session,
                    task_id,
                    TaskUpdate(completed=completed, updated_at=get_current_timestamp()),
                )
            except APIError as e:
                self.logger.error(f"Error updating completion of task {task_id}: {e}")
                if self._is_current(session):
                    self._revert(task_id, completed=previous)
                raise

            if self._is_current(session):
                self._replace(updated)
            return updated

    async def toggle_checklist_item(self, task_id: int, index: int, completed: bool) -> Task:
        """
        Set the completion flag of one checklist item

        The whole ``checklist_items`` array is written back. Same rollback
        policy as ``toggle_task_completion``.
        """
        session = self._require_session()

        async with self._lock(task_id):
            task = self.get_task(task_id)
            if not 0 <= index < len(task.checklist_items):
                raise ValidationError(f"Checklist item {index} does not exist")

            previous = task.checklist_items
            items = list(previous)
            items[index] = items[index].model_copy(update={"completed": completed})
            self._replace(task.model_copy(update={"checklist_items": items}))

            try:
                updated = await self.store.update_task(
                    session,
                    task_id,
                    TaskUpdate(checklist_items=items, updated_at=get_current_timestamp()),
                )
            except APIError as e:
                self.logger.error(f"Error updating checklist of task {task_id}: {e}")
                if self._is_current(session):
                    self._revert(task_id, checklist_items=previous)
                raise

            if self._is_current(session):
                self._replace(updated)
            return updated

    async def reorder(self, from_index: int, to_index: int) -> MoveResult:
        """
        Move a task on the board (drag end)

        The new order is shown immediately and only the changed keys are
        written. On failure the previous order is restored and the board is
        reloaded from the store.
        """
        session = self._require_session()

        try:
            result = move(self.tasks, from_index, to_index)
        except IndexError as e:
            raise ValidationError(str(e)) from e

        if not result.changed:
            return result

        previous = self.tasks
        self.tasks = result.tasks

        try:
            for task_id, key in result.changed.items():
                async with self._lock(task_id):
                    if not self._is_current(session):
                        self.logger.info("Session changed while reordering, remaining writes skipped")
                        return result
                    updated = await self.store.update_task(
                        session,
                        task_id,
                        TaskUpdate(order_key=key, updated_at=get_current_timestamp()),
                    )
                    if self._is_current(session):
                        self._replace(updated)
        except APIError as e:
            self.logger.error(f"Error reordering tasks: {e}")
            # Only the session that started the move may restore its order
            if self._is_current(session):
                self.tasks = previous
                try:
                    await self.load()
                except APIError as reload_error:
                    self.logger.error(f"Error reloading tasks after failed reorder: {reload_error}")
            raise

        self.logger.debug(f"Task {result.task_id} moved to {to_index} (key {result.new_key})")
        return result

    async def move_task(self, task_id: int, to_index: int) -> MoveResult:
        """Move a task identified by id to ``to_index``"""
        return await self.reorder(self._index_of(task_id), to_index)
