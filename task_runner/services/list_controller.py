"""Task listing, search, delete and run orchestration."""

import logging
from collections.abc import Awaitable, Callable
from uuid import UUID

from task_runner.core.errors import StoreError
from task_runner.models import Task
from task_runner.services.notifications import NotificationCenter
from task_runner.services.task_store import TaskStore

logger = logging.getLogger(__name__)


class ListController:
    """Owns the displayed task list.

    Every list-affecting call takes a request token; a response is applied
    only if no newer list call was issued after it. Failed calls leave the
    list untouched and publish an error notification.
    """

    def __init__(
        self,
        store: TaskStore,
        notifications: NotificationCenter,
        on_task_updated: Callable[[Task], None] | None = None,
    ):
        self.store = store
        self.notifications = notifications
        self.on_task_updated = on_task_updated
        self.tasks: list[Task] = []
        self._in_flight = 0
        self._latest_token = 0

    @property
    def busy(self) -> bool:
        return self._in_flight > 0

    async def _call(self, call: Callable[[], Awaitable], failure: str):
        """Await ``call`` with the busy flag set.

        Returns a ``(succeeded, result)`` pair; failures are notified.
        """
        self._in_flight += 1
        try:
            return True, await call()
        except StoreError as e:
            logger.warning(f"{failure}: {e}")
            self.notifications.error(f"{failure}: {e}")
            return False, None
        finally:
            self._in_flight -= 1

    async def _load(
        self, fetch: Callable[[], Awaitable[list[Task]]], failure: str
    ) -> bool:
        self._latest_token += 1
        token = self._latest_token

        ok, tasks = await self._call(fetch, failure)
        if not ok:
            return False
        if token != self._latest_token:
            logger.debug(f"Discarding stale task list response {token}")
            return False

        self.tasks = list(tasks)
        return True

    async def refresh(self) -> bool:
        """Reload the full listing."""
        return await self._load(self.store.list_all, "Failed to load tasks")

    async def search(self, query: str) -> bool:
        """Replace the listing with tasks whose name contains ``query``."""
        if not query.strip():
            return await self.refresh()
        return await self._load(
            lambda: self.store.search_by_name(query), "Search failed"
        )

    async def remove(self, task_id: UUID) -> bool:
        """Delete a task, then resynchronise the listing from the backend."""
        ok, _ = await self._call(
            lambda: self.store.delete(task_id), "Failed to delete task"
        )
        if not ok:
            return False

        self.notifications.success("Task deleted successfully")
        await self.refresh()
        return True

    async def run(self, task: Task) -> Task | None:
        """Run a task, refresh the listing and forward the updated task."""
        if task.id is None:
            raise ValueError("Task must be saved before it can run")

        ok, updated = await self._call(
            lambda: self.store.run(task.id), "Failed to run task"
        )
        if not ok:
            return None

        self.notifications.success("Task executed successfully")
        await self.refresh()
        if self.on_task_updated is not None:
            self.on_task_updated(updated)
        return updated
