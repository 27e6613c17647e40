"""Single task execution and history display."""

import logging
from datetime import datetime, timedelta

from task_runner.core.errors import StoreError
from task_runner.models import ExecutionStatus, Task, TaskExecution
from task_runner.services.notifications import NotificationCenter
from task_runner.services.task_store import TaskStore

logger = logging.getLogger(__name__)

ERROR_MARKER = "error"


def format_duration(start: datetime, end: datetime) -> str:
    """Format an execution window: ``500ms``, ``2.50s`` or ``2.08m``."""
    millis = int((end - start) / timedelta(milliseconds=1))
    if millis < 1000:
        return f"{millis}ms"
    if millis < 60000:
        return f"{millis / 1000:.2f}s"
    return f"{millis / 60000:.2f}m"


class ExecutionController:
    """Runs one task and exposes its execution history."""

    def __init__(
        self, store: TaskStore, notifications: NotificationCenter, task: Task
    ):
        self.store = store
        self.notifications = notifications
        self.task = task
        self.busy = False

    @property
    def executions(self) -> list[TaskExecution]:
        return self.task.executions

    async def run(self) -> Task | None:
        """Run the task and adopt the backend's execution history.

        Returns the updated task, or None when the run failed.
        """
        if self.task.id is None:
            raise ValueError("Task must be saved before it can run")

        self.busy = True
        try:
            updated = await self.store.run(self.task.id)
        except StoreError as e:
            logger.warning(f"Failed to run task {self.task.id}: {e}")
            self.notifications.error(f"Failed to run task: {e}")
            return None
        finally:
            self.busy = False

        if not updated.extends_history_of(self.task):
            logger.warning(
                f"Task {self.task.id} history changed by more than one execution"
            )
        # Never append locally; the executor's record is authoritative
        self.task = self.task.with_executions(updated.executions)
        self.notifications.success("Task executed successfully")
        return self.task

    @staticmethod
    def classify(execution: TaskExecution) -> ExecutionStatus:
        """Success or error, from the exit code when the executor reported one."""
        if execution.exit_code is not None:
            if execution.exit_code == 0:
                return ExecutionStatus.SUCCESS
            return ExecutionStatus.ERROR
        if ERROR_MARKER in execution.output.lower():
            return ExecutionStatus.ERROR
        return ExecutionStatus.SUCCESS

    @staticmethod
    def duration(execution: TaskExecution) -> str:
        return format_duration(execution.start_time, execution.end_time)
