"""Create and edit form submission."""

import logging

from task_runner.core.errors import StoreError, ValidationError
from task_runner.models import Task
from task_runner.services.command_validator import CommandKind, CommandValidator
from task_runner.services.notifications import NotificationCenter
from task_runner.services.task_store import TaskStore

logger = logging.getLogger(__name__)


class TaskFormController:
    """Validates form input and upserts it.

    With ``task`` set the form edits that task and sends its id and version;
    otherwise it creates a new one. Invalid input never reaches the store.
    """

    def __init__(
        self,
        store: TaskStore,
        notifications: NotificationCenter,
        validator: CommandValidator | None = None,
        task: Task | None = None,
    ):
        self.store = store
        self.notifications = notifications
        self.validator = validator or CommandValidator()
        self.task = task
        self.busy = False
        self.errors: list[str] = []

    @property
    def editing(self) -> bool:
        return self.task is not None

    def command_hint(self, command: str) -> CommandKind:
        return self.validator.classify(command)

    async def submit(self, name: str, owner: str, command: str) -> Task | None:
        """Save the form; returns the stored task or None on failure."""
        fields = {"name": name, "owner": owner, "command": command}
        try:
            if self.task is None:
                request = self.validator.build_request(**fields)
            else:
                request = self.validator.build_update(self.task, **fields)
        except ValidationError as e:
            self.errors = e.errors
            self.notifications.error(f"Invalid task: {e}")
            return None
        self.errors = []

        self.busy = True
        try:
            saved = await self.store.upsert(request)
        except StoreError as e:
            logger.warning(f"Failed to save task {name!r}: {e}")
            self.notifications.error(f"Failed to save task: {e}")
            return None
        finally:
            self.busy = False

        return saved
