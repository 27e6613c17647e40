"""Command whitelist policy."""

import logging
from collections.abc import Callable
from enum import StrEnum

from pydantic import ValidationError as PydanticValidationError

from task_runner.core.config import settings
from task_runner.core.errors import ValidationError
from task_runner.models import Task, UpsertRequest

logger = logging.getLogger(__name__)


class CommandKind(StrEnum):
    """Whether a command starts with a permitted prefix."""

    WHITELISTED = "whitelisted"
    CUSTOM = "custom"


class CommandValidator:
    """Gate commands on their leading token.

    The whitelist is fixed for the lifetime of the validator. ``check`` is
    authoritative and is applied both before a client submits an upsert and
    by the backend before it persists one.
    """

    def __init__(self, allowed_commands: list[str] | None = None):
        if allowed_commands is None:
            allowed_commands = settings.allowed_commands
        self._allowed = tuple(dict.fromkeys(allowed_commands))

    @property
    def allowed_commands(self) -> tuple[str, ...]:
        return self._allowed

    @staticmethod
    def leading_token(command: str) -> str:
        """Return the command prefix up to the first whitespace."""
        parts = command.split(maxsplit=1)
        return parts[0] if parts else ""

    def classify(self, command: str) -> CommandKind:
        if self.leading_token(command) in self._allowed:
            return CommandKind.WHITELISTED
        return CommandKind.CUSTOM

    def is_allowed(self, command: str) -> bool:
        return self.classify(command) is CommandKind.WHITELISTED

    def check(self, command: str) -> None:
        """Raise ValidationError unless the command prefix is whitelisted."""
        if not self.is_allowed(command):
            prefix = self.leading_token(command) or command
            logger.warning(f"Rejected command with prefix {prefix!r}")
            raise ValidationError(
                f"Command '{prefix}' is not allowed. "
                f"Allowed commands: {', '.join(self._allowed)}"
            )

    def build_request(self, **fields) -> UpsertRequest:
        """Validate form fields and return an UpsertRequest.

        Raises:
            ValidationError: If a field violates its bounds or the command
                prefix is not whitelisted
        """
        return self._validated(lambda: UpsertRequest(**fields))

    def build_update(self, task: Task, **changes) -> UpsertRequest:
        """Validate ``changes`` to a stored task; sends its id and version."""
        return self._validated(lambda: task.to_upsert_request(**changes))

    def _validated(self, build: Callable[[], UpsertRequest]) -> UpsertRequest:
        try:
            request = build()
        except PydanticValidationError as e:
            errors = [
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ValidationError("; ".join(errors), errors=errors) from e

        self.check(request.command)
        return request
