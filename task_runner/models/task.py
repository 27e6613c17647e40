"""Task and execution models shared by the client and the backend.

All models travel as camelCase JSON (``startTime``, ``exitCode``...) but are
addressed with snake_case attributes in Python.
"""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

MIN_FIELD_LENGTH = 2
NAME_MAX_LENGTH = 100
OWNER_MAX_LENGTH = 50
COMMAND_MAX_LENGTH = 200


class ExecutionStatus(StrEnum):
    """Coarse outcome of one execution."""

    SUCCESS = "success"
    ERROR = "error"


class TaskExecution(BaseModel):
    """One completed run of a task's command. Immutable once created."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    start_time: datetime
    end_time: datetime
    output: str = ""
    exit_code: int | None = Field(
        default=None, description="Process exit code reported by the executor"
    )

    @model_validator(mode="after")
    def check_time_window(self) -> "TaskExecution":
        if self.start_time > self.end_time:
            raise ValueError("startTime must not be after endTime")
        return self


class Task(BaseModel):
    """A named, owned command definition plus its execution history."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID | None = None
    name: str
    owner: str
    command: str
    version: int = 0
    executions: list[TaskExecution] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def latest_execution(self) -> TaskExecution | None:
        return self.executions[-1] if self.executions else None

    def with_executions(self, executions: list[TaskExecution]) -> "Task":
        """Return a copy whose history is replaced by ``executions``."""
        return self.model_copy(update={"executions": list(executions)})

    def extends_history_of(self, previous: "Task") -> bool:
        """Check that this task is ``previous`` plus exactly one new execution."""
        if self.id != previous.id:
            return False
        if len(self.executions) != len(previous.executions) + 1:
            return False
        return self.executions[:-1] == previous.executions

    def to_upsert_request(self, **changes) -> "UpsertRequest":
        """Build the update request for this task, applying field ``changes``."""
        payload = {
            "id": self.id,
            "name": self.name,
            "owner": self.owner,
            "command": self.command,
            "version": self.version if self.is_persisted else None,
        }
        payload.update(changes)
        return UpsertRequest(**payload)


class UpsertRequest(BaseModel):
    """Create (no id) or replace (with id) a task definition.

    ``version`` is optional; when sent with an id the backend rejects the
    update if the stored task has moved on.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID | None = None
    name: str = Field(min_length=MIN_FIELD_LENGTH, max_length=NAME_MAX_LENGTH)
    owner: str = Field(min_length=MIN_FIELD_LENGTH, max_length=OWNER_MAX_LENGTH)
    command: str = Field(min_length=MIN_FIELD_LENGTH, max_length=COMMAND_MAX_LENGTH)
    version: int | None = None

    @field_validator("name", "owner", "command")
    @classmethod
    def reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def to_payload(self) -> dict:
        """JSON body for ``PUT /tasks``; absent id and version are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
