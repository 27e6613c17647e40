"""Task models."""

from .records import ExecutionRecord, TaskRecord
from .task import (
    COMMAND_MAX_LENGTH,
    NAME_MAX_LENGTH,
    OWNER_MAX_LENGTH,
    ExecutionStatus,
    Task,
    TaskExecution,
    UpsertRequest,
)

__all__ = [
    "COMMAND_MAX_LENGTH",
    "NAME_MAX_LENGTH",
    "OWNER_MAX_LENGTH",
    "ExecutionRecord",
    "ExecutionStatus",
    "Task",
    "TaskExecution",
    "TaskRecord",
    "UpsertRequest",
]
