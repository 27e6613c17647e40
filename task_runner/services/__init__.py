"""Business logic services."""

from .command_validator import CommandKind, CommandValidator
from .execution_controller import ExecutionController, format_duration
from .executor import CommandExecutor, ExecutionResult
from .form_controller import TaskFormController
from .list_controller import ListController
from .notifications import Notification, NotificationCenter, NotificationLevel
from .task import TaskService
from .task_store import TaskStore
from .view_controller import ViewController

__all__ = [
    "CommandExecutor",
    "CommandKind",
    "CommandValidator",
    "ExecutionController",
    "ExecutionResult",
    "ListController",
    "Notification",
    "NotificationCenter",
    "NotificationLevel",
    "TaskFormController",
    "TaskService",
    "TaskStore",
    "ViewController",
    "format_duration",
]
