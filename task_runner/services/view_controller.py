"""View state machine: list, create, edit and execute modes.

States and events are immutable values. ``transition`` is a pure function
returning the next state; ``ViewController`` just holds the current value
and publishes the notification a transition asks for.
"""

from collections.abc import Callable
from dataclasses import dataclass

from task_runner.core.errors import InvalidTransitionError
from task_runner.models import Task
from task_runner.services.notifications import NotificationCenter


@dataclass(frozen=True)
class ListView:
    pass


@dataclass(frozen=True)
class CreateView:
    pass


@dataclass(frozen=True)
class EditView:
    task: Task


@dataclass(frozen=True)
class ExecuteView:
    task: Task


ViewState = ListView | CreateView | EditView | ExecuteView


@dataclass(frozen=True)
class CreateRequested:
    pass


@dataclass(frozen=True)
class EditRequested:
    task: Task


@dataclass(frozen=True)
class RunRequested:
    task: Task


@dataclass(frozen=True)
class Saved:
    task: Task


@dataclass(frozen=True)
class Cancelled:
    pass


@dataclass(frozen=True)
class Closed:
    pass


ViewEvent = CreateRequested | EditRequested | RunRequested | Saved | Cancelled | Closed

SAVED_MESSAGE = "Task saved successfully"


@dataclass(frozen=True)
class Transition:
    state: ViewState
    notification: str | None = None


_TRANSITIONS: dict[tuple[type, type], Callable[[ViewState, ViewEvent], Transition]] = {
    (ListView, CreateRequested): lambda state, event: Transition(CreateView()),
    (ListView, EditRequested): lambda state, event: Transition(EditView(event.task)),
    (ListView, RunRequested): lambda state, event: Transition(ExecuteView(event.task)),
    (CreateView, Saved): lambda state, event: Transition(ListView(), SAVED_MESSAGE),
    (CreateView, Cancelled): lambda state, event: Transition(ListView()),
    (EditView, Saved): lambda state, event: Transition(ListView(), SAVED_MESSAGE),
    (EditView, Cancelled): lambda state, event: Transition(ListView()),
    (ExecuteView, Closed): lambda state, event: Transition(ListView()),
}


def transition(state: ViewState, event: ViewEvent) -> Transition:
    """Compute the next view for ``event``.

    Raises:
        InvalidTransitionError: If ``event`` is not defined for ``state``
    """
    handler = _TRANSITIONS.get((type(state), type(event)))
    if handler is None:
        raise InvalidTransitionError(
            f"{type(event).__name__} is not valid in {type(state).__name__}"
        )
    return handler(state, event)


def selected_task(state: ViewState) -> Task | None:
    """The task a view is bound to; only edit and execute views have one."""
    if isinstance(state, EditView | ExecuteView):
        return state.task
    return None


class ViewController:
    """Current view holder for one front end."""

    def __init__(
        self, notifications: NotificationCenter, state: ViewState | None = None
    ):
        self.notifications = notifications
        self.state: ViewState = state if state is not None else ListView()

    @property
    def selected_task(self) -> Task | None:
        return selected_task(self.state)

    def dispatch(self, event: ViewEvent) -> ViewState:
        result = transition(self.state, event)
        if result.notification is not None:
            self.notifications.success(result.notification)
        self.state = result.state
        return self.state
