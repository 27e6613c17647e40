"""Task Runner CLI - command-line front end for the task backend."""

import asyncio
from uuid import UUID

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from task_runner.core.errors import StoreError
from task_runner.core.logging import configure_logging
from task_runner.models import ExecutionStatus, Task
from task_runner.services import (
    CommandKind,
    CommandValidator,
    ExecutionController,
    ListController,
    Notification,
    NotificationCenter,
    NotificationLevel,
    TaskFormController,
    TaskStore,
    ViewController,
)
from task_runner.services.view_controller import (
    Cancelled,
    Closed,
    CreateRequested,
    CreateView,
    EditRequested,
    EditView,
    ExecuteView,
    ListView,
    RunRequested,
    Saved,
)

app = typer.Typer(help="Task Runner CLI")
task_app = typer.Typer(help="Task management commands")
app.add_typer(task_app, name="task")

console = Console()

LIST_ACTIONS = escape(
    "[c]reate, [e]dit N, [r]un N, [d]elete N, [s]earch TEXT, [l]ist, [q]uit"
)

NOTIFICATION_ICONS = {
    NotificationLevel.SUCCESS: "[green]✓[/green]",
    NotificationLevel.INFO: "[blue]•[/blue]",
    NotificationLevel.ERROR: "[red]✗[/red]",
}


def print_notification(notification: Notification) -> None:
    icon = NOTIFICATION_ICONS[notification.level]
    console.print(f"{icon} {escape(notification.message)}")


def make_notifications() -> NotificationCenter:
    return NotificationCenter(listener=print_notification)


def render_tasks(tasks: list[Task], title: str = "Tasks") -> None:
    if not tasks:
        console.print("[yellow]No tasks found[/yellow]")
        return

    table = Table(title=f"{title} ({len(tasks)})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Owner", style="magenta")
    table.add_column("Command", style="green")
    table.add_column("Runs", justify="right")

    for index, task in enumerate(tasks, 1):
        table.add_row(
            str(index),
            str(task.id)[:8],  # Show first 8 chars of UUID
            escape(task.name),
            escape(task.owner),
            escape(task.command),
            str(len(task.executions)),
        )

    console.print(table)


def render_executions(task: Task) -> None:
    console.print(f"[bold]{escape(task.name)}[/bold] [dim]({task.id})[/dim]")
    console.print(f"  Owner: {escape(task.owner)}")
    console.print(f"  Command: [green]{escape(task.command)}[/green]")

    if not task.executions:
        console.print("[yellow]No executions yet[/yellow]")
        return

    table = Table(title=f"Executions ({len(task.executions)})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Started", style="dim")
    table.add_column("Duration", justify="right")
    table.add_column("Status")
    table.add_column("Output", style="white")

    for index, execution in enumerate(task.executions, 1):
        status = ExecutionController.classify(execution)
        status_style = "green" if status is ExecutionStatus.SUCCESS else "red"
        output = execution.output.strip()
        output = output[:60] + "..." if len(output) > 60 else output
        table.add_row(
            str(index),
            execution.start_time.isoformat(timespec="seconds"),
            ExecutionController.duration(execution),
            f"[{status_style}]{status}[/{status_style}]",
            escape(output),
        )

    console.print(table)


def print_latest_output(task: Task) -> None:
    latest = task.latest_execution
    if latest is not None and latest.output:
        console.print("\n[bold]Output:[/bold]")
        console.print(latest.output.rstrip(), markup=False, highlight=False)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Manage tasks on a task runner backend."""
    configure_logging("DEBUG" if verbose else "WARNING")


async def _list_tasks(search: str) -> list[Task] | None:
    async with TaskStore() as store:
        controller = ListController(store, make_notifications())
        if not await controller.search(search):
            return None
        return controller.tasks


@task_app.command("list")
def list_tasks(
    search: str = typer.Option("", "--search", "-s", help="Filter by name"),
):
    """List tasks, optionally filtered by name."""
    tasks = asyncio.run(_list_tasks(search))
    if tasks is None:
        raise typer.Exit(1)

    render_tasks(tasks)


async def _get_task(task_id: UUID) -> Task:
    async with TaskStore() as store:
        return await store.get_by_id(task_id)


def fetch_task(task_id: UUID) -> Task:
    """Fetch a task or exit with an error."""
    try:
        return asyncio.run(_get_task(task_id))
    except StoreError as e:
        console.print(f"[red]✗[/red] Could not load task {task_id}: {e}")
        raise typer.Exit(1) from e


@task_app.command("show")
def show_task(task_id: UUID = typer.Argument(..., help="Task ID")):
    """Show a task and its execution history."""
    render_executions(fetch_task(task_id))


async def _submit(
    task: Task | None, name: str, owner: str, command: str
) -> Task | None:
    async with TaskStore() as store:
        form = TaskFormController(store, make_notifications(), task=task)
        return await form.submit(name, owner, command)


@task_app.command("create")
def create_task(
    name: str = typer.Option(..., "--name", help="Task name"),
    owner: str = typer.Option(..., "--owner", help="Task owner"),
    command: str = typer.Option(..., "--command", help="Whitelisted command"),
):
    """Create a new task."""
    task = asyncio.run(_submit(None, name, owner, command))
    if task is None:
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Task created: [bold]{task.id}[/bold]")


@task_app.command("edit")
def edit_task(
    task_id: UUID = typer.Argument(..., help="Task ID"),
    name: str = typer.Option(None, "--name", help="New task name"),
    owner: str = typer.Option(None, "--owner", help="New task owner"),
    command: str = typer.Option(None, "--command", help="New command"),
):
    """Update a task's definition; its history is kept."""
    current = fetch_task(task_id)
    task = asyncio.run(
        _submit(
            current,
            name if name is not None else current.name,
            owner if owner is not None else current.owner,
            command if command is not None else current.command,
        )
    )
    if task is None:
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Task updated: [bold]{task.id}[/bold]")
    console.print(f"  Version: {task.version}")


async def _delete(task_id: UUID) -> bool:
    async with TaskStore() as store:
        controller = ListController(store, make_notifications())
        return await controller.remove(task_id)


@task_app.command("delete")
def delete_task(task_id: UUID = typer.Argument(..., help="Task ID")):
    """Delete a task and its history."""
    if not asyncio.run(_delete(task_id)):
        raise typer.Exit(1)


async def _run(task: Task) -> Task | None:
    async with TaskStore() as store:
        controller = ExecutionController(store, make_notifications(), task)
        return await controller.run()


@task_app.command("run")
def run_task(task_id: UUID = typer.Argument(..., help="Task ID")):
    """Run a task now and print its output."""
    task = asyncio.run(_run(fetch_task(task_id)))
    if task is None:
        raise typer.Exit(1)

    latest = task.latest_execution
    status = ExecutionController.classify(latest)
    console.print(
        f"  Duration: {ExecutionController.duration(latest)}  Status: {status}"
    )
    print_latest_output(task)


def _pick(tasks: list[Task], argument: str) -> Task | None:
    """Resolve a 1-based row number or an id prefix to a listed task."""
    argument = argument.strip()
    if not argument:
        return None
    if argument.isdigit():
        index = int(argument)
        return tasks[index - 1] if 0 < index <= len(tasks) else None
    matches = [task for task in tasks if str(task.id).startswith(argument)]
    return matches[0] if len(matches) == 1 else None


def _ask(label: str, current: str | None) -> str:
    if current is None:
        return Prompt.ask(label)
    return Prompt.ask(label, default=current)


async def _list_view(view: ViewController, listing: ListController) -> bool:
    """Handle one list-view command; returns False when the user quits."""
    render_tasks(listing.tasks)
    choice = Prompt.ask(LIST_ACTIONS, default="l")
    action, _, argument = choice.strip().partition(" ")
    action = action.lower()

    if action == "q":
        return False
    if action == "c":
        view.dispatch(CreateRequested())
    elif action in ("e", "r", "d"):
        task = _pick(listing.tasks, argument)
        if task is None:
            console.print("[yellow]No such task[/yellow]")
        elif action == "e":
            view.dispatch(EditRequested(task))
        elif action == "r":
            view.dispatch(RunRequested(task))
        elif Confirm.ask(f"Delete '{escape(task.name)}'?"):
            await listing.remove(task.id)
    elif action == "s":
        await listing.search(argument)
    else:
        await listing.refresh()
    return True


async def _form_view(
    view: ViewController,
    listing: ListController,
    store: TaskStore,
    validator: CommandValidator,
) -> None:
    task = view.selected_task
    form = TaskFormController(store, view.notifications, validator, task=task)
    allowed = ", ".join(validator.allowed_commands)
    console.print(f"[dim]Allowed commands: {allowed}[/dim]")

    name = _ask("Name", task.name if task else None)
    owner = _ask("Owner", task.owner if task else None)
    command = _ask("Command", task.command if task else None)
    if form.command_hint(command) is CommandKind.CUSTOM:
        console.print("[yellow]This command is not on the whitelist[/yellow]")

    if not Confirm.ask("Save?", default=True):
        view.dispatch(Cancelled())
        return

    saved = await form.submit(name, owner, command)
    if saved is None:
        if not Confirm.ask("Try again?", default=True):
            view.dispatch(Cancelled())
        return

    view.dispatch(Saved(saved))
    await listing.refresh()


async def _execute_view(
    view: ViewController, listing: ListController, store: TaskStore
) -> None:
    controller = ExecutionController(store, view.notifications, view.selected_task)
    while True:
        render_executions(controller.task)
        choice = Prompt.ask(
            escape("[r]un, [b]ack"), choices=["r", "b"], default="r"
        )
        if choice == "b":
            break
        if await controller.run() is not None:
            print_latest_output(controller.task)

    view.dispatch(Closed())
    await listing.refresh()


async def _console() -> None:
    notifications = make_notifications()
    validator = CommandValidator()
    async with TaskStore() as store:
        view = ViewController(notifications)
        listing = ListController(store, notifications)
        await listing.refresh()

        while True:
            notifications.clear()
            state = view.state
            if isinstance(state, ListView):
                if not await _list_view(view, listing):
                    return
            elif isinstance(state, CreateView | EditView):
                await _form_view(view, listing, store, validator)
            elif isinstance(state, ExecuteView):
                await _execute_view(view, listing, store)


@app.command("console")
def interactive_console():
    """Interactive task console: list, create, edit and run tasks."""
    asyncio.run(_console())


if __name__ == "__main__":
    app()
