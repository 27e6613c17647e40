"""Tests for TaskService."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from task_runner.core.database import get_session
from task_runner.core.errors import ConflictError, NotFoundError, ValidationError
from task_runner.models import ExecutionRecord, UpsertRequest
from task_runner.services import TaskService
from task_runner.services.executor import ExecutionResult
from task_runner.services.task import APPEND_ATTEMPTS
from tests.conftest import create_test_task


def test_create_task():
    """Test creating a task."""
    task = TaskService.upsert_task(
        UpsertRequest(name="backup", owner="ops", command="echo hi")
    )

    assert task.id is not None
    assert task.name == "backup"
    assert task.owner == "ops"
    assert task.command == "echo hi"
    assert task.version == 1
    assert task.executions == []
    assert task.created_at is not None


def test_create_assigns_distinct_ids():
    first = create_test_task(name="first")
    second = create_test_task(name="second")

    assert first.id != second.id


def test_create_task_rejects_custom_command():
    with pytest.raises(ValidationError):
        TaskService.upsert_task(
            UpsertRequest(name="danger", owner="ops", command="rm -rf /")
        )

    assert TaskService.list_tasks() == []


def test_get_task_by_id():
    """Test getting a task by ID."""
    created_task = create_test_task(name="Task for retrieval")

    retrieved_task = TaskService.get_task_by_id(created_task.id)

    assert retrieved_task.id == created_task.id
    assert retrieved_task.name == created_task.name


def test_get_task_by_id_not_found():
    """Test getting a non-existent task."""
    non_existent_id = uuid4()

    with pytest.raises(NotFoundError) as exc_info:
        TaskService.get_task_by_id(non_existent_id)

    assert f"Task with id {non_existent_id} not found" in str(exc_info.value)


def test_list_tasks():
    """Test listing tasks in creation order."""
    create_test_task(name="Task 1")
    create_test_task(name="Task 2")
    create_test_task(name="Task 3")

    tasks = TaskService.list_tasks()

    assert [task.name for task in tasks] == ["Task 1", "Task 2", "Task 3"]


def test_search_tasks_by_name_is_case_insensitive():
    create_test_task(name="Nightly Backup")
    create_test_task(name="backup-db")
    create_test_task(name="Report")

    tasks = TaskService.search_tasks_by_name("BACKUP")

    assert [task.name for task in tasks] == ["Nightly Backup", "backup-db"]


def test_search_tasks_escapes_wildcards():
    create_test_task(name="100% done")
    create_test_task(name="1000 rows")

    tasks = TaskService.search_tasks_by_name("0%")

    assert [task.name for task in tasks] == ["100% done"]


def test_update_task_keeps_id_and_history():
    """Test that an update replaces fields but not executions."""
    task = create_test_task()
    ran = TaskService.run_task(task.id)

    updated = TaskService.upsert_task(
        UpsertRequest(id=task.id, name="renamed", owner="dev", command="date")
    )

    assert updated.id == task.id
    assert updated.name == "renamed"
    assert updated.owner == "dev"
    assert updated.command == "date"
    assert updated.version == 2
    assert updated.executions == ran.executions


def test_update_unknown_task():
    with pytest.raises(NotFoundError):
        TaskService.upsert_task(
            UpsertRequest(id=uuid4(), name="ghost", owner="ops", command="echo hi")
        )


def test_update_with_stale_version_conflicts():
    task = create_test_task()
    TaskService.upsert_task(task.to_upsert_request(name="first edit"))

    with pytest.raises(ConflictError):
        TaskService.upsert_task(task.to_upsert_request(name="second edit"))

    assert TaskService.get_task_by_id(task.id).name == "first edit"


def test_update_without_version_is_last_write_wins():
    task = create_test_task()
    TaskService.upsert_task(task.to_upsert_request(name="first edit"))

    updated = TaskService.upsert_task(
        task.to_upsert_request(name="last", version=None)
    )

    assert updated.name == "last"
    assert updated.version == 3


def test_delete_task():
    task = create_test_task()
    TaskService.run_task(task.id)

    TaskService.delete_task(task.id)

    assert task.id not in [t.id for t in TaskService.list_tasks()]
    with pytest.raises(NotFoundError):
        TaskService.get_task_by_id(task.id)


def test_delete_task_not_found():
    with pytest.raises(NotFoundError):
        TaskService.delete_task(uuid4())


def test_run_task_appends_one_execution():
    """Test that each run adds exactly one execution at the end."""
    task = create_test_task(command="echo hi")

    first = TaskService.run_task(task.id)
    second = TaskService.run_task(task.id)

    assert len(first.executions) == 1
    assert len(second.executions) == 2
    assert second.executions[0] == first.executions[0]
    execution = second.executions[-1]
    assert execution.output == "hi\n"
    assert execution.exit_code == 0
    assert execution.start_time <= execution.end_time


def test_run_task_uses_executor(mocker):
    task = create_test_task(command="echo mocked")
    result = ExecutionResult(
        start_time=task.created_at,
        end_time=task.created_at,
        output="error: boom",
        exit_code=3,
    )
    run = mocker.patch.object(TaskService.executor, "run", return_value=result)

    updated = TaskService.run_task(task.id)

    run.assert_called_once_with("echo mocked")
    assert updated.executions[0].output == "error: boom"
    assert updated.executions[0].exit_code == 3


def test_run_task_not_found():
    with pytest.raises(NotFoundError):
        TaskService.run_task(uuid4())


def test_run_task_rechecks_whitelist(mocker):
    """Test that a stored command no longer on the whitelist does not run."""
    task = create_test_task(command="echo hi")
    mocker.patch.object(TaskService.validator, "_allowed", ("date",))
    run = mocker.patch.object(TaskService.executor, "run")

    with pytest.raises(ValidationError):
        TaskService.run_task(task.id)

    run.assert_not_called()


def test_concurrent_runs_get_distinct_sequences(mocker):
    """Test that two runs finishing together both land in the history."""
    task = create_test_task(command="echo hi")
    barrier = threading.Barrier(2, timeout=5)
    started = datetime.now(UTC)

    def run_command(command):
        barrier.wait()
        return ExecutionResult(
            start_time=started,
            end_time=datetime.now(UTC),
            output=f"{threading.current_thread().name}\n",
            exit_code=0,
        )

    mocker.patch.object(TaskService.executor, "run", side_effect=run_command)

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [pool.submit(TaskService.run_task, task.id) for _ in range(2)]
        for future in futures:
            future.result(timeout=10)

    with get_session() as session:
        statement = select(ExecutionRecord.sequence).where(
            ExecutionRecord.task_id == task.id
        )
        sequences = sorted(session.execute(statement).scalars().all())

    assert sequences == [1, 2]
    assert len(TaskService.get_task_by_id(task.id).executions) == 2


def test_run_task_retries_taken_sequence(mocker):
    task = create_test_task(command="echo hi")
    append = TaskService._append_execution
    attempts = []

    def append_once_taken(task_id, result):
        attempts.append(task_id)
        if len(attempts) == 1:
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        return append(task_id, result)

    mocker.patch.object(
        TaskService, "_append_execution", side_effect=append_once_taken
    )

    updated = TaskService.run_task(task.id)

    assert len(attempts) == 2
    assert len(updated.executions) == 1


def test_run_task_gives_up_after_repeated_conflicts(mocker):
    task = create_test_task(command="echo hi")
    mocker.patch.object(
        TaskService,
        "_append_execution",
        side_effect=IntegrityError("INSERT", {}, Exception("UNIQUE")),
    )

    with pytest.raises(IntegrityError):
        TaskService.run_task(task.id)

    assert TaskService._append_execution.call_count == APPEND_ATTEMPTS


def test_search_tasks_by_name_folds_non_ascii_case():
    create_test_task(name="Émile report")
    create_test_task(name="Weekly backup")

    assert [task.name for task in TaskService.search_tasks_by_name("émile")] == [
        "Émile report"
    ]
    assert [task.name for task in TaskService.search_tasks_by_name("ÉMILE")] == [
        "Émile report"
    ]
