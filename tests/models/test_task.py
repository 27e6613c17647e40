"""Tests for task models."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest
from pydantic import ValidationError

from task_runner.models import Task, TaskExecution, UpsertRequest

TEST_UUID = UUID("12345678-1234-5678-1234-567812345678")
START = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


def make_execution(offset_seconds: int = 0, output: str = "ok") -> TaskExecution:
    start = START + timedelta(seconds=offset_seconds)
    return TaskExecution(
        start_time=start, end_time=start + timedelta(seconds=1), output=output
    )


def test_task_parses_camel_case_json():
    """Test that wire JSON with camelCase keys populates snake_case fields."""
    task = Task.model_validate(
        {
            "id": str(TEST_UUID),
            "name": "backup",
            "owner": "ops",
            "command": "echo hi",
            "executions": [
                {
                    "startTime": "2025-01-01T12:00:00Z",
                    "endTime": "2025-01-01T12:00:01Z",
                    "output": "hi\n",
                    "exitCode": 0,
                }
            ],
        }
    )

    assert task.id == TEST_UUID
    assert task.version == 0
    assert task.executions[0].exit_code == 0
    assert task.latest_execution.output == "hi\n"


def test_task_serializes_with_aliases():
    """Test that tasks are dumped with camelCase keys."""
    task = Task(
        name="backup", owner="ops", command="echo hi", executions=[make_execution()]
    )

    data = task.model_dump(mode="json", by_alias=True)

    assert "startTime" in data["executions"][0]
    assert "createdAt" in data
    assert data["id"] is None


def test_execution_rejects_end_before_start():
    """Test that an execution window must not be inverted."""
    with pytest.raises(ValidationError, match="startTime must not be after endTime"):
        TaskExecution(start_time=START, end_time=START - timedelta(seconds=1))


def test_execution_allows_zero_length_window():
    execution = TaskExecution(start_time=START, end_time=START)

    assert execution.start_time == execution.end_time


def test_execution_is_immutable():
    execution = make_execution()

    with pytest.raises(ValidationError):
        execution.output = "changed"


def test_new_task_is_not_persisted():
    task = Task(name="backup", owner="ops", command="echo hi")

    assert not task.is_persisted
    assert task.executions == []
    assert task.latest_execution is None


def test_with_executions_replaces_history_on_copy():
    """Test that with_executions leaves the original task untouched."""
    task = Task(id=TEST_UUID, name="backup", owner="ops", command="echo hi")
    history = [make_execution(0), make_execution(10)]

    updated = task.with_executions(history)

    assert updated.executions == history
    assert task.executions == []
    assert updated.id == task.id


def test_extends_history_of_accepts_one_appended_execution():
    before = Task(
        id=TEST_UUID, name="backup", owner="ops", command="echo hi",
        executions=[make_execution(0)],
    )
    after = before.with_executions([*before.executions, make_execution(10)])

    assert after.extends_history_of(before)


def test_extends_history_of_rejects_rewritten_history():
    before = Task(
        id=TEST_UUID, name="backup", owner="ops", command="echo hi",
        executions=[make_execution(0, output="first")],
    )
    rewritten = before.with_executions(
        [make_execution(0, output="other"), make_execution(10)]
    )
    two_more = before.with_executions(
        [*before.executions, make_execution(10), make_execution(20)]
    )

    assert not rewritten.extends_history_of(before)
    assert not two_more.extends_history_of(before)


def test_to_upsert_request_carries_id_and_version():
    task = Task(id=TEST_UUID, name="backup", owner="ops", command="echo hi", version=3)

    request = task.to_upsert_request(command="date")

    assert request.id == TEST_UUID
    assert request.version == 3
    assert request.command == "date"
    assert request.name == "backup"


def test_upsert_request_payload_omits_missing_id():
    """Test that a create request does not send id or version."""
    request = UpsertRequest(name="backup", owner="ops", command="echo hi")

    assert request.to_payload() == {
        "name": "backup",
        "owner": "ops",
        "command": "echo hi",
    }


def test_upsert_request_payload_includes_id_for_updates():
    request = UpsertRequest(
        id=TEST_UUID, name="backup", owner="ops", command="echo hi", version=2
    )

    payload = request.to_payload()

    assert payload["id"] == str(TEST_UUID)
    assert payload["version"] == 2


@pytest.mark.parametrize(
    "field,value",
    [
        ("name", "x"),
        ("name", "x" * 101),
        ("owner", "o"),
        ("owner", "o" * 51),
        ("command", "e"),
        ("command", "echo " + "a" * 200),
        ("name", "   "),
    ],
)
def test_upsert_request_enforces_field_bounds(field, value):
    fields = {"name": "backup", "owner": "ops", "command": "echo hi"}
    fields[field] = value

    with pytest.raises(ValidationError):
        UpsertRequest(**fields)


def test_upsert_request_accepts_boundary_lengths():
    request = UpsertRequest(name="x" * 100, owner="o" * 50, command="ls" + " " * 198)

    assert len(request.name) == 100
    assert len(request.owner) == 50
