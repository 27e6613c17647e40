"""Task service for backend business logic."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from task_runner.core.database import get_session
from task_runner.core.errors import ConflictError, NotFoundError
from task_runner.models import (
    ExecutionRecord,
    Task,
    TaskExecution,
    TaskRecord,
    UpsertRequest,
)
from task_runner.services.command_validator import CommandValidator
from task_runner.services.executor import CommandExecutor, ExecutionResult

logger = logging.getLogger(__name__)

# Concurrent runs of one task may race for the same sequence number
APPEND_ATTEMPTS = 3


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _to_task(record: TaskRecord, executions: list[ExecutionRecord]) -> Task:
    return Task(
        id=record.id,
        name=record.name,
        owner=record.owner,
        command=record.command,
        version=record.version,
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
        executions=[
            TaskExecution(
                start_time=_as_utc(execution.start_time),
                end_time=_as_utc(execution.end_time),
                output=execution.output,
                exit_code=execution.exit_code,
            )
            for execution in executions
        ],
    )


class TaskService:
    """Service for task-related business logic."""

    validator: CommandValidator = CommandValidator()
    executor: CommandExecutor = CommandExecutor()

    @staticmethod
    def _get_record(session, task_id: UUID) -> TaskRecord:
        statement = select(TaskRecord).where(TaskRecord.id == task_id)
        record = session.execute(statement).scalar_one_or_none()

        if record is None:
            raise NotFoundError(f"Task with id {task_id} not found")

        return record

    @staticmethod
    def _load_tasks(session, records: list[TaskRecord]) -> list[Task]:
        if not records:
            return []

        statement = (
            select(ExecutionRecord)
            .where(ExecutionRecord.task_id.in_([record.id for record in records]))
            .order_by(ExecutionRecord.sequence, ExecutionRecord.start_time)
        )
        by_task: dict[UUID, list[ExecutionRecord]] = {}
        for execution in session.execute(statement).scalars():
            by_task.setdefault(execution.task_id, []).append(execution)

        return [_to_task(record, by_task.get(record.id, [])) for record in records]

    @staticmethod
    def list_tasks() -> list[Task]:
        """List all tasks, oldest first."""
        with get_session() as session:
            statement = select(TaskRecord).order_by(TaskRecord.created_at)
            records = list(session.execute(statement).scalars().all())
            return TaskService._load_tasks(session, records)

    @staticmethod
    def get_task_by_id(task_id: UUID) -> Task:
        """Get task by ID."""
        with get_session() as session:
            record = TaskService._get_record(session, task_id)
            return TaskService._load_tasks(session, [record])[0]

    @staticmethod
    def search_tasks_by_name(query: str) -> list[Task]:
        """Case-insensitive containment search on task names."""
        name_matches = func.lower(TaskRecord.name).contains(
            query.lower(), autoescape=True
        )
        with get_session() as session:
            statement = (
                select(TaskRecord).where(name_matches).order_by(TaskRecord.created_at)
            )
            records = list(session.execute(statement).scalars().all())
            return TaskService._load_tasks(session, records)

    @staticmethod
    def upsert_task(request: UpsertRequest) -> Task:
        """Create a task when the request has no id, otherwise replace it.

        Raises:
            ValidationError: If the command prefix is not whitelisted
            NotFoundError: If the id does not exist
            ConflictError: If the request version is stale
        """
        TaskService.validator.check(request.command)

        with get_session() as session:
            if request.id is None:
                record = TaskRecord(
                    name=request.name,
                    owner=request.owner,
                    command=request.command,
                )
                logger.info(f"Creating task {request.name!r} for {request.owner!r}")
            else:
                record = TaskService._get_record(session, request.id)
                if request.version is not None and request.version != record.version:
                    raise ConflictError(
                        f"Task {request.id} is at version {record.version}, "
                        f"update was based on version {request.version}"
                    )
                record.name = request.name
                record.owner = request.owner
                record.command = request.command
                record.version += 1
                record.updated_at = datetime.now(UTC)
                logger.info(f"Updating task {request.id} to version {record.version}")

            session.add(record)
            session.commit()
            session.refresh(record)
            return TaskService._load_tasks(session, [record])[0]

    @staticmethod
    def delete_task(task_id: UUID) -> None:
        """Delete a task and its execution history."""
        with get_session() as session:
            record = TaskService._get_record(session, task_id)
            session.execute(
                delete(ExecutionRecord).where(ExecutionRecord.task_id == task_id)
            )
            session.delete(record)
            logger.info(f"Deleted task {task_id}")

    @staticmethod
    def run_task(task_id: UUID) -> Task:
        """Execute the task's command and append one execution.

        Blocks until the command finishes.
        """
        command = TaskService.get_task_by_id(task_id).command
        # Definitions stored before a whitelist change must not run
        TaskService.validator.check(command)

        logger.info(f"Running task {task_id}: {command}")
        result = TaskService.executor.run(command)

        for attempt in range(1, APPEND_ATTEMPTS + 1):
            try:
                return TaskService._append_execution(task_id, result)
            except IntegrityError:
                if attempt == APPEND_ATTEMPTS:
                    raise
                logger.warning(
                    f"Execution sequence taken for task {task_id}, retrying"
                )

    @staticmethod
    def _append_execution(task_id: UUID, result: ExecutionResult) -> Task:
        with get_session() as session:
            statement = (
                select(TaskRecord).where(TaskRecord.id == task_id).with_for_update()
            )
            record = session.execute(statement).scalar_one_or_none()
            if record is None:
                raise NotFoundError(f"Task with id {task_id} not found")

            last_statement = select(
                func.coalesce(func.max(ExecutionRecord.sequence), 0)
            ).where(ExecutionRecord.task_id == task_id)
            last = session.execute(last_statement).scalar()

            session.add(
                ExecutionRecord(
                    task_id=task_id,
                    sequence=last + 1,
                    start_time=result.start_time,
                    end_time=result.end_time,
                    output=result.output,
                    exit_code=result.exit_code,
                )
            )
            session.commit()
            return TaskService._load_tasks(session, [record])[0]
