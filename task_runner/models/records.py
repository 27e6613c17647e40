"""Persistence records for tasks and their executions."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlmodel import Field, SQLModel


class TaskRecord(SQLModel, table=True):
    """Stored task definition."""

    __tablename__ = "tasks"

    # Primary key and timestamps
    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique identifier for the task",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True)),
        description="Timestamp when the task was created",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True)),
        description="Timestamp when the task was last updated",
    )

    # Task fields
    name: str = Field(
        sa_column=Column(String(100), index=True), description="Task display name"
    )
    owner: str = Field(sa_column=Column(String(50)), description="Task owner")
    command: str = Field(
        sa_column=Column(String(200)), description="Whitelisted command line"
    )
    version: int = Field(
        default=1, description="Incremented on every update of the definition"
    )


class ExecutionRecord(SQLModel, table=True):
    """One completed execution of a task."""

    __tablename__ = "task_executions"
    __table_args__ = (UniqueConstraint("task_id", "sequence"),)

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique identifier for the execution",
    )

    # Foreign key to task
    task_id: UUID = Field(
        sa_column=Column(ForeignKey("tasks.id", ondelete="CASCADE"), index=True),
        description="ID of the task this execution belongs to",
    )

    # Position in the task's history, starting at 1
    sequence: int = Field(sa_column=Column(Integer, nullable=False))

    start_time: datetime = Field(sa_column=Column(DateTime(timezone=True)))
    end_time: datetime = Field(sa_column=Column(DateTime(timezone=True)))
    output: str = Field(
        default="",
        sa_column=Column(Text),
        description="Captured stdout and stderr",
    )
    exit_code: int | None = Field(default=None, description="Process exit code")
