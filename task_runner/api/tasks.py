"""Task API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from task_runner.core.auth import verify_api_key
from task_runner.core.errors import ConflictError, NotFoundError, ValidationError
from task_runner.models import Task, UpsertRequest
from task_runner.services import TaskService

router = APIRouter()


def _not_found(e: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.get("/tasks", response_model=Task | list[Task])
def get_tasks(
    task_id: UUID | None = Query(default=None, alias="id"),
    name: str | None = None,
    api_key: str | None = Depends(verify_api_key),
):
    """List all tasks, fetch one by ``id``, or search by ``name``."""
    if task_id is not None:
        try:
            return TaskService.get_task_by_id(task_id)
        except NotFoundError as e:
            raise _not_found(e) from e

    if name is not None and name.strip():
        return TaskService.search_tasks_by_name(name)

    return TaskService.list_tasks()


@router.put("/tasks", response_model=Task)
def upsert_task(request: UpsertRequest, api_key: str | None = Depends(verify_api_key)):
    """Create a task, or replace the one named by ``id``."""
    try:
        return TaskService.upsert_task(request)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except NotFoundError as e:
        raise _not_found(e) from e
    except ConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.message,
        ) from e


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: UUID, api_key: str | None = Depends(verify_api_key)):
    """Delete a task and its history."""
    try:
        TaskService.delete_task(task_id)
    except NotFoundError as e:
        raise _not_found(e) from e

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/tasks/{task_id}/run", response_model=Task)
def run_task(task_id: UUID, api_key: str | None = Depends(verify_api_key)):
    """Run the task's command and return the task with the new execution."""
    try:
        return TaskService.run_task(task_id)
    except NotFoundError as e:
        raise _not_found(e) from e
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
