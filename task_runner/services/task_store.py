"""HTTP client for the task backend."""

import logging
from typing import Any
from uuid import UUID

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from task_runner.core.config import settings
from task_runner.core.errors import (
    ConflictError,
    HttpError,
    NetworkError,
    NotFoundError,
    StoreError,
)
from task_runner.models import Task, UpsertRequest

logger = logging.getLogger(__name__)

TASKS_PATH = "/tasks"

_task_list_adapter = TypeAdapter(list[Task])


def _error_message(response: httpx.Response) -> str:
    """Extract the failure message, unwrapping FastAPI ``detail`` bodies."""
    text = response.text
    if "application/json" in response.headers.get("content-type", ""):
        try:
            detail = response.json().get("detail")
        except (ValueError, AttributeError):
            detail = None
        if isinstance(detail, str):
            return detail
        if isinstance(detail, list):
            return "; ".join(str(item.get("msg", item)) for item in detail)
    return text or response.reason_phrase


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return

    message = _error_message(response)
    status = response.status_code
    if status == 404:
        raise NotFoundError(message)
    if status == 409:
        raise ConflictError(message)
    raise HttpError(status, message)


def _json_body(response: httpx.Response) -> Any | None:
    """Decoded JSON body, or None when the response is not JSON."""
    if "application/json" not in response.headers.get("content-type", ""):
        return None
    try:
        return response.json()
    except ValueError as e:
        logger.error(f"Malformed JSON in task backend response: {e}")
        raise StoreError(
            f"Malformed JSON in response: {e}", response.status_code
        ) from e


class TaskStore:
    """Async client for the ``/tasks`` endpoints.

    The backend is the only source of truth; the store keeps no task state of
    its own. Every failure surfaces as a StoreError subclass.
    """

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._owns_client = client is None
        self._client = client if client is not None else TaskStore.get_client()

    @staticmethod
    def get_client(
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> httpx.AsyncClient:
        """Get configured HTTP client.

        Args:
            base_url: Backend base URL (defaults to TASK_RUNNER_URL)
            api_key: API key sent as X-API-Key (defaults to API_SECRET_KEY;
                omitted when empty)
            timeout: Request timeout in seconds (defaults to REQUEST_TIMEOUT)

        Returns:
            Configured httpx.AsyncClient
        """
        if base_url is None:
            base_url = settings.task_runner_url
        if api_key is None:
            api_key = settings.api_secret_key
        if timeout is None:
            timeout = settings.request_timeout

        headers = {"X-API-Key": api_key} if api_key else {}
        return httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)

    async def aclose(self) -> None:
        """Close the underlying client if this store created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "TaskStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"{method} {url} failed: {e!r}")
            raise NetworkError(f"Could not reach task backend: {e}") from e

        _raise_for_status(response)
        return response

    @staticmethod
    def _task(response: httpx.Response) -> Task:
        data = _json_body(response)
        if data is None:
            raise StoreError(
                "Expected a JSON task in the response", response.status_code
            )
        try:
            return Task.model_validate(data)
        except PydanticValidationError as e:
            raise StoreError(
                f"Unexpected task in response: {e.error_count()} invalid field(s)",
                response.status_code,
            ) from e

    @staticmethod
    def _task_list(response: httpx.Response) -> list[Task]:
        data = _json_body(response)
        if data is None:
            return []
        try:
            return _task_list_adapter.validate_python(data)
        except PydanticValidationError as e:
            raise StoreError(
                f"Unexpected task list in response: {e.error_count()} invalid "
                "field(s)",
                response.status_code,
            ) from e

    async def list_all(self) -> list[Task]:
        """List every task."""
        response = await self._request("GET", TASKS_PATH)
        return self._task_list(response)

    async def get_by_id(self, task_id: UUID | str) -> Task:
        """Get one task.

        Raises:
            NotFoundError: If no task has that id
        """
        response = await self._request("GET", TASKS_PATH, params={"id": str(task_id)})
        return self._task(response)

    async def search_by_name(self, query: str) -> list[Task]:
        """Case-insensitive containment search on task names.

        Raises:
            ValueError: If ``query`` is blank; callers list all tasks instead
        """
        if not query.strip():
            raise ValueError("Search query must not be blank")
        response = await self._request("GET", TASKS_PATH, params={"name": query})
        return self._task_list(response)

    async def upsert(self, request: UpsertRequest) -> Task:
        """Create a task (no id) or replace an existing one (with id)."""
        response = await self._request("PUT", TASKS_PATH, json=request.to_payload())
        return self._task(response)

    async def delete(self, task_id: UUID | str) -> None:
        """Delete a task.

        Raises:
            NotFoundError: If no task has that id
        """
        await self._request("DELETE", f"{TASKS_PATH}/{task_id}")

    async def run(self, task_id: UUID | str) -> Task:
        """Run a task's command and return it with the new execution appended."""
        response = await self._request("PUT", f"{TASKS_PATH}/{task_id}/run")
        return self._task(response)
