"""API key authentication."""

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from task_runner.core.config import settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def verify_api_key(api_key: str | None = Security(api_key_header)) -> str | None:
    """Verify API key from request header.

    Authentication is only enforced when API_SECRET_KEY is configured.
    """
    if not settings.api_secret_key:
        return api_key
    if api_key != settings.api_secret_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )
    return api_key
