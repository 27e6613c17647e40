"""FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from task_runner.api.tasks import router as tasks_router
from task_runner.core.auth import verify_api_key
from task_runner.core.database import create_tables
from task_runner.core.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    create_tables()
    yield


app = FastAPI(
    title="Task Runner API",
    description="Owner-tagged shell tasks with tracked execution history",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(tasks_router, tags=["tasks"])


@app.get("/health")
def health_check(api_key: str | None = Depends(verify_api_key)):
    """Health check endpoint."""
    return {"status": "healthy"}
