"""Application configuration."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_ALLOWED_COMMANDS = "echo,date,time,whoami,hostname,pwd,ls,dir"


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Environment
    env: str = os.getenv("APP_ENV", "development")
    api_secret_key: str = os.getenv("API_SECRET_KEY", "")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database (backend only)
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./task_runner.db")

    # Client
    task_runner_url: str = os.getenv("TASK_RUNNER_URL", "http://localhost:8080")
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "30"))

    # Execution
    command_timeout: int = int(os.getenv("COMMAND_TIMEOUT", "60"))  # seconds
    allowed_commands: list[str] = _split_csv(
        os.getenv("ALLOWED_COMMANDS", DEFAULT_ALLOWED_COMMANDS)
    )


settings = Settings()
