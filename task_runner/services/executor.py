"""Local command executor used by the backend."""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from datetime import UTC, datetime

from task_runner.core.config import settings

logger = logging.getLogger(__name__)

EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of running one command."""

    start_time: datetime
    end_time: datetime
    output: str
    exit_code: int


class CommandExecutor:
    """Run a command line without a shell and capture its output.

    Spawn failures and timeouts are reported as results with a non-zero exit
    code so that every run produces exactly one execution.
    """

    def __init__(self, timeout: int | None = None):
        self.timeout = timeout if timeout is not None else settings.command_timeout

    def run(self, command: str) -> ExecutionResult:
        start_time = datetime.now(UTC)
        try:
            argv = shlex.split(command)
        except ValueError as e:
            # unbalanced quotes
            return self._result(
                command,
                start_time,
                f"error: could not parse command: {e}",
                EXIT_NOT_FOUND,
            )

        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
            output = completed.stdout + completed.stderr
            exit_code = completed.returncode
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Command timed out after {self.timeout}s: {command}")
            output = _decode(e.stdout) + _decode(e.stderr)
            output += f"\nerror: command timed out after {self.timeout}s"
            exit_code = EXIT_TIMEOUT
        except (FileNotFoundError, PermissionError) as e:
            logger.warning(f"Could not start command {command!r}: {e}")
            output = f"error: {e}"
            exit_code = EXIT_NOT_FOUND

        return self._result(command, start_time, output, exit_code)

    @staticmethod
    def _result(
        command: str, start_time: datetime, output: str, exit_code: int
    ) -> ExecutionResult:
        end_time = datetime.now(UTC)
        logger.info(f"Command {command!r} exited with {exit_code}")
        return ExecutionResult(
            start_time=start_time,
            end_time=end_time,
            output=output,
            exit_code=exit_code,
        )


def _decode(stream: bytes | str | None) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode(errors="replace")
    return stream
