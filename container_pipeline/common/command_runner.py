from __future__ import annotations

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(slots=True)
class CommandResult:
    """Represents the outcome of an external command execution."""

    command: Sequence[str]
    return_code: Optional[int]
    stdout: str
    stderr: str
    duration: float
    timed_out: bool
    tool_available: bool

    def succeeded(self) -> bool:
        """Return True when the command finished successfully."""
        return self.return_code == 0 and not self.timed_out and self.tool_available

    def error_text(self, default: str = "Unknown error") -> str:
        """Return the most useful diagnostic text for a failed command."""
        if self.timed_out:
            return f"timed out after {self.duration:.1f}s"
        return self.stderr.strip() or self.stdout.strip() or default


class CommandRunner:
    """Thin wrapper over subprocess that captures execution metadata."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def run(
        self,
        command: Sequence[str],
        *,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Execute a command and capture stdout, stderr, timings, and failures."""
        start = time.time()
        try:
            self.logger.debug("Executing command: %s", shlex.join(command))
            completed = subprocess.run(
                list(command),
                capture_output=True,
                text=True,
                timeout=timeout,
            )
            duration = time.time() - start
            return CommandResult(
                command=command,
                return_code=completed.returncode,
                stdout=completed.stdout,
                stderr=completed.stderr,
                duration=duration,
                timed_out=False,
                tool_available=True,
            )
        except subprocess.TimeoutExpired as exc:
            duration = time.time() - start
            self.logger.warning("Command timed out after %.2fs: %s", duration, shlex.join(command))
            return CommandResult(
                command=command,
                return_code=None,
                stdout=_decode(exc.stdout),
                stderr=_decode(exc.stderr),
                duration=duration,
                timed_out=True,
                tool_available=True,
            )
        except FileNotFoundError:
            duration = time.time() - start
            self.logger.error("Command not found: %s", command[0])
            return CommandResult(
                command=command,
                return_code=None,
                stdout="",
                stderr=f"Command not found: {command[0]}",
                duration=duration,
                timed_out=False,
                tool_available=False,
            )


def _decode(output: Optional[str | bytes]) -> str:
    # TimeoutExpired carries bytes even when text=True was requested
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
