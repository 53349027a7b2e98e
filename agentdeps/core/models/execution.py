"""
ExecutionResult — the (stdout, stderr, exit_code) triple.

Produced by every command execution and by every probe. The triple is
data, never an exception: a command that failed to start still yields a
well-formed result with a non-zero exit code.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# Exit code reported when the command never ran or was killed by a signal.
EXIT_CODE_NOT_RUN = -1


class ExecutionResult(BaseModel):
    """Outcome of running an external command or a probe."""

    model_config = ConfigDict(frozen=True)

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.exit_code == 0

    def as_tuple(self) -> tuple[str, str, int]:
        """The result as a plain ``(stdout, stderr, exit_code)`` tuple."""
        return self.stdout, self.stderr, self.exit_code

    @classmethod
    def success(cls, stdout: str = "") -> ExecutionResult:
        """Create a zero-exit result."""
        return cls(stdout=stdout, stderr="", exit_code=0)

    @classmethod
    def failure(cls, stderr: str, exit_code: int = 1, stdout: str = "") -> ExecutionResult:
        """Create a failed result with a diagnostic on stderr."""
        return cls(stdout=stdout, stderr=stderr, exit_code=exit_code)
