"""
Command execution — run an external program and capture its output.

This is the most fundamental capability: every probe that shells out
goes through ``execute`` or ``execute_privileged``. Both return an
ExecutionResult and NEVER raise; a command that cannot start is
reported as data with exit code -1.

There is no timeout. A command that never exits blocks the caller.
"""

from __future__ import annotations

import logging
import subprocess
import time

from agentdeps.core.models.execution import EXIT_CODE_NOT_RUN, ExecutionResult

logger = logging.getLogger(__name__)

# Run inside the mount and IPC namespaces of the host's init process.
PRIVILEGED_PREFIX: tuple[str, ...] = ("nsenter", "-t", "1", "-m", "-i", "--")


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def execute(command: str, *args: str) -> ExecutionResult:
    """Run *command* with *args* to completion and capture the result.

    Output is captured as raw bytes and decoded without trimming or
    newline translation. When the program exits non-zero without
    writing to stderr, stderr carries ``exit status N`` instead.
    """
    argv = [command, *args]
    logger.debug("Executing: %s", argv)
    start = time.monotonic()

    try:
        result = subprocess.run(argv, capture_output=True, check=False)
    except OSError as e:
        logger.debug("Failed to start %s: %s", command, e)
        return ExecutionResult(stdout="", stderr=str(e), exit_code=EXIT_CODE_NOT_RUN)

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = _decode(result.stdout)
    stderr = _decode(result.stderr)

    # Negative return codes mean the child was killed by a signal
    exit_code = result.returncode if result.returncode >= 0 else EXIT_CODE_NOT_RUN
    if exit_code != 0 and not stderr:
        if result.returncode < 0:
            stderr = f"signal: killed by signal {-result.returncode}"
        else:
            stderr = f"exit status {exit_code}"

    logger.debug("%s exited with %d after %dms", command, exit_code, elapsed_ms)
    return ExecutionResult(stdout=stdout, stderr=stderr, exit_code=exit_code)


def execute_privileged(command: str, *args: str) -> ExecutionResult:
    """Run *command* in the host namespaces via ``nsenter``.

    The result shape is identical to :func:`execute`.
    """
    return execute(PRIVILEGED_PREFIX[0], *PRIVILEGED_PREFIX[1:], command, *args)
