"""Subprocess execution for the external tools (nmap, showmount, mount).

Philosophy:
- Single responsibility: run one command, never raise for its outcome
- Standard library only
- Output is drained on background threads so chatty tools cannot deadlock

Public API (the "studs"):
    SubprocessResult: Result dataclass
    safe_run: Main execution function
    with_sudo: Prefix a command with sudo when requested
"""

import logging
import shlex
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Exit code used by shells for "command not found"
COMMAND_NOT_FOUND = 127


@dataclass
class SubprocessResult:
    """Result of subprocess execution."""

    command: list[str]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    def error_summary(self) -> str:
        """Short, single-line description of why the command failed."""
        if self.timed_out:
            return f"{self.command[0]} timed out"
        detail = (self.stderr or self.stdout).strip().splitlines()
        if detail:
            return f"{self.command[0]} exited {self.returncode}: {detail[-1]}"
        return f"{self.command[0]} exited {self.returncode}"


def with_sudo(cmd: list[str], use_sudo: bool) -> list[str]:
    """Return cmd prefixed with sudo when use_sudo is set."""
    return ["sudo", *cmd] if use_sudo else list(cmd)


def safe_run(
    cmd: list[str],
    timeout: float | None = 120,
    cwd: Path | None = None,
    env: dict | None = None,
) -> SubprocessResult:
    """
    Execute a command and capture its output.

    Never raises for command failures: a missing binary yields returncode
    127, OS errors yield 1, and a timeout kills the process and sets
    timed_out.

    Args:
        cmd: Command and arguments (never passed through a shell)
        timeout: Timeout in seconds (None = no timeout)
        cwd: Working directory
        env: Environment variables

    Returns:
        SubprocessResult with output and exit code

    Example:
        >>> result = safe_run(["showmount", "-e", "10.0.0.4"])
        >>> if result.succeeded:
        ...     print(result.stdout)
    """
    logger.debug(f"Running: {shlex.join(cmd)}")

    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=env,
        )
    except FileNotFoundError:
        return SubprocessResult(
            command=cmd,
            returncode=COMMAND_NOT_FOUND,
            stdout="",
            stderr=f"Command not found: {cmd[0] if cmd else 'unknown'}",
        )
    except OSError as e:
        return SubprocessResult(
            command=cmd,
            returncode=1,
            stdout="",
            stderr=f"Error executing command: {e!s}",
        )

    stdout_data: list[bytes] = []
    stderr_data: list[bytes] = []

    def drain_pipe(pipe, storage):
        try:
            data = pipe.read()
            if data:
                storage.append(data)
        except OSError:
            # Pipe closed while the process was being killed
            pass

    drains = [
        threading.Thread(target=drain_pipe, args=(process.stdout, stdout_data), daemon=True),
        threading.Thread(target=drain_pipe, args=(process.stderr, stderr_data), daemon=True),
    ]
    for thread in drains:
        thread.start()

    timed_out = False
    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        logger.debug(f"Timed out after {timeout}s: {cmd[0]}")
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    for thread in drains:
        thread.join(timeout=1)

    returncode = process.returncode if process.returncode is not None else -1

    result = SubprocessResult(
        command=cmd,
        returncode=returncode,
        stdout=b"".join(stdout_data).decode("utf-8", errors="replace"),
        stderr=b"".join(stderr_data).decode("utf-8", errors="replace"),
        timed_out=timed_out,
    )
    logger.debug(f"{cmd[0]} finished with exit code {result.returncode}")
    return result


__all__ = ["SubprocessResult", "safe_run", "with_sudo"]
