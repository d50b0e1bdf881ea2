"""Bounded async subprocess execution for git commands."""

from __future__ import annotations

import asyncio
import os
import signal

_OUTPUT_LIMIT = 2000


def _kill_group(proc: asyncio.subprocess.Process) -> None:
    try:
        os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
    except (ProcessLookupError, OSError):
        proc.kill()


async def run_command(
    cmd: list[str],
    env: dict[str, str] | None = None,
    timeout: float = 60.0,
    cwd: str | None = None,
) -> tuple[int, str, str]:
    """Run a subprocess with timeout, return (returncode, stdout, stderr).

    Uses asyncio.create_subprocess_exec -- never shell=True. The child gets
    its own session so a timed-out or cancelled ``git clone`` is killed
    together with its helper processes. Output is truncated to keep error
    messages readable.
    """
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=env,
        cwd=cwd,
        start_new_session=True,
    )
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        _kill_group(proc)
        await proc.wait()
        return (-1, "", f"Command timed out after {timeout}s")
    except asyncio.CancelledError:
        _kill_group(proc)
        raise

    return (
        proc.returncode or 0,
        stdout_bytes.decode(errors="replace")[:_OUTPUT_LIMIT],
        stderr_bytes.decode(errors="replace")[:_OUTPUT_LIMIT],
    )
