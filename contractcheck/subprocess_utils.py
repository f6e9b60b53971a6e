from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence


log = logging.getLogger("subprocess")
_missing_allowlist_warnings: set[str] = set()


class PolicyError(RuntimeError):
    pass


@dataclass
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False


def assert_binary_allowed(binary: str, allowed_binaries: set[str]) -> None:
    if not allowed_binaries:
        raise PolicyError("ALLOWED_BINARIES is empty. Refusing to execute any external commands.")
    if binary not in allowed_binaries and Path(binary).name not in allowed_binaries:
        raise PolicyError(f"Binary '{binary}' is not in allowlist (ALLOWED_BINARIES).")


async def _terminate_process_group(proc: asyncio.subprocess.Process, *, grace_sec: int = 2) -> None:
    if proc.returncode is not None:
        return

    try:
        os.killpg(proc.pid, signal.SIGTERM)
    except OSError:
        with contextlib.suppress(ProcessLookupError):
            proc.send_signal(signal.SIGTERM)

    try:
        await asyncio.wait_for(proc.wait(), timeout=grace_sec)
        return
    except asyncio.TimeoutError:
        pass

    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except OSError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
    with contextlib.suppress(ProcessLookupError):
        await proc.wait()


def _safe_env(env_allowlist: Sequence[str]) -> dict[str, str]:
    safe_env: dict[str, str] = {}
    for key in env_allowlist:
        if not key:
            continue
        val = os.environ.get(key)
        if val is None:
            if key not in _missing_allowlist_warnings:
                log.warning("ENV allowlist variable is missing in process env: %s", key)
                _missing_allowlist_warnings.add(key)
            continue
        safe_env[key] = val
    return safe_env


async def run_command(
    cmd: Sequence[str],
    *,
    cwd: str | Path,
    env_allowlist: Sequence[str],
    timeout_sec: int,
) -> CommandResult:
    """Run a subprocess with a hard timeout.

    - cmd MUST be a list (no shell=True) to avoid injection.
    - Only allowlisted environment variables are passed through.
    """
    start = time.time()
    timed_out = False
    safe_env = _safe_env(env_allowlist)
    log.debug("Passing env vars to subprocess: %s", ",".join(sorted(safe_env.keys())))

    proc = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=str(cwd),
        env=safe_env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )

    communicate = asyncio.ensure_future(proc.communicate())
    try:
        stdout, stderr = await asyncio.wait_for(asyncio.shield(communicate), timeout=timeout_sec)
    except asyncio.TimeoutError:
        timed_out = True
        await _terminate_process_group(proc, grace_sec=2)
        stdout, stderr = await communicate

    duration_ms = int((time.time() - start) * 1000)
    return CommandResult(
        exit_code=int(proc.returncode or 0),
        stdout=(stdout or b"").decode(errors="replace"),
        stderr=(stderr or b"").decode(errors="replace"),
        duration_ms=duration_ms,
        timed_out=timed_out,
    )
