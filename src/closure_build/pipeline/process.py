"""Running compiler processes."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
import logging
from typing import Protocol

from closure_build.exceptions import SubprocessError

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProcessOutput:
    """Captured result of one process run."""

    returncode: int
    stdout: bytes
    stderr: bytes


class ProcessRunner(Protocol):
    """Callable that runs `argv` to completion and captures its output."""

    async def __call__(
        self, argv: Sequence[str], *, timeout: float
    ) -> ProcessOutput: ...


async def run_process(argv: Sequence[str], *, timeout: float) -> ProcessOutput:
    """Run `argv` without a shell, with stdin closed.

    Raises:
        SubprocessError: If the executable cannot be started or the process
            outlives `timeout` (it is killed first).
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise SubprocessError(f"Unable to start {argv[0]}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
    except TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise SubprocessError(
            f"{argv[0]} did not finish within {timeout}s and was killed"
        ) from e

    log.debug("%s exited with %s", argv[0], proc.returncode)
    return ProcessOutput(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout,
        stderr=stderr,
    )
