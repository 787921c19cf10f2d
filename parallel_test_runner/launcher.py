"""Start child processes and read their output line by line."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeAlias

from parallel_test_runner.models.configuration import RunnerSettings
from parallel_test_runner.retry import RetryPolicy

log = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024

OutputSink: TypeAlias = Callable[[str], None]


@dataclass(frozen=True, kw_only=True)
class ProcessLauncher:
    """Starts child processes, retrying transient start failures."""

    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)

    @classmethod
    def from_settings(cls, settings: RunnerSettings) -> "ProcessLauncher":
        """Create a launcher using the retry settings of a run."""
        return cls(
            retry_policy=RetryPolicy(
                max_attempts=settings.launch_attempts,
                delay=settings.launch_retry_delay,
            )
        )

    async def start(
        self,
        program: Path,
        arguments: Sequence[str],
        *,
        capture_output: bool,
    ) -> asyncio.subprocess.Process:
        """Start ``program`` with ``arguments``.

        Args:
            program: Executable to run
            arguments: Arguments passed to the executable
            capture_output: Pipe stdout and stderr back to the caller; when
                False the child writes directly to the console

        Returns:
            The started process

        Raises:
            OSError: If the process could not be started after all attempts

        """
        pipe = asyncio.subprocess.PIPE if capture_output else None

        async def _start() -> asyncio.subprocess.Process:
            return await asyncio.create_subprocess_exec(
                program, *arguments, stdout=pipe, stderr=pipe
            )

        process = await self.retry_policy.run(_start, description=f"start {program}")
        log.debug("Started pid %d: %s %s", process.pid, program, " ".join(arguments))
        return process

    async def run_to_completion(self, program: Path, arguments: Sequence[str]) -> int:
        """Run ``program`` with inherited output and return its exit code."""
        process = await self.start(program, arguments, capture_output=False)
        return await process.wait()


async def read_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    """Yield decoded lines from ``stream`` until end of file.

    Reads in chunks rather than with ``readline`` so that arbitrarily long
    lines never exceed the reader's buffer limit.
    """
    pending = bytearray()
    while chunk := await stream.read(READ_CHUNK_SIZE):
        if b"\n" not in chunk:
            pending += chunk
            continue
        first, *lines, rest = chunk.split(b"\n")
        pending += first
        yield _decode(pending)
        for line in lines:
            yield _decode(line)
        pending = bytearray(rest)
    if pending:
        yield _decode(pending)


def _decode(line: bytes | bytearray) -> str:
    return line.decode(errors="replace").rstrip("\r")


def write_line(line: str) -> None:
    """Write a line of child output to the console."""
    print(line, flush=True)


async def forward_lines(
    stream: asyncio.StreamReader, emit: OutputSink, prefix: str = ""
) -> None:
    """Copy every line of ``stream`` to ``emit`` until end of file."""
    async for line in read_lines(stream):
        emit(f"{prefix}{line}")
