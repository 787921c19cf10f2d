"""Optional coverage instrumentation pass run before any test."""

import asyncio
import logging
import time
from collections.abc import Sequence
from pathlib import Path

from parallel_test_runner.launcher import (
    OutputSink,
    ProcessLauncher,
    forward_lines,
    write_line,
)

log = logging.getLogger(__name__)


async def instrument_binaries(
    launcher: ProcessLauncher,
    instrumenter: Path,
    binaries: Sequence[Path],
    emit: OutputSink = write_line,
) -> None:
    """Instrument every binary for coverage, all at the same time.

    The tool's output is forwarded unprefixed. A failing instrumentation is
    reported but does not stop the run.
    """
    log.info("Instrumenting %d processes...", len(binaries))
    if not binaries:
        return

    started = time.monotonic()
    await asyncio.gather(
        *(_instrument(launcher, instrumenter, binary, emit) for binary in binaries)
    )
    log.info("Done (%d ms)", (time.monotonic() - started) * 1000)


async def _instrument(
    launcher: ProcessLauncher, instrumenter: Path, binary: Path, emit: OutputSink
) -> None:
    process = await launcher.start(
        instrumenter, ["/coverage", str(binary)], capture_output=True
    )
    assert process.stdout is not None
    assert process.stderr is not None

    await asyncio.gather(
        forward_lines(process.stdout, emit), forward_lines(process.stderr, emit)
    )
    if (exit_code := await process.wait()) != 0:
        log.warning("Exit code %d while instrumenting %s", exit_code, binary)
