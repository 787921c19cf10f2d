"""Run ordinary tests concurrently under a fixed process budget."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from parallel_test_runner.launcher import (
    OutputSink,
    ProcessLauncher,
    forward_lines,
    write_line,
)
from parallel_test_runner.models.result import RunResult, TestFailure
from parallel_test_runner.models.work_item import WorkItem

log = logging.getLogger(__name__)


def output_prefix(stream_tag: str, index: int) -> str:
    """Return the prefix attributing a line to a stream and a work item."""
    return f"{stream_tag}{index:>4} "


@dataclass(frozen=True, kw_only=True)
class WorkerPool:
    """Runs work items with at most ``max_parallelism`` live processes.

    Every line a child writes is prefixed with ``O`` or ``E`` (stdout or
    stderr) and the work item's dispatch index, so lines from concurrent
    processes can be told apart on the shared console. Failures are
    collected and never stop the remaining work items.
    """

    launcher: ProcessLauncher
    max_parallelism: int = 100
    emit: OutputSink = write_line

    async def run(self, work_items: Sequence[WorkItem]) -> RunResult:
        """Run every work item and return the failures.

        Returns once every item has been started, has exited, and has had
        both of its output streams drained.

        Raises:
            OSError: If a child cannot be started after all attempts

        """
        log.info("Running %d processes...", len(work_items))

        pending: asyncio.Queue[tuple[int, WorkItem]] = asyncio.Queue()
        for index, work_item in enumerate(work_items):
            pending.put_nowait((index, work_item))

        capacity = asyncio.Semaphore(self.max_parallelism)
        result = RunResult()
        supervisors: list[asyncio.Task[None]] = []

        while not pending.empty():
            index, work_item = pending.get_nowait()
            await capacity.acquire()
            try:
                process = await self.launcher.start(
                    work_item.binary_path, work_item.arguments, capture_output=True
                )
            except BaseException:
                capacity.release()
                raise
            supervisors.append(
                asyncio.create_task(
                    self._supervise(index, work_item, process, capacity, result)
                )
            )

        await asyncio.gather(*supervisors)
        return result

    async def _supervise(
        self,
        index: int,
        work_item: WorkItem,
        process: asyncio.subprocess.Process,
        capacity: asyncio.Semaphore,
        result: RunResult,
    ) -> None:
        """Drain a child's output, wait for it, and free its capacity unit."""
        assert process.stdout is not None
        assert process.stderr is not None

        try:
            await asyncio.gather(
                forward_lines(process.stdout, self.emit, output_prefix("O", index)),
                forward_lines(process.stderr, self.emit, output_prefix("E", index)),
            )
            exit_code = await process.wait()
            if exit_code != 0:
                log.debug("Work item %d exited with code %d", index, exit_code)
                result.record(
                    TestFailure(index=index, work_item=work_item, exit_code=exit_code)
                )
        finally:
            capacity.release()
