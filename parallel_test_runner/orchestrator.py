"""Test run orchestrator driving the phases of a run."""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass

from parallel_test_runner.death_tests import DeathTestSequencer
from parallel_test_runner.instrumentation import instrument_binaries
from parallel_test_runner.launcher import OutputSink, ProcessLauncher, write_line
from parallel_test_runner.models.configuration import RunnerSettings
from parallel_test_runner.options import DirectoryRun
from parallel_test_runner.planner import ReportPathAllocator, WorkPlanner
from parallel_test_runner.pool import WorkerPool
from parallel_test_runner.reporter import log_failure_summary

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class TestRunOrchestrator:
    """Plans a run, then instruments, runs death tests, runs the pool, reports."""

    __test__ = False

    settings: RunnerSettings
    launcher: ProcessLauncher
    emit: OutputSink = write_line

    async def run(self, directory_runs: Sequence[DirectoryRun]) -> int:
        """Run every test of every directory.

        Args:
            directory_runs: Directories and their configurations, in
                command-line order

        Returns:
            The number of ordinary work items that failed

        Raises:
            DiscoveryError: If planning fails; nothing has run yet
            DeathTestFailure: If a death test fails; no ordinary test has run

        """
        planner = WorkPlanner(
            launcher=self.launcher,
            allocator=ReportPathAllocator(
                results_directory=self.settings.results_directory
            ),
            binary_pattern=self.settings.binary_pattern,
        )
        plan = await planner.plan(directory_runs)

        self.settings.results_directory.mkdir(parents=True, exist_ok=True)

        await instrument_binaries(
            self.launcher,
            self.settings.instrumenter,
            plan.instrumented_binaries,
            self.emit,
        )

        started = time.monotonic()
        await DeathTestSequencer(launcher=self.launcher).run(plan.death_tests)

        pool = WorkerPool(
            launcher=self.launcher,
            max_parallelism=self.settings.max_parallelism,
            emit=self.emit,
        )
        result = await pool.run(plan.ordinary_tests)

        log_failure_summary(log, result, time.monotonic() - started)
        return result.exit_code
