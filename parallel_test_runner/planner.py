"""Split test binaries into independently runnable work items."""

import itertools
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from parallel_test_runner.inventory import DiscoveryError, list_tests
from parallel_test_runner.launcher import ProcessLauncher
from parallel_test_runner.models.configuration import Granularity, RunConfiguration
from parallel_test_runner.models.work_item import (
    TestCase,
    WorkItem,
    is_death_test_name,
)
from parallel_test_runner.options import DirectoryRun

log = logging.getLogger(__name__)

ORDINARY_TESTS_FILTER = "-*DeathTest.*"
DEATH_TESTS_FILTER = "*DeathTest.*"


@dataclass(kw_only=True)
class ReportPathAllocator:
    """Hands out report paths from a single counter shared by the whole run.

    Binaries from several directories run concurrently, so every work item
    needs its own report file.
    """

    results_directory: Path
    _counter: Iterator[int] = field(default_factory=itertools.count, repr=False)

    def allocate(self) -> Path:
        """Return a report path that has not been handed out before."""
        return self.results_directory / f"gtest_results_{next(self._counter)}.xml"


@dataclass(frozen=True, kw_only=True)
class Plan:
    """Everything a run will execute, grouped by phase."""

    instrumented_binaries: Sequence[Path]
    death_tests: Sequence[WorkItem]
    ordinary_tests: Sequence[WorkItem]


def plan_package(
    binary: Path,
    configuration: RunConfiguration,
    allocator: ReportPathAllocator,
) -> Sequence[WorkItem]:
    """Plan a binary as a whole: one item without death tests, one with only them."""
    return [
        WorkItem(
            binary_path=binary,
            filter_expression=ORDINARY_TESTS_FILTER,
            report_path=allocator.allocate(),
            is_death_test=False,
            also_run_disabled=configuration.also_run_disabled_tests,
        ),
        WorkItem(
            binary_path=binary,
            filter_expression=DEATH_TESTS_FILTER,
            report_path=allocator.allocate(),
            is_death_test=True,
            also_run_disabled=configuration.also_run_disabled_tests,
        ),
    ]


def plan_test_cases(
    binary: Path,
    tests: Sequence[TestCase],
    configuration: RunConfiguration,
    allocator: ReportPathAllocator,
) -> Sequence[WorkItem]:
    """Plan one item per suite, in the order suites were listed."""
    suites = dict.fromkeys(test.suite for test in tests)
    return [
        WorkItem(
            binary_path=binary,
            filter_expression=f"{suite}.*",
            report_path=allocator.allocate(),
            is_death_test=is_death_test_name(suite),
            also_run_disabled=configuration.also_run_disabled_tests,
        )
        for suite in suites
    ]


def plan_tests(
    binary: Path,
    tests: Sequence[TestCase],
    configuration: RunConfiguration,
    allocator: ReportPathAllocator,
) -> Sequence[WorkItem]:
    """Plan one item per individual test."""
    return [
        WorkItem(
            binary_path=binary,
            filter_expression=f"{test.suite}.{test.name}",
            report_path=allocator.allocate(),
            is_death_test=test.is_death_test,
            also_run_disabled=configuration.also_run_disabled_tests,
        )
        for test in tests
    ]


@dataclass(frozen=True, kw_only=True)
class WorkPlanner:
    """Turns directories of test binaries into a plan of work items."""

    launcher: ProcessLauncher
    allocator: ReportPathAllocator
    binary_pattern: str

    async def plan(self, directory_runs: Sequence[DirectoryRun]) -> Plan:
        """Plan every binary of every directory, in command-line order.

        Raises:
            DiscoveryError: If a directory does not exist or a binary's tests
                cannot be listed

        """
        instrumented: list[Path] = []
        death_tests: list[WorkItem] = []
        ordinary_tests: list[WorkItem] = []

        for directory_run in directory_runs:
            configuration = directory_run.configuration
            for binary in self.find_binaries(directory_run.directory):
                if configuration.instrument:
                    instrumented.append(binary)
                for work_item in await self.plan_binary(binary, configuration):
                    if work_item.is_death_test:
                        death_tests.append(work_item)
                    else:
                        ordinary_tests.append(work_item)

        log.info(
            "Planned %d death test item(s) and %d ordinary item(s)",
            len(death_tests),
            len(ordinary_tests),
        )
        return Plan(
            instrumented_binaries=instrumented,
            death_tests=death_tests,
            ordinary_tests=ordinary_tests,
        )

    def find_binaries(self, directory: Path) -> Sequence[Path]:
        """Return the test binaries in ``directory`` sorted by name."""
        if not directory.is_dir():
            raise DiscoveryError(f"Not a directory: {directory}")

        binaries = sorted(
            path for path in directory.glob(self.binary_pattern) if path.is_file()
        )
        if not binaries:
            log.warning("No binaries matching %s in %s", self.binary_pattern, directory)
        return binaries

    async def plan_binary(
        self, binary: Path, configuration: RunConfiguration
    ) -> Sequence[WorkItem]:
        """Plan the work items of a single binary."""
        if configuration.granularity is Granularity.PACKAGE:
            return plan_package(binary, configuration, self.allocator)

        tests = await list_tests(self.launcher, binary, configuration.filter)
        if configuration.granularity is Granularity.TEST_CASE:
            return plan_test_cases(binary, tests, configuration, self.allocator)
        return plan_tests(binary, tests, configuration, self.allocator)
