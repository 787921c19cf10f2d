"""Models for test execution results."""

from collections.abc import Sequence
from dataclasses import dataclass, field

from parallel_test_runner.models.work_item import WorkItem


@dataclass(frozen=True, kw_only=True)
class TestFailure:
    """An ordinary work item that exited with a non-zero code."""

    __test__ = False

    index: int
    work_item: WorkItem
    exit_code: int

    def describe(self) -> str:
        """Return the line printed in the final report."""
        return (
            f"Exit code {self.exit_code} from ({self.index}) "
            f"{self.work_item.command_line}"
        )


@dataclass(kw_only=True)
class RunResult:
    """Failures accumulated while the worker pool runs.

    Only the event loop thread records failures, so appends never race.
    """

    _failures: list[TestFailure] = field(default_factory=list)

    def record(self, failure: TestFailure) -> None:
        """Add a failure to the result."""
        self._failures.append(failure)

    @property
    def failures(self) -> Sequence[TestFailure]:
        """Failures in the order they were recorded."""
        return tuple(self._failures)

    @property
    def exit_code(self) -> int:
        """Process exit code: the number of failed work items."""
        return len(self._failures)
