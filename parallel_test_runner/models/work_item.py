"""Models for discovered tests and planned child-process invocations."""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

DEATH_TEST_TOKEN = "DeathTest"


def is_death_test_name(name: str) -> bool:
    """Check if a suite or case name follows the death test naming convention."""
    return DEATH_TEST_TOKEN in name


@dataclass(frozen=True, kw_only=True)
class TestCase:
    """A single test reported by a binary in list mode."""

    __test__ = False

    suite: str
    name: str
    is_death_test: bool


@dataclass(frozen=True, kw_only=True)
class WorkItem:
    """One planned invocation of a test binary, run in its own process.

    The arguments are passed verbatim to GoogleTest binaries, so their
    spelling and order must not change.
    """

    binary_path: Path
    filter_expression: str | None
    report_path: Path
    is_death_test: bool
    also_run_disabled: bool = False

    @property
    def arguments(self) -> Sequence[str]:
        """Command-line arguments for the test binary."""
        arguments: list[str] = []
        if self.filter_expression:
            arguments.append(f"--gtest_filter={self.filter_expression}")
        arguments.append(f"--gtest_output=xml:{self.report_path}")
        if self.also_run_disabled:
            arguments.append("--gtest_also_run_disabled_tests")
        return arguments

    @property
    def command_line(self) -> str:
        """Human-readable command line for diagnostics."""
        return " ".join([str(self.binary_path), *self.arguments])
