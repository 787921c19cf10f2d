"""Models for run configuration and run-wide settings."""

import sys
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator

from parallel_test_runner.models.base import Model

VSINSTR = Path(
    r"C:\Program Files\Microsoft Visual Studio\2022\Enterprise\Team Tools"
    r"\Performance Tools\x64\vsinstr.exe"
)


class Granularity(StrEnum):
    """Unit size at which a test binary is split into work items."""

    PACKAGE = "Package"
    TEST_CASE = "TestCase"
    TEST = "Test"


class RunConfiguration(Model):
    """Options applied to the next directory on the command line."""

    granularity: Granularity = Field(
        default=Granularity.TEST, description="How to split each binary"
    )
    instrument: bool = Field(
        default=False, description="Instrument binaries for coverage first"
    )
    also_run_disabled_tests: bool = Field(
        default=False, description="Pass --gtest_also_run_disabled_tests"
    )
    filter: str | None = Field(
        default=None, description="GoogleTest filter used when listing tests"
    )

    @field_validator("granularity", mode="before")
    @classmethod
    def _match_granularity(cls, value: Any) -> Any:
        if isinstance(value, str):
            for granularity in Granularity:
                if granularity.value.lower() == value.lower():
                    return granularity
        return value

    @field_validator("filter", mode="before")
    @classmethod
    def _empty_filter_is_none(cls, value: Any) -> Any:
        return value or None

    @field_validator("instrument", "also_run_disabled_tests", mode="before")
    @classmethod
    def _parse_boolean(cls, value: Any) -> Any:
        if isinstance(value, str):
            if value.lower() not in ("true", "false"):
                raise ValueError("expected true or false")
            return value.lower() == "true"
        return value


def default_binary_pattern() -> str:
    """Return the glob matching test binaries on this platform."""
    return "*_tests.exe" if sys.platform == "win32" else "*_tests"


class RunnerSettings(Model):
    """Run-wide settings that are not exposed as command-line options."""

    max_parallelism: int = Field(
        default=100, ge=1, description="Maximum number of concurrent test processes"
    )
    results_directory: Path = Field(
        default=Path("TestResults"), description="Where XML reports are written"
    )
    binary_pattern: str = Field(
        default_factory=default_binary_pattern,
        description="Glob matching test binaries inside a directory",
    )
    instrumenter: Path = Field(
        default=VSINSTR, description="Coverage instrumentation tool"
    )
    launch_attempts: int = Field(
        default=10, ge=1, description="Attempts to start a child process"
    )
    launch_retry_delay: float = Field(
        default=1.0, ge=0, description="Seconds between start attempts"
    )
