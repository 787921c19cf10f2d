"""Discover the tests contained in a GoogleTest binary."""

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from parallel_test_runner.launcher import ProcessLauncher
from parallel_test_runner.models.work_item import TestCase, is_death_test_name

log = logging.getLogger(__name__)


class DiscoveryError(Exception):
    """Raised when the tests of a binary cannot be listed."""


async def list_tests(
    launcher: ProcessLauncher,
    binary: Path,
    test_filter: str | None = None,
) -> Sequence[TestCase]:
    """List the tests of ``binary`` in the order the binary reports them.

    Args:
        launcher: Launcher used to start the binary in list mode
        binary: Path to the GoogleTest binary
        test_filter: Optional GoogleTest filter narrowing the listing

    Returns:
        The discovered tests

    Raises:
        DiscoveryError: If the binary cannot be started, exits with a non-zero
            code, or reports no tests

    """
    arguments = ["--gtest_list_tests"]
    if test_filter:
        arguments.append(f"--gtest_filter={test_filter}")

    try:
        process = await launcher.start(binary, arguments, capture_output=True)
    except OSError as e:
        raise DiscoveryError(f"Cannot start {binary} to list its tests: {e}") from e

    stdout, stderr = await process.communicate()

    if process.returncode != 0:
        raise DiscoveryError(
            f"Listing tests of {binary} failed with exit code "
            f"{process.returncode}: {stderr.decode(errors='replace').strip()}"
        )

    tests = parse_test_listing(stdout.decode(errors="replace").splitlines())
    if not tests:
        raise DiscoveryError(f"No tests found in {binary}")

    log.info("Found %d test(s) in %s", len(tests), binary)
    return tests


def parse_test_listing(lines: Iterable[str]) -> Sequence[TestCase]:
    """Parse the output of ``--gtest_list_tests``.

    Suites are unindented and end with a dot, cases are indented below them::

        MathTest.
          Addition
        ParamTest/0.  # TypeParam = int
          Works  # GetParam() = 3

    Annotations after the name are dropped. Other unindented lines, such as
    the ``Note: Google Test filter = ...`` banner, are ignored.
    """
    tests: list[TestCase] = []
    suite: str | None = None

    for line in lines:
        if not line.strip():
            continue

        name = line.split()[0]
        if not line[0].isspace():
            suite = name[:-1] if name.endswith(".") else None
            continue

        if suite is None:
            continue

        tests.append(
            TestCase(
                suite=suite,
                name=name,
                is_death_test=is_death_test_name(suite) or is_death_test_name(name),
            )
        )

    return tests
