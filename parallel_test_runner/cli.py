"""CLI entry point for the parallel test runner."""

import asyncio
import logging
import sys
from collections.abc import Sequence

from parallel_test_runner.death_tests import DeathTestFailure
from parallel_test_runner.inventory import DiscoveryError
from parallel_test_runner.launcher import ProcessLauncher
from parallel_test_runner.models.configuration import RunnerSettings
from parallel_test_runner.options import ConfigurationError, parse_arguments
from parallel_test_runner.orchestrator import TestRunOrchestrator

USAGE = """\
usage: parallel-test-runner [--option:value ...] DIRECTORY [...]

Options apply to the next DIRECTORY only:
  --granularity:{Package,TestCase,Test}  how to split each binary (default: Test)
  --instrument:{true,false}              instrument binaries for coverage first
  --also_run_disabled_tests:{true,false} also run DISABLED_ tests
  --filter:FILTER                        GoogleTest filter (not with Package)
"""


async def run(tokens: Sequence[str], settings: RunnerSettings) -> int:
    """Run the tests named on the command line and return the exit code."""
    log = logging.getLogger("parallel_test_runner")

    try:
        directory_runs = parse_arguments(tokens)
    except ConfigurationError as e:
        log.error("%s", e)
        return 1

    if not directory_runs:
        log.info("No directories given, nothing to run")
        return 0

    orchestrator = TestRunOrchestrator(
        settings=settings,
        launcher=ProcessLauncher.from_settings(settings),
    )
    try:
        return await orchestrator.run(directory_runs)
    except DiscoveryError as e:
        log.error("%s", e)
        return 1
    except DeathTestFailure as e:
        return e.exit_code


def main() -> None:
    """CLI entry point."""
    tokens = sys.argv[1:]
    if any(token in ("-h", "--help") for token in tokens):
        print(USAGE, end="")
        sys.exit(0)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(run(tokens, RunnerSettings()))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
