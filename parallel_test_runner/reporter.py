"""Report the outcome of the ordinary test phase."""

import logging

from parallel_test_runner.models.result import RunResult


def log_failure_summary(log: logging.Logger, result: RunResult, elapsed: float) -> None:
    """Log every failure line followed by the elapsed time of the run."""
    for failure in result.failures:
        log.error("%s", failure.describe())
    log.info("Done (%d ms)", elapsed * 1000)
