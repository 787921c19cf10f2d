"""Parse the positional command-line grammar of the runner.

Options have the form ``--name:value`` and apply to the next directory on the
command line only; after a directory consumes them they reset to defaults::

    parallel-test-runner --granularity:Package build/a --filter:Foo* build/b
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from parallel_test_runner.models.configuration import Granularity, RunConfiguration

log = logging.getLogger(__name__)

OPTION_NAMES = frozenset(RunConfiguration.model_fields)


class ConfigurationError(Exception):
    """Raised when the command line is invalid."""


@dataclass(frozen=True, kw_only=True)
class DirectoryRun:
    """A directory of test binaries and the configuration that applies to it."""

    directory: Path
    configuration: RunConfiguration


def apply_option(configuration: RunConfiguration, token: str) -> RunConfiguration:
    """Return a new configuration with the option in ``token`` applied.

    Raises:
        ConfigurationError: If the option is malformed, unknown or has an
            invalid value

    """
    name, separator, value = token.removeprefix("--").partition(":")
    if not separator:
        raise ConfigurationError(f"Malformed option {token}, expected --name:value")
    if name not in OPTION_NAMES:
        raise ConfigurationError(f"Unknown option {name}")

    try:
        return RunConfiguration.model_validate(
            configuration.model_dump() | {name: value}
        )
    except ValidationError as e:
        messages = "; ".join(error["msg"] for error in e.errors())
        raise ConfigurationError(f"Invalid option {token}: {messages}") from e


def parse_arguments(tokens: Sequence[str]) -> Sequence[DirectoryRun]:
    """Split the command line into directories and their configurations.

    The whole command line is validated before anything runs. Options may
    override each other freely; only the values a directory ends up with must
    be compatible.
    """
    runs: list[DirectoryRun] = []
    configuration = RunConfiguration()
    pending_options: list[str] = []

    for token in tokens:
        if token.startswith("--"):
            configuration = apply_option(configuration, token)
            pending_options.append(token)
            continue

        if (
            configuration.filter is not None
            and configuration.granularity is Granularity.PACKAGE
        ):
            raise ConfigurationError(
                "--filter is not supported with --granularity:Package"
            )
        runs.append(DirectoryRun(directory=Path(token), configuration=configuration))
        configuration = RunConfiguration()
        pending_options = []

    if pending_options:
        log.warning(
            "Ignoring options after the last directory: %s", " ".join(pending_options)
        )

    return runs
