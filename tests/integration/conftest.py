"""Fixtures providing fake GoogleTest binaries."""

import json
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

import pytest

FAKE_BINARY = '''#!{python}
import json
import sys
import time

LISTING = {listing!r}
EXIT_CODES = {exit_codes!r}
SLEEP = {sleep!r}
LOG = {log!r}

arguments = sys.argv[1:]
test_filter = next(
    (a.split("=", 1)[1] for a in arguments if a.startswith("--gtest_filter=")),
    None,
)


def record(event):
    entry = {{
        "binary": sys.argv[0],
        "event": event,
        "filter": test_filter,
        "arguments": arguments,
        "time": time.time(),
    }}
    with open(LOG, "a") as log:
        log.write(json.dumps(entry) + "\\n")


if "--gtest_list_tests" in arguments:
    record("list")
    sys.stdout.write(LISTING)
    sys.exit(0)

record("start")
print("running " + str(test_filter), flush=True)
print("checking " + str(test_filter), file=sys.stderr, flush=True)
time.sleep(SLEEP)
record("end")
sys.exit(EXIT_CODES.get(test_filter, 0))
'''


class MakeBinaryFn(Protocol):
    """Protocol for fake test binary creation."""

    def __call__(
        self,
        directory: Path,
        name: str,
        listing: str = "",
        *,
        exit_codes: Mapping[str, int] | None = None,
        sleep: float = 0.0,
    ) -> Path:
        """Create an executable fake test binary and return its path."""


class ReadInvocationsFn(Protocol):
    """Protocol for reading the invocations recorded by fake binaries."""

    def __call__(self) -> Sequence[Mapping[str, Any]]:
        """Return every recorded invocation in the order written."""


@pytest.fixture
def invocation_log(tmp_path: Path) -> Path:
    """File where fake binaries record how they were invoked."""
    return tmp_path / "invocations.jsonl"


@pytest.fixture
def make_binary(invocation_log: Path) -> MakeBinaryFn:
    """Return a function creating fake GoogleTest binaries."""
    if sys.platform == "win32":
        pytest.skip("fake binaries rely on shebang scripts")

    def _make(
        directory: Path,
        name: str,
        listing: str = "",
        *,
        exit_codes: Mapping[str, int] | None = None,
        sleep: float = 0.0,
    ) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        binary = directory / name
        binary.write_text(
            FAKE_BINARY.format(
                python=sys.executable,
                listing=listing,
                exit_codes=dict(exit_codes or {}),
                sleep=sleep,
                log=str(invocation_log),
            )
        )
        binary.chmod(0o755)
        return binary

    return _make


@pytest.fixture
def read_invocations(invocation_log: Path) -> ReadInvocationsFn:
    """Return a function reading the invocations recorded so far."""

    def _read() -> Sequence[Mapping[str, Any]]:
        if not invocation_log.exists():
            return []
        return [
            json.loads(line) for line in invocation_log.read_text().splitlines()
        ]

    return _read
