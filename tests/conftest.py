"""Shared test fixtures."""

import json
import shutil

import pytest

from ripgrep_mcp.search.command import SearchCommand
from ripgrep_mcp.search.executor import RawOutput
from ripgrep_mcp.search.path_guard import SearchRoot

requires_rg = pytest.mark.skipif(shutil.which("rg") is None, reason="ripgrep not installed")


def rg_event(kind: str, path: str, text: str, line_number: int | None = None) -> str:
    """One line of ripgrep --json output for a match or context line."""
    data: dict[str, object] = {
        "path": {"text": path},
        "lines": {"text": text},
        "line_number": line_number,
        "absolute_offset": 0,
    }
    if kind == "match":
        data["submatches"] = []
    return json.dumps({"type": kind, "data": data})


def rg_output(*lines: str) -> bytes:
    """Join event lines into raw stdout bytes."""
    return "".join(f"{line}\n" for line in lines).encode()


class FakeExecutor:
    """Deterministic stand-in for RipgrepExecutor.

    Records every command it is asked to run and returns a canned RawOutput,
    or raises ``error`` when set.
    """

    def __init__(self, stdout: bytes = b"", elapsed_ms: int = 3, truncated: bool = False):
        self.stdout = stdout
        self.elapsed_ms = elapsed_ms
        self.truncated = truncated
        self.error: Exception | None = None
        self.commands: list[SearchCommand] = []
        self.timeouts: list[float] = []
        self.closed = False

    async def run(self, command: SearchCommand, timeout: float) -> RawOutput:
        self.commands.append(command)
        self.timeouts.append(timeout)
        if self.error is not None:
            raise self.error
        return RawOutput(
            stdout=self.stdout,
            stderr=b"",
            returncode=0 if self.stdout else 1,
            elapsed_ms=self.elapsed_ms,
            truncated=self.truncated,
        )

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def root_dir(tmp_path):
    """A small file tree inside its own directory, with a sibling outside it."""
    base = tmp_path / "files"
    (base / "src").mkdir(parents=True)
    (base / "docs" / "nested").mkdir(parents=True)
    (base / "src" / "lib.rs").write_text("\n" * 9 + "fn main() {}\n")
    (base / "docs" / "readme.md").write_text("# Readme\n")
    (base / "docs" / "nested" / "deep.txt").write_text("deep\n")
    (tmp_path / "outside").mkdir()
    (tmp_path / "outside" / "secret.txt").write_text("secret\n")
    return base


@pytest.fixture
def root(root_dir):
    """SearchRoot over root_dir."""
    return SearchRoot.from_path(root_dir)


@pytest.fixture
def fake_executor():
    """Fake executor with no output (ripgrep's no-match case)."""
    return FakeExecutor()
