"""Search Executor: run ripgrep under output and wall-clock bounds."""

import asyncio
import logging
import os
import shutil
import signal
import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ripgrep_mcp.errors import (
    EngineNotFound,
    ExecutionFailed,
    InternalError,
    SearchCancelled,
    SearchTimeout,
)
from ripgrep_mcp.search.command import SearchCommand

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
_MAX_STDERR_BYTES = 64 * 1024
DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
DEFAULT_TIMEOUT = 30.0

# ripgrep exits 1 when nothing matched; that is an empty success.
_EXIT_OK = 0
_EXIT_NO_MATCH = 1


@dataclass(frozen=True)
class RawOutput:
    """Captured output of one engine run."""

    stdout: bytes
    stderr: bytes
    returncode: int
    elapsed_ms: int
    truncated: bool = False


@runtime_checkable
class SearchExecutor(Protocol):
    """Capability to run a built search command."""

    async def run(self, command: SearchCommand, timeout: float) -> RawOutput:
        """Run the command, raising a SearchError subclass on failure."""
        ...

    async def close(self) -> None:
        """Terminate anything still running."""
        ...


def find_engine(executable: str) -> str:
    """Return the full path of the search engine, or raise EngineNotFound."""
    found = shutil.which(executable)
    if found is None:
        raise EngineNotFound(f"ripgrep executable not found: {executable}")
    return found


async def _read_capped(
    stream: asyncio.StreamReader, limit: int, *, drain: bool
) -> tuple[bytes, bool]:
    """Read ``stream`` keeping at most ``limit`` bytes.

    With ``drain`` the rest of the stream is read and discarded so the writer
    never blocks; without it reading stops at the cap.
    """
    buf = bytearray()
    truncated = False
    while chunk := await stream.read(_CHUNK_SIZE):
        if truncated:
            continue
        room = limit - len(buf)
        if len(chunk) > room:
            buf.extend(chunk[:room])
            truncated = True
            if not drain:
                break
        else:
            buf.extend(chunk)
    return bytes(buf), truncated


def _kill_group(proc: asyncio.subprocess.Process) -> None:
    """SIGKILL the child's process group (the child leads its own session)."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    """Kill and reap ``proc`` if it is still running."""
    if proc.returncode is None:
        _kill_group(proc)
        await proc.wait()


class RipgrepExecutor:
    """Spawns ripgrep as an exclusively owned child process per search."""

    def __init__(
        self,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        max_stderr_bytes: int = _MAX_STDERR_BYTES,
    ) -> None:
        """Initialize with capture caps for stdout and stderr (both positive)."""
        if max_output_bytes <= 0 or max_stderr_bytes <= 0:
            raise ValueError("capture caps must be positive")
        self._max_output_bytes = max_output_bytes
        self._max_stderr_bytes = max_stderr_bytes
        self._children: set[asyncio.subprocess.Process] = set()
        self._shut_down: set[asyncio.subprocess.Process] = set()

    @property
    def active_count(self) -> int:
        """Number of child processes currently running."""
        return len(self._children)

    async def run(self, command: SearchCommand, timeout: float) -> RawOutput:
        """Run ``command`` and capture its output.

        The child is killed and reaped on every way out of this method:
        normal exit, output cap, timeout, error or task cancellation.
        """
        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                *command.argv,
                cwd=command.cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except FileNotFoundError as e:
            raise EngineNotFound(f"ripgrep executable not found: {command.argv[0]}") from e
        except OSError as e:
            logger.exception("Failed to spawn %s", command.argv[0])
            raise InternalError("Failed to start the search engine") from e

        self._children.add(proc)
        try:
            stdout, stderr, truncated = await asyncio.wait_for(self._collect(proc), timeout)
        except TimeoutError:
            logger.warning("Search exceeded %.1fs, killed pid %d", timeout, proc.pid)
            raise SearchTimeout(f"Search exceeded {timeout:g}s and was terminated") from None
        finally:
            await _terminate(proc)
            self._children.discard(proc)
            stopped_by_close = proc in self._shut_down
            self._shut_down.discard(proc)

        if stopped_by_close:
            raise SearchCancelled("Search cancelled by server shutdown")

        elapsed_ms = int((time.monotonic() - start) * 1000)
        returncode = proc.returncode if proc.returncode is not None else -1

        if truncated:
            logger.warning("Search output exceeded %d bytes, truncated", self._max_output_bytes)
        elif returncode not in (_EXIT_OK, _EXIT_NO_MATCH):
            text = stderr.decode("utf-8", errors="replace").strip()
            logger.warning("ripgrep exited with status %d: %s", returncode, text)
            raise ExecutionFailed(
                f"ripgrep failed (exit {returncode}): {text}",
                returncode=returncode,
                stderr=text,
            )

        return RawOutput(
            stdout=stdout,
            stderr=stderr,
            returncode=returncode,
            elapsed_ms=elapsed_ms,
            truncated=truncated,
        )

    async def _collect(self, proc: asyncio.subprocess.Process) -> tuple[bytes, bytes, bool]:
        stdout_stream, stderr_stream = proc.stdout, proc.stderr
        if stdout_stream is None or stderr_stream is None:
            raise InternalError("ripgrep output pipes were not opened")

        async def read_stdout() -> tuple[bytes, bool]:
            data, truncated = await _read_capped(stdout_stream, self._max_output_bytes, drain=False)
            if truncated:
                # Stop the engine instead of buffering a runaway result.
                _kill_group(proc)
            return data, truncated

        (stdout, truncated), (stderr, _) = await asyncio.gather(
            read_stdout(),
            _read_capped(stderr_stream, self._max_stderr_bytes, drain=True),
        )
        await proc.wait()
        return stdout, stderr, truncated

    async def close(self) -> None:
        """Kill every child still running (server shutdown)."""
        children = list(self._children)
        for proc in children:
            self._shut_down.add(proc)
            await _terminate(proc)
        self._children.clear()
        if children:
            logger.info("Terminated %d in-flight search(es)", len(children))
