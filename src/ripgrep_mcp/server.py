"""FastMCP server with lifespan management and tool registration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from ripgrep_mcp.config import get_log_level
from ripgrep_mcp.search.executor import DEFAULT_MAX_OUTPUT_BYTES, DEFAULT_TIMEOUT, RipgrepExecutor
from ripgrep_mcp.search.path_guard import SearchRoot
from ripgrep_mcp.tools.search import register_search

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Log to stderr (stdout is the MCP stdio transport)."""
    logging.basicConfig(
        level=getattr(logging, get_log_level()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


_INSTRUCTIONS = """\
Search the files under this server's root directory with ripgrep.

Use the `search` tool with a regex `pattern` (or set fixed_strings for a \
literal). Narrow the search with `path` (relative to the root), `file_types` \
(ripgrep type names such as py, rust, js) and `max_depth`. Matching is \
case-insensitive unless case_sensitive is set.

Results are JSON: "matches" holds "path:line:content" lines and "stats" the \
match count and elapsed time. Paths outside the root are rejected.
"""


def create_server(
    root: SearchRoot,
    rg_path: str = "rg",
    *,
    timeout: float = DEFAULT_TIMEOUT,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
) -> FastMCP:
    """Create and configure the MCP server for ``root``.

    ``timeout`` and ``max_output_bytes`` are validated startup settings.
    """

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        """Own the search executor; kill in-flight searches on shutdown."""
        executor = RipgrepExecutor(max_output_bytes=max_output_bytes)
        logger.info("Search timeout %.1fs", timeout)
        try:
            yield {
                "root": root,
                "executor": executor,
                "timeout": timeout,
                "rg_path": rg_path,
            }
        finally:
            await executor.close()
            logger.info("Search executor closed")

    mcp = FastMCP(
        "ripgrep-mcp",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )

    register_search(mcp)

    return mcp
