"""Entry point for the ripgrep MCP server."""

import logging
import sys

from ripgrep_mcp.config import (
    get_files_root,
    get_max_output_bytes,
    get_rg_path,
    get_search_timeout,
)
from ripgrep_mcp.errors import ConfigError, EngineNotFound
from ripgrep_mcp.search.executor import find_engine
from ripgrep_mcp.search.path_guard import SearchRoot
from ripgrep_mcp.server import configure_logging, create_server

logger = logging.getLogger("ripgrep_mcp")


def main() -> None:
    """Run the ripgrep MCP server; exit 1 on invalid startup configuration."""
    configure_logging()

    try:
        root = SearchRoot.from_path(get_files_root())
        rg_path = find_engine(get_rg_path())
        timeout = get_search_timeout()
        max_output_bytes = get_max_output_bytes()
    except (ConfigError, EngineNotFound) as e:
        logger.error("%s", e)
        sys.exit(1)

    logger.info("Files root directory: %s", root.path)
    logger.info("Found ripgrep at %s", rg_path)

    server = create_server(root, rg_path, timeout=timeout, max_output_bytes=max_output_bytes)
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
