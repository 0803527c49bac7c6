"""search MCP tool: ripgrep over the confined root directory."""

import logging
from typing import TYPE_CHECKING, Annotated, Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.context import Context
from fastmcp.server.middleware import Middleware, MiddlewareContext
from pydantic import Field, ValidationError

from ripgrep_mcp.errors import InvalidParams, SearchError
from ripgrep_mcp.search.pipeline import describe_validation_error, parse_request, run_search
from ripgrep_mcp.tools.formatters import format_error, format_search_error, format_search_result

if TYPE_CHECKING:
    from ripgrep_mcp.search.executor import SearchExecutor
    from ripgrep_mcp.search.path_guard import SearchRoot

logger = logging.getLogger(__name__)

_TOOL_NAME = "search"


class SearchArgumentsMiddleware(Middleware):
    """Report malformed ``search`` arguments as ``invalid_params`` tool errors.

    FastMCP checks arguments against the tool signature before the tool body
    runs, so SearchRequest validates them here first and every bad argument
    gets the same error shape.
    """

    async def on_call_tool(self, context: MiddlewareContext, call_next: Any) -> Any:
        if context.message.name != _TOOL_NAME:
            return await call_next(context)

        try:
            parse_request(context.message.arguments or {})
        except InvalidParams as e:
            logger.info("Search failed (%s)", e.reason)
            raise ToolError(format_search_error(e)) from e

        try:
            return await call_next(context)
        except ValidationError as e:
            message = f"Invalid parameters: {describe_validation_error(e)}"
            raise ToolError(format_error(InvalidParams.reason, message)) from e


def register_search(mcp: FastMCP) -> None:
    """Register the search tool and its argument middleware with the MCP server."""
    mcp.add_middleware(SearchArgumentsMiddleware())

    @mcp.tool()
    async def search(
        pattern: Annotated[str, Field(description="Search pattern (regex unless fixed_strings)")],
        path: Annotated[
            str | None,
            Field(description="Relative path within the root directory (default: the root)"),
        ] = None,
        fixed_strings: Annotated[
            bool, Field(description="Treat the pattern as a literal string", strict=True)
        ] = False,
        case_sensitive: Annotated[
            bool, Field(description="Match case exactly (default: case-insensitive)", strict=True)
        ] = False,
        line_numbers: Annotated[
            bool, Field(description="Include line numbers in matches", strict=True)
        ] = True,
        context_lines: Annotated[
            int, Field(description="Lines of context around each match", ge=0, strict=True)
        ] = 0,
        file_types: Annotated[
            list[str] | None,
            Field(description="ripgrep file types to include (e.g. rust, py, js)"),
        ] = None,
        max_depth: Annotated[
            int | None,
            Field(description="Maximum directory depth to descend", ge=0, strict=True),
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Search files under the server's root directory with ripgrep.

        Returns JSON: {"matches": ["path:line:content", ...],
        "stats": {"matched_lines": N, "elapsed_ms": T}}. Context lines, when
        requested, are listed separately under "context". Paths are relative
        to the root; paths that escape it are rejected.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")

        lifespan = ctx.lifespan_context
        root: SearchRoot = lifespan["root"]
        executor: SearchExecutor = lifespan["executor"]

        arguments = {
            "pattern": pattern,
            "path": path,
            "fixed_strings": fixed_strings,
            "case_sensitive": case_sensitive,
            "line_numbers": line_numbers,
            "context_lines": context_lines,
            "file_types": file_types or [],
            "max_depth": max_depth,
        }

        try:
            result = await run_search(
                arguments,
                root=root,
                executor=executor,
                timeout=lifespan["timeout"],
                executable=lifespan["rg_path"],
            )
        except SearchError as e:
            logger.info("Search failed (%s)", e.reason)
            raise ToolError(format_search_error(e)) from e
        except Exception:
            logger.exception("Unexpected error during search")
            raise ToolError(
                format_error("internal", "Internal error while running the search")
            ) from None

        return format_search_result(result)
