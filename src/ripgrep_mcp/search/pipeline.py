"""Search pipeline: validate -> confine -> build -> execute -> parse."""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ripgrep_mcp.errors import InvalidParams
from ripgrep_mcp.models.search import SearchRequest, SearchResult
from ripgrep_mcp.search.command import build_command
from ripgrep_mcp.search.executor import SearchExecutor
from ripgrep_mcp.search.parser import parse_output
from ripgrep_mcp.search.path_guard import SearchRoot, confine

logger = logging.getLogger(__name__)


def describe_validation_error(error: ValidationError) -> str:
    """Format: "context_lines: Input should be a valid integer; pattern: ..."."""
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_request(arguments: Mapping[str, Any]) -> SearchRequest:
    """Validate raw tool arguments into a SearchRequest, or raise InvalidParams."""
    try:
        return SearchRequest.model_validate(dict(arguments))
    except ValidationError as e:
        raise InvalidParams(f"Invalid parameters: {describe_validation_error(e)}") from e


async def run_search(
    arguments: Mapping[str, Any],
    *,
    root: SearchRoot,
    executor: SearchExecutor,
    timeout: float,
    executable: str = "rg",
) -> SearchResult:
    """Run one search request end to end.

    Validation and path confinement both happen before anything is spawned.
    Failures propagate as SearchError subclasses.
    """
    request = parse_request(arguments)
    target = confine(root, request.path)
    command = build_command(request, target, executable=executable)
    logger.debug("Running %s in %s", command.argv, command.cwd)

    raw = await executor.run(command, timeout)
    result = parse_output(raw, line_numbers=request.line_numbers)
    logger.debug(
        "Search matched %d line(s) in %dms",
        result.stats.matched_lines,
        result.stats.elapsed_ms,
    )
    return result
