"""Compact output formatters for MCP tool responses."""

import json

from ripgrep_mcp.errors import SearchError
from ripgrep_mcp.models.search import SearchResult


def format_search_result(result: SearchResult) -> str:
    """JSON: {"matches": [...], "stats": {...}}; context/truncated only when set."""
    return result.model_dump_json(exclude_defaults=True)


def format_error(reason: str, message: str) -> str:
    """JSON: {"error": "path_traversal", "message": "..."}."""
    return json.dumps({"error": reason, "message": message})


def format_search_error(error: SearchError) -> str:
    """Machine-readable reason plus the human-readable message."""
    return format_error(error.reason, error.message)
