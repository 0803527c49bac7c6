"""Result Parser: turn ripgrep's JSON event stream into a SearchResult."""

import base64
import binascii
import json
from typing import Any

from ripgrep_mcp.models.search import SearchResult, SearchStats
from ripgrep_mcp.search.executor import RawOutput

_MATCH_SEP = ":"
_CONTEXT_SEP = "-"


def _text(data: Any) -> str | None:
    """Decode ripgrep's ``{"text": ...}`` / ``{"bytes": <base64>}`` payloads."""
    if not isinstance(data, dict):
        return None
    if isinstance(data.get("text"), str):
        return data["text"]
    if isinstance(data.get("bytes"), str):
        try:
            raw = base64.b64decode(data["bytes"])
        except (binascii.Error, ValueError):
            return None
        return raw.decode("utf-8", errors="replace")
    return None


def _strip_eol(content: str) -> str:
    if content.endswith("\n"):
        content = content[:-1]
        if content.endswith("\r"):
            content = content[:-1]
    return content


def format_line(event: dict[str, Any], sep: str, *, line_numbers: bool) -> str | None:
    """Render a match/context event in ripgrep's ``path:line:content`` layout.

    Returns None when the event lacks a path or line text.
    """
    data = event.get("data")
    if not isinstance(data, dict):
        return None
    path = _text(data.get("path"))
    content = _text(data.get("lines"))
    if path is None or content is None:
        return None
    path = path.removeprefix("./")
    content = _strip_eol(content)
    line_number = data.get("line_number")
    if line_numbers and isinstance(line_number, int):
        return f"{path}{sep}{line_number}{sep}{content}"
    return f"{path}{sep}{content}"


def parse_output(raw: RawOutput, *, line_numbers: bool = True) -> SearchResult:
    """Split engine output into match lines and context lines.

    Parsing is liberal and never raises: a line that is not a recognisable
    ripgrep event is kept verbatim as a match.
    """
    text = raw.stdout.decode("utf-8", errors="replace")
    lines = text.split("\n")
    if raw.truncated and not text.endswith("\n"):
        # Last line was cut mid-way by the output cap.
        lines = lines[:-1]

    matches: list[str] = []
    context: list[str] = []

    for line in lines:
        if not line.strip():
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            matches.append(line)
            continue
        if not isinstance(event, dict):
            matches.append(line)
            continue

        kind = event.get("type")
        if kind == "match":
            rendered = format_line(event, _MATCH_SEP, line_numbers=line_numbers)
            matches.append(rendered if rendered is not None else line)
        elif kind == "context":
            rendered = format_line(event, _CONTEXT_SEP, line_numbers=line_numbers)
            context.append(rendered if rendered is not None else line)
        elif kind in ("begin", "end", "summary"):
            continue
        else:
            matches.append(line)

    return SearchResult(
        matches=matches,
        stats=SearchStats(matched_lines=len(matches), elapsed_ms=raw.elapsed_ms),
        context=context,
        truncated=raw.truncated,
    )
