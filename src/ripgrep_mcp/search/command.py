"""Command Builder: translate a validated request into a ripgrep argv."""

from dataclasses import dataclass
from pathlib import Path

from ripgrep_mcp.models.search import SearchRequest
from ripgrep_mcp.search.path_guard import ConfinedPath

# Flags applied to every invocation: ignore user config files, emit the
# JSON event stream parsed by ``parse_output``, never colorize.
_BASE_FLAGS = ("--no-config", "--json", "--color", "never")


@dataclass(frozen=True)
class SearchCommand:
    """Argument vector and working directory for one ripgrep run."""

    argv: tuple[str, ...]
    cwd: Path


def build_command(
    request: SearchRequest,
    target: ConfinedPath,
    *,
    executable: str = "rg",
) -> SearchCommand:
    """Build the ripgrep invocation for ``request`` against ``target``.

    Every value is its own argv token and no shell is involved, so pattern
    text can never be read as an option or as shell syntax.
    """
    args: list[str] = [executable, *_BASE_FLAGS]

    if request.fixed_strings:
        args.append("--fixed-strings")

    if not request.case_sensitive:
        args.append("--ignore-case")

    if request.line_numbers:
        args.append("--line-number")

    if request.context_lines > 0:
        args.extend(["--context", str(request.context_lines)])

    for file_type in request.file_types:
        args.extend(["--type", file_type])

    if request.max_depth is not None:
        args.extend(["--max-depth", str(request.max_depth)])

    args.extend(["--regexp", request.pattern, "--", str(target.relative)])

    return SearchCommand(argv=tuple(args), cwd=target.root.path)
