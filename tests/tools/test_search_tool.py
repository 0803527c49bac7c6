"""Tests for the search MCP tool and its formatters."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastmcp.exceptions import ToolError
from pydantic import ValidationError

from ripgrep_mcp.errors import InternalError, PathTraversal, SearchTimeout
from ripgrep_mcp.models.search import SearchRequest, SearchResult, SearchStats
from ripgrep_mcp.tools.formatters import format_error, format_search_error, format_search_result
from ripgrep_mcp.tools.search import SearchArgumentsMiddleware, register_search
from tests.conftest import FakeExecutor, rg_event, rg_output


def _register_and_capture(mcp_mock):
    """Register search on a mock MCP and return the captured tools dict."""
    tools = {}

    def capture_tool():
        def decorator(func):
            tools[func.__name__] = func
            return func

        return decorator

    mcp_mock.tool = capture_tool
    register_search(mcp_mock)
    return tools


@pytest.fixture
def tool_context(root):
    """Mock MCP context carrying the lifespan dependencies."""
    executor = FakeExecutor()
    ctx = MagicMock()
    ctx.lifespan_context = {
        "root": root,
        "executor": executor,
        "timeout": 2.5,
        "rg_path": "/usr/bin/rg",
    }
    return ctx, executor


def _error_payload(exc_info) -> dict:
    return json.loads(str(exc_info.value))


class TestSearchTool:
    async def test_success_returns_json(self, tool_context):
        ctx, executor = tool_context
        executor.stdout = rg_output(rg_event("match", "src/lib.rs", "fn main() {}\n", 10))
        executor.elapsed_ms = 5
        tools = _register_and_capture(MagicMock())

        output = await tools["search"](pattern="fn main", path="src", line_numbers=True, ctx=ctx)

        assert json.loads(output) == {
            "matches": ["src/lib.rs:10:fn main() {}"],
            "stats": {"matched_lines": 1, "elapsed_ms": 5},
        }

    async def test_uses_lifespan_settings(self, tool_context):
        ctx, executor = tool_context
        tools = _register_and_capture(MagicMock())

        await tools["search"](pattern="x", file_types=["rust"], ctx=ctx)

        [command] = executor.commands
        assert command.argv[0] == "/usr/bin/rg"
        assert ("--type", "rust") == command.argv[
            command.argv.index("--type") : command.argv.index("--type") + 2
        ]
        assert executor.timeouts == [2.5]

    async def test_traversal_is_tool_error(self, tool_context):
        ctx, executor = tool_context
        tools = _register_and_capture(MagicMock())

        with pytest.raises(ToolError) as exc:
            await tools["search"](pattern="secret", path="../outside", ctx=ctx)

        assert _error_payload(exc)["error"] == "path_traversal"
        assert executor.commands == []

    async def test_blank_pattern_is_invalid_params(self, tool_context):
        ctx, executor = tool_context
        tools = _register_and_capture(MagicMock())

        with pytest.raises(ToolError) as exc:
            await tools["search"](pattern="   ", ctx=ctx)

        assert _error_payload(exc)["error"] == "invalid_params"
        assert executor.commands == []

    async def test_timeout_is_tool_error(self, tool_context):
        ctx, executor = tool_context
        executor.error = SearchTimeout("Search exceeded 2.5s and was terminated")
        tools = _register_and_capture(MagicMock())

        with pytest.raises(ToolError) as exc:
            await tools["search"](pattern="x", ctx=ctx)

        assert _error_payload(exc) == {
            "error": "timeout",
            "message": "Search exceeded 2.5s and was terminated",
        }

    async def test_unexpected_error_is_generic(self, tool_context):
        ctx, executor = tool_context
        executor.error = RuntimeError("pipe exploded at /secret/location")
        tools = _register_and_capture(MagicMock())

        with pytest.raises(ToolError) as exc:
            await tools["search"](pattern="x", ctx=ctx)

        payload = _error_payload(exc)
        assert payload["error"] == "internal"
        assert "/secret/location" not in payload["message"]

    async def test_requires_context(self):
        tools = _register_and_capture(MagicMock())
        with pytest.raises(RuntimeError, match="Context not injected"):
            await tools["search"](pattern="x")


class TestFormatters:
    def test_format_search_result_minimal(self):
        result = SearchResult(matches=[], stats=SearchStats(matched_lines=0, elapsed_ms=1))
        assert json.loads(format_search_result(result)) == {
            "matches": [],
            "stats": {"matched_lines": 0, "elapsed_ms": 1},
        }

    def test_format_search_result_with_context_and_truncation(self):
        result = SearchResult(
            matches=["a:2:hit"],
            stats=SearchStats(matched_lines=1, elapsed_ms=1),
            context=["a-1-before"],
            truncated=True,
        )
        data = json.loads(format_search_result(result))
        assert data["context"] == ["a-1-before"]
        assert data["truncated"] is True

    def test_format_error(self):
        assert json.loads(format_error("timeout", "slow")) == {
            "error": "timeout",
            "message": "slow",
        }

    def test_format_search_error_uses_reason(self):
        assert json.loads(format_search_error(PathTraversal("nope")))["error"] == "path_traversal"
        assert json.loads(format_search_error(InternalError("boom")))["error"] == "internal"


def _call_context(name: str, arguments: dict | None) -> MagicMock:
    context = MagicMock()
    context.message = SimpleNamespace(name=name, arguments=arguments)
    return context


class TestSearchArgumentsMiddleware:
    def test_registered_with_tool(self):
        mcp = MagicMock()
        _register_and_capture(mcp)
        [middleware] = mcp.add_middleware.call_args.args
        assert isinstance(middleware, SearchArgumentsMiddleware)

    @pytest.mark.parametrize(
        "arguments, field",
        [
            ({"pattern": "x", "context_lines": "3"}, "context_lines"),
            ({"pattern": "x", "max_depth": -1}, "max_depth"),
            ({"path": "src"}, "pattern"),
            (None, "pattern"),
        ],
    )
    async def test_rejects_bad_arguments_before_tool(self, arguments, field):
        call_next = AsyncMock()
        with pytest.raises(ToolError) as exc:
            await SearchArgumentsMiddleware().on_call_tool(
                _call_context("search", arguments), call_next
            )

        payload = json.loads(str(exc.value))
        assert payload["error"] == "invalid_params"
        assert field in payload["message"]
        call_next.assert_not_awaited()

    async def test_valid_arguments_reach_tool(self):
        call_next = AsyncMock(return_value="result")
        context = _call_context("search", {"pattern": "x", "file_types": None})

        assert await SearchArgumentsMiddleware().on_call_tool(context, call_next) == "result"
        call_next.assert_awaited_once_with(context)

    async def test_signature_validation_error_is_invalid_params(self):
        try:
            SearchRequest.model_validate({"pattern": "x", "context_lines": "3"})
        except ValidationError as e:
            error = e
        call_next = AsyncMock(side_effect=error)

        with pytest.raises(ToolError) as exc:
            await SearchArgumentsMiddleware().on_call_tool(
                _call_context("search", {"pattern": "x"}), call_next
            )

        assert json.loads(str(exc.value))["error"] == "invalid_params"

    async def test_other_tools_untouched(self):
        call_next = AsyncMock(return_value="other")
        context = _call_context("something_else", {"anything": 1})

        assert await SearchArgumentsMiddleware().on_call_tool(context, call_next) == "other"
