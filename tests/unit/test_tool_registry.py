"""Tests for ToolRegistry: registration, cached views, enable/disable, execute."""

import threading

import pytest

from tests.conftest import EchoTool, FailingTool, NoneResultTool
from support_bot.ai.tools.registry import ToolRegistry


class TestRegistration:
    def test_register_and_get(self, registry: ToolRegistry, echo_tool: EchoTool) -> None:
        assert registry.register(echo_tool) is True
        assert registry.get("echo") is echo_tool
        assert registry.has("echo") is True
        assert len(registry) == 1

    def test_get_not_found(self, registry: ToolRegistry) -> None:
        assert registry.get("nonexistent") is None
        assert registry.has("nonexistent") is False

    def test_register_none_rejected(self, registry: ToolRegistry) -> None:
        assert registry.register(None) is False
        assert len(registry) == 0

    @pytest.mark.parametrize("bad_name", ["", "   "])
    def test_register_blank_name_rejected(self, registry: ToolRegistry, bad_name: str) -> None:
        assert registry.register(EchoTool(bad_name)) is False
        assert registry.all_tools() == []

    def test_duplicate_keeps_original(self, registry: ToolRegistry) -> None:
        original = EchoTool("dup", "first")
        assert registry.register(original) is True
        assert registry.register(EchoTool("dup", "second")) is False
        assert registry.get("dup") is original
        assert [t.description for t in registry.all_tools()] == ["first"]

    def test_unregister(self, registry: ToolRegistry, echo_tool: EchoTool) -> None:
        registry.register(echo_tool)
        assert registry.unregister("echo") is True
        assert registry.unregister("echo") is False
        assert registry.get("echo") is None

    def test_concurrent_register_same_name(self, registry: ToolRegistry) -> None:
        results: list[bool] = []
        barrier = threading.Barrier(8)

        def worker(i: int) -> None:
            barrier.wait()
            results.append(registry.register(EchoTool("racy", f"tool-{i}")))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert len(registry.all_tools()) == 1


class TestCachedViews:
    def test_register_visible_in_all_tools(self, registry: ToolRegistry) -> None:
        assert registry.all_tools() == []
        tool = EchoTool("a")
        registry.register(tool)
        assert tool in registry.all_tools()

    def test_unregister_removed_from_views(self, registry: ToolRegistry) -> None:
        tool = EchoTool("a")
        registry.register(tool)
        registry.all_tools()
        registry.enabled_tools()
        registry.unregister("a")
        assert tool not in registry.all_tools()
        assert tool not in registry.enabled_tools()

    def test_view_is_cached_until_mutation(self, registry: ToolRegistry) -> None:
        registry.register(EchoTool("a"))
        registry.all_tools()
        first = registry._all_view
        registry.all_tools()
        assert first is not None
        assert registry._all_view is first
        registry.register(EchoTool("b"))
        assert registry._all_view is None
        assert {t.name for t in registry.all_tools()} == {"a", "b"}

    def test_returned_list_is_a_copy(self, registry: ToolRegistry) -> None:
        registry.register(EchoTool("a"))
        registry.all_tools().clear()
        assert len(registry.all_tools()) == 1

    def test_disable_only_invalidates_enabled_view(self, registry: ToolRegistry) -> None:
        registry.register(EchoTool("a"))
        registry.all_tools()
        registry.enabled_tools()
        all_view = registry._all_view

        assert registry.disable("a") is True
        assert registry._all_view is all_view
        assert registry._enabled_view is None

    def test_enabled_filtering(self, registry: ToolRegistry) -> None:
        for name in ("a", "b", "c"):
            registry.register(EchoTool(name))
        registry.disable("b")

        enabled = registry.enabled_tools()
        assert {t.name for t in enabled} == {"a", "c"}
        assert set(enabled) <= set(registry.all_tools())
        assert len(registry.all_tools()) == 3

        registry.enable("b")
        assert {t.name for t in registry.enabled_tools()} == {"a", "b", "c"}

    def test_enable_disable_unknown(self, registry: ToolRegistry) -> None:
        assert registry.enable("ghost") is False
        assert registry.disable("ghost") is False

    def test_get_tools_by_names(self, registry: ToolRegistry) -> None:
        registry.register(EchoTool("a"))
        registry.register(EchoTool("b"))
        registry.disable("b")
        assert [t.name for t in registry.get_tools_by_names(["a", "b", "zzz"])] == ["a"]
        assert [t.name for t in registry.get_tools_by_names(["b"], enabled_only=False)] == ["b"]


class TestExecute:
    @pytest.mark.asyncio
    async def test_execute_echo(self, registry: ToolRegistry, echo_tool: EchoTool) -> None:
        registry.register(echo_tool)
        result = await registry.execute("echo", {"x": 1})
        assert result.success is True
        assert result.data == {"x": 1}

    @pytest.mark.asyncio
    async def test_execute_not_found(self, registry: ToolRegistry) -> None:
        result = await registry.execute("nonexistent", {})
        assert result.success is False
        assert "not found" in result.error

    @pytest.mark.asyncio
    async def test_execute_disabled_does_not_invoke(
        self, registry: ToolRegistry, echo_tool: EchoTool
    ) -> None:
        registry.register(echo_tool)
        registry.disable("echo")
        result = await registry.execute("echo", {})
        assert result.success is False
        assert "disabled" in result.error
        assert echo_tool.calls == 0

    @pytest.mark.asyncio
    async def test_not_found_and_disabled_are_distinct(
        self, registry: ToolRegistry, echo_tool: EchoTool
    ) -> None:
        registry.register(echo_tool)
        registry.disable("echo")
        disabled = await registry.execute("echo")
        missing = await registry.execute("missing")
        assert disabled.error != missing.error

    @pytest.mark.asyncio
    async def test_execution_fault_is_contained(self, registry: ToolRegistry) -> None:
        failing = FailingTool()
        registry.register(failing)
        result = await registry.execute("boom", {"a": 1})
        assert result.success is False
        assert "kaboom" in result.error
        assert result.metadata["tool"] == "boom"
        assert "duration_ms" in result.metadata
        assert failing.calls == 1

    @pytest.mark.asyncio
    async def test_non_toolresult_return_is_contained(self, registry: ToolRegistry) -> None:
        bad = NoneResultTool()
        registry.register(bad)
        result = await registry.execute("bad", {})
        assert result.success is False
        assert result.error == "Tool execution failed: bad returned NoneType"
        assert result.metadata["tool"] == "bad"
        assert "duration_ms" in result.metadata
        assert bad.calls == 1

    @pytest.mark.asyncio
    async def test_reenabled_tool_runs(self, registry: ToolRegistry, echo_tool: EchoTool) -> None:
        registry.register(echo_tool)
        registry.disable("echo")
        registry.enable("echo")
        result = await registry.execute("echo", {"y": "z"})
        assert result.success is True
        assert echo_tool.calls == 1


class TestDiscovery:
    def test_discover_builtin_tools(self, registry: ToolRegistry) -> None:
        assert registry.discover_and_register() == 5
        assert {t.name for t in registry.all_tools()} == {
            "calculator",
            "datetime",
            "order_query",
            "invoice",
            "refund",
        }

    def test_discover_twice_adds_nothing(self, registry: ToolRegistry) -> None:
        registry.discover_and_register()
        assert registry.discover_and_register() == 0
        assert len(registry) == 5
