"""Tool registry for discovering and managing available tools."""

from __future__ import annotations

import threading
import time
from typing import Any

from support_bot.ai.tools.base import Tool
from support_bot.ai.tools.result import ToolResult
from support_bot.log import get_logger

logger = get_logger(__name__)


class ToolRegistry:
    """Registry of all available tools.

    The name -> tool map is authoritative. ``all_tools()`` and
    ``enabled_tools()`` are memoized snapshots that every mutation
    invalidates and the next read rebuilds.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}
        self._lock = threading.RLock()
        self._all_view: tuple[Tool, ...] | None = None
        self._enabled_view: tuple[Tool, ...] | None = None

    def register(self, tool: Tool | None) -> bool:
        """Add *tool*. Returns False without changes on a bad or duplicate name."""
        if tool is None or not isinstance(tool.name, str) or not tool.name.strip():
            logger.warning("tool_register_rejected", reason="invalid_name")
            return False

        with self._lock:
            if tool.name in self._tools:
                logger.warning("tool_register_rejected", tool_name=tool.name, reason="duplicate")
                return False
            self._tools[tool.name] = tool
            self._invalidate(enabled_only=False)

        logger.info("tool_registered", tool_name=tool.name, version=tool.version)
        return True

    def unregister(self, name: str) -> bool:
        with self._lock:
            removed = self._tools.pop(name, None) is not None
            if removed:
                self._invalidate(enabled_only=False)
        if removed:
            logger.info("tool_unregistered", tool_name=name)
        return removed

    def get(self, name: str) -> Tool | None:
        with self._lock:
            return self._tools.get(name)

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._tools

    def all_tools(self) -> list[Tool]:
        with self._lock:
            if self._all_view is None:
                self._all_view = tuple(self._tools.values())
            return list(self._all_view)

    def enabled_tools(self) -> list[Tool]:
        with self._lock:
            if self._enabled_view is None:
                self._enabled_view = tuple(t for t in self._tools.values() if t.enabled)
            return list(self._enabled_view)

    def get_tools_by_names(self, names: list[str], enabled_only: bool = True) -> list[Tool]:
        """Get a subset of tools by name list, skipping unknown names."""
        with self._lock:
            tools = [self._tools[n] for n in names if n in self._tools]
        if enabled_only:
            tools = [t for t in tools if t.enabled]
        return tools

    def enable(self, name: str) -> bool:
        return self._set_enabled(name, True)

    def disable(self, name: str) -> bool:
        return self._set_enabled(name, False)

    async def execute(self, name: str, parameters: dict[str, Any] | None = None) -> ToolResult:
        """Run a tool by name.

        Missing and disabled tools, and any exception raised by the tool,
        come back as failed results; nothing raised by a tool escapes.
        """
        with self._lock:
            tool = self._tools.get(name)
            enabled = tool is not None and tool.enabled

        if tool is None:
            logger.warning("tool_not_found", tool_name=name)
            return ToolResult.fail(f"Tool not found: {name}", tool=name)
        if not enabled:
            logger.warning("tool_disabled", tool_name=name)
            return ToolResult.fail(f"Tool disabled: {name}", tool=name)

        started = time.monotonic()
        logger.info("tool_execute", tool_name=name)
        try:
            result = await tool.execute(**(parameters or {}))
        except Exception as e:
            duration_ms = int((time.monotonic() - started) * 1000)
            logger.error("tool_execution_error", tool_name=name, error=str(e), exc_info=True)
            return ToolResult.fail(
                f"Tool execution failed: {e}", tool=name, duration_ms=duration_ms
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        if not isinstance(result, ToolResult):
            logger.error(
                "tool_bad_result", tool_name=name, result_type=type(result).__name__
            )
            return ToolResult.fail(
                f"Tool execution failed: {name} returned {type(result).__name__}",
                tool=name,
                duration_ms=duration_ms,
            )

        logger.info("tool_executed", tool_name=name, success=result.success, duration_ms=duration_ms)
        return result

    def discover_and_register(self) -> int:
        """Import and register all built-in tools. Returns how many were added."""
        from support_bot.ai.tools.calculator import CalculatorTool
        from support_bot.ai.tools.datetime_tool import DateTimeTool
        from support_bot.ai.tools.invoice import InvoiceTool
        from support_bot.ai.tools.order import OrderQueryTool
        from support_bot.ai.tools.refund import RefundTool

        registered = 0
        for tool in (CalculatorTool(), DateTimeTool(), OrderQueryTool(), InvoiceTool(), RefundTool()):
            if self.register(tool):
                registered += 1
        return registered

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    def _set_enabled(self, name: str, enabled: bool) -> bool:
        with self._lock:
            tool = self._tools.get(name)
            if tool is None:
                return False
            tool.enabled = enabled
            self._invalidate(enabled_only=True)
        logger.info("tool_state_changed", tool_name=name, enabled=enabled)
        return True

    def _invalidate(self, enabled_only: bool) -> None:
        self._enabled_view = None
        if not enabled_only:
            self._all_view = None
