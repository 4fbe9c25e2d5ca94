"""Shared test fixtures for support-bot."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from support_bot.ai.client import AIClient, AIResponse, ToolCall
from support_bot.ai.tools.base import Tool
from support_bot.ai.tools.registry import ToolRegistry
from support_bot.ai.tools.result import ToolResult
from support_bot.core.session import SessionStore


# ── Tools ──────────────────────────────────────────────────────────


class EchoTool(Tool):
    """Returns its input as data and counts invocations."""

    def __init__(self, tool_name: str = "echo", description: str = "Echo the input back") -> None:
        self._name = tool_name
        self._description = description
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}}

    async def execute(self, **kwargs: Any) -> ToolResult:
        self.calls += 1
        return ToolResult.ok("echoed", dict(kwargs))


class FailingTool(EchoTool):
    def __init__(self, tool_name: str = "boom") -> None:
        super().__init__(tool_name, "Always raises")

    async def execute(self, **kwargs: Any) -> ToolResult:
        self.calls += 1
        raise RuntimeError("kaboom")


class NoneResultTool(EchoTool):
    """Misbehaves by returning None instead of a ToolResult."""

    def __init__(self, tool_name: str = "bad") -> None:
        super().__init__(tool_name, "Returns nothing")

    async def execute(self, **kwargs: Any) -> ToolResult:
        self.calls += 1
        return None  # type: ignore[return-value]


class SlowTool(EchoTool):
    def __init__(self, tool_name: str = "slow", delay: float = 1.0) -> None:
        super().__init__(tool_name, "Sleeps before answering")
        self._delay = delay

    async def execute(self, **kwargs: Any) -> ToolResult:
        self.calls += 1
        await asyncio.sleep(self._delay)
        return ToolResult.ok("done")


# ── Clock ──────────────────────────────────────────────────────────


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# ── MockAIClient ───────────────────────────────────────────────────


class MockAIClient(AIClient):
    """Deterministic AI client with scripted responses."""

    def __init__(self, responses: list[AIResponse] | None = None) -> None:
        self._responses = list(responses) if responses else [AIResponse(text="Hello", input_tokens=5, output_tokens=2)]
        self.requests: list[dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def chat(
        self,
        system: str,
        messages: list[dict[str, Any]],
        model: str = "",
        max_tokens: int = 4096,
        temperature: float = 0.7,
        tools: list[dict[str, Any]] | None = None,
    ) -> AIResponse:
        self.requests.append(
            {"system": system, "messages": [dict(m) for m in messages], "model": model, "tools": tools}
        )
        idx = min(len(self.requests) - 1, len(self._responses) - 1)
        template = self._responses[idx]
        return AIResponse(
            text=template.text,
            input_tokens=template.input_tokens,
            output_tokens=template.output_tokens,
            tool_calls=list(template.tool_calls),
            content=list(template.content),
        )


def tool_use_response(*calls: ToolCall, input_tokens: int = 10, output_tokens: int = 3) -> AIResponse:
    """Build a response asking for the given tool calls."""
    return AIResponse(
        text="",
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        tool_calls=list(calls),
        content=[{"type": "tool_use", "id": c.id, "name": c.name, "input": c.input} for c in calls],
    )


# ── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> SessionStore:
    return SessionStore(max_history=20, welcome_message="Welcome!", clock=clock)


@pytest.fixture()
def registry() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture()
def echo_tool() -> EchoTool:
    return EchoTool()
