"""Tests for ChatHandler, the tool loop, and history conversion."""

import json

import pytest

from tests.conftest import EchoTool, MockAIClient, SlowTool, tool_use_response
from support_bot.ai.client import AIResponse, ToolCall
from support_bot.ai.conversation import build_messages
from support_bot.ai.handler import ChatHandler
from support_bot.ai.tool_runner import MAX_TOOL_ROUNDS, TOOL_LIMIT_REACHED, run_tool_loop
from support_bot.ai.tools.registry import ToolRegistry
from support_bot.config import ChatConfig, ToolsConfig
from support_bot.core.models import Message
from support_bot.core.session import SessionStore
from support_bot.core.types import MessageType


def _handler(
    ai_client: MockAIClient, store: SessionStore, registry: ToolRegistry, timeout_ms: int = 30000
) -> ChatHandler:
    return ChatHandler(
        ai_client=ai_client,
        session_store=store,
        tool_registry=registry,
        chat_config=ChatConfig(system_prompt="be helpful", model="test-model"),
        tools_config=ToolsConfig(timeout_ms=timeout_ms),
    )


class TestBuildMessages:
    def test_skips_system_and_merges_roles(self) -> None:
        history = [
            Message("s", MessageType.SYSTEM, "welcome"),
            Message("s", MessageType.USER, "first"),
            Message("s", MessageType.USER, "second"),
            Message("s", MessageType.ASSISTANT, "answer"),
        ]
        assert build_messages(history) == [
            {"role": "user", "content": "first\n\nsecond"},
            {"role": "assistant", "content": "answer"},
        ]

    def test_drops_leading_assistant(self) -> None:
        history = [
            Message("s", MessageType.ASSISTANT, "orphan"),
            Message("s", MessageType.USER, "hi"),
        ]
        assert build_messages(history) == [{"role": "user", "content": "hi"}]


class TestChat:
    @pytest.mark.asyncio
    async def test_new_session_flow(self, store: SessionStore, registry: ToolRegistry) -> None:
        client = MockAIClient([AIResponse(text="Hi there", input_tokens=8, output_tokens=3)])
        reply = await _handler(client, store, registry).chat("hello", user_id="u1")

        assert reply.success is True
        assert reply.message.content == "Hi there"
        assert reply.message.type == MessageType.ASSISTANT
        assert reply.message.token_usage.total_tokens == 11

        session = store.get(reply.session_id)
        assert [m.type for m in session.messages] == [
            MessageType.SYSTEM,
            MessageType.USER,
            MessageType.ASSISTANT,
        ]
        assert store.list_by_user("u1") == [session]

        request = client.requests[0]
        assert request["system"] == "be helpful"
        assert request["model"] == "test-model"
        assert request["messages"] == [{"role": "user", "content": "hello"}]

    @pytest.mark.asyncio
    async def test_existing_session_keeps_history(
        self, store: SessionStore, registry: ToolRegistry
    ) -> None:
        client = MockAIClient([AIResponse(text="one"), AIResponse(text="two")])
        handler = _handler(client, store, registry)
        first = await handler.chat("a", user_id="u1")
        second = await handler.chat("b", session_id=first.session_id)

        assert second.session_id == first.session_id
        assert client.requests[1]["messages"] == [
            {"role": "user", "content": "a"},
            {"role": "assistant", "content": "one"},
            {"role": "user", "content": "b"},
        ]

    @pytest.mark.asyncio
    async def test_unknown_session_starts_new_one(
        self, store: SessionStore, registry: ToolRegistry
    ) -> None:
        reply = await _handler(MockAIClient(), store, registry).chat("hi", session_id="gone")
        assert reply.success is True
        assert reply.session_id != "gone"

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, store: SessionStore, registry: ToolRegistry) -> None:
        client = MockAIClient()
        reply = await _handler(client, store, registry).chat("   ")
        assert reply.success is False
        assert client.call_count == 0
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_ai_failure_becomes_error_reply(
        self, store: SessionStore, registry: ToolRegistry
    ) -> None:
        class BrokenClient(MockAIClient):
            async def chat(self, *args, **kwargs):  # type: ignore[override]
                raise ConnectionError("upstream down")

        reply = await _handler(BrokenClient(), store, registry).chat("hi", user_id="u1")
        assert reply.success is False
        assert "upstream down" in reply.error
        session = store.get(reply.session_id)
        assert session.messages[-1].type == MessageType.USER

    @pytest.mark.asyncio
    async def test_offers_enabled_tools_by_default(
        self, store: SessionStore, registry: ToolRegistry
    ) -> None:
        registry.register(EchoTool("echo"))
        registry.register(EchoTool("hidden"))
        registry.disable("hidden")
        client = MockAIClient()
        await _handler(client, store, registry).chat("hi")
        assert [t["name"] for t in client.requests[0]["tools"]] == ["echo"]

    @pytest.mark.asyncio
    async def test_tool_names_filter(self, store: SessionStore, registry: ToolRegistry) -> None:
        registry.register(EchoTool("echo"))
        client = MockAIClient()
        await _handler(client, store, registry).chat("hi", tool_names=["nope"])
        assert client.requests[0]["tools"] is None


class TestToolLoop:
    @pytest.mark.asyncio
    async def test_tool_round_trip(self, registry: ToolRegistry) -> None:
        echo = EchoTool()
        registry.register(echo)
        client = MockAIClient(
            [
                tool_use_response(ToolCall(id="t1", name="echo", input={"x": 1})),
                AIResponse(text="done", input_tokens=20, output_tokens=4),
            ]
        )
        messages = [{"role": "user", "content": "echo x"}]

        response = await run_tool_loop(
            client, registry, messages, "sys", "m", 100, 0.0, registry.enabled_tools()
        )

        assert response.text == "done"
        assert response.input_tokens == 30
        assert response.output_tokens == 7
        assert echo.calls == 1
        tool_result = messages[2]["content"][0]
        assert tool_result["tool_use_id"] == "t1"
        assert tool_result["is_error"] is False
        assert json.loads(tool_result["content"])["data"] == {"x": 1}

    @pytest.mark.asyncio
    async def test_missing_tool_reported_as_error(self, registry: ToolRegistry) -> None:
        client = MockAIClient(
            [tool_use_response(ToolCall(id="t1", name="ghost", input={})), AIResponse(text="ok")]
        )
        messages = [{"role": "user", "content": "?"}]
        await run_tool_loop(client, registry, messages, "sys", "m", 100, 0.0, [])
        tool_result = messages[2]["content"][0]
        assert tool_result["is_error"] is True
        assert "not found" in json.loads(tool_result["content"])["error"]

    @pytest.mark.asyncio
    async def test_timeout(self, registry: ToolRegistry) -> None:
        registry.register(SlowTool(delay=5))
        client = MockAIClient(
            [tool_use_response(ToolCall(id="t1", name="slow", input={})), AIResponse(text="ok")]
        )
        messages = [{"role": "user", "content": "?"}]
        await run_tool_loop(
            client, registry, messages, "sys", "m", 100, 0.0, registry.all_tools(), tool_timeout=0.05
        )
        error = json.loads(messages[2]["content"][0]["content"])["error"]
        assert "timed out" in error

    @pytest.mark.asyncio
    async def test_round_limit(self, registry: ToolRegistry) -> None:
        registry.register(EchoTool())
        client = MockAIClient([tool_use_response(ToolCall(id="t", name="echo", input={}))])
        messages = [{"role": "user", "content": "loop"}]
        response = await run_tool_loop(
            client, registry, messages, "sys", "m", 100, 0.0, registry.all_tools()
        )
        assert response.text == TOOL_LIMIT_REACHED
        assert client.call_count == MAX_TOOL_ROUNDS
