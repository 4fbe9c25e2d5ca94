"""Chat handler: session -> history -> Claude -> tools -> assistant message."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from support_bot.ai.client import AIClient
from support_bot.ai.conversation import build_messages
from support_bot.ai.tool_runner import run_tool_loop
from support_bot.ai.tools.registry import ToolRegistry
from support_bot.config import ChatConfig, ToolsConfig
from support_bot.core.models import Message, TokenUsage
from support_bot.core.session import SessionStore
from support_bot.core.types import MessageType
from support_bot.log import get_logger

logger = get_logger(__name__)

DEFAULT_SESSION_TITLE = "New conversation"


@dataclass
class ChatReply:
    session_id: Optional[str]
    message: Optional[Message] = None
    success: bool = True
    error: Optional[str] = None

    @classmethod
    def failed(cls, session_id: str | None, error: str) -> ChatReply:
        return cls(session_id=session_id, success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"sessionId": self.session_id, "success": self.success}
        if self.message is not None:
            data["message"] = self.message.to_dict()
        if self.error is not None:
            data["error"] = self.error
        return data


class ChatHandler:
    """Runs one LLM turn against a session, with optional tool use."""

    def __init__(
        self,
        ai_client: AIClient,
        session_store: SessionStore,
        tool_registry: ToolRegistry,
        chat_config: ChatConfig,
        tools_config: ToolsConfig,
    ):
        self._ai_client = ai_client
        self._sessions = session_store
        self._tools = tool_registry
        self._chat_config = chat_config
        self._tools_config = tools_config

    async def chat(
        self,
        text: str,
        user_id: str | None = None,
        session_id: str | None = None,
        tool_names: list[str] | None = None,
    ) -> ChatReply:
        """Process one user message end-to-end.

        An unknown or missing *session_id* starts a new session. *tool_names*
        restricts the tools offered to the model; None offers every enabled
        tool and an empty list offers none.
        """
        text = text.strip()
        if not text:
            return ChatReply.failed(session_id, "Message must not be empty")

        session = self._sessions.get(session_id) if session_id else None
        if session is None:
            session = self._sessions.create(user_id, DEFAULT_SESSION_TITLE)
        session_id = session.session_id

        try:
            session = self._sessions.append_message(
                session_id, Message(session_id=session_id, type=MessageType.USER, content=text)
            )
            messages = build_messages(list(session.messages))

            cfg = self._chat_config
            if tool_names is None:
                tools = self._tools.enabled_tools()
            else:
                tools = self._tools.get_tools_by_names(tool_names)

            response = await run_tool_loop(
                ai_client=self._ai_client,
                tool_registry=self._tools,
                messages=messages,
                system=cfg.system_prompt,
                model=cfg.model,
                max_tokens=cfg.max_tokens,
                temperature=cfg.temperature,
                tools=tools,
                tool_timeout=self._tools_config.timeout,
            )

            reply = Message(
                session_id=session_id,
                type=MessageType.ASSISTANT,
                content=response.text,
                token_usage=TokenUsage.of(response.input_tokens, response.output_tokens),
            )
            self._sessions.append_message(session_id, reply)
        except Exception as e:
            logger.error("chat_error", session_id=session_id, error=str(e), exc_info=True)
            return ChatReply.failed(session_id, f"Error while processing chat request: {e}")

        logger.info(
            "chat_turn_done",
            session_id=session_id,
            tools_offered=len(tools),
            total_tokens=reply.token_usage.total_tokens,
        )
        return ChatReply(session_id=session_id, message=reply)
