"""Conversation data models held by the session store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from support_bot.core.types import MessageType


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    generation_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self) -> None:
        if min(self.prompt_tokens, self.generation_tokens, self.total_tokens) < 0:
            raise ValueError("token counts must be non-negative")
        if self.total_tokens != self.prompt_tokens + self.generation_tokens:
            raise ValueError(
                f"total_tokens ({self.total_tokens}) must equal prompt_tokens + "
                f"generation_tokens ({self.prompt_tokens} + {self.generation_tokens})"
            )

    @classmethod
    def of(cls, prompt_tokens: int, generation_tokens: int) -> TokenUsage:
        return cls(prompt_tokens, generation_tokens, prompt_tokens + generation_tokens)

    def to_dict(self) -> dict[str, int]:
        return {
            "promptTokens": self.prompt_tokens,
            "generationTokens": self.generation_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclass
class Message:
    """One turn in a conversation.

    Everything except ``read`` is fixed once the message is created.
    """

    session_id: str
    type: MessageType
    content: str
    token_usage: Optional[TokenUsage] = None
    message_id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=utcnow)
    read: bool = False

    def mark_as_read(self) -> None:
        self.read = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "messageId": self.message_id,
            "sessionId": self.session_id,
            "type": self.type.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
        }
        if self.token_usage is not None:
            data["tokenUsage"] = self.token_usage.to_dict()
        return data


@dataclass
class Session:
    """One customer-support conversation.

    ``messages`` is append-only; ``updated_at`` never moves backwards.
    """

    user_id: Optional[str]
    title: str
    session_id: str = field(default_factory=new_id)
    messages: list[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    active: bool = True

    def __post_init__(self) -> None:
        if self.updated_at is None or self.updated_at < self.created_at:
            self.updated_at = self.created_at

    def touch(self, now: datetime) -> None:
        if now > self.updated_at:
            self.updated_at = now

    def add_message(self, message: Message, max_history: int, now: datetime) -> None:
        """Append *message*, dropping the oldest entries beyond *max_history*."""
        self.messages.append(message)
        overflow = len(self.messages) - max_history
        if overflow > 0:
            del self.messages[:overflow]
        self.touch(now)

    def is_idle(self, idle_timeout: timedelta, now: datetime) -> bool:
        return self.updated_at < now - idle_timeout

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "userId": self.user_id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "active": self.active,
        }
