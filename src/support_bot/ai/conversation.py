"""Convert session history to Anthropic API message format."""

from __future__ import annotations

from typing import Any

from support_bot.core.models import Message
from support_bot.core.types import MessageType

_ROLES = {MessageType.USER: "user", MessageType.ASSISTANT: "assistant"}


def build_messages(history: list[Message]) -> list[dict[str, Any]]:
    """Convert stored messages into Anthropic API messages.

    System messages are not conversation turns and are dropped. Consecutive
    messages from the same role (e.g. a user turn whose reply failed) are
    merged, since the API requires alternating roles. Leading assistant
    turns are dropped because the API requires the first turn to be the
    user's.
    """
    messages: list[dict[str, Any]] = []
    for message in history:
        role = _ROLES.get(message.type)
        if role is None or not message.content:
            continue
        if not messages and role != "user":
            continue
        if messages and messages[-1]["role"] == role:
            messages[-1]["content"] += "\n\n" + message.content
        else:
            messages.append({"role": role, "content": message.content})
    return messages
