"""Shared types and enumerations."""

from __future__ import annotations

from enum import StrEnum


class MessageType(StrEnum):
    USER = "USER"
    ASSISTANT = "ASSISTANT"
    SYSTEM = "SYSTEM"
