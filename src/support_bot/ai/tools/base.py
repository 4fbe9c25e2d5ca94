"""Abstract tool interface for Claude tool use."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from support_bot.ai.tools.result import ToolResult


class Tool(ABC):
    """Base class for all Claude-callable tools.

    ``enabled`` lives on the tool itself so the registry can flip it for any
    implementation without knowing its concrete type.
    """

    enabled: bool = True

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name sent to the Anthropic API."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description for Claude."""
        ...

    @property
    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema dict describing accepted parameters."""
        ...

    @property
    def version(self) -> str:
        return "1.0.0"

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Run the tool and return its result."""
        ...

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize to the Anthropic API tool definition format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    def __repr__(self) -> str:
        state = "enabled" if self.enabled else "disabled"
        return f"<{type(self).__name__} {self.name!r} v{self.version} {state}>"
