"""Structured outcome of a single tool execution."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

from support_bot.core.models import utcnow


@dataclass(frozen=True)
class ToolResult:
    success: bool
    message: Optional[str] = None
    data: Any = None
    error: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    @classmethod
    def ok(cls, message: str | None = None, data: Any = None, **metadata: Any) -> ToolResult:
        return cls(success=True, message=message, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, **metadata: Any) -> ToolResult:
        return cls(success=False, error=error, metadata=metadata)

    def with_metadata(self, **metadata: Any) -> ToolResult:
        """Return a copy with *metadata* merged over the existing bag."""
        return replace(self, metadata={**self.metadata, **metadata})

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting fields that are unset."""
        data: dict[str, Any] = {"success": self.success}
        if self.message is not None:
            data["message"] = self.message
        if self.data is not None:
            data["data"] = self.data
        if self.error is not None:
            data["error"] = self.error
        if self.metadata:
            data["metadata"] = self.metadata
        data["timestamp"] = self.timestamp.isoformat()
        return data
