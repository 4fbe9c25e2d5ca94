"""Background service lifecycle interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Service(ABC):
    """A background component started and stopped with the application."""

    @property
    @abstractmethod
    def service_name(self) -> str:
        ...

    @property
    @abstractmethod
    def running(self) -> bool:
        ...

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    async def health_check(self) -> bool:
        return self.running

    def describe(self) -> dict[str, Any]:
        return {"service": self.service_name, "running": self.running}
