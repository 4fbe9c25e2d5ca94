"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

from support_bot.ai.client import AIClient, AnthropicClient
from support_bot.ai.handler import ChatHandler
from support_bot.ai.tools.registry import ToolRegistry
from support_bot.config import AppConfig
from support_bot.core.session import SessionStore
from support_bot.log import get_logger
from support_bot.services.sweeper import SessionSweeper

logger = get_logger(__name__)


class SupportBotApp:
    """Top-level application orchestrator.

    Owns the single tool registry and session store for the process and
    hands them to everything else explicitly.
    """

    def __init__(self, config: AppConfig, ai_client: AIClient | None = None):
        self.config = config
        self.tool_registry = ToolRegistry()
        self.session_store = SessionStore(
            max_history=config.chat.max_history,
            welcome_message=config.chat.welcome_message,
        )
        self.sweeper = SessionSweeper(
            self.session_store,
            idle_timeout=config.chat.session_timeout,
            interval=config.chat.sweep_interval,
            timezone=config.scheduler.timezone,
        )
        if ai_client is None and config.anthropic is not None:
            ai_client = AnthropicClient(config.anthropic)
        self.chat_handler: ChatHandler | None = None
        if ai_client is not None:
            self.chat_handler = ChatHandler(
                ai_client=ai_client,
                session_store=self.session_store,
                tool_registry=self.tool_registry,
                chat_config=config.chat,
                tools_config=config.tools,
            )

    async def start(self) -> None:
        """Register tools and start background services."""
        # 1. Tools
        if self.config.tools.enabled:
            self.tool_registry.discover_and_register()
            for name in self.config.tools.disabled:
                if not self.tool_registry.disable(name):
                    logger.warning("disable_unknown_tool", tool_name=name)
        else:
            logger.info("tools_disabled_by_config")

        # 2. Session sweeper
        await self.sweeper.start()

        if self.chat_handler is None:
            logger.warning("chat_handler_unavailable", hint="add an 'anthropic' section to config")

        logger.info(
            "support_bot_started",
            tools=[t.name for t in self.tool_registry.enabled_tools()],
        )

    async def stop(self) -> None:
        """Gracefully shut down all components."""
        try:
            await self.sweeper.stop()
        except Exception as e:
            logger.error("sweeper_stop_error", error=str(e))
        logger.info("support_bot_stopped", sessions=len(self.session_store))

    async def health_check(self) -> dict[str, bool]:
        return {
            self.sweeper.service_name: await self.sweeper.health_check(),
            "chat": self.chat_handler is not None,
        }
