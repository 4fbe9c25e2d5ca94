"""CLI entry point for support-bot."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

from support_bot.ai.tools.registry import ToolRegistry
from support_bot.app import SupportBotApp
from support_bot.config import AppConfig, load_config
from support_bot.log import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="support-bot",
        description="Customer-support chat backend with Claude AI and pluggable tools",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for command, help_text in (
        ("start", "Start the service"),
        ("config-check", "Validate configuration"),
        ("tools", "List built-in tools and their state"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
        sub.add_argument("-e", "--env", default=".env", help="Path to .env file")

    args = parser.parse_args()

    if args.command is None:
        # Default to start
        args.command = "start"
        args.config = "config.yaml"
        args.env = ".env"

    if args.command == "config-check":
        _check_config(args.config, args.env)
    elif args.command == "tools":
        _list_tools(args.config, args.env)
    elif args.command == "start":
        _run(args.config, args.env)


def _load_or_exit(config_path: str, env_path: str) -> AppConfig:
    try:
        return load_config(config_path, env_path)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Run 'python install.py' first or copy config.example.yaml to config.yaml")
        sys.exit(1)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _check_config(config_path: str, env_path: str) -> None:
    """Validate configuration and print summary."""
    config = _load_or_exit(config_path, env_path)
    chat = config.chat
    print(f"Configuration valid: {config_path}")
    print(f"  Log level      : {config.log_level}")
    print(f"  Model          : {chat.model}")
    print(f"  Anthropic      : {'configured' if config.anthropic else '(missing)'}")
    print(f"  Max history    : {chat.max_history}")
    print(f"  Session timeout: {chat.session_timeout}")
    print(f"  Sweep interval : {chat.sweep_interval}")
    print(f"  Tool timeout   : {config.tools.timeout}s")
    disabled = ", ".join(config.tools.disabled) or "(none)"
    print(f"  Disabled tools : {disabled}")


def _list_tools(config_path: str, env_path: str) -> None:
    """Show every built-in tool as it would be registered at start-up."""
    config = _load_or_exit(config_path, env_path)
    registry = ToolRegistry()
    registry.discover_and_register()
    for name in config.tools.disabled:
        registry.disable(name)

    print("Tools")
    print("=" * 50)
    for tool in registry.all_tools():
        state = "enabled" if tool.enabled else "disabled"
        print(f"\n  {tool.name} v{tool.version} [{state}]")
        print(f"    {tool.description}")
    if not config.tools.enabled:
        print("\n  (tool support is turned off in config: tools.enabled = false)")
    print()


def _run(config_path: str, env_path: str) -> None:
    """Load config and run the application until interrupted."""
    config = _load_or_exit(config_path, env_path)
    setup_logging(config.log_level, config.log_format)

    async def _async_main() -> None:
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()

        def _signal_handler() -> None:
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _signal_handler)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                signal.signal(sig, lambda s, f: loop.call_soon_threadsafe(_signal_handler))

        app = SupportBotApp(config)
        await app.start()
        try:
            await stop_event.wait()
        finally:
            await app.stop()

    asyncio.run(_async_main())


if __name__ == "__main__":
    main()
