"""Configuration loader with YAML parsing, env-var interpolation, and Pydantic validation."""

from __future__ import annotations

import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_WELCOME_MESSAGE = "Hello! I'm your customer support assistant. How can I help you today?"
DEFAULT_SYSTEM_PROMPT = (
    "You are a customer support assistant. "
    "Use the provided tools when they help answer the user's question."
)


class ToolsConfig(BaseModel):
    enabled: bool = True
    timeout_ms: int = Field(default=30000, gt=0)
    disabled: list[str] = Field(default_factory=list)

    @property
    def timeout(self) -> float:
        """Tool execution timeout in seconds."""
        return self.timeout_ms / 1000


class ChatConfig(BaseModel):
    max_history: int = Field(default=20, gt=0)
    session_timeout_ms: int = Field(default=3_600_000, gt=0)
    sweep_interval_ms: int = Field(default=300_000, gt=0)
    welcome_message: str = DEFAULT_WELCOME_MESSAGE
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 4096
    temperature: float = 0.7

    @property
    def session_timeout(self) -> timedelta:
        return timedelta(milliseconds=self.session_timeout_ms)

    @property
    def sweep_interval(self) -> timedelta:
        return timedelta(milliseconds=self.sweep_interval_ms)


class SchedulerConfig(BaseModel):
    timezone: str = "UTC"


class AnthropicConfig(BaseModel):
    api_key: str
    base_url: Optional[str] = None
    max_retries: int = 3
    timeout: int = 120


class AppConfig(BaseModel):
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    anthropic: Optional[AnthropicConfig] = None


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _interpolate_env_vars(text: str) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""

    def _replace(match: re.Match) -> str:
        value = os.environ.get(match.group(1))
        if value is None:
            return match.group(0)
        return value

    return _ENV_VAR_PATTERN.sub(_replace, text)


def load_config(config_path: str | Path = "config.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration from YAML file with env-var interpolation."""
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    raw_text = config_file.read_text(encoding="utf-8")
    data = yaml.safe_load(_interpolate_env_vars(raw_text)) or {}

    return AppConfig(**data)
