"""Iterative tool execution loop for Claude tool use responses."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from support_bot.ai.client import AIClient, AIResponse, ToolCall
from support_bot.ai.tools.base import Tool
from support_bot.ai.tools.registry import ToolRegistry
from support_bot.ai.tools.result import ToolResult
from support_bot.log import get_logger

logger = get_logger(__name__)

MAX_TOOL_ROUNDS = 10
TOOL_LIMIT_REACHED = "[Tool execution limit reached]"


async def execute_with_timeout(
    tool_registry: ToolRegistry,
    call: ToolCall,
    timeout: float | None,
) -> ToolResult:
    """Execute one tool call, converting a timeout into a failed result."""
    try:
        return await asyncio.wait_for(tool_registry.execute(call.name, call.input), timeout)
    except asyncio.TimeoutError:
        logger.warning("tool_execution_timeout", tool=call.name, timeout_s=timeout)
        return ToolResult.fail(f"Tool timed out after {timeout}s: {call.name}", tool=call.name)


async def run_tool_loop(
    ai_client: AIClient,
    tool_registry: ToolRegistry,
    messages: list[dict[str, Any]],
    system: str,
    model: str,
    max_tokens: int,
    temperature: float,
    tools: list[Tool],
    tool_timeout: float | None = None,
) -> AIResponse:
    """Execute the Claude tool-use loop until a final text response is produced.

    *messages* is extended in place with the intermediate tool turns.
    Returns the final response with token usage summed over every round.
    """
    tool_defs = [t.to_api_dict() for t in tools]
    input_tokens = 0
    output_tokens = 0

    for round_no in range(MAX_TOOL_ROUNDS):
        response = await ai_client.chat(
            system=system,
            messages=messages,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            tools=tool_defs or None,
        )
        input_tokens += response.input_tokens
        output_tokens += response.output_tokens

        if not response.tool_calls:
            response.input_tokens = input_tokens
            response.output_tokens = output_tokens
            return response

        messages.append({"role": "assistant", "content": response.content})

        results = await asyncio.gather(
            *(execute_with_timeout(tool_registry, call, tool_timeout) for call in response.tool_calls)
        )
        logger.info(
            "tool_round_done",
            round=round_no,
            tools=[c.name for c in response.tool_calls],
            failures=sum(1 for r in results if not r.success),
        )

        messages.append(
            {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": call.id,
                        "content": json.dumps(result.to_dict(), ensure_ascii=False, default=str),
                        "is_error": not result.success,
                    }
                    for call, result in zip(response.tool_calls, results)
                ],
            }
        )

    logger.warning("tool_round_limit_reached", rounds=MAX_TOOL_ROUNDS)
    return AIResponse(
        text=TOOL_LIMIT_REACHED,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )
