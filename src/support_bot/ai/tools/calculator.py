"""Arithmetic calculator tool."""

from __future__ import annotations

import ast
import operator
from decimal import Decimal, DivisionByZero, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Callable

from support_bot.ai.tools.base import Tool
from support_bot.ai.tools.result import ToolResult

_DIVISION_PLACES = Decimal("1e-10")

_BINARY_OPS: dict[type[ast.operator], Callable[[Decimal, Decimal], Decimal]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
    ast.Mod: operator.mod,
}

_ALIASES = {
    "addition": "add",
    "subtraction": "subtract",
    "multiplication": "multiply",
    "division": "divide",
    "exponentiation": "power",
    "square_root": "sqrt",
}


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _normalize(value: Decimal) -> str:
    """Render without exponent notation or trailing zeros."""
    text = format(value.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def _evaluate(node: ast.AST) -> Decimal:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return Decimal(str(node.value))
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.UAdd, ast.USub)):
        operand = _evaluate(node.operand)
        return -operand if isinstance(node.op, ast.USub) else operand
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    raise ValueError(f"unsupported expression element: {type(node).__name__}")


class CalculatorTool(Tool):
    """Basic arithmetic, percentages, and safe expression evaluation."""

    @property
    def name(self) -> str:
        return "calculator"

    @property
    def description(self) -> str:
        return (
            "Perform arithmetic: add, subtract, multiply, divide, power, sqrt, "
            "percentage, or evaluate an arithmetic expression."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "description": "add, subtract, multiply, divide, power, sqrt, percentage, expression",
                },
                "operand1": {"type": "number", "description": "First operand (or base/value)"},
                "operand2": {"type": "number", "description": "Second operand (or exponent/percent)"},
                "expression": {
                    "type": "string",
                    "description": "Arithmetic expression, e.g. '(2 + 3) * 4'",
                },
            },
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        operation = str(kwargs.get("operation") or "").strip().lower()
        if not operation:
            if str(kwargs.get("expression") or "").strip():
                return self._expression(kwargs)
            return ToolResult.fail("operation is required")

        operation = _ALIASES.get(operation, operation)
        match operation:
            case "add" | "subtract" | "multiply" | "divide" | "power":
                return self._binary(operation, kwargs)
            case "sqrt":
                return self._sqrt(kwargs)
            case "percentage":
                return self._percentage(kwargs)
            case "expression":
                return self._expression(kwargs)
            case _:
                return ToolResult.fail(f"Unsupported operation: {operation}")

    def _binary(self, operation: str, kwargs: dict[str, Any]) -> ToolResult:
        a = _to_decimal(kwargs.get("operand1"))
        b = _to_decimal(kwargs.get("operand2"))
        if a is None or b is None:
            return ToolResult.fail(f"{operation} requires operand1 and operand2")

        if operation == "add":
            result = a + b
        elif operation == "subtract":
            result = a - b
        elif operation == "multiply":
            result = a * b
        elif operation == "divide":
            if b == 0:
                return ToolResult.fail("Division by zero")
            result = (a / b).quantize(_DIVISION_PLACES, rounding=ROUND_HALF_UP)
        else:
            try:
                result = Decimal(str(float(a) ** float(b)))
            except (OverflowError, ZeroDivisionError, InvalidOperation) as e:
                return ToolResult.fail(f"power failed: {e}")

        return ToolResult.ok(
            f"{operation} complete",
            {
                "result": _normalize(result),
                "operation": operation,
                "operand1": _normalize(a),
                "operand2": _normalize(b),
            },
        )

    def _sqrt(self, kwargs: dict[str, Any]) -> ToolResult:
        value = _to_decimal(kwargs.get("operand1"))
        if value is None:
            return ToolResult.fail("sqrt requires operand1")
        if value < 0:
            return ToolResult.fail("Cannot take the square root of a negative number")
        return ToolResult.ok(
            "sqrt complete",
            {"result": _normalize(value.sqrt()), "operation": "sqrt", "operand": _normalize(value)},
        )

    def _percentage(self, kwargs: dict[str, Any]) -> ToolResult:
        value = _to_decimal(kwargs.get("operand1"))
        percent = _to_decimal(kwargs.get("operand2"))
        if value is None:
            return ToolResult.fail("percentage requires at least operand1")

        data: dict[str, Any] = {"operation": "percentage", "value": _normalize(value)}
        if percent is None:
            result = value / 100
        else:
            result = value * percent / 100
            data["percentage"] = _normalize(percent)
        data["result"] = _normalize(result.quantize(_DIVISION_PLACES, rounding=ROUND_HALF_UP))
        return ToolResult.ok("percentage complete", data)

    def _expression(self, kwargs: dict[str, Any]) -> ToolResult:
        expression = str(kwargs.get("expression") or kwargs.get("expr") or "").strip()
        if not expression:
            return ToolResult.fail("expression is required")
        try:
            tree = ast.parse(expression, mode="eval")
            with localcontext() as ctx:
                ctx.traps[DivisionByZero] = True
                result = _evaluate(tree)
        except (SyntaxError, ValueError, ArithmeticError) as e:
            return ToolResult.fail(f"Invalid expression: {e}")
        return ToolResult.ok(
            "expression evaluated",
            {"result": _normalize(result), "operation": "expression", "expression": expression},
        )
