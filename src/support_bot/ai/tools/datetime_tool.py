"""Date and time arithmetic tool."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Any

from support_bot.ai.tools.base import Tool
from support_bot.ai.tools.result import ToolResult

DEFAULT_FORMAT = "%Y-%m-%d %H:%M:%S"
_FALLBACK_FORMATS = (DEFAULT_FORMAT, "%Y-%m-%d %H:%M", "%Y-%m-%d", "%Y/%m/%d", "%Y%m%d")
_UNITS = ("days", "weeks", "months", "years")


def _parse(value: str, fmt: str | None = None) -> datetime:
    """Parse with *fmt* if given, else ISO 8601, else a few common layouts."""
    value = value.strip()
    if fmt:
        return datetime.strptime(value, fmt)
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    for candidate in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(value, candidate)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {value!r}")


def _add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _months_between(start: date, end: date) -> int:
    if end < start:
        return -_months_between(end, start)
    months = (end.year - start.year) * 12 + end.month - start.month
    if end.day < start.day:
        months -= 1
    return months


class DateTimeTool(Tool):
    """Current time, formatting, parsing, and calendar arithmetic."""

    def __init__(self, tz: timezone = timezone.utc):
        self._tz = tz

    @property
    def name(self) -> str:
        return "datetime"

    @property
    def description(self) -> str:
        return (
            "Date/time helper: get the current date or time, format or parse a date, "
            "add or subtract days/weeks/months/years, and compute the difference "
            "between two dates."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "description": "current, format, parse, add, difference",
                },
                "date": {"type": "string", "description": "Date to operate on"},
                "end_date": {"type": "string", "description": "Second date for 'difference'"},
                "input_format": {"type": "string", "description": "strptime format of the input"},
                "output_format": {"type": "string", "description": "strftime format of the output"},
                "amount": {"type": "integer", "description": "Amount to add (negative subtracts)"},
                "unit": {"type": "string", "description": "days, weeks, months, years"},
                "type": {"type": "string", "description": "For 'current': date, time, datetime"},
            },
            "required": ["action"],
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        action = str(kwargs.get("action") or "").strip().lower()
        if not action:
            return ToolResult.fail("action is required")

        try:
            match action:
                case "current":
                    return self._current(kwargs)
                case "format":
                    return self._format(kwargs)
                case "parse":
                    return self._parse(kwargs)
                case "add":
                    return self._add(kwargs)
                case "difference" | "calculate":
                    return self._difference(kwargs)
                case _:
                    return ToolResult.fail(f"Unsupported action: {action}")
        except (ValueError, OverflowError) as e:
            return ToolResult.fail(f"Date/time error: {e}")

    def _current(self, kwargs: dict[str, Any]) -> ToolResult:
        now = datetime.now(tz=self._tz)
        kind = str(kwargs.get("type") or "datetime").lower()
        match kind:
            case "date":
                text = now.strftime("%Y-%m-%d")
            case "time":
                text = now.strftime("%H:%M:%S")
            case "datetime":
                text = now.strftime(kwargs.get("output_format") or DEFAULT_FORMAT)
            case _:
                return ToolResult.fail(f"Unsupported type: {kind}")
        return ToolResult.ok("current time", {"result": text, "type": kind, "timezone": str(self._tz)})

    def _format(self, kwargs: dict[str, Any]) -> ToolResult:
        raw = kwargs.get("date")
        if not raw:
            return ToolResult.fail("date is required")
        value = _parse(raw, kwargs.get("input_format"))
        output_format = kwargs.get("output_format") or DEFAULT_FORMAT
        return ToolResult.ok(
            "date formatted",
            {"result": value.strftime(output_format), "original": raw, "format": output_format},
        )

    def _parse(self, kwargs: dict[str, Any]) -> ToolResult:
        raw = kwargs.get("date")
        if not raw:
            return ToolResult.fail("date is required")
        value = _parse(raw, kwargs.get("input_format"))
        return ToolResult.ok(
            "date parsed",
            {
                "result": value.isoformat(),
                "year": value.year,
                "month": value.month,
                "day": value.day,
                "weekday": value.strftime("%A"),
                "day_of_year": value.timetuple().tm_yday,
            },
        )

    def _add(self, kwargs: dict[str, Any]) -> ToolResult:
        raw = kwargs.get("date")
        unit = str(kwargs.get("unit") or "days").lower()
        if unit not in _UNITS:
            return ToolResult.fail(f"Unsupported unit: {unit}")
        try:
            amount = int(kwargs.get("amount", 0))
        except (TypeError, ValueError):
            return ToolResult.fail("amount must be an integer")

        value = _parse(raw, kwargs.get("input_format")) if raw else datetime.now(tz=self._tz)
        match unit:
            case "days":
                result = value + timedelta(days=amount)
            case "weeks":
                result = value + timedelta(weeks=amount)
            case "months":
                result = _add_months(value, amount)
            case _:
                result = _add_months(value, amount * 12)

        output_format = kwargs.get("output_format") or DEFAULT_FORMAT
        return ToolResult.ok(
            "date shifted",
            {
                "result": result.strftime(output_format),
                "original": value.strftime(output_format),
                "amount": amount,
                "unit": unit,
            },
        )

    def _difference(self, kwargs: dict[str, Any]) -> ToolResult:
        start_raw = kwargs.get("date") or kwargs.get("start_date")
        end_raw = kwargs.get("end_date")
        if not start_raw or not end_raw:
            return ToolResult.fail("date and end_date are required")
        unit = str(kwargs.get("unit") or "days").lower()
        if unit not in _UNITS:
            return ToolResult.fail(f"Unsupported unit: {unit}")

        fmt = kwargs.get("input_format")
        start = _parse(start_raw, fmt).date()
        end = _parse(end_raw, fmt).date()
        match unit:
            case "days":
                result = (end - start).days
            case "weeks":
                result = (end - start).days // 7 if end >= start else -((start - end).days // 7)
            case "months":
                result = _months_between(start, end)
            case _:
                result = int(_months_between(start, end) / 12)

        return ToolResult.ok(
            "difference computed",
            {"result": result, "unit": unit, "start": start.isoformat(), "end": end.isoformat()},
        )
