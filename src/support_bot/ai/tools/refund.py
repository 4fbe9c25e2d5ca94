"""Refund request submission and status lookup."""

from __future__ import annotations

import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from support_bot.ai.tools.base import Tool
from support_bot.ai.tools.result import ToolResult

REFUND_REASONS = (
    "Quality problem",
    "Item not as described",
    "No longer needed / ordered by mistake",
    "Item damaged",
    "Late delivery",
    "Other",
)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class RefundRecord:
    refund_id: str
    order_id: str
    reason: str
    status: str
    apply_time: str
    estimated_process_time: str
    description: str = ""
    refund_amount: Optional[str] = None
    process_result: Optional[str] = None


def describe_refund(record: RefundRecord) -> str:
    if record.status == PENDING:
        return (
            f"Your refund request {record.refund_id} (order {record.order_id}) is being "
            f"processed. Submitted {record.apply_time}, expected to complete by "
            f"{record.estimated_process_time}."
        )
    if record.status == APPROVED:
        return (
            f"Your refund request {record.refund_id} (order {record.order_id}) was approved. "
            f"{record.refund_amount or '0.00'} will be returned to the original payment "
            f"method within 3-5 business days."
        )
    if record.status == REJECTED:
        return (
            f"Your refund request {record.refund_id} (order {record.order_id}) was rejected: "
            f"{record.process_result or 'please contact support for details'}."
        )
    return f"Your refund request {record.refund_id} is currently '{record.status}'."


class RefundTool(Tool):
    """Submit refund requests and check on them later."""

    def __init__(self, tz: timezone = timezone.utc):
        self._tz = tz
        self._refunds: dict[str, RefundRecord] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "refund"

    @property
    def description(self) -> str:
        return (
            "Refund requests: list the accepted refund reasons, submit a refund "
            "request for an order, or query the status of a submitted request."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "action": {"type": "string", "description": "submit, query, get_reasons"},
                "order_id": {"type": "string", "description": "Order number, for 'submit'"},
                "refund_id": {"type": "string", "description": "Refund request id, for 'query'"},
                "reason": {"type": "string", "enum": list(REFUND_REASONS)},
                "description": {"type": "string", "description": "Optional free-text details"},
            },
            "required": ["action"],
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        action = str(kwargs.get("action") or "").strip().lower()
        if not action:
            return ToolResult.fail("Action must not be empty")
        if action == "submit":
            return self._submit(kwargs)
        if action == "query":
            return self._query(kwargs)
        if action == "get_reasons":
            return ToolResult.ok("Refund reasons", {"reasons": list(REFUND_REASONS)})
        return ToolResult.fail(f"Unsupported action: {action}")

    def _submit(self, params: dict[str, Any]) -> ToolResult:
        order_id = str(params.get("order_id") or "").strip()
        reason = str(params.get("reason") or "").strip()
        if not order_id:
            return ToolResult.fail("Order number must not be empty")
        if not reason:
            return ToolResult.fail("Refund reason must not be empty")
        if reason not in REFUND_REASONS:
            return ToolResult.fail(
                f"Invalid refund reason; choose one of: {', '.join(REFUND_REASONS)}"
            )

        now = datetime.now(self._tz)
        refund_id = f"REF{now:%Y%m%d}{uuid.uuid4().hex[:8].upper()}"
        record = RefundRecord(
            refund_id=refund_id,
            order_id=order_id,
            reason=reason,
            description=str(params.get("description") or ""),
            status=PENDING,
            apply_time=now.strftime(_TIME_FORMAT),
            # same business day
            estimated_process_time=now.replace(hour=23, minute=59, second=0).strftime(_TIME_FORMAT),
        )
        with self._lock:
            self._refunds[refund_id] = record

        return ToolResult.ok(
            "Refund request submitted",
            {
                "refund_id": refund_id,
                "message": (
                    f"Your refund request has been submitted with id {refund_id}. "
                    f"We will process it within 24 hours."
                ),
            },
        )

    def _query(self, params: dict[str, Any]) -> ToolResult:
        refund_id = str(params.get("refund_id") or "").strip()
        if not refund_id:
            return ToolResult.fail("Refund request id must not be empty")
        with self._lock:
            record = self._refunds.get(refund_id)
        if record is None:
            return ToolResult.fail(f"Refund request {refund_id} does not exist")
        return ToolResult.ok(
            "Refund request found",
            {"refund_info": asdict(record), "status_description": describe_refund(record)},
        )
