"""Invoice creation and lookup, kept in memory for the life of the tool."""

from __future__ import annotations

import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from support_bot.ai.tools.base import Tool
from support_bot.ai.tools.result import ToolResult

PAYMENT_TERM_DAYS = 30
_CENTS = Decimal("0.01")


@dataclass
class InvoiceItem:
    name: str
    quantity: int
    price: str
    amount: str


@dataclass
class Invoice:
    invoice_id: str
    customer_name: str
    customer_email: str
    items: list[InvoiceItem]
    total_amount: str
    issue_date: str
    due_date: str
    status: str = "unpaid"
    created_at: str = field(default="")


def _new_invoice_id(today: date) -> str:
    return f"INV{today:%Y%m%d}{uuid.uuid4().hex[:8].upper()}"


def _parse_items(raw: Any) -> list[InvoiceItem]:
    """Accept ``{name: {quantity, price}}`` or ``[{name, quantity, price}]``.

    Raises ValueError on malformed entries.
    """
    if isinstance(raw, dict):
        entries = [
            {"name": name, **(details if isinstance(details, dict) else {})}
            for name, details in raw.items()
        ]
    elif isinstance(raw, list):
        entries = list(raw)
    else:
        raise ValueError("items must be an object or a list")

    items = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid item: {entry!r}")
        name = str(entry.get("name") or "").strip()
        if not name:
            raise ValueError("Every item needs a name")
        try:
            quantity = int(entry.get("quantity", 1))
            price = Decimal(str(entry.get("price")))
        except (TypeError, ValueError, InvalidOperation):
            raise ValueError(f"Invalid quantity or price for item '{name}'") from None
        if quantity <= 0 or not price.is_finite() or price < 0:
            raise ValueError(f"Invalid quantity or price for item '{name}'")
        price = price.quantize(_CENTS)
        items.append(
            InvoiceItem(name=name, quantity=quantity, price=str(price), amount=str(price * quantity))
        )
    return items


class InvoiceTool(Tool):
    """Create, look up and list customer invoices."""

    def __init__(self, tz: timezone = timezone.utc):
        self._tz = tz
        self._invoices: dict[str, Invoice] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "invoice"

    @property
    def description(self) -> str:
        return (
            "Invoice handling: create an invoice for a customer from a list of items, "
            "look up an invoice by id, or list all invoices."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "action": {"type": "string", "description": "create, query, list"},
                "invoice_id": {"type": "string", "description": "Invoice id for 'query'"},
                "customer_name": {"type": "string", "description": "Customer name for 'create'"},
                "customer_email": {"type": "string", "description": "Customer email for 'create'"},
                "items": {
                    "type": "array",
                    "description": "Line items for 'create'",
                    "items": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string"},
                            "quantity": {"type": "integer"},
                            "price": {"type": "number"},
                        },
                    },
                },
                "issue_date": {"type": "string", "description": "YYYY-MM-DD, defaults to today"},
                "due_date": {
                    "type": "string",
                    "description": f"YYYY-MM-DD, defaults to {PAYMENT_TERM_DAYS} days after issue",
                },
            },
            "required": ["action"],
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        action = str(kwargs.get("action") or "").strip().lower()
        if not action:
            return ToolResult.fail("Action must not be empty")
        if action == "create":
            return self._create(kwargs)
        if action == "query":
            return self._query(kwargs)
        if action == "list":
            return self._list()
        return ToolResult.fail(f"Unsupported action: {action}")

    def _create(self, params: dict[str, Any]) -> ToolResult:
        customer_name = str(params.get("customer_name") or "").strip()
        if not customer_name:
            return ToolResult.fail("Customer name must not be empty")
        if not params.get("items"):
            return ToolResult.fail("Invoice items must not be empty")

        try:
            items = _parse_items(params["items"])
            today = datetime.now(self._tz).date()
            issue = date.fromisoformat(params["issue_date"]) if params.get("issue_date") else today
            due = (
                date.fromisoformat(params["due_date"])
                if params.get("due_date")
                else issue + timedelta(days=PAYMENT_TERM_DAYS)
            )
        except (TypeError, ValueError) as e:
            return ToolResult.fail(str(e))
        if due < issue:
            return ToolResult.fail("Due date must not be before the issue date")

        total = sum((Decimal(i.amount) for i in items), Decimal("0.00"))
        invoice = Invoice(
            invoice_id=_new_invoice_id(today),
            customer_name=customer_name,
            customer_email=str(params.get("customer_email") or ""),
            items=items,
            total_amount=str(total),
            issue_date=issue.isoformat(),
            due_date=due.isoformat(),
            created_at=datetime.now(self._tz).isoformat(),
        )
        with self._lock:
            self._invoices[invoice.invoice_id] = invoice

        return ToolResult.ok(
            "Invoice created",
            {
                "invoice_id": invoice.invoice_id,
                "total_amount": invoice.total_amount,
                "message": (
                    f"Invoice {invoice.invoice_id} for {customer_name} was created, "
                    f"total {invoice.total_amount}, due {invoice.due_date}."
                ),
            },
        )

    def _query(self, params: dict[str, Any]) -> ToolResult:
        invoice_id = str(params.get("invoice_id") or "").strip()
        if not invoice_id:
            return ToolResult.fail("Invoice id must not be empty")
        with self._lock:
            invoice = self._invoices.get(invoice_id)
        if invoice is None:
            return ToolResult.fail(f"Invoice {invoice_id} does not exist")
        return ToolResult.ok("Invoice found", {"invoice": asdict(invoice)})

    def _list(self) -> ToolResult:
        with self._lock:
            invoices = [asdict(i) for i in self._invoices.values()]
        return ToolResult.ok("Invoices listed", {"invoices": invoices, "count": len(invoices)})
