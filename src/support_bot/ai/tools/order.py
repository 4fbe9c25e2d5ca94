"""Order status and shipment tracking lookup over a small demo catalogue."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from support_bot.ai.tools.base import Tool
from support_bot.ai.tools.result import ToolResult

SHIPPED = "shipped"
DELIVERED = "delivered"
PROCESSING = "processing"


@dataclass
class OrderInfo:
    order_id: str
    status: str
    product_name: str
    order_date: str
    logistics_status: str
    current_location: str
    estimated_delivery: Optional[str] = None
    delivery_date: Optional[str] = None
    tracking_number: Optional[str] = None
    logistics_company: Optional[str] = None


def _demo_orders(today: date) -> dict[str, OrderInfo]:
    def day(offset: int) -> str:
        return (today + timedelta(days=offset)).isoformat()

    orders = [
        OrderInfo(
            order_id="ORD202311001",
            status=SHIPPED,
            product_name="Smart watch",
            order_date=day(-2),
            estimated_delivery=day(3),
            tracking_number="SF1234567890",
            logistics_company="SF Express",
            logistics_status="in transit",
            current_location="Shanghai sorting centre",
        ),
        OrderInfo(
            order_id="ORD202311002",
            status=DELIVERED,
            product_name="Wireless earbuds",
            order_date=day(-4),
            delivery_date=day(-1),
            tracking_number="YT9876543210",
            logistics_company="YTO Express",
            logistics_status="signed for",
            current_location="delivered",
        ),
        OrderInfo(
            order_id="ORD202311003",
            status=PROCESSING,
            product_name="Smart speaker",
            order_date=day(-1),
            estimated_delivery=day(5),
            logistics_status="being prepared in warehouse",
            current_location="Beijing warehouse",
        ),
    ]
    return {o.order_id: o for o in orders}


def describe_order(order: OrderInfo) -> str:
    """Customer-facing one-paragraph summary of an order's state."""
    if order.status == SHIPPED:
        return (
            f"Your order {order.order_id} ({order.product_name}) has shipped with "
            f"{order.logistics_company}, tracking number {order.tracking_number}. "
            f"It is currently at {order.current_location} and should arrive by "
            f"{order.estimated_delivery}."
        )
    if order.status == DELIVERED:
        return (
            f"Your order {order.order_id} ({order.product_name}) was delivered on "
            f"{order.delivery_date}. Thank you for your purchase; contact support "
            f"if anything is wrong."
        )
    if order.status == PROCESSING:
        return (
            f"Your order {order.order_id} ({order.product_name}) is being processed at "
            f"{order.current_location} and is expected to ship by {order.estimated_delivery}."
        )
    return (
        f"Your order {order.order_id} is currently '{order.status}'. "
        f"Please contact support for more details."
    )


class OrderQueryTool(Tool):
    """Look up an order's status and logistics by order number."""

    def __init__(self, tz: timezone = timezone.utc):
        self._orders = _demo_orders(datetime.now(tz).date())

    @property
    def name(self) -> str:
        return "order_query"

    @property
    def description(self) -> str:
        return (
            "Order lookup: given an order number, returns the order status, "
            "shipment tracking details and an estimated delivery date."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "order_id": {"type": "string", "description": "Order number, e.g. ORD202311001"},
            },
            "required": ["order_id"],
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        order_id = str(kwargs.get("order_id") or "").strip()
        if not order_id:
            return ToolResult.fail("Order number must not be empty")

        order = self._orders.get(order_id)
        if order is None:
            return ToolResult.fail(
                f"Order {order_id} does not exist; please check the order number"
            )
        return ToolResult.ok(
            "Order found",
            {"order_info": asdict(order), "status_description": describe_order(order)},
        )
