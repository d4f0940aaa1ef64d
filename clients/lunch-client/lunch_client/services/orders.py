"""
Order data access
"""

from typing import Any, Dict, List, Optional, Union

from shared.schemas.order import OrderCreateSchema, OrderStatus
from shared.utils.logger import get_logger

from lunch_client.exceptions import DataAccessError
from lunch_client.services.base import TableService

logger = get_logger(__name__)

RowId = Union[int, str]

ADMIN_ORDER_COLUMNS = (
    "*, employees:employee_id(name, employee_code), "
    "meals:meal_id(name, price), companies:company_id(name)"
)
KITCHEN_ORDER_COLUMNS = "*, meals(*), employees(name, employee_code)"


class OrderService(TableService):
    """Orders as seen by admins, employees, cooks and drivers"""

    table = "orders"

    async def list_orders(self, status: Optional[OrderStatus] = None) -> List[Dict[str, Any]]:
        """All orders with employee, meal and company, newest first"""
        def build():
            query = self.query().select(ADMIN_ORDER_COLUMNS)
            if status is not None:
                query = query.eq("status", OrderStatus(status).value)
            return query.order("created_at", desc=True)

        return await self.fetch_all(build, "List orders")

    async def employee_orders(self, employee_id: RowId, company_id: RowId) -> List[Dict[str, Any]]:
        return await self.fetch_all(
            lambda: self.query().select("*, meals(*)")
            .eq("employee_id", employee_id)
            .eq("company_id", company_id)
            .order("order_date", desc=True),
            "List employee orders",
        )

    async def cook_queue(self, company_id: RowId) -> List[Dict[str, Any]]:
        """Pending orders of a company, oldest first"""
        return await self.fetch_all(
            lambda: self.query().select(KITCHEN_ORDER_COLUMNS)
            .eq("company_id", company_id)
            .eq("status", OrderStatus.PENDING.value)
            .order("order_date"),
            "List cook orders",
        )

    async def driver_deliveries(self, company_id: RowId) -> List[Dict[str, Any]]:
        """Orders of a company that are ready for delivery, oldest first"""
        return await self.fetch_all(
            lambda: self.query().select(KITCHEN_ORDER_COLUMNS)
            .eq("company_id", company_id)
            .eq("status", OrderStatus.READY.value)
            .order("order_date"),
            "List driver deliveries",
        )

    async def create_order(self, order: OrderCreateSchema) -> Optional[Dict[str, Any]]:
        row = order.model_dump(mode="json")
        created = await self.first_row(lambda: self.query().insert(row), "Create order")
        logger.info("Order created for employee %s", row["employee_id"])
        return created

    async def update_status(self, order_id: RowId, status: OrderStatus) -> Optional[Dict[str, Any]]:
        status = OrderStatus(status)
        updated = await self.first_row(
            lambda: self.query().update({"status": status.value}).eq("order_id", order_id),
            "Update order status",
        )
        logger.info("Order %s status updated to %s", order_id, status.value)
        return updated

    async def advance_status(self, order_id: RowId) -> Optional[Dict[str, Any]]:
        """Move an order to the next status of the admin cycle"""
        order = await self.fetch_one(
            lambda: self.query().select("order_id, status").eq("order_id", order_id).maybe_single(),
            "Get order",
        )
        if order is None:
            raise DataAccessError(f"Order {order_id} not found", {"action": "Advance order status"})
        return await self.update_status(order_id, OrderStatus(order["status"]).next())

    async def count_employee_orders(self, employee_id: RowId) -> int:
        return await self.count("Count employee orders", employee_id=employee_id)
