"""
Admin dashboard counters
"""

import asyncio

from shared.schemas.order import DashboardStatsSchema, OrderStatus

from lunch_client.services.base import TableService


class DashboardService(TableService):
    """Row counts shown on the admin dashboard"""

    async def stats(self) -> DashboardStatsSchema:
        counts = await asyncio.gather(
            self.count("Count orders", "orders"),
            self.count("Count meals", "meals"),
            self.count("Count companies", "companies"),
            self.count("Count employees", "employees"),
            self.count("Count drivers", "drivers"),
            self.count("Count cooks", "cooks"),
            self.count("Count pending orders", "orders", status=OrderStatus.PENDING.value),
        )
        return DashboardStatsSchema(
            total_orders=counts[0],
            total_meals=counts[1],
            total_companies=counts[2],
            total_employees=counts[3],
            total_drivers=counts[4],
            total_cooks=counts[5],
            pending_orders=counts[6],
        )
