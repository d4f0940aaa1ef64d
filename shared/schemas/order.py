"""
Order data schemas for HotLunchHub
"""

from typing import Optional, Dict, Any
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    """Order status enumeration, in the order an order moves through them"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    def next(self) -> "OrderStatus":
        """Next status in the admin status cycle (wraps around)"""
        members = list(OrderStatus)
        return members[(members.index(self) + 1) % len(members)]


class PlanType(str, Enum):
    """Order plan enumeration"""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class OrderCreateSchema(BaseModel):
    """Schema for placing an order"""
    employee_id: int
    meal_id: int
    company_id: int
    auth_id: Optional[str] = None
    quantity: int = Field(1, ge=1)
    plan_type: PlanType = PlanType.WEEKLY
    order_date: date = Field(default_factory=date.today)
    status: OrderStatus = OrderStatus.PENDING


class OrderSchema(BaseModel):
    """Row of the ``orders`` table, optionally with embedded relations"""
    model_config = ConfigDict(from_attributes=True, extra="allow")

    order_id: int
    employee_id: Optional[int] = None
    auth_id: Optional[str] = None
    meal_id: Optional[int] = None
    company_id: Optional[int] = None
    order_date: Optional[date] = None
    plan_type: Optional[str] = None
    status: str = OrderStatus.PENDING.value
    quantity: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    employees: Optional[Dict[str, Any]] = None
    meals: Optional[Dict[str, Any]] = None
    companies: Optional[Dict[str, Any]] = None


class DashboardStatsSchema(BaseModel):
    """Admin dashboard counters"""
    total_orders: int = 0
    total_meals: int = 0
    total_companies: int = 0
    total_employees: int = 0
    total_drivers: int = 0
    total_cooks: int = 0
    pending_orders: int = 0
