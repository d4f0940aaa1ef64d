"""
Client data access layer

One service per table group; all of them wrap the anon-key Supabase client
and are subject to row-level security.
"""

from .base import TableService
from .companies import CompanyService
from .meals import MealService
from .orders import OrderService
from .users import UserDirectory, ROLE_TABLES, session_user_from
from .dashboard import DashboardService

__all__ = [
    "TableService",
    "CompanyService",
    "MealService",
    "OrderService",
    "UserDirectory",
    "ROLE_TABLES",
    "session_user_from",
    "DashboardService",
]
