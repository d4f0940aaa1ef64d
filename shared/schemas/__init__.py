"""
Shared data schemas for HotLunchHub

This package contains the data schemas used by the functions service and
the lunch client.
"""

from .user import (
    UserRole, ProfileStatus, RecordType,
    CreateUserRequest, DeleteUserRequest, CreateUserResponse, DeleteUserResponse,
    ErrorResponse, ProfileSchema, ProfileUpdateSchema, SessionUser,
)
from .catalog import (
    CompanyCreateSchema, CompanyUpdateSchema, CompanySchema,
    MealCreateSchema, MealUpdateSchema, MealSchema,
)
from .order import OrderStatus, PlanType, OrderCreateSchema, OrderSchema, DashboardStatsSchema

__all__ = [
    "UserRole",
    "ProfileStatus",
    "RecordType",
    "CreateUserRequest",
    "DeleteUserRequest",
    "CreateUserResponse",
    "DeleteUserResponse",
    "ErrorResponse",
    "ProfileSchema",
    "ProfileUpdateSchema",
    "SessionUser",
    "CompanyCreateSchema",
    "CompanyUpdateSchema",
    "CompanySchema",
    "MealCreateSchema",
    "MealUpdateSchema",
    "MealSchema",
    "OrderStatus",
    "PlanType",
    "OrderCreateSchema",
    "OrderSchema",
    "DashboardStatsSchema",
]

__version__ = "1.0.0"
