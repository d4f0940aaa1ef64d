"""
User data schemas for HotLunchHub

Pydantic models for identities, profiles, role records and the
privileged user-lifecycle function payloads.
"""

from typing import Optional, Dict, Any, Union
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserRole(str, Enum):
    """User role enumeration"""
    ADMIN = "admin"
    COOK = "cook"
    DRIVER = "driver"
    EMPLOYEE = "employee"


class ProfileStatus(str, Enum):
    """Profile status enumeration"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class RecordType(str, Enum):
    """Record types accepted by the delete-user function"""
    EMPLOYEE = "employee"
    COOK = "cook"
    DRIVER = "driver"
    COMPANY = "company"
    MEAL = "meal"

    @property
    def is_user(self) -> bool:
        """True when the record is backed by a Profile and an Identity"""
        return self not in (RecordType.COMPANY, RecordType.MEAL)


class CreateUserRequest(BaseModel):
    """
    Payload of the create-user function.

    ``role`` is deliberately a plain string: an unrecognised role is a
    reportable outcome of the orchestrator, not a schema error.
    """
    model_config = ConfigDict(extra="ignore")

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    admin_code: Optional[str] = None
    employee_code: Optional[str] = None
    company_id: Optional[Union[int, str]] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    picture_url: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip()


class DeleteUserRequest(BaseModel):
    """Payload of the delete-user function"""
    model_config = ConfigDict(extra="ignore")

    recordId: Optional[Union[int, str]] = None
    recordType: Optional[str] = None
    authId: Optional[str] = None


class CreateUserResponse(BaseModel):
    success: bool = True
    userId: str
    message: str


class DeleteUserResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Flat failure envelope shared by both functions"""
    success: bool = False
    error: str


class ProfileSchema(BaseModel):
    """Row of the ``profiles`` table"""
    model_config = ConfigDict(from_attributes=True, extra="allow")

    id: str
    role: str
    full_name: Optional[str] = None
    status: Optional[str] = ProfileStatus.ACTIVE.value
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdateSchema(BaseModel):
    """Editable profile fields; role is immutable after creation"""
    full_name: Optional[str] = Field(None, min_length=1, max_length=120)
    status: Optional[ProfileStatus] = None


class SessionUser(BaseModel):
    """
    The signed-in user as seen by the client.

    ``is_fallback`` marks a locally synthesized user whose role was guessed
    because the profile could not be loaded in time.
    """
    id: str
    email: Optional[str] = None
    role: str
    name: str
    status: str = ProfileStatus.ACTIVE.value
    code: Optional[str] = None
    phone: Optional[str] = None
    company_id: Optional[Union[int, str]] = None
    created_at: Optional[datetime] = None
    role_details: Optional[Dict[str, Any]] = None
    is_fallback: bool = False
