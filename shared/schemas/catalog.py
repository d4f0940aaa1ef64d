"""
Catalog schemas for HotLunchHub

Companies (the customers that employees belong to) and meals offered by
cooks.
"""

from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.utils.validators import validate_lunch_time


class CompanyCreateSchema(BaseModel):
    """Schema for creating a company"""
    name: str = Field(..., min_length=1, max_length=200)
    logo_url: Optional[str] = ""
    lunch_time: str = "12:00"

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Company name is required")
        return v

    @field_validator("lunch_time")
    @classmethod
    def check_lunch_time(cls, v):
        return validate_lunch_time(v)


class CompanyUpdateSchema(BaseModel):
    """Schema for updating a company"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    logo_url: Optional[str] = None
    lunch_time: Optional[str] = None

    @field_validator("lunch_time")
    @classmethod
    def check_lunch_time(cls, v):
        if v is None:
            return v
        return validate_lunch_time(v)


class CompanySchema(BaseModel):
    """Row of the ``companies`` table"""
    model_config = ConfigDict(from_attributes=True, extra="allow")

    company_id: int
    name: str
    logo_url: Optional[str] = None
    lunch_time: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MealCreateSchema(BaseModel):
    """Schema for creating a meal"""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = ""
    price: float
    is_weekly_special: bool = False
    cook_id: Optional[int] = None
    image_urls: List[str] = Field(default_factory=list)

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        if v is None or v <= 0:
            raise ValueError("Please enter a valid price greater than 0")
        return v


class MealUpdateSchema(BaseModel):
    """Schema for updating a meal"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = None
    is_weekly_special: Optional[bool] = None
    cook_id: Optional[int] = None
    image_urls: Optional[List[str]] = None

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Please enter a valid price greater than 0")
        return v


class MealSchema(BaseModel):
    """Row of the ``meals`` table"""
    model_config = ConfigDict(from_attributes=True, extra="allow")

    meal_id: int
    name: str
    description: Optional[str] = None
    price: float
    is_weekly_special: bool = False
    cook_id: Optional[int] = None
    image_urls: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
