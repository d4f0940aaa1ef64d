"""
Validation utilities for HotLunchHub

Form-level checks shared by the admin console and the schemas.
"""

import re
from typing import Dict, Any, List, Optional

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{0,15}$')
LUNCH_TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)(:[0-5]\d)?$')

MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: Optional[str]) -> bool:
    """Check email format"""
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email))


def is_valid_phone(phone: Optional[str]) -> bool:
    """Check phone format, ignoring spaces, dashes and parentheses"""
    if not phone:
        return False
    return bool(PHONE_PATTERN.match(re.sub(r'[\s\-\(\)]', '', phone)))


def validate_lunch_time(value: str) -> str:
    """
    Validate a lunch time in ``HH:MM`` or ``HH:MM:SS`` format

    Raises:
        ValueError: If the value is empty or malformed
    """
    if not value or not value.strip():
        raise ValueError("Lunch time is required")
    value = value.strip()
    if not LUNCH_TIME_PATTERN.match(value):
        raise ValueError(f"Invalid lunch time: {value} (expected HH:MM)")
    return value


def validate_new_user_form(form: Dict[str, Any]) -> List[str]:
    """
    Validate the admin form used to create a cook, driver, employee or admin.
    Returns list of validation errors
    """
    errors = []

    if not (form.get('name') or '').strip():
        errors.append("Name is required")

    email = (form.get('email') or '').strip()
    if not email:
        errors.append("Email is required")
    elif not is_valid_email(email):
        errors.append("Please enter a valid email address")

    password = form.get('password') or ''
    if not password.strip():
        errors.append("Password is required")
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    elif 'confirm_password' in form and password != form.get('confirm_password'):
        errors.append("Passwords do not match")

    phone = form.get('phone')
    if phone and not is_valid_phone(phone):
        errors.append("Please enter a valid phone number")

    return errors


def validate_login_form(email: Optional[str], password: Optional[str]) -> List[str]:
    """
    Validate sign-in input.
    Returns list of validation errors
    """
    if not email or not password:
        return ["Please fill in all fields"]
    if '@' not in email:
        return ["Please enter a valid email address"]
    return []
