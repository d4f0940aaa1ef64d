"""
Lunch client exceptions
"""

from typing import Any, Dict, List, Optional


class HotLunchError(Exception):
    """Base class for errors raised by the lunch client"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class FormValidationError(HotLunchError):
    """Form input rejected before any request was made"""

    def __init__(self, errors: List[str]):
        super().__init__(errors[0] if errors else "Invalid input", {"errors": errors})
        self.errors = errors


class ReferentialIntegrityError(HotLunchError):
    """A delete was refused because other rows still reference the record"""


class FunctionCallError(HotLunchError):
    """A privileged function answered with ``success: false``"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code


class NotAuthenticatedError(HotLunchError):
    """The operation needs a signed-in session"""


class DataAccessError(HotLunchError):
    """A table or storage request was rejected"""
