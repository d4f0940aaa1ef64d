"""
HotLunchHub lunch client

Client-side data access, session resolution and admin operations.
"""

from .hub import HotLunchClient
from .auth import AuthContext, AuthState, AuthEvent, guess_role_from_email
from .config import ClientSettings, get_client_settings
from .connectivity import ConnectivityChecker, ConnectivityResult
from .functions import FunctionsClient
from .admin import AdminConsole
from .exceptions import (
    HotLunchError, FormValidationError, ReferentialIntegrityError,
    FunctionCallError, NotAuthenticatedError, DataAccessError,
)

__all__ = [
    "HotLunchClient",
    "AuthContext",
    "AuthState",
    "AuthEvent",
    "guess_role_from_email",
    "ClientSettings",
    "get_client_settings",
    "ConnectivityChecker",
    "ConnectivityResult",
    "FunctionsClient",
    "AdminConsole",
    "HotLunchError",
    "FormValidationError",
    "ReferentialIntegrityError",
    "FunctionCallError",
    "NotAuthenticatedError",
    "DataAccessError",
]

__version__ = "1.0.0"
