"""
FastAPI Dependencies
Supabase access and bearer-token dependencies
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.services.user_provisioning import UserProvisioningService, build_provisioning_service
from app.utils.supabase_client import SupabaseAdminClient

# Security scheme for the caller's session token
security = HTTPBearer(auto_error=False)


async def require_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    Require an ``Authorization: Bearer <token>`` header.

    The token is not verified here: what the caller may touch is decided by
    the database's row-level policies for the caller's own requests.

    Raises:
        HTTPException: 401 when the header is missing or not a bearer token
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def get_supabase_admin(request: Request) -> SupabaseAdminClient:
    """Service-role Supabase client created at startup"""
    supabase = getattr(request.app.state, "supabase", None)
    if supabase is None:
        supabase = SupabaseAdminClient()
        request.app.state.supabase = supabase
    return supabase


def get_provisioning_service(
    supabase: SupabaseAdminClient = Depends(get_supabase_admin)
) -> UserProvisioningService:
    """Provisioning orchestrator bound to the service-role client"""
    return build_provisioning_service(supabase)


# Type aliases for cleaner dependency injection
BearerToken = Annotated[str, Depends(require_bearer_token)]
ProvisioningDep = Annotated[UserProvisioningService, Depends(get_provisioning_service)]
