"""
First admin bootstrap

Creates the first admin account through the create-user orchestrator.
Refuses to run once any admin profile exists.

    python -m app.cli --email admin@example.com --password secret --name "Site Admin"
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import structlog

from shared.schemas.user import CreateUserRequest, UserRole

from app.services.user_provisioning import ProvisioningError, build_provisioning_service
from app.utils.supabase_client import SupabaseAdminClient, UpstreamError

logger = structlog.get_logger(__name__)


class BootstrapRefused(Exception):
    """An admin already exists"""


async def bootstrap_admin(supabase: SupabaseAdminClient, email: str, password: str, name: str,
                          phone: Optional[str] = None, admin_code: Optional[str] = None) -> str:
    """
    Create the first admin

    Returns:
        str: The new admin's identity id

    Raises:
        BootstrapRefused: when an admin profile already exists
        ProvisioningError: when the orchestrator fails
    """
    try:
        existing = await supabase.count_rows("profiles", "role", UserRole.ADMIN.value)
    except UpstreamError as e:
        raise ProvisioningError(f"Could not check for existing admins: {e.message}", 500)

    if existing:
        raise BootstrapRefused(f"{existing} admin account(s) already exist")

    service = build_provisioning_service(supabase)
    result = await service.create_user(CreateUserRequest(
        email=email,
        password=password,
        name=name,
        role=UserRole.ADMIN.value,
        phone=phone,
        admin_code=admin_code,
    ))
    logger.info("first_admin_created", user_id=result.userId)
    return result.userId


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create the first HotLunchHub admin")
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--password", required=True, help="Admin password (min 6 characters)")
    parser.add_argument("--name", required=True, help="Admin display name")
    parser.add_argument("--phone", default=None, help="Admin phone number")
    parser.add_argument("--admin-code", default=None, help="Admin code")
    return parser


def main(argv: Optional[List[str]] = None, supabase: Optional[SupabaseAdminClient] = None) -> int:
    args = build_parser().parse_args(argv)

    if len(args.password) < 6:
        print("Password must be at least 6 characters", file=sys.stderr)
        return 2

    supabase = supabase or SupabaseAdminClient()
    if not supabase.is_available():
        print("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set", file=sys.stderr)
        return 2

    try:
        user_id = asyncio.run(bootstrap_admin(
            supabase, args.email, args.password, args.name,
            phone=args.phone, admin_code=args.admin_code,
        ))
    except BootstrapRefused as e:
        print(f"Refusing to bootstrap: {e}", file=sys.stderr)
        return 1
    except ProvisioningError as e:
        print(f"Admin creation failed: {e.message}", file=sys.stderr)
        return 1

    print(f"Admin created: {user_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
