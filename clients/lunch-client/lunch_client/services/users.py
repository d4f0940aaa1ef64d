"""
User directory

Reads and edits Profiles and RoleRecords. Creating and deleting users is
privileged and goes through the functions (see ``lunch_client.admin``).
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from shared.schemas.user import ProfileUpdateSchema, SessionUser, UserRole
from shared.utils.logger import get_logger

from lunch_client.exceptions import DataAccessError
from lunch_client.services.base import TableService

logger = get_logger(__name__)

RowId = Union[int, str]


@dataclass(frozen=True)
class RoleTable:
    """Where a role's RoleRecord lives"""
    table: str
    key: str
    code_field: str


ROLE_TABLES: Dict[str, RoleTable] = {
    UserRole.ADMIN.value: RoleTable("admins", "admin_id", "admin_code"),
    UserRole.COOK.value: RoleTable("cooks", "cook_id", "cook_code"),
    UserRole.DRIVER.value: RoleTable("drivers", "driver_id", "driver_code"),
    UserRole.EMPLOYEE.value: RoleTable("employees", "employee_id", "employee_code"),
}

EMPLOYEE_COLUMNS = "*, companies(name)"


def role_table(role: str) -> RoleTable:
    try:
        return ROLE_TABLES[role]
    except KeyError:
        raise DataAccessError(f"Unknown role: {role}", {"role": role})


def session_user_from(profile: Dict[str, Any], role_details: Optional[Dict[str, Any]] = None,
                      email: Optional[str] = None) -> SessionUser:
    """Combine a Profile and its RoleRecord into the signed-in user view"""
    role = profile["role"]
    details = role_details or {}
    spec = ROLE_TABLES.get(role)
    email = details.get("email") or email
    name = profile.get("full_name") or details.get("name") or (email.split("@")[0] if email else role)

    return SessionUser(
        id=profile["id"],
        email=email,
        role=role,
        name=name,
        status=profile.get("status") or "active",
        code=details.get(spec.code_field) if spec else None,
        phone=details.get("phone"),
        company_id=details.get("company_id") if role == UserRole.EMPLOYEE.value else None,
        created_at=profile.get("created_at"),
        role_details=role_details,
    )


class UserDirectory(TableService):
    """Profiles joined with their role-specific records"""

    table = "profiles"

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.fetch_one(
            lambda: self.query().select("*").eq("id", user_id).maybe_single(),
            "Get profile",
        )

    async def get_role_record(self, role: str, user_id: str) -> Optional[Dict[str, Any]]:
        """RoleRecord of an identity, looked up by ``auth_id``"""
        spec = role_table(role)
        return await self.fetch_one(
            lambda: self.query(spec.table).select("*").eq("auth_id", user_id).maybe_single(),
            f"Get {role} details",
        )

    async def get_record(self, role: str, record_id: RowId) -> Optional[Dict[str, Any]]:
        """RoleRecord by its own primary key"""
        spec = role_table(role)
        return await self.fetch_one(
            lambda: self.query(spec.table).select("*").eq(spec.key, record_id).maybe_single(),
            f"Get {role}",
        )

    async def get_user(self, user_id: str, email: Optional[str] = None) -> Optional[SessionUser]:
        """Profile plus RoleRecord, or None when there is no profile"""
        profile = await self.get_profile(user_id)
        if profile is None:
            return None
        role_details = None
        if profile.get("role") in ROLE_TABLES:
            role_details = await self.get_role_record(profile["role"], user_id)
        return session_user_from(profile, role_details, email)

    async def list_users(self) -> List[Dict[str, Any]]:
        """
        All profiles, newest first, each merged with its RoleRecord

        A RoleRecord that cannot be loaded is logged and left out.
        """
        profiles = await self.fetch_all(
            lambda: self.query().select("*").order("created_at", desc=True),
            "List profiles",
        )
        users = []
        for profile in profiles:
            role_details = None
            if profile.get("role") in ROLE_TABLES:
                try:
                    role_details = await self.get_role_record(profile["role"], profile["id"])
                except DataAccessError as e:
                    logger.warning("Could not load %s details for %s: %s",
                                   profile["role"], profile["id"], e.message)
            else:
                logger.warning("Unknown role %r on profile %s", profile.get("role"), profile["id"])
            users.append({**profile, **(role_details or {}), "id": profile["id"]})
        return users

    async def list_role(self, role: str) -> List[Dict[str, Any]]:
        """RoleRecords of one role sorted by name"""
        spec = role_table(role)
        columns = EMPLOYEE_COLUMNS if role == UserRole.EMPLOYEE.value else "*"
        return await self.fetch_all(
            lambda: self.query(spec.table).select(columns).order("name"),
            f"List {spec.table}",
        )

    async def list_admins(self) -> List[Dict[str, Any]]:
        return await self.list_role(UserRole.ADMIN.value)

    async def list_cooks(self) -> List[Dict[str, Any]]:
        return await self.list_role(UserRole.COOK.value)

    async def list_drivers(self) -> List[Dict[str, Any]]:
        return await self.list_role(UserRole.DRIVER.value)

    async def list_employees(self) -> List[Dict[str, Any]]:
        return await self.list_role(UserRole.EMPLOYEE.value)

    async def update_profile(self, user_id: str, changes: ProfileUpdateSchema) -> Optional[Dict[str, Any]]:
        """Update display name or status; the role cannot be changed"""
        row = changes.model_dump(mode="json", exclude_none=True)
        if not row:
            return await self.get_profile(user_id)
        return await self.first_row(
            lambda: self.query().update(row).eq("id", user_id),
            "Update profile",
        )

    async def update_role_record(self, role: str, record_id: RowId,
                                 fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update RoleRecord columns; identity links are never rewritten"""
        spec = role_table(role)
        row = {k: v for k, v in fields.items() if k not in ("auth_id", spec.key)}
        if not row:
            return await self.get_record(role, record_id)
        return await self.first_row(
            lambda: self.query(spec.table).update(row).eq(spec.key, record_id),
            f"Update {role}",
        )

    async def admins_exist(self) -> bool:
        return await self.count("Count admins", role=UserRole.ADMIN.value) > 0
