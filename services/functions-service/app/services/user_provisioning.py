"""
User Provisioning Service
Creation and deletion of Identity + Profile + RoleRecord chains
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import structlog

from shared.schemas.user import (
    UserRole, ProfileStatus, RecordType,
    CreateUserRequest, DeleteUserRequest, CreateUserResponse, DeleteUserResponse,
)

from app.config import get_settings
from app.utils.saga import Saga
from app.utils.supabase_client import SupabaseAdminClient, UpstreamError

logger = structlog.get_logger(__name__)

PROFILES_TABLE = "profiles"
MISSING_DELETE_PARAMETERS = "Missing required parameters: recordId, recordType, authId"


class ProvisioningError(Exception):
    """Orchestration failure carrying the HTTP status the function answers with"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class RoleRecordSpec:
    """Where a role's detail row lives and how it is built"""
    table: str
    build: Callable[[CreateUserRequest, str], Dict[str, Any]]


@dataclass(frozen=True)
class DeletableRecord:
    """Table and primary key addressed by a delete-user record type"""
    table: str
    key: str


def _admin_row(request: CreateUserRequest, user_id: str) -> Dict[str, Any]:
    return {
        "auth_id": user_id,
        "name": request.name,
        "admin_code": request.admin_code,
        "email": request.email,
        "phone": request.phone,
    }


def _driver_row(request: CreateUserRequest, user_id: str) -> Dict[str, Any]:
    return {
        "auth_id": user_id,
        "name": request.name,
        "email": request.email,
        "phone": request.phone,
    }


def _cook_row(request: CreateUserRequest, user_id: str) -> Dict[str, Any]:
    return {
        "auth_id": user_id,
        "name": request.name,
        "email": request.email,
        "phone": request.phone,
        "address_line1": request.address_line1,
        "address_line2": request.address_line2,
        "city": request.city,
        "postal_code": request.postal_code,
        "picture_url": request.picture_url,
    }


def _employee_row(request: CreateUserRequest, user_id: str) -> Dict[str, Any]:
    return {
        "auth_id": user_id,
        "name": request.name,
        "employee_code": request.employee_code,
        "email": request.email,
        "phone": request.phone,
        "company_id": request.company_id,
    }


ROLE_RECORDS: Dict[str, RoleRecordSpec] = {
    UserRole.ADMIN.value: RoleRecordSpec("admins", _admin_row),
    UserRole.DRIVER.value: RoleRecordSpec("drivers", _driver_row),
    UserRole.COOK.value: RoleRecordSpec("cooks", _cook_row),
    UserRole.EMPLOYEE.value: RoleRecordSpec("employees", _employee_row),
}

DELETABLE_RECORDS: Dict[RecordType, DeletableRecord] = {
    RecordType.EMPLOYEE: DeletableRecord("employees", "employee_id"),
    RecordType.COOK: DeletableRecord("cooks", "cook_id"),
    RecordType.DRIVER: DeletableRecord("drivers", "driver_id"),
    RecordType.COMPANY: DeletableRecord("companies", "company_id"),
    RecordType.MEAL: DeletableRecord("meals", "meal_id"),
}


class UserProvisioningService:
    """
    Orchestrates the create-user and delete-user functions.

    With ``compensate=False`` (the default) a failure after an earlier step
    committed leaves the earlier writes in place. With ``compensate=True``
    each committed step registers an undo action and a failure rolls the
    chain back before the error is reported.

    With ``reject_unknown_roles=False`` an unrecognised role still creates
    the Identity and Profile and reports success without a RoleRecord.
    """

    def __init__(self, supabase: SupabaseAdminClient, compensate: bool = False,
                 reject_unknown_roles: bool = False):
        self.supabase = supabase
        self.compensate = compensate
        self.reject_unknown_roles = reject_unknown_roles

    async def _fail(self, saga: Saga, message: str, status_code: int) -> None:
        if self.compensate and len(saga):
            failed = await saga.compensate()
            if failed:
                logger.error("saga_incomplete", saga=saga.name, failed_steps=failed)
        raise ProvisioningError(message, status_code)

    async def create_user(self, request: CreateUserRequest) -> CreateUserResponse:
        """
        Create Identity, Profile and the role-specific record, in that order

        Args:
            request: Validated create-user payload

        Returns:
            CreateUserResponse: Success envelope with the new identity id

        Raises:
            ProvisioningError: 400 on any failure, provider message verbatim
        """
        spec = ROLE_RECORDS.get(request.role)
        if spec is None and self.reject_unknown_roles:
            raise ProvisioningError(f"Invalid role: {request.role}", 400)

        saga = Saga("create-user")

        try:
            user_id = await self.supabase.create_identity(request.email, request.password)
        except UpstreamError as e:
            logger.error("identity_create_failed", email=request.email, error=e.message)
            raise ProvisioningError(e.message, 400)

        logger.info("identity_created", user_id=user_id, role=request.role)
        saga.record("identity", lambda: self.supabase.delete_identity(user_id))

        try:
            await self.supabase.insert_row(PROFILES_TABLE, {
                "id": user_id,
                "role": request.role,
                "full_name": request.name,
                "status": ProfileStatus.ACTIVE.value,
            })
        except UpstreamError as e:
            logger.error("profile_insert_failed", user_id=user_id, error=e.message)
            await self._fail(saga, e.message, 400)

        logger.info("profile_inserted", user_id=user_id)
        saga.record("profile", lambda: self.supabase.delete_rows(PROFILES_TABLE, "id", user_id))

        if spec is None:
            # Identity and Profile stay; no RoleRecord and no error
            logger.warning("role_record_skipped_unknown_role", user_id=user_id, role=request.role)
        else:
            try:
                await self.supabase.insert_row(spec.table, spec.build(request, user_id))
            except UpstreamError as e:
                logger.error("role_record_insert_failed", user_id=user_id, table=spec.table, error=e.message)
                await self._fail(saga, e.message, 400)
            logger.info("role_record_inserted", user_id=user_id, table=spec.table)

        return CreateUserResponse(
            success=True,
            userId=user_id,
            message=f"{request.role} user created successfully",
        )

    async def delete_record(self, request: DeleteUserRequest) -> DeleteUserResponse:
        """
        Delete a RoleRecord (or company/meal row), then Profile, then Identity

        Company and meal deletions never touch profiles or auth, and are not
        guarded against referencing rows; callers check counts first.

        Raises:
            ProvisioningError: 400 for invalid input, 500 for a failed step
        """
        if not request.recordId or not request.recordType:
            raise ProvisioningError(MISSING_DELETE_PARAMETERS, 400)

        try:
            record_type = RecordType(request.recordType)
        except ValueError:
            raise ProvisioningError(f"Invalid record type: {request.recordType}", 400)

        if record_type.is_user and not request.authId:
            raise ProvisioningError(MISSING_DELETE_PARAMETERS, 400)

        target = DELETABLE_RECORDS[record_type]
        saga = Saga("delete-user")
        logger.info("record_delete_started", record_type=record_type.value,
                    record_id=request.recordId, auth_id=request.authId)

        try:
            deleted = await self.supabase.delete_rows(target.table, target.key, request.recordId)
        except UpstreamError as e:
            logger.error("record_delete_failed", table=target.table, error=e.message)
            raise ProvisioningError(f"Failed to delete from {record_type.value} table: {e.message}", 500)

        saga.record(target.table, self._reinsert(target.table, deleted))

        if record_type.is_user:
            try:
                profiles = await self.supabase.delete_rows(PROFILES_TABLE, "id", request.authId)
            except UpstreamError as e:
                logger.error("profile_delete_failed", auth_id=request.authId, error=e.message)
                await self._fail(saga, f"Failed to delete from profiles table: {e.message}", 500)

            saga.record(PROFILES_TABLE, self._reinsert(PROFILES_TABLE, profiles))

            try:
                await self.supabase.delete_identity(request.authId)
            except UpstreamError as e:
                logger.error("identity_delete_failed", auth_id=request.authId, error=e.message)
                await self._fail(saga, f"Failed to delete from auth.users: {e.message}", 500)

        logger.info("record_deleted", record_type=record_type.value, record_id=request.recordId)
        return DeleteUserResponse(success=True, message=f"{record_type.value} deleted successfully")

    def _reinsert(self, table: str, rows: List[Dict[str, Any]]):
        async def undo():
            for row in rows:
                await self.supabase.insert_row(table, row)
        return undo


def build_provisioning_service(supabase: SupabaseAdminClient, settings=None) -> UserProvisioningService:
    """Provisioning service configured from settings"""
    settings = settings or get_settings()
    return UserProvisioningService(
        supabase,
        compensate=settings.compensate_partial_failures,
        reject_unknown_roles=settings.reject_unknown_roles,
    )
