"""
Admin console

Admin operations that need more than one table or a privileged function:
user creation and deletion, company and meal deletion, and order status
changes. Every change is written to the audit log.
"""

from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from shared.schemas.order import OrderStatus
from shared.schemas.user import (
    CreateUserRequest, CreateUserResponse, DeleteUserResponse, RecordType, UserRole,
)
from shared.utils.logger import AuditLogger, get_audit_logger, get_logger
from shared.utils.validators import validate_new_user_form

from lunch_client.auth import AuthContext
from lunch_client.exceptions import DataAccessError, FormValidationError, ReferentialIntegrityError
from lunch_client.functions import FunctionsClient
from lunch_client.services import CompanyService, MealService, OrderService, UserDirectory

logger = get_logger(__name__)

RowId = Union[int, str]


def validate_user_form(form: Dict[str, Any], role: str) -> None:
    """
    Validate a new-user form for one role

    Raises:
        FormValidationError: with every problem found
    """
    errors = validate_new_user_form(form)
    if role not in {r.value for r in UserRole}:
        errors.append(f"Invalid role: {role}")
    if role == UserRole.EMPLOYEE.value:
        if not (form.get("employee_code") or "").strip():
            errors.append("Employee code is required")
        if not form.get("company_id"):
            errors.append("Company selection is required")
    if errors:
        raise FormValidationError(errors)


class AdminConsole:
    """Admin operations with client-side reference checks"""

    def __init__(self, auth: AuthContext, functions: FunctionsClient, users: UserDirectory,
                 companies: CompanyService, meals: MealService, orders: OrderService,
                 audit: Optional[AuditLogger] = None):
        self.auth = auth
        self.functions = functions
        self.users = users
        self.companies = companies
        self.meals = meals
        self.orders = orders
        self.audit = audit or get_audit_logger()

    @property
    def _actor(self) -> Optional[str]:
        return self.auth.user.id if self.auth.user else None

    # Creation

    async def create_user(self, role: str, form: Dict[str, Any]) -> CreateUserResponse:
        """Validate the form and call the create-user function"""
        validate_user_form(form, role)
        try:
            request = CreateUserRequest.model_validate({**form, "role": role})
        except ValidationError as e:
            raise FormValidationError([err["msg"] for err in e.errors()])

        response = await self.functions.create_user(request, self.auth.access_token)
        logger.info("%s user created: %s", role, response.userId)
        self.audit.log_user_action(self._actor, "create_user", role, response.userId,
                                   {"email": request.email})
        return response

    async def create_admin(self, form: Dict[str, Any]) -> CreateUserResponse:
        return await self.create_user(UserRole.ADMIN.value, form)

    async def create_cook(self, form: Dict[str, Any]) -> CreateUserResponse:
        return await self.create_user(UserRole.COOK.value, form)

    async def create_driver(self, form: Dict[str, Any]) -> CreateUserResponse:
        return await self.create_user(UserRole.DRIVER.value, form)

    async def create_employee(self, form: Dict[str, Any]) -> CreateUserResponse:
        return await self.create_user(UserRole.EMPLOYEE.value, form)

    # Deletion

    async def _delete_user_record(self, record_type: RecordType, record_id: RowId) -> DeleteUserResponse:
        record = await self.users.get_record(record_type.value, record_id)
        auth_id = record.get("auth_id") if record else None
        if not auth_id:
            raise DataAccessError(f"{record_type.value.capitalize()} auth_id not found",
                                  {"record_id": record_id})

        response = await self.functions.delete_user(record_id, record_type.value, auth_id,
                                                    self.auth.access_token)
        self.audit.log_user_action(self._actor, "delete_user", record_type.value, str(record_id),
                                   {"auth_id": auth_id})
        return response

    async def delete_cook(self, cook_id: RowId) -> DeleteUserResponse:
        """Delete a cook unless meals still reference it"""
        meals = await self.meals.count_cook_meals(cook_id)
        if meals:
            raise ReferentialIntegrityError(
                f"This cook has {meals} meal(s) and cannot be deleted. Please delete the meals first.",
                {"meals": meals},
            )
        return await self._delete_user_record(RecordType.COOK, cook_id)

    async def delete_employee(self, employee_id: RowId) -> DeleteUserResponse:
        """Delete an employee unless orders still reference it"""
        orders = await self.orders.count_employee_orders(employee_id)
        if orders:
            raise ReferentialIntegrityError(
                f"This employee has {orders} order(s) and cannot be deleted. Please delete the orders first.",
                {"orders": orders},
            )
        return await self._delete_user_record(RecordType.EMPLOYEE, employee_id)

    async def delete_driver(self, driver_id: RowId) -> DeleteUserResponse:
        return await self._delete_user_record(RecordType.DRIVER, driver_id)

    async def delete_company(self, company_id: RowId) -> DeleteUserResponse:
        """Delete a company unless employees or orders still reference it"""
        await self.companies.ensure_deletable(company_id)
        response = await self.functions.delete_user(company_id, RecordType.COMPANY.value, None,
                                                    self.auth.access_token)
        self.audit.log_user_action(self._actor, "delete_company", "company", str(company_id))
        return response

    async def delete_meal(self, meal_id: RowId) -> DeleteUserResponse:
        response = await self.functions.delete_user(meal_id, RecordType.MEAL.value, None,
                                                    self.auth.access_token)
        self.audit.log_user_action(self._actor, "delete_meal", "meal", str(meal_id))
        return response

    # Orders

    async def set_order_status(self, order_id: RowId, status: OrderStatus) -> Optional[Dict[str, Any]]:
        updated = await self.orders.update_status(order_id, status)
        self.audit.log_user_action(self._actor, "update_order_status", "order", str(order_id),
                                   {"status": OrderStatus(status).value})
        return updated

    async def advance_order(self, order_id: RowId) -> Optional[Dict[str, Any]]:
        updated = await self.orders.advance_status(order_id)
        self.audit.log_user_action(self._actor, "update_order_status", "order", str(order_id),
                                   {"status": updated.get("status") if updated else None})
        return updated
