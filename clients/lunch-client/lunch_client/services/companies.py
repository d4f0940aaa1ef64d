"""
Company data access
"""

from typing import Any, Dict, List, Optional, Union

from shared.schemas.catalog import CompanyCreateSchema, CompanyUpdateSchema
from shared.utils.logger import get_logger

from lunch_client.exceptions import ReferentialIntegrityError
from lunch_client.services.base import TableService

logger = get_logger(__name__)

CompanyId = Union[int, str]


class CompanyService(TableService):
    """CRUD on ``companies`` with the reference checks admins rely on"""

    table = "companies"

    async def list_companies(self) -> List[Dict[str, Any]]:
        """All companies, newest first"""
        return await self.fetch_all(
            lambda: self.query().select("*").order("created_at", desc=True),
            "List companies",
        )

    async def search_companies(self, term: str) -> List[Dict[str, Any]]:
        """Companies whose name contains ``term`` (case-insensitive)"""
        term = (term or "").strip()
        if not term:
            return await self.list_companies()
        return await self.fetch_all(
            lambda: self.query().select("*").ilike("name", f"%{term}%").order("name"),
            "Search companies",
        )

    async def get_company(self, company_id: CompanyId) -> Optional[Dict[str, Any]]:
        return await self.fetch_one(
            lambda: self.query().select("*").eq("company_id", company_id).maybe_single(),
            "Get company",
        )

    async def create_company(self, company: CompanyCreateSchema) -> Optional[Dict[str, Any]]:
        row = company.model_dump()
        created = await self.first_row(lambda: self.query().insert(row), "Add company")
        logger.info("Company created: %s", row["name"])
        return created

    async def update_company(self, company_id: CompanyId,
                             changes: CompanyUpdateSchema) -> Optional[Dict[str, Any]]:
        row = changes.model_dump(exclude_none=True)
        if not row:
            return await self.get_company(company_id)
        return await self.first_row(
            lambda: self.query().update(row).eq("company_id", company_id),
            "Update company",
        )

    async def count_employees(self, company_id: CompanyId) -> int:
        return await self.count("Count company employees", "employees", company_id=company_id)

    async def count_orders(self, company_id: CompanyId) -> int:
        return await self.count("Count company orders", "orders", company_id=company_id)

    async def ensure_deletable(self, company_id: CompanyId) -> None:
        """
        Refuse deletion while employees or orders reference the company

        Raises:
            ReferentialIntegrityError: when referencing rows exist
        """
        employees = await self.count_employees(company_id)
        if employees:
            raise ReferentialIntegrityError(
                f"This company has {employees} employee(s) and cannot be deleted. "
                "Please reassign or delete the employees first.",
                {"employees": employees},
            )
        orders = await self.count_orders(company_id)
        if orders:
            raise ReferentialIntegrityError(
                f"This company has {orders} order(s) and cannot be deleted. "
                "Please delete the orders first.",
                {"orders": orders},
            )

    async def delete_company(self, company_id: CompanyId) -> None:
        """Delete a company directly after the reference checks"""
        await self.ensure_deletable(company_id)
        await self.execute(lambda: self.query().delete().eq("company_id", company_id), "Delete company")
        logger.info("Company deleted: %s", company_id)
