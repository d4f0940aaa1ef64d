"""
Base class for the table services

supabase-py's client is synchronous, so every request runs in a worker
thread and the event loop stays free for the session timers.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from postgrest.exceptions import APIError

from shared.utils.logger import get_logger

from lunch_client.exceptions import DataAccessError

logger = get_logger(__name__)


def error_message(exc: BaseException) -> str:
    """Provider message of a supabase-py exception, verbatim when present"""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc)


def is_missing_row(exc: BaseException) -> bool:
    """``maybe_single()`` with no match raises code 204 on some postgrest releases"""
    return isinstance(exc, APIError) and str(exc.code) == "204"


class TableService:
    """Shared plumbing for services backed by one table"""

    table: str = ""

    def __init__(self, client):
        self.client = client

    def query(self, table: Optional[str] = None):
        return self.client.table(table or self.table)

    async def execute(self, build: Callable[[], Any], action: str, missing_ok: bool = False):
        """Build and execute a query off the event loop"""
        try:
            return await asyncio.to_thread(lambda: build().execute())
        except Exception as e:
            if missing_ok and is_missing_row(e):
                return None
            message = error_message(e)
            logger.error("%s failed: %s", action, message)
            raise DataAccessError(message, {"action": action}) from e

    async def fetch_all(self, build: Callable[[], Any], action: str) -> List[Dict[str, Any]]:
        response = await self.execute(build, action)
        return list(response.data or [])

    async def fetch_one(self, build: Callable[[], Any], action: str) -> Optional[Dict[str, Any]]:
        """Result of a ``maybe_single()`` query, or None"""
        response = await self.execute(build, action, missing_ok=True)
        if response is None:
            return None
        return response.data or None

    async def first_row(self, build: Callable[[], Any], action: str) -> Optional[Dict[str, Any]]:
        """First row of an insert/update representation"""
        rows = await self.fetch_all(build, action)
        return rows[0] if rows else None

    async def count(self, action: str, table: Optional[str] = None, **filters: Any) -> int:
        """Exact count of rows matching equality filters"""
        def build():
            query = self.query(table).select("*", count="exact")
            for column, value in filters.items():
                query = query.eq(column, value)
            return query

        response = await self.execute(build, action)
        return response.count or 0
