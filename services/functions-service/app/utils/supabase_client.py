"""
Supabase Client Configuration
Service-role access to the auth admin API and the HotLunchHub tables
"""

import asyncio
from typing import Optional, Dict, Any, List

from supabase import create_client, Client
import structlog

from app.config import get_settings

logger = structlog.get_logger(__name__)


class UpstreamError(Exception):
    """An auth or database operation was rejected by Supabase"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def error_message(exc: BaseException) -> str:
    """Provider message of a supabase-py exception, verbatim when present"""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc)


class SupabaseAdminClient:
    """
    Supabase wrapper used by the orchestrators.

    Every call goes through ``asyncio.to_thread`` because supabase-py's
    sync client blocks on HTTP. Provider exceptions are re-raised as
    ``UpstreamError`` carrying the provider message.
    """

    def __init__(self, url: Optional[str] = None, service_key: Optional[str] = None,
                 client: Optional[Client] = None):
        settings = get_settings()
        self.url: str = url if url is not None else settings.supabase_url
        self.service_key: str = service_key if service_key is not None else settings.supabase_service_role_key
        self.client: Optional[Client] = client

        if self.client is None and self.url and self.service_key:
            self.client = create_client(self.url, self.service_key)
            logger.info("supabase_client_initialized", url=self.url)
        elif self.client is None:
            logger.warning("supabase_credentials_missing")

    def is_available(self) -> bool:
        """Check if Supabase is available and configured"""
        return self.client is not None

    def _require_client(self) -> Client:
        if not self.client:
            raise UpstreamError("Supabase client not available")
        return self.client

    async def _call(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except UpstreamError:
            raise
        except Exception as e:
            raise UpstreamError(error_message(e)) from e

    async def create_identity(self, email: str, password: str) -> str:
        """
        Create an auth user with the email already confirmed

        Returns:
            str: The new identity id
        """
        client = self._require_client()
        response = await self._call(client.auth.admin.create_user, {
            "email": email,
            "password": password,
            "email_confirm": True,
        })
        user = getattr(response, "user", None)
        if user is None:
            raise UpstreamError("Auth provider returned no user")
        return str(user.id)

    async def delete_identity(self, user_id: str) -> None:
        """Delete an auth user"""
        client = self._require_client()
        await self._call(client.auth.admin.delete_user, user_id)

    async def insert_row(self, table: str, row: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Insert one row and return the stored representation"""
        client = self._require_client()
        response = await self._call(lambda: client.table(table).insert(row).execute())
        return list(response.data or [])

    async def delete_rows(self, table: str, column: str, value: Any) -> List[Dict[str, Any]]:
        """Delete rows where ``column == value`` and return the deleted rows"""
        client = self._require_client()
        response = await self._call(lambda: client.table(table).delete().eq(column, value).execute())
        return list(response.data or [])

    async def count_rows(self, table: str, column: Optional[str] = None, value: Any = None) -> int:
        """Exact row count, optionally filtered on one column"""
        client = self._require_client()

        def run():
            query = client.table(table).select("*", count="exact")
            if column is not None:
                query = query.eq(column, value)
            return query.execute()

        response = await self._call(run)
        return response.count or 0

    async def health_check(self) -> str:
        """Check that the profiles table answers"""
        if not self.client:
            return "not_configured"
        try:
            await self._call(lambda: self.client.table("profiles").select("id").limit(1).execute())
            return "healthy"
        except UpstreamError as e:
            logger.error("supabase_health_check_failed", error=e.message)
            return "unhealthy"
