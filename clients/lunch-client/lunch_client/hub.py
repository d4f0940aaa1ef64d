"""
HotLunchClient

Wires the Supabase client, the data access services, the functions client,
the auth context and the connectivity checker together, and ties their
lifecycles to ``start()`` / ``stop()``.
"""

import time
from typing import Callable, Optional

import httpx
from supabase import create_client

from shared.utils.logger import get_logger, setup_logging

from lunch_client.admin import AdminConsole
from lunch_client.auth import AuthContext
from lunch_client.config import ClientSettings, get_client_settings
from lunch_client.connectivity import ConnectivityChecker
from lunch_client.exceptions import HotLunchError
from lunch_client.functions import FunctionsClient
from lunch_client.services import (
    CompanyService, DashboardService, MealService, OrderService, UserDirectory,
)

logger = get_logger(__name__)


class HotLunchClient:
    """
    Client application object.

        async with HotLunchClient() as hub:
            await hub.auth.sign_in(email, password)
            meals = await hub.meals.list_meals()
    """

    def __init__(self, settings: Optional[ClientSettings] = None, supabase=None,
                 functions_transport: Optional[httpx.AsyncBaseTransport] = None,
                 clock: Callable[[], float] = time.monotonic, configure_logging: bool = False):
        self.settings = settings or get_client_settings()
        if configure_logging:
            setup_logging(self.settings.log_config_path, self.settings.log_level, self.settings.log_format)

        if supabase is None:
            if not (self.settings.supabase_url and self.settings.supabase_anon_key):
                raise HotLunchError("HOTLUNCH_SUPABASE_URL and HOTLUNCH_SUPABASE_ANON_KEY must be set")
            supabase = create_client(self.settings.supabase_url, self.settings.supabase_anon_key)
        self.supabase = supabase

        self.companies = CompanyService(supabase)
        self.meals = MealService(supabase, image_bucket=self.settings.meal_image_bucket)
        self.orders = OrderService(supabase)
        self.users = UserDirectory(supabase)
        self.dashboard = DashboardService(supabase)

        self.functions = FunctionsClient(
            self.settings.functions_url,
            anon_key=self.settings.supabase_anon_key,
            timeout=self.settings.http_timeout_seconds,
            transport=functions_transport,
        )
        self.auth = AuthContext(supabase, self.users, self.settings)
        self.connectivity = ConnectivityChecker(
            supabase,
            ttl=self.settings.connectivity_cache_ttl_seconds,
            probe_timeout=self.settings.connectivity_probe_timeout_seconds,
            clock=clock,
        )
        self.admin = AdminConsole(
            self.auth, self.functions, self.users, self.companies, self.meals, self.orders,
        )

    async def start(self) -> None:
        logger.info("Starting lunch client")
        self.settings.log_config()
        self.connectivity.reset()
        await self.functions.start()
        await self.auth.start()

    async def stop(self) -> None:
        await self.auth.stop()
        await self.functions.stop()
        self.connectivity.reset()
        logger.info("Lunch client stopped")

    async def __aenter__(self) -> "HotLunchClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
