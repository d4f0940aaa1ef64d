"""
Connectivity check

A quick probe of the ``profiles`` table with a short timeout. A probe that
got an answer from the database (success or a database error) is cached
for ``ttl`` seconds; a probe that timed out or never reached the database
is not.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional

from postgrest.exceptions import APIError

from shared.utils.logger import get_logger

from lunch_client.services.base import error_message

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectivityResult:
    connection: bool
    error: Optional[str] = None
    checked_at: float = 0.0


class ConnectivityChecker:
    """Cached database reachability probe with an injectable clock"""

    def __init__(self, client, ttl: float = 300.0, probe_timeout: float = 2.0,
                 clock: Callable[[], float] = time.monotonic):
        self.client = client
        self.ttl = ttl
        self.probe_timeout = probe_timeout
        self.clock = clock
        self._cached: Optional[ConnectivityResult] = None

    def reset(self) -> None:
        self._cached = None

    @property
    def cached(self) -> Optional[ConnectivityResult]:
        """Cached result if it is still fresh"""
        if self._cached is None:
            return None
        if self.clock() - self._cached.checked_at >= self.ttl:
            return None
        return self._cached

    def _probe(self):
        return self.client.table("profiles").select("id").limit(1).execute()

    async def check(self, force: bool = False) -> ConnectivityResult:
        if not force:
            cached = self.cached
            if cached is not None:
                logger.debug("Using cached connection result")
                return cached

        now = self.clock()
        try:
            await asyncio.wait_for(asyncio.to_thread(self._probe), timeout=self.probe_timeout)
            result = ConnectivityResult(connection=True, checked_at=now)
        except APIError as e:
            result = ConnectivityResult(connection=False, error=error_message(e), checked_at=now)
        except asyncio.TimeoutError:
            logger.warning("Connection test timed out after %ss", self.probe_timeout)
            return ConnectivityResult(connection=False, error="Quick test timeout", checked_at=now)
        except Exception as e:
            logger.warning("Connection test failed: %s", error_message(e))
            return ConnectivityResult(connection=False, error=error_message(e), checked_at=now)

        logger.info("Connection test result: %s", "success" if result.connection else result.error)
        self._cached = result
        return result
