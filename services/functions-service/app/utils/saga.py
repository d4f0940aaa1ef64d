"""
Compensating actions for multi-step writes

The auth provider and the relational store are separate systems, so a
multi-step write cannot be wrapped in one transaction. A ``Saga`` records
an undo step after each successful write; ``compensate`` replays them in
reverse order.
"""

from typing import Awaitable, Callable, List, Tuple

import structlog

from app.utils.supabase_client import error_message

logger = structlog.get_logger(__name__)

Compensation = Callable[[], Awaitable[None]]


class Saga:
    """Ordered list of compensations for one orchestration"""

    def __init__(self, name: str):
        self.name = name
        self._steps: List[Tuple[str, Compensation]] = []

    def __len__(self) -> int:
        return len(self._steps)

    def record(self, step: str, compensation: Compensation) -> None:
        """Register the undo action for a step that has just succeeded"""
        self._steps.append((step, compensation))

    async def compensate(self) -> List[str]:
        """
        Run compensations newest first.

        A failing compensation is logged and skipped so the remaining ones
        still run; the caller re-raises the error that triggered rollback.

        Returns:
            list: Names of the steps whose compensation failed
        """
        failed = []
        while self._steps:
            step, compensation = self._steps.pop()
            try:
                await compensation()
                logger.info("saga_step_compensated", saga=self.name, step=step)
            except Exception as e:
                failed.append(step)
                logger.error("saga_compensation_failed", saga=self.name, step=step, error=error_message(e))
        return failed
