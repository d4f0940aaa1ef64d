"""
Tests for the compensation helper
"""

import pytest

from app.utils.saga import Saga


@pytest.mark.asyncio
async def test_compensations_run_newest_first():
    ran = []
    saga = Saga("test")

    for step in ("identity", "profile", "record"):
        async def undo(step=step):
            ran.append(step)
        saga.record(step, undo)

    assert len(saga) == 3
    assert await saga.compensate() == []
    assert ran == ["record", "profile", "identity"]
    assert len(saga) == 0


@pytest.mark.asyncio
async def test_failing_compensation_does_not_stop_the_rest():
    ran = []
    saga = Saga("test")

    async def undo_identity():
        ran.append("identity")

    async def undo_profile():
        raise RuntimeError("profile gone")

    saga.record("identity", undo_identity)
    saga.record("profile", undo_profile)

    assert await saga.compensate() == ["profile"]
    assert ran == ["identity"]
