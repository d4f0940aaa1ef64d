"""
Pytest fixtures for lunch client tests
"""

import json
from typing import Any, Dict, List

import httpx
import pytest

from lunch_client.config import ClientSettings
from lunch_client.hub import HotLunchClient


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FunctionsStub:
    """Records function calls and answers with configurable envelopes"""

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []
        self.responses: Dict[str, httpx.Response] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content or b"{}")
        self.requests.append({"name": name, "json": body, "headers": dict(request.headers)})
        if name in self.responses:
            return self.responses[name]
        if name == "create-user":
            return httpx.Response(200, json={
                "success": True,
                "userId": "new-user-id",
                "message": f"{body.get('role')} user created successfully",
            })
        return httpx.Response(200, json={
            "success": True,
            "message": f"{body.get('recordType')} deleted successfully",
        })

    def fail(self, name: str, status_code: int, error: str) -> None:
        self.responses[name] = httpx.Response(status_code, json={"success": False, "error": error})


@pytest.fixture
def settings() -> ClientSettings:
    """Settings with short timers"""
    return ClientSettings(
        supabase_url="https://test.supabase.co",
        supabase_anon_key="anon-key",
        fallback_after_seconds=0.1,
        session_deadline_seconds=0.6,
        role_details_timeout_seconds=0.2,
        connectivity_probe_timeout_seconds=0.2,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def functions_stub() -> FunctionsStub:
    return FunctionsStub()


@pytest.fixture
def hub(fake_supabase, settings, functions_stub, clock) -> HotLunchClient:
    """Lunch client wired to the in-memory Supabase and the functions stub"""
    return HotLunchClient(
        settings=settings,
        supabase=fake_supabase,
        functions_transport=httpx.MockTransport(functions_stub.handler),
        clock=clock,
    )


@pytest.fixture
def make_user(fake_supabase):
    """Create an identity with its profile and role record"""
    role_tables = {
        "admin": ("admins", "admin_code"),
        "cook": ("cooks", "cook_code"),
        "driver": ("drivers", "driver_code"),
        "employee": ("employees", "employee_code"),
    }

    def _make(email: str, role: str, password: str = "secret1", name: str = "Test User", **fields):
        user = fake_supabase.add_user(email, password)
        fake_supabase.seed("profiles", {"id": user.id, "role": role, "full_name": name, "status": "active"})
        if role in role_tables:
            table, code_field = role_tables[role]
            record = {"auth_id": user.id, "name": name, "email": email, code_field: f"{role[:3].upper()}-1"}
            record.update(fields)
            fake_supabase.seed(table, record)
        return user

    return _make
