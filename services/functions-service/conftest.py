"""
Pytest fixtures for functions service tests
"""

import pytest
from fastapi.testclient import TestClient

from app.services.user_provisioning import UserProvisioningService
from app.utils.supabase_client import SupabaseAdminClient


@pytest.fixture
def admin_client(fake_supabase) -> SupabaseAdminClient:
    """Service-role wrapper around the in-memory Supabase"""
    return SupabaseAdminClient(client=fake_supabase)


@pytest.fixture
def provisioning(admin_client) -> UserProvisioningService:
    """Orchestrator with default behaviour (no compensation)"""
    return UserProvisioningService(admin_client)


@pytest.fixture
def compensating_provisioning(admin_client) -> UserProvisioningService:
    """Orchestrator that rolls back committed steps on failure"""
    return UserProvisioningService(admin_client, compensate=True)


@pytest.fixture
def client(admin_client):
    """Test client bound to the in-memory Supabase"""
    from app.main import app

    app.state.supabase = admin_client
    yield TestClient(app)
    app.state.supabase = None


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer test-session-token"}


@pytest.fixture
def cook_payload():
    return {
        "email": "cook1@x.com",
        "password": "secret1",
        "name": "Cook One",
        "role": "cook",
        "address_line1": "1 Main St",
        "city": "Springfield",
        "postal_code": "00000",
    }
