"""
Tests for session and profile resolution
"""

import asyncio

import pytest

from lunch_client.auth import AuthState, fallback_user, guess_role_from_email
from lunch_client.exceptions import FormValidationError, NotAuthenticatedError


@pytest.mark.parametrize("email,expected", [
    ("admin@lunch.test", "admin"),
    ("jane.cook@lunch.test", "cook"),
    ("DriverDan@lunch.test", "driver"),
    ("employee42@lunch.test", "employee"),
    ("admin.cook@lunch.test", "admin"),
    ("bob@lunch.test", "admin"),
    ("", "admin"),
    (None, "admin"),
])
def test_guess_role_from_email(email, expected):
    assert guess_role_from_email(email) == expected


def test_guess_role_uses_configured_default():
    assert guess_role_from_email("bob@lunch.test", default="employee") == "employee"


@pytest.mark.parametrize("email,name", [
    ("driver.sam@lunch.test", "driver.sam"),
    (None, "Admin"),
    ("", "Admin"),
])
def test_fallback_user_name(email, name):
    user = fallback_user("user-1", email, "cook")

    assert user.name == name
    assert user.role == "cook"
    assert user.is_fallback is True


def record_states(hub):
    history = []
    hub.auth.subscribe(lambda state, user: history.append((state, user)))
    return history


class TestSignIn:

    @pytest.mark.asyncio
    async def test_sign_in_loads_profile_and_role_details(self, hub, make_user):
        user = make_user("jane@lunch.test", "employee", name="Jane", company_id=4, phone="555-0101")
        history = record_states(hub)

        session_user = await hub.auth.sign_in("jane@lunch.test", "secret1")

        assert hub.auth.state == AuthState.AUTHENTICATED
        assert session_user.id == user.id
        assert session_user.role == "employee"
        assert session_user.name == "Jane"
        assert session_user.company_id == 4
        assert session_user.code == "EMP-1"
        assert session_user.is_fallback is False
        assert hub.auth.access_token == f"token-{user.id}"
        assert [state for state, _ in history] == [AuthState.LOADING, AuthState.AUTHENTICATED]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password,message", [
        ("", "secret1", "Please fill in all fields"),
        ("jane@lunch.test", "", "Please fill in all fields"),
        ("jane.lunch.test", "secret1", "Please enter a valid email address"),
    ])
    async def test_sign_in_validates_input(self, hub, fake_supabase, email, password, message):
        with pytest.raises(FormValidationError) as exc_info:
            await hub.auth.sign_in(email, password)

        assert exc_info.value.message == message
        assert fake_supabase.calls == []

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, hub, make_user):
        make_user("jane@lunch.test", "employee")

        with pytest.raises(NotAuthenticatedError) as exc_info:
            await hub.auth.sign_in("jane@lunch.test", "wrong-password")

        assert exc_info.value.message == "Invalid login credentials"
        assert hub.auth.state == AuthState.LOADING

    @pytest.mark.asyncio
    async def test_missing_profile_installs_guessed_user(self, hub, fake_supabase):
        fake_supabase.add_user("driver.sam@lunch.test", "secret1")

        session_user = await hub.auth.sign_in("driver.sam@lunch.test", "secret1")

        assert hub.auth.state == AuthState.AUTHENTICATED_WITH_FALLBACK
        assert session_user.role == "driver"
        assert session_user.name == "driver.sam"
        assert session_user.is_fallback is True

    @pytest.mark.asyncio
    async def test_profile_error_without_fallback_signs_out(self, hub, fake_supabase, make_user):
        hub.settings.guessed_fallback_enabled = False
        make_user("jane@lunch.test", "employee")
        fake_supabase.fail_on("profiles", "select", "permission denied for table profiles")

        with pytest.raises(NotAuthenticatedError):
            await hub.auth.sign_in("jane@lunch.test", "secret1")

        assert hub.auth.state == AuthState.SIGNED_OUT
        assert hub.auth.user is None

    @pytest.mark.asyncio
    async def test_role_details_timeout_keeps_profile(self, hub, fake_supabase, make_user):
        make_user("jane@lunch.test", "cook", name="Jane")
        fake_supabase.delay("cooks", "select", 0.3)

        await hub.auth.sign_in("jane@lunch.test", "secret1")
        await hub.auth.wait_until_resolved()

        assert hub.auth.state == AuthState.AUTHENTICATED
        assert hub.auth.user.role == "cook"
        assert hub.auth.user.role_details is None


class TestFallbackRace:

    @pytest.mark.asyncio
    async def test_real_profile_supersedes_guessed_user(self, hub, fake_supabase, make_user):
        # The email suggests admin; the stored role is cook
        make_user("admin.helper@lunch.test", "cook", name="Helper")
        fake_supabase.delay("profiles", "select", 0.2)
        history = record_states(hub)

        first = await hub.auth.sign_in("admin.helper@lunch.test", "secret1")

        assert first.is_fallback is True
        assert first.role == "admin"
        assert hub.auth.state == AuthState.AUTHENTICATED_WITH_FALLBACK

        await hub.auth.wait_until_resolved()

        assert hub.auth.state == AuthState.AUTHENTICATED
        assert hub.auth.user.role == "cook"
        assert hub.auth.user.is_fallback is False
        assert hub.auth.user.name == "Helper"
        assert [state for state, _ in history] == [
            AuthState.LOADING,
            AuthState.AUTHENTICATED_WITH_FALLBACK,
            AuthState.AUTHENTICATED,
        ]
        final_state, final_user = history[-1]
        assert final_user.role == "cook" and final_user.is_fallback is False

    @pytest.mark.asyncio
    async def test_deadline_keeps_guessed_user(self, hub, fake_supabase, make_user):
        make_user("cook.kim@lunch.test", "driver")
        fake_supabase.delay("profiles", "select", 0.8)

        await hub.auth.sign_in("cook.kim@lunch.test", "secret1")
        await hub.auth.wait_until_resolved()

        assert hub.auth.state == AuthState.AUTHENTICATED_WITH_FALLBACK
        assert hub.auth.user.role == "cook"
        assert hub.auth.user.is_fallback is True

    @pytest.mark.asyncio
    async def test_sign_out_during_resolution_drops_late_profile(self, hub, fake_supabase, make_user):
        make_user("jane@lunch.test", "employee")
        fake_supabase.delay("profiles", "select", 0.2)

        await hub.auth.sign_in("jane@lunch.test", "secret1")
        await hub.auth.sign_out()
        await asyncio.sleep(0.3)

        assert hub.auth.state == AuthState.SIGNED_OUT
        assert hub.auth.user is None
        with pytest.raises(NotAuthenticatedError):
            hub.auth.access_token


class TestSessionLifecycle:

    @pytest.mark.asyncio
    async def test_start_restores_existing_session(self, hub, fake_supabase, make_user):
        make_user("jane@lunch.test", "driver")
        fake_supabase.auth.sign_in_with_password({"email": "jane@lunch.test", "password": "secret1"})

        await hub.start()
        try:
            assert hub.auth.state == AuthState.AUTHENTICATED
            assert hub.auth.user.role == "driver"
        finally:
            await hub.stop()

    @pytest.mark.asyncio
    async def test_start_without_session_is_signed_out(self, hub):
        async with hub:
            assert hub.auth.state == AuthState.SIGNED_OUT
            assert hub.auth.is_authenticated is False

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_notifications(self, hub, make_user):
        make_user("jane@lunch.test", "employee")
        history = []
        unsubscribe = hub.auth.subscribe(lambda state, user: history.append(state))
        unsubscribe()

        await hub.auth.sign_in("jane@lunch.test", "secret1")

        assert history == []


class TestProviderEvents:

    @pytest.mark.asyncio
    async def test_provider_sign_out_ends_session(self, hub, fake_supabase, make_user):
        make_user("jane@lunch.test", "employee")

        async with hub:
            await hub.auth.sign_in("jane@lunch.test", "secret1")
            assert hub.auth.state == AuthState.AUTHENTICATED

            # Session revoked elsewhere; the provider notifies from its own thread
            await asyncio.to_thread(fake_supabase.auth.emit, "SIGNED_OUT", None)
            await asyncio.sleep(0)

            assert hub.auth.state == AuthState.SIGNED_OUT
            assert hub.auth.user is None
            with pytest.raises(NotAuthenticatedError):
                hub.auth.access_token

    @pytest.mark.asyncio
    async def test_provider_sign_in_resolves_user(self, hub, fake_supabase, make_user):
        make_user("cook@lunch.test", "cook", name="Cook")

        async with hub:
            assert hub.auth.state == AuthState.SIGNED_OUT
            # Another caller signs in on the shared client
            await asyncio.to_thread(
                fake_supabase.auth.sign_in_with_password, {"email": "cook@lunch.test", "password": "secret1"})
            await hub.auth.wait_until_resolved()

            assert hub.auth.state == AuthState.AUTHENTICATED
            assert hub.auth.user.role == "cook"

    @pytest.mark.asyncio
    async def test_own_sign_in_is_applied_once(self, hub, make_user):
        make_user("jane@lunch.test", "employee")
        history = record_states(hub)

        async with hub:
            await hub.auth.sign_in("jane@lunch.test", "secret1")
            await hub.auth.wait_until_resolved()
            await hub.auth.sign_out()

        assert [state for state, _ in history] == [
            AuthState.SIGNED_OUT,
            AuthState.LOADING,
            AuthState.AUTHENTICATED,
            AuthState.SIGNED_OUT,
        ]

    @pytest.mark.asyncio
    async def test_events_ignored_after_stop(self, hub, fake_supabase, make_user):
        make_user("jane@lunch.test", "employee")

        async with hub:
            await hub.auth.sign_in("jane@lunch.test", "secret1")

        fake_supabase.auth.emit("SIGNED_OUT", None)
        await asyncio.sleep(0)

        assert fake_supabase.auth.listeners == []
        assert hub.auth.state == AuthState.AUTHENTICATED
