"""
Session and profile resolution

After sign-in the client loads the Profile and RoleRecord of the signed-in
identity. The load runs as one task supervised against two timers:

* after ``fallback_after_seconds`` a user whose role is guessed from the
  email address is installed (state ``authenticated_with_fallback``) while
  the load keeps running;
* after ``session_deadline_seconds`` the load is cancelled and the guessed
  user stays.

A load that finishes before the deadline always replaces the guessed user.
Every sign-in and sign-out bumps a generation counter; writes from an older
generation are dropped. After ``start()`` the provider's own ``SIGNED_IN`` and
``SIGNED_OUT`` notifications drive the same transitions.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, List, Optional

from shared.schemas.user import SessionUser, UserRole
from shared.utils.logger import get_logger
from shared.utils.validators import validate_login_form

from lunch_client.config import ClientSettings
from lunch_client.exceptions import DataAccessError, FormValidationError, NotAuthenticatedError
from lunch_client.services.base import error_message
from lunch_client.services.users import ROLE_TABLES, UserDirectory, session_user_from

logger = get_logger(__name__)

# Substrings checked in this order
ROLE_GUESS_ORDER = (UserRole.ADMIN, UserRole.COOK, UserRole.DRIVER, UserRole.EMPLOYEE)


class AuthState(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    AUTHENTICATED_WITH_FALLBACK = "authenticated_with_fallback"
    SIGNED_OUT = "signed_out"


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthListener = Callable[[AuthState, Optional[SessionUser]], Any]


def guess_role_from_email(email: Optional[str], default: str = UserRole.ADMIN.value) -> str:
    """Role whose name appears in the email address, else ``default``"""
    lowered = (email or "").lower()
    for role in ROLE_GUESS_ORDER:
        if role.value in lowered:
            return role.value
    return default


def fallback_user(user_id: str, email: Optional[str], role: str) -> SessionUser:
    """Locally synthesized user used while the real profile is unavailable"""
    local_part = email.split("@")[0] if email else ""
    return SessionUser(
        id=user_id,
        email=email,
        role=role,
        name=local_part or "Admin",
        status="active",
        role_details=None,
        is_fallback=True,
    )


class AuthContext:
    """
    Client auth state machine.

    ``loading -> authenticated | authenticated_with_fallback | signed_out``
    """

    def __init__(self, client, directory: UserDirectory, settings: ClientSettings):
        self.client = client
        self.directory = directory
        self.settings = settings

        self.state: AuthState = AuthState.LOADING
        self.user: Optional[SessionUser] = None
        self.session = None

        self._generation = 0
        self._supervisor: Optional[asyncio.Task] = None
        self._settled = asyncio.Event()
        self._listeners: List[AuthListener] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._provider_subscription = None

    # Listeners

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a state listener; returns the unsubscribe callable"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, generation: int, state: AuthState, user: Optional[SessionUser]) -> bool:
        if generation != self._generation:
            logger.debug("Dropping stale auth update (generation %s, current %s)", generation, self._generation)
            return False

        self.state = state
        self.user = user
        if state != AuthState.LOADING:
            self._settled.set()

        for listener in list(self._listeners):
            try:
                listener(state, user)
            except Exception:
                logger.exception("Auth listener failed")
        return True

    # Public API

    @property
    def is_authenticated(self) -> bool:
        return self.state in (AuthState.AUTHENTICATED, AuthState.AUTHENTICATED_WITH_FALLBACK)

    @property
    def access_token(self) -> str:
        """Bearer token of the current session"""
        token = getattr(self.session, "access_token", None)
        if not token:
            raise NotAuthenticatedError("No active session")
        return token

    async def start(self) -> None:
        """Follow provider auth events and restore an existing session, if any"""
        self._loop = asyncio.get_running_loop()
        self._unsubscribe_provider()
        self._provider_subscription = self.client.auth.on_auth_state_change(self._on_provider_event)

        try:
            session = await asyncio.wait_for(
                asyncio.to_thread(self.client.auth.get_session),
                timeout=self.settings.session_deadline_seconds,
            )
        except asyncio.TimeoutError:
            logger.error("Session lookup timed out")
            session = None
        except Exception as e:
            logger.error("Error checking session: %s", error_message(e))
            session = None

        if session is not None and getattr(session, "user", None) is not None:
            await self.handle_auth_event(AuthEvent.SIGNED_IN, session)
            await self.wait_until_settled()
        else:
            await self.handle_auth_event(AuthEvent.SIGNED_OUT, None)

    async def sign_in(self, email: str, password: str) -> SessionUser:
        """
        Sign in and wait until a user (real or guessed) is installed

        Raises:
            FormValidationError: empty fields or malformed email
            NotAuthenticatedError: credentials rejected or no user could be resolved
        """
        errors = validate_login_form(email, password)
        if errors:
            raise FormValidationError(errors)

        try:
            response = await asyncio.to_thread(
                self.client.auth.sign_in_with_password,
                {"email": email.strip(), "password": password},
            )
        except Exception as e:
            message = error_message(e)
            logger.warning("Sign in failed for %s: %s", email, message)
            raise NotAuthenticatedError(message)

        session = getattr(response, "session", None)
        if session is None:
            raise NotAuthenticatedError("Sign in returned no session")

        await self.handle_auth_event(AuthEvent.SIGNED_IN, session)
        await self.wait_until_settled()

        if self.user is None:
            raise NotAuthenticatedError("Could not load user profile")
        return self.user

    async def sign_out(self) -> None:
        try:
            await asyncio.to_thread(self.client.auth.sign_out)
        except Exception as e:
            logger.error("Sign out error: %s", error_message(e))
        await self.handle_auth_event(AuthEvent.SIGNED_OUT, None)

    async def handle_auth_event(self, event: AuthEvent, session) -> None:
        """Apply a SIGNED_IN or SIGNED_OUT event"""
        self._apply_event(event, session)

    def _apply_event(self, event: AuthEvent, session) -> None:
        if self._is_current(event, session):
            logger.debug("Ignoring repeated auth event: %s", event.value)
            return

        logger.info("Auth state changed: %s", event.value)
        self._cancel_resolution()
        self._generation += 1
        # Release waiters of the previous generation
        self._settled.set()
        self._settled = asyncio.Event()

        if event == AuthEvent.SIGNED_IN and session is not None and getattr(session, "user", None):
            self.session = session
            self._set_state(self._generation, AuthState.LOADING, None)
            self._supervisor = asyncio.create_task(self._supervise(self._generation, session.user))
        else:
            self.session = None
            self._set_state(self._generation, AuthState.SIGNED_OUT, None)

    def _is_current(self, event: AuthEvent, session) -> bool:
        """True when the event describes the session already applied"""
        if event == AuthEvent.SIGNED_OUT:
            return self.session is None and self.state == AuthState.SIGNED_OUT
        token = getattr(session, "access_token", None)
        return (
            token is not None
            and token == getattr(self.session, "access_token", None)
            and self.state != AuthState.SIGNED_OUT
        )

    def _on_provider_event(self, event, session) -> None:
        """Auth provider callback; may run on a worker thread"""
        try:
            auth_event = AuthEvent(getattr(event, "value", event))
        except ValueError:
            return
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._apply_event, auth_event, session)

    def _unsubscribe_provider(self) -> None:
        subscription, self._provider_subscription = self._provider_subscription, None
        if subscription is not None:
            subscription.unsubscribe()

    async def wait_until_settled(self) -> None:
        """Wait until the state has left ``loading``"""
        await self._settled.wait()

    async def wait_until_resolved(self) -> None:
        """Wait until the profile load of the current sign-in has finished or been abandoned"""
        supervisor = self._supervisor
        if supervisor is not None:
            await asyncio.gather(supervisor, return_exceptions=True)

    async def stop(self) -> None:
        self._unsubscribe_provider()
        self._cancel_resolution()
        supervisor, self._supervisor = self._supervisor, None
        if supervisor is not None:
            await asyncio.gather(supervisor, return_exceptions=True)

    # Resolution

    def _cancel_resolution(self) -> None:
        if self._supervisor is not None and not self._supervisor.done():
            self._supervisor.cancel()

    async def _fetch_user(self, auth_user) -> Optional[SessionUser]:
        """Profile then RoleRecord; None when the identity has no profile"""
        profile = await self.directory.get_profile(auth_user.id)
        if profile is None:
            return None

        role_details = None
        if profile.get("role") in ROLE_TABLES:
            try:
                role_details = await asyncio.wait_for(
                    self.directory.get_role_record(profile["role"], auth_user.id),
                    timeout=self.settings.role_details_timeout_seconds,
                )
            except (asyncio.TimeoutError, DataAccessError) as e:
                logger.info("Role details not loaded for %s, using profile only: %s",
                            auth_user.id, getattr(e, "message", "timeout"))

        user = session_user_from(profile, role_details, auth_user.email)
        if auth_user.email:
            user.email = auth_user.email
        return user

    def _install_fallback(self, generation: int, auth_user, reason: str) -> None:
        if not self.settings.guessed_fallback_enabled:
            return
        if generation == self._generation and self.state == AuthState.AUTHENTICATED_WITH_FALLBACK:
            return

        role = guess_role_from_email(auth_user.email, self.settings.fallback_default_role)
        user = fallback_user(auth_user.id, auth_user.email, role)
        if self._set_state(generation, AuthState.AUTHENTICATED_WITH_FALLBACK, user):
            logger.warning("Using fallback user %s with guessed role %s (%s)", auth_user.id, role, reason)

    def _give_up(self, generation: int, auth_user, reason: str) -> None:
        if self.settings.guessed_fallback_enabled:
            self._install_fallback(generation, auth_user, reason)
        else:
            logger.error("Could not resolve user %s: %s", auth_user.id, reason)
            self._set_state(generation, AuthState.SIGNED_OUT, None)

    async def _supervise(self, generation: int, auth_user) -> None:
        fetch = asyncio.create_task(self._fetch_user(auth_user))
        fallback_after = self.settings.fallback_after_seconds
        deadline = self.settings.session_deadline_seconds

        try:
            done, _ = await asyncio.wait({fetch}, timeout=fallback_after)
            if not done:
                self._install_fallback(generation, auth_user, "profile still loading")
                done, _ = await asyncio.wait({fetch}, timeout=deadline - fallback_after)
        except asyncio.CancelledError:
            fetch.cancel()
            raise

        if not done:
            fetch.cancel()
            self._give_up(generation, auth_user, "Profile loading timeout")
            return

        exc = fetch.exception()
        if exc is not None:
            self._give_up(generation, auth_user, error_message(exc))
            return

        user = fetch.result()
        if user is None:
            self._give_up(generation, auth_user, "no profile found")
            return

        if self._set_state(generation, AuthState.AUTHENTICATED, user):
            logger.info("User profile loaded: %s (%s)", user.id, user.role)
