"""
Local auth provider: password sign-in, sign-up with profile provisioning,
persisted sessions and an auth-state-change subscription.

Every operation runs under one ``asyncio.Lock`` and listeners are notified
while that lock is held. A listener must therefore never await another auth
call from inside its callback; it has to schedule that work for later.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Union

import aiosqlite

import db.crud as crud
from db.errors import AuthError, WriteFailure
from db.models import ROLES, AuthSession, Identity
from utils.config import get_settings
from utils.logger import get_logger
from utils.security import PasswordHasher

_logger = get_logger(__name__)

AuthEvent = Literal["INITIAL_SESSION", "SIGNED_IN", "SIGNED_OUT"]
AuthCallback = Callable[
    [AuthEvent, Optional[AuthSession]], Union[None, Awaitable[None]]
]


class Subscription:
    """Handle returned by ``on_auth_state_change``."""

    def __init__(self, client: "AuthClient", callback: AuthCallback) -> None:
        self._client = client
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._client._remove(self)


class AuthClient:
    def __init__(
        self,
        hasher: Optional[PasswordHasher] = None,
        min_password_length: Optional[int] = None,
    ) -> None:
        self._hasher = hasher or PasswordHasher()
        self._min_password_length = (
            min_password_length
            if min_password_length is not None
            else get_settings().min_password_length
        )
        self._lock = asyncio.Lock()
        self._subscriptions: List[Subscription] = []

    # ---------------------------
    # Subscriptions
    # ---------------------------

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def _notify(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        # caller holds self._lock
        _logger.debug(f"auth event {event} -> {len(self._subscriptions)} listener(s)")
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            result = subscription.callback(event, session)
            if inspect.isawaitable(result):
                await result

    # ---------------------------
    # Operations
    # ---------------------------

    async def get_session(self) -> Optional[AuthSession]:
        async with self._lock:
            return await self._load_session()

    async def initialize(self) -> Optional[AuthSession]:
        """Load the persisted session and announce it as INITIAL_SESSION."""
        async with self._lock:
            session = await self._load_session()
            await self._notify("INITIAL_SESSION", session)
            return session

    async def _load_session(self) -> Optional[AuthSession]:
        try:
            return await crud.get_current_session()
        except aiosqlite.Error as exc:
            raise AuthError("Could not reach the auth store", "network_failure") from exc

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        async with self._lock:
            try:
                credentials = await crud.get_credentials(email)
                if credentials is None or not self._hasher.verify(
                    password, credentials[1]
                ):
                    _logger.info(f"Rejected sign-in for {email.strip()}")
                    raise AuthError("Invalid login credentials", "invalid_credentials")
                identity = credentials[0]
                await crud.end_auth_sessions()
                session = await crud.create_auth_session(identity)
            except (aiosqlite.Error, WriteFailure) as exc:
                raise AuthError("Could not reach the auth store", "network_failure") from exc

            _logger.info(f"Signed in {identity.email}")
            await self._notify("SIGNED_IN", session)
            return session

    async def sign_up(
        self, email: str, password: str, data: Optional[Dict[str, Any]] = None
    ) -> Identity:
        """
        Create an account. ``data`` carries the provisioning metadata
        (name, role, category_id) applied to the new profile. Signing up does
        not sign the account in.
        """
        data = dict(data or {})
        role = data.setdefault("role", "user")
        if role not in ROLES:
            raise AuthError(f"Unknown role: {role}", "invalid_role")
        if len(password or "") < self._min_password_length:
            raise AuthError(
                f"Password should be at least {self._min_password_length} characters",
                "weak_password",
            )

        async with self._lock:
            try:
                if not await crud.email_available(email):
                    raise AuthError("User already registered", "user_already_exists")
                password_hash = self._hasher.hash(password)
                return await crud.register_identity(email, password_hash, data)
            except WriteFailure as exc:
                raise AuthError("Signup failed", "signup_failed") from exc
            except aiosqlite.Error as exc:
                raise AuthError("Could not reach the auth store", "network_failure") from exc

    async def sign_out(self) -> None:
        async with self._lock:
            try:
                await crud.end_auth_sessions()
            except WriteFailure as exc:
                raise AuthError("Could not reach the auth store", "network_failure") from exc
            _logger.info("Signed out")
            await self._notify("SIGNED_OUT", None)

    async def ensure_account(
        self, email: str, password: str, data: Dict[str, Any]
    ) -> Optional[Identity]:
        """Create the account unless the email is already registered."""
        async with self._lock:
            try:
                available = await crud.email_available(email)
            except aiosqlite.Error as exc:
                raise AuthError("Could not reach the auth store", "network_failure") from exc
        if not available:
            return None
        return await self.sign_up(email, password, data)
