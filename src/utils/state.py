from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Set

import aiosqlite

import db.crud as crud
from db.auth import AuthClient, AuthEvent, Subscription
from db.errors import AuthError, MarketplaceError
from db.models import AuthSession, Identity, Role
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionState:
    """
    Snapshot of who is signed in, shared by screens.

    Fields:
      - identity: the authenticated account, or None when signed out
      - profile_id: profiles.id linked to the identity, None if not provisioned
      - role: "admin" | "vendor" | "user", None if no role row exists
      - loading: True until the first resolution has completed
    """

    identity: Optional[Identity] = None
    profile_id: Optional[str] = None
    role: Optional[Role] = None
    loading: bool = True


SIGNED_OUT = SessionState(loading=False)

SessionObserver = Callable[[SessionState], None]


class SessionManager:
    """
    Keeps the authoritative SessionState in step with the auth provider.

    Owned by the application: ``start()`` when the app mounts, ``close()`` when
    it goes away. Screens read ``state`` and react to changes through
    ``subscribe``. The sign-in/up/out helpers never touch the state directly;
    the resulting auth events do.
    """

    def __init__(self, auth: AuthClient) -> None:
        self.auth = auth
        self._state = SessionState()
        self._observers: List[SessionObserver] = []
        self._subscription: Optional[Subscription] = None
        self._pending: Set[asyncio.Task] = set()
        self._generation = 0
        self._closed = False

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    async def start(self) -> None:
        """Subscribe to auth changes, then resolve whatever session already exists."""
        self._subscription = self.auth.on_auth_state_change(self._handle_auth_change)
        try:
            await self.auth.initialize()
        except AuthError:
            _logger.exception("Could not load the current session")
            self._apply(SIGNED_OUT, self._generation)
            raise
        await self.settled()

    async def settled(self) -> None:
        """Wait until every scheduled resolution has been applied."""
        # resolutions are scheduled with call_soon, let them become tasks first
        await asyncio.sleep(0)
        while True:
            running = [task for task in self._pending if not task.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)

    def close(self) -> None:
        self._closed = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        self._observers.clear()

    # ---------------------------
    # Auth delegation
    # ---------------------------

    async def sign_in(self, email: str, password: str) -> None:
        await self.auth.sign_in_with_password(email.strip(), password)

    async def sign_up(
        self,
        email: str,
        password: str,
        name: str,
        role: Role,
        category_id: Optional[str] = None,
    ) -> None:
        await self.auth.sign_up(
            email.strip(),
            password,
            data={"name": name, "role": role, "category_id": category_id},
        )

    async def sign_out(self) -> None:
        await self.auth.sign_out()

    # ---------------------------
    # Resolution
    # ---------------------------

    def _handle_auth_change(
        self, event: AuthEvent, session: Optional[AuthSession]
    ) -> None:
        # Called while the auth client holds its lock. Lookups are pushed to
        # the next loop iteration so nothing here waits on that lock.
        if self._closed:
            return
        self._generation += 1
        generation = self._generation
        _logger.debug(f"{event} received (generation {generation})")
        if session is None:
            self._apply(SIGNED_OUT, generation)
            return
        loop = asyncio.get_running_loop()
        loop.call_soon(self._schedule_resolution, session.identity, generation)

    def _schedule_resolution(self, identity: Identity, generation: int) -> None:
        if self._closed:
            return
        task = asyncio.get_running_loop().create_task(
            self._resolve_and_apply(identity, generation)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def resolve(self, identity: Identity) -> SessionState:
        """Profile by identity, then role by profile. Never partially filled."""
        profile = await crud.get_profile_by_auth_id(identity.id)
        if profile is None:
            return SessionState(identity=identity, loading=False)
        role = await crud.get_role(profile.id)
        return SessionState(
            identity=identity, profile_id=profile.id, role=role, loading=False
        )

    async def _resolve_and_apply(self, identity: Identity, generation: int) -> None:
        try:
            state = await self.resolve(identity)
        except (aiosqlite.Error, MarketplaceError):
            _logger.exception(f"Could not resolve profile for {identity.email}")
            state = SessionState(identity=identity, loading=False)
        self._apply(state, generation)

    def _apply(self, state: SessionState, generation: int) -> None:
        if self._closed or generation != self._generation:
            return
        if state == self._state:
            return
        self._state = state
        _logger.info(
            f"session: {state.identity.email if state.identity else 'signed out'}"
            f" role={state.role}"
        )
        for observer in list(self._observers):
            observer(state)
