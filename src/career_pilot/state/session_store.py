"""Session store: tri-state view of the external auth service."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from career_pilot.errors import BackendError
from career_pilot.models.session import (
    AnonymousSession,
    PendingSession,
    SessionState,
    UserSession,
)

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionState], None]


class AuthService(Protocol):
    """Operations consumed from the auth backend."""

    def get_session(self) -> UserSession | None: ...

    def subscribe(self, callback: Callable[[UserSession | None], None]) -> Callable[[], None]: ...

    def sign_up(self, email: str, password: str, display_name: str) -> UserSession | None: ...

    def sign_in(self, email: str, password: str) -> UserSession: ...

    def sign_in_with_provider(self, provider: str, redirect_to: str) -> str: ...

    def exchange_code(self, auth_code: str) -> UserSession: ...

    def sign_out(self) -> None: ...


class SessionStore:
    """Tracks the current session and notifies listeners on transitions."""

    def __init__(self, auth: AuthService):
        self.auth = auth
        self._state: SessionState = PendingSession()
        self._listeners: list[SessionListener] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_user(self) -> UserSession | None:
        return self._state if isinstance(self._state, UserSession) else None

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        """Query the current session once and subscribe to changes."""
        if self._unsubscribe is not None:
            return
        try:
            current = self.auth.get_session()
        except BackendError:
            logger.warning("Could not restore session", exc_info=True)
            current = None
        self._unsubscribe = self.auth.subscribe(self._apply)
        self._apply(current)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def sign_in(self, email: str, password: str) -> UserSession:
        session = self.auth.sign_in(email, password)
        self._apply(session)
        return session

    def sign_up(self, email: str, password: str, display_name: str) -> UserSession | None:
        """Create an account. Returns a session only when no email confirmation is required."""
        session = self.auth.sign_up(email, password, display_name)
        if session is not None:
            self._apply(session)
        return session

    def sign_in_with_provider(self, provider: str, redirect_to: str) -> str:
        return self.auth.sign_in_with_provider(provider, redirect_to)

    def complete_provider_sign_in(self, auth_code: str) -> UserSession:
        session = self.auth.exchange_code(auth_code)
        self._apply(session)
        return session

    def sign_out(self) -> None:
        try:
            self.auth.sign_out()
        except BackendError:
            logger.warning("Sign-out request failed, clearing local session", exc_info=True)
        self._apply(None)

    def _apply(self, session: UserSession | None) -> None:
        new_state: SessionState = session if session is not None else AnonymousSession()
        if new_state == self._state:
            return
        logger.debug("Session changed: %s", type(new_state).__name__)
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
