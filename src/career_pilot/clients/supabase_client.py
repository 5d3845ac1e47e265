"""Supabase wrappers for authentication and the reports table."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable

import httpx
from postgrest.exceptions import APIError
from supabase import AuthError, Client, ClientOptions, create_client

from career_pilot.errors import BackendError, ConfigurationError
from career_pilot.models.session import UserSession, display_name_for

logger = logging.getLogger(__name__)

REPORTS_TABLE = "reports"

_BACKEND_ERRORS = (APIError, AuthError, httpx.HTTPError)


def create_supabase_client(url: str | None = None, key: str | None = None) -> Client:
    """Create a Supabase client from arguments or SUPABASE_URL / SUPABASE_ANON_KEY."""
    url = url or os.environ.get("SUPABASE_URL")
    key = key or os.environ.get("SUPABASE_ANON_KEY")
    if not url or not key:
        raise ConfigurationError(
            "Supabase credentials required. Set SUPABASE_URL and SUPABASE_ANON_KEY."
        )
    # PKCE so the OAuth redirect carries a code the server side can exchange.
    return create_client(url, key, options=ClientOptions(flow_type="pkce"))


def to_user_session(session: Any) -> UserSession | None:
    """Map a supabase auth session (or None) to a UserSession."""
    if session is None or getattr(session, "user", None) is None:
        return None
    user = session.user
    metadata = dict(user.user_metadata or {})
    return UserSession(
        user_id=str(user.id),
        email=user.email or "",
        display_name=display_name_for(metadata, user.email),
        metadata=metadata,
    )


class SupabaseAuthService:
    """Auth operations on a Supabase client."""

    def __init__(self, client: Client):
        self.client = client

    def get_session(self) -> UserSession | None:
        try:
            session = self.client.auth.get_session()
        except _BACKEND_ERRORS as e:
            raise BackendError(f"Could not read session: {e}") from e
        return to_user_session(session)

    def subscribe(self, callback: Callable[[UserSession | None], None]) -> Callable[[], None]:
        def _on_change(event: str, session: Any) -> None:
            logger.debug("Auth event: %s", event)
            callback(to_user_session(session))

        subscription = self.client.auth.on_auth_state_change(_on_change)
        return subscription.unsubscribe

    def sign_up(self, email: str, password: str, display_name: str) -> UserSession | None:
        try:
            response = self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"full_name": display_name}},
            })
        except _BACKEND_ERRORS as e:
            raise BackendError(getattr(e, "message", None) or str(e)) from e
        return to_user_session(response.session)

    def sign_in(self, email: str, password: str) -> UserSession:
        try:
            response = self.client.auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except _BACKEND_ERRORS as e:
            raise BackendError(getattr(e, "message", None) or str(e)) from e
        session = to_user_session(response.session)
        if session is None:
            raise BackendError("Login failed. Check your credentials.")
        return session

    def sign_in_with_provider(self, provider: str, redirect_to: str) -> str:
        try:
            response = self.client.auth.sign_in_with_oauth({
                "provider": provider,
                "options": {"redirect_to": redirect_to},
            })
        except _BACKEND_ERRORS as e:
            raise BackendError(getattr(e, "message", None) or str(e)) from e
        return response.url

    def exchange_code(self, auth_code: str) -> UserSession:
        try:
            response = self.client.auth.exchange_code_for_session({"auth_code": auth_code})
        except _BACKEND_ERRORS as e:
            raise BackendError(getattr(e, "message", None) or str(e)) from e
        session = to_user_session(response.session)
        if session is None:
            raise BackendError("Sign-in could not be completed.")
        return session

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except _BACKEND_ERRORS as e:
            raise BackendError(f"Sign-out failed: {e}") from e


class SupabaseReportBackend:
    """Row operations on the `reports` table.

    Row level security already limits rows to the caller; the explicit
    user_id filters keep the queries correct under a service key too.
    """

    def __init__(self, client: Client, table: str = REPORTS_TABLE):
        self.client = client
        self.table = table

    def select_for_user(self, user_id: str) -> list[dict[str, Any]]:
        try:
            response = (
                self.client.table(self.table)
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
        except _BACKEND_ERRORS as e:
            logger.error("Fetching reports failed", exc_info=True)
            raise BackendError(f"Could not load reports: {e}") from e
        return list(response.data or [])

    def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self.client.table(self.table).insert(row).execute()
        except _BACKEND_ERRORS as e:
            logger.error("Saving report failed", exc_info=True)
            raise BackendError(f"Could not save report: {e}") from e
        if not response.data:
            raise BackendError("Could not save report: no row returned")
        return response.data[0]

    def delete(self, report_id: str, user_id: str) -> None:
        try:
            (
                self.client.table(self.table)
                .delete()
                .eq("id", report_id)
                .eq("user_id", user_id)
                .execute()
            )
        except _BACKEND_ERRORS as e:
            logger.error("Deleting report failed", exc_info=True)
            raise BackendError(f"Could not delete report: {e}") from e
