"""Report repository: CRUD over the `reports` table scoped to the signed-in user."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from pydantic import ValidationError

from career_pilot.errors import AuthenticationRequiredError, BackendError
from career_pilot.models.report import Report
from career_pilot.models.session import UserSession
from career_pilot.state.session_store import SessionStore

logger = logging.getLogger(__name__)


class ReportBackend(Protocol):
    """Row operations on the reports table."""

    def select_for_user(self, user_id: str) -> list[dict[str, Any]]: ...

    def insert(self, row: dict[str, Any]) -> dict[str, Any]: ...

    def delete(self, report_id: str, user_id: str) -> None: ...


class ReportRepository:
    """User-scoped report CRUD.

    Every operation requires a signed-in session; without one it raises
    AuthenticationRequiredError before touching the backend.
    """

    def __init__(self, backend: ReportBackend, sessions: SessionStore):
        self.backend = backend
        self.sessions = sessions

    def _require_user(self) -> UserSession:
        user = self.sessions.current_user
        if user is None:
            raise AuthenticationRequiredError("You must be logged in to manage reports.")
        return user

    def list(self) -> list[Report]:
        """All reports of the current user, newest first."""
        user = self._require_user()
        rows = self.backend.select_for_user(user.user_id)
        reports = [self._row_to_report(row) for row in rows]
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        reports.sort(key=lambda r: _as_utc(r.created_at) or oldest, reverse=True)
        return reports

    def insert(self, report: Report) -> Report:
        """Persist a new report and return it with server-assigned fields."""
        user = self._require_user()
        if report.user_id != user.user_id:
            raise AuthenticationRequiredError("Cannot save a report for another user.")
        row = self.backend.insert(report.to_row())
        saved = self._row_to_report(row)
        logger.info("Saved report %s (%d careers)", saved.id, len(saved.careers))
        return saved

    def delete(self, report_id: str) -> None:
        user = self._require_user()
        self.backend.delete(report_id, user.user_id)
        logger.info("Deleted report %s", report_id)

    @staticmethod
    def _row_to_report(row: dict[str, Any]) -> Report:
        try:
            return Report.model_validate(row)
        except ValidationError as e:
            raise BackendError(f"Malformed report row: {e}") from e


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
