"""Pydantic model for a saved career report."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from career_pilot.models.career import CareerRecommendation
from career_pilot.models.profile import Profile


def format_report_date(day: date) -> str:
    """Human label for a report date, e.g. '17 Oct 2026'."""
    return f"{day.day} {day.strftime('%b %Y')}"


class Report(BaseModel):
    id: str | None = None  # assigned by the backend
    user_id: str
    created_at: datetime | None = None  # assigned by the backend
    date: str
    name: str = ""
    education: str = ""
    careers: tuple[CareerRecommendation, ...] = ()
    profile_snapshot: Profile = Field(default_factory=Profile, alias="user_profile")

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return None if v is None else str(v)

    @field_validator("profile_snapshot", mode="before")
    @classmethod
    def _snapshot_default(cls, v):
        return {} if v is None else v

    @classmethod
    def from_results(
        cls,
        user_id: str,
        profile: Profile,
        careers: list[CareerRecommendation] | tuple[CareerRecommendation, ...],
        today: date | None = None,
    ) -> Report:
        """Snapshot the current profile and results into an unsaved report."""
        return cls(
            user_id=user_id,
            date=format_report_date(today or date.today()),
            name=profile.name,
            education=profile.education,
            careers=tuple(careers),
            profile_snapshot=profile,
        )

    @property
    def title(self) -> str:
        return f"{self.name}'s Report" if self.name else "Career Report"

    def to_row(self) -> dict[str, Any]:
        """Column mapping for the `reports` table (server fields omitted)."""
        return {
            "user_id": self.user_id,
            "date": self.date,
            "name": self.name,
            "education": self.education,
            "careers": [c.model_dump(mode="json", by_alias=True) for c in self.careers],
            "user_profile": self.profile_snapshot.model_dump(mode="json", by_alias=True),
        }
