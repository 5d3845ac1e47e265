"""Pydantic model for the assessment profile draft."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class WorkStyle(str, Enum):
    REMOTE = "remote"
    OFFICE = "office"
    CREATIVE = "creative"
    ANALYTICAL = "analytical"
    STARTUP = "startup"


WORK_STYLE_LABELS: dict[WorkStyle, tuple[str, str]] = {
    WorkStyle.REMOTE: ("Remote", "🌍"),
    WorkStyle.OFFICE: ("In-Office", "🏢"),
    WorkStyle.CREATIVE: ("Creative", "🎨"),
    WorkStyle.ANALYTICAL: ("Analytical", "🔍"),
    WorkStyle.STARTUP: ("Startup", "🚀"),
}

EDUCATION_LEVELS: list[str] = [
    "High School",
    "Associate Degree",
    "Bachelor's Degree",
    "Master's Degree",
    "PhD",
    "Self-Taught / Bootcamp",
]


class Profile(BaseModel):
    name: str = ""
    education: str = ""
    skills: str = ""  # comma-separated free text
    interests: str = ""
    work_style: WorkStyle = Field(default=WorkStyle.REMOTE, alias="workStyle")
    goal: str = ""

    model_config = {"populate_by_name": True, "frozen": True}
