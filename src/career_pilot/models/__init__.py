"""Data models for the career recommendation workflow."""

from career_pilot.models.career import CareerRecommendation, RoadmapStep, SkillAnalysis
from career_pilot.models.profile import EDUCATION_LEVELS, WORK_STYLE_LABELS, Profile, WorkStyle
from career_pilot.models.report import Report, format_report_date
from career_pilot.models.session import (
    AnonymousSession,
    PendingSession,
    SessionState,
    UserSession,
    display_name_for,
)

__all__ = [
    "AnonymousSession",
    "CareerRecommendation",
    "EDUCATION_LEVELS",
    "PendingSession",
    "Profile",
    "Report",
    "RoadmapStep",
    "SessionState",
    "SkillAnalysis",
    "UserSession",
    "WORK_STYLE_LABELS",
    "WorkStyle",
    "display_name_for",
    "format_report_date",
]
