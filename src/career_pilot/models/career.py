"""Pydantic models for LLM career recommendations."""

from __future__ import annotations

import math
import uuid

from pydantic import BaseModel, Field, field_validator


def _skill_names(value) -> list[str]:
    """Normalize an LLM skill list: strip, drop blanks and repeats, keep order.

    A bare string is one skill name, not a sequence of characters.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"expected a list of skill names, got {type(value).__name__}")
    seen: set[str] = set()
    result = []
    for v in value:
        if not isinstance(v, (str, int, float)) or isinstance(v, bool):
            raise ValueError(f"expected a skill name, got {type(v).__name__}")
        v = str(v).strip()
        if v and v not in seen:
            seen.add(v)
            result.append(v)
    return result


def _score(value) -> int:
    """Round a match score into 0-100. Missing means 0."""
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"expected a number, got {type(value).__name__}")
    try:
        number = float(value)
    except (ValueError, OverflowError):
        raise ValueError(f"expected a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"expected a finite number, got {value!r}")
    return max(0, min(100, round(number)))


class SkillAnalysis(BaseModel):
    required: list[str] = []
    matching: list[str] = []  # skills the user already has
    missing: list[str] = []  # skills to acquire

    model_config = {"frozen": True}

    @field_validator("required", "matching", "missing", mode="before")
    @classmethod
    def _unique_names(cls, v):
        return _skill_names(v)


class RoadmapStep(BaseModel):
    title: str
    focus: str = ""

    model_config = {"frozen": True}


class CareerRecommendation(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    category: str | None = None
    match_score: int = Field(default=0, alias="matchScore")  # 0-100
    reason: str = ""
    analysis: SkillAnalysis = Field(default_factory=SkillAnalysis)
    roadmap: list[RoadmapStep] = []

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        if isinstance(v, bool) or not isinstance(v, (str, int)):
            raise ValueError(f"expected a string id, got {type(v).__name__}")
        return str(v)

    @field_validator("match_score", mode="before")
    @classmethod
    def _clamp_score(cls, v):
        return _score(v)

    @field_validator("analysis", mode="before")
    @classmethod
    def _analysis_default(cls, v):
        return {} if v is None else v

    @field_validator("roadmap", mode="before")
    @classmethod
    def _roadmap_default(cls, v):
        return [] if v is None else v
