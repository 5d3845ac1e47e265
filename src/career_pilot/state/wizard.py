"""Three-step profile wizard: step validity and linear navigation."""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from career_pilot.models.profile import Profile


class WizardStep(IntEnum):
    BACKGROUND = 1
    SKILLS = 2
    PREFERENCES = 3


STEP_TITLES: dict[WizardStep, str] = {
    WizardStep.BACKGROUND: "Your Background",
    WizardStep.SKILLS: "Skills & Interests",
    WizardStep.PREFERENCES: "Work Preferences",
}

REQUIRED_FIELDS: dict[WizardStep, tuple[str, ...]] = {
    WizardStep.BACKGROUND: ("name", "education"),
    WizardStep.SKILLS: ("skills", "interests"),
    WizardStep.PREFERENCES: (),
}


def missing_fields(profile: Profile, step: WizardStep) -> list[str]:
    """Required fields of `step` that are blank in `profile`."""
    return [f for f in REQUIRED_FIELDS[step] if not str(getattr(profile, f)).strip()]


def can_advance(profile: Profile, step: WizardStep) -> bool:
    return step < WizardStep.PREFERENCES and not missing_fields(profile, step)


def can_submit(profile: Profile, step: WizardStep) -> bool:
    if step != WizardStep.PREFERENCES:
        return False
    return all(not missing_fields(profile, s) for s in WizardStep)


def next_step(profile: Profile, step: WizardStep) -> WizardStep:
    """The following step, or `step` itself when the move is blocked."""
    if not can_advance(profile, step):
        return step
    return WizardStep(step + 1)


def previous_step(step: WizardStep) -> WizardStep:
    return WizardStep(max(step - 1, WizardStep.BACKGROUND))


def update_draft(profile: Profile, changes: dict[str, Any]) -> Profile:
    """Return a validated copy of `profile` with `changes` applied."""
    return Profile.model_validate({**profile.model_dump(), **changes})
