"""Tri-state session variants observed from the auth backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class PendingSession:
    """The auth backend has not answered yet."""


@dataclass(frozen=True)
class AnonymousSession:
    """No user is signed in."""


@dataclass(frozen=True)
class UserSession:
    user_id: str
    email: str = ""
    display_name: str = ""
    metadata: dict = field(default_factory=dict, compare=False, hash=False)


SessionState = Union[PendingSession, AnonymousSession, UserSession]


def display_name_for(metadata: dict | None, email: str | None) -> str:
    """Prefer the profile's full name, falling back to the email local part."""
    full_name = (metadata or {}).get("full_name")
    if full_name:
        return full_name
    if email:
        return email.split("@")[0]
    return ""
