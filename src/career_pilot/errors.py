"""Error taxonomy shared by the clients, repository and controller."""

from __future__ import annotations


class CareerPilotError(Exception):
    """Base class for all application errors."""


class ConfigurationError(CareerPilotError):
    """A required credential or setting is missing."""


class BackendError(CareerPilotError):
    """A remote service (LLM or Supabase) failed."""


class GenerationTimeoutError(BackendError):
    """The LLM did not answer within the configured timeout."""


class ParseError(CareerPilotError):
    """The LLM response was not in the expected shape."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class AuthenticationRequiredError(CareerPilotError):
    """A user-scoped operation was attempted without a signed-in session."""
