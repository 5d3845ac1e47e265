"""Page-level state machine.

All UI state lives in one frozen ``ViewState``. Every user action, backend
answer and timer tick is an event, and ``transition`` is the only place that
decides whether it is legal in the current state. Illegal or stale events
return the state unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from career_pilot.models.career import CareerRecommendation
from career_pilot.models.profile import Profile
from career_pilot.models.report import Report
from career_pilot.models.session import (
    AnonymousSession,
    PendingSession,
    SessionState,
    UserSession,
)
from career_pilot.pipeline.progress import LOADING_STEPS
from career_pilot.state.wizard import (
    WizardStep,
    can_submit,
    next_step,
    previous_step,
    update_draft,
)

logger = logging.getLogger(__name__)

SIGN_UP_SUCCESS = "Account created! Check your email to confirm, then log in."


class Page(str, Enum):
    HOME = "home"
    FORM = "form"
    LOADING = "loading"
    RESULTS = "results"
    SAVED = "saved"


class AuthMode(str, Enum):
    LOGIN = "login"
    SIGNUP = "signup"


@dataclass(frozen=True)
class AuthForm:
    mode: AuthMode = AuthMode.LOGIN
    error: str | None = None
    success: str | None = None


@dataclass(frozen=True)
class ViewState:
    session: SessionState = field(default_factory=PendingSession)
    auth: AuthForm = field(default_factory=AuthForm)
    page: Page = Page.HOME
    step: WizardStep = WizardStep.BACKGROUND
    draft: Profile = field(default_factory=Profile)
    results: tuple[CareerRecommendation, ...] = ()
    saved_reports: tuple[Report, ...] = ()
    selected_report: Report | None = None
    loading_step: int = 0
    generation_id: int = 0
    error: str | None = None
    toast: str | None = None

    @property
    def user(self) -> UserSession | None:
        return self.session if isinstance(self.session, UserSession) else None

    @property
    def already_saved(self) -> bool:
        return self.selected_report is not None


# --- Events ---


@dataclass(frozen=True)
class SessionChanged:
    session: SessionState


@dataclass(frozen=True)
class SwitchAuthMode:
    mode: AuthMode


@dataclass(frozen=True)
class AuthFailed:
    message: str


@dataclass(frozen=True)
class SignUpSucceeded:
    message: str = SIGN_UP_SUCCESS


@dataclass(frozen=True)
class StartAssessment:
    pass


@dataclass(frozen=True)
class UpdateDraft:
    changes: dict[str, Any]


@dataclass(frozen=True)
class NextStep:
    pass


@dataclass(frozen=True)
class PreviousStep:
    pass


@dataclass(frozen=True)
class CancelForm:
    pass


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class LoadingTick:
    generation_id: int


@dataclass(frozen=True)
class GenerationSucceeded:
    generation_id: int
    careers: tuple[CareerRecommendation, ...]


@dataclass(frozen=True)
class GenerationFailed:
    generation_id: int
    message: str


@dataclass(frozen=True)
class CancelGeneration:
    pass


@dataclass(frozen=True)
class GoHome:
    pass


@dataclass(frozen=True)
class OpenSaved:
    pass


@dataclass(frozen=True)
class ViewReport:
    report: Report


@dataclass(frozen=True)
class ReportsLoaded:
    reports: tuple[Report, ...]


@dataclass(frozen=True)
class ReportSaved:
    report: Report


@dataclass(frozen=True)
class ReportDeleted:
    report_id: str


@dataclass(frozen=True)
class ShowToast:
    message: str


@dataclass(frozen=True)
class DismissToast:
    pass


Event = Union[
    SessionChanged,
    SwitchAuthMode,
    AuthFailed,
    SignUpSucceeded,
    StartAssessment,
    UpdateDraft,
    NextStep,
    PreviousStep,
    CancelForm,
    Submit,
    LoadingTick,
    GenerationSucceeded,
    GenerationFailed,
    CancelGeneration,
    GoHome,
    OpenSaved,
    ViewReport,
    ReportsLoaded,
    ReportSaved,
    ReportDeleted,
    ShowToast,
    DismissToast,
]

# Events accepted while nobody is signed in.
_UNGATED = (SessionChanged, SwitchAuthMode, AuthFailed, SignUpSucceeded, ShowToast, DismissToast)


def transition(state: ViewState, event: Event) -> ViewState:
    """Apply one event to the view state."""
    if state.user is None and not isinstance(event, _UNGATED):
        logger.debug("Ignoring %s without a signed-in user", type(event).__name__)
        return state

    if isinstance(event, SessionChanged):
        return _session_changed(state, event.session)

    if isinstance(event, SwitchAuthMode):
        return replace(state, auth=AuthForm(mode=event.mode))
    if isinstance(event, AuthFailed):
        return replace(state, auth=replace(state.auth, error=event.message, success=None))
    if isinstance(event, SignUpSucceeded):
        return replace(state, auth=AuthForm(mode=AuthMode.LOGIN, success=event.message))

    if isinstance(event, StartAssessment):
        return replace(
            state,
            page=Page.FORM,
            step=WizardStep.BACKGROUND,
            draft=Profile(name=state.user.display_name),
            selected_report=None,
            error=None,
        )

    if isinstance(event, UpdateDraft):
        if state.page is not Page.FORM:
            return _ignored(state, event)
        return replace(state, draft=update_draft(state.draft, event.changes))
    if isinstance(event, NextStep):
        if state.page is not Page.FORM:
            return _ignored(state, event)
        return replace(state, step=next_step(state.draft, state.step))
    if isinstance(event, PreviousStep):
        if state.page is not Page.FORM:
            return _ignored(state, event)
        return replace(state, step=previous_step(state.step))
    if isinstance(event, CancelForm):
        if state.page is not Page.FORM:
            return _ignored(state, event)
        return replace(state, page=Page.HOME, step=WizardStep.BACKGROUND, error=None)

    if isinstance(event, Submit):
        if state.page is not Page.FORM or not can_submit(state.draft, state.step):
            return _ignored(state, event)
        return replace(
            state,
            page=Page.LOADING,
            loading_step=0,
            generation_id=state.generation_id + 1,
            error=None,
        )
    if isinstance(event, LoadingTick):
        if not _is_current(state, event.generation_id):
            return state
        last = len(LOADING_STEPS) - 1
        return replace(state, loading_step=min(state.loading_step + 1, last))
    if isinstance(event, GenerationSucceeded):
        if not _is_current(state, event.generation_id):
            logger.info("Discarding stale generation result %d", event.generation_id)
            return state
        return replace(
            state,
            page=Page.RESULTS,
            results=tuple(event.careers),
            selected_report=None,
            loading_step=0,
        )
    if isinstance(event, GenerationFailed):
        if not _is_current(state, event.generation_id):
            logger.info("Discarding stale generation failure %d", event.generation_id)
            return state
        return replace(
            state,
            page=Page.FORM,
            step=WizardStep.PREFERENCES,
            loading_step=0,
            error=event.message,
        )
    if isinstance(event, CancelGeneration):
        if state.page is not Page.LOADING:
            return _ignored(state, event)
        return replace(
            state,
            page=Page.FORM,
            step=WizardStep.PREFERENCES,
            loading_step=0,
            generation_id=state.generation_id + 1,
        )

    if isinstance(event, GoHome):
        return replace(
            state,
            page=Page.HOME,
            step=WizardStep.BACKGROUND,
            selected_report=None,
            error=None,
        )
    if isinstance(event, OpenSaved):
        return replace(state, page=Page.SAVED, selected_report=None, error=None)
    if isinstance(event, ViewReport):
        return replace(
            state,
            page=Page.RESULTS,
            selected_report=event.report,
            results=event.report.careers,
        )

    if isinstance(event, ReportsLoaded):
        return replace(state, saved_reports=tuple(event.reports))
    if isinstance(event, ReportSaved):
        selected = event.report if state.page is Page.RESULTS else state.selected_report
        return replace(
            state,
            saved_reports=(event.report, *state.saved_reports),
            selected_report=selected,
            toast="Report saved successfully!",
        )
    if isinstance(event, ReportDeleted):
        selected = state.selected_report
        if selected is not None and selected.id == event.report_id:
            selected = None
        return replace(
            state,
            saved_reports=tuple(r for r in state.saved_reports if r.id != event.report_id),
            selected_report=selected,
            toast="Report deleted.",
        )

    if isinstance(event, ShowToast):
        return replace(state, toast=event.message)
    if isinstance(event, DismissToast):
        return replace(state, toast=None)

    raise TypeError(f"Unhandled event: {event!r}")


def _session_changed(state: ViewState, session: SessionState) -> ViewState:
    if isinstance(session, UserSession):
        previous = state.user
        if previous is not None and previous.user_id != session.user_id:
            state = _signed_out(state)
        draft = state.draft
        if not draft.name.strip() and session.display_name:
            draft = update_draft(draft, {"name": session.display_name})
        return replace(state, session=session, draft=draft, auth=AuthForm())
    if isinstance(session, AnonymousSession):
        return replace(_signed_out(state), session=session)
    if isinstance(session, PendingSession):
        return replace(state, session=session)
    raise TypeError(f"Unknown session state: {session!r}")


def _signed_out(state: ViewState) -> ViewState:
    """Drop everything that belonged to the previous user."""
    return ViewState(
        session=state.session,
        auth=state.auth,
        generation_id=state.generation_id,
    )


def _is_current(state: ViewState, generation_id: int) -> bool:
    return state.page is Page.LOADING and generation_id == state.generation_id


def _ignored(state: ViewState, event: Event) -> ViewState:
    logger.debug("Ignoring %s on page %s", type(event).__name__, state.page.value)
    return state
