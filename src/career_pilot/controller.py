"""App controller - runs the side effects behind each view transition."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Callable

from career_pilot.clients.llm_client import LLMClient
from career_pilot.errors import (
    AuthenticationRequiredError,
    BackendError,
    CareerPilotError,
    ConfigurationError,
    GenerationTimeoutError,
    ParseError,
)
from career_pilot.logging.cost_calculator import calculate_cost
from career_pilot.logging.models import GenerationLog
from career_pilot.logging.usage_store import UsageStore
from career_pilot.models.report import Report
from career_pilot.models.session import SessionState, UserSession
from career_pilot.pipeline.progress import LOADING_STEPS, LoadingTicker
from career_pilot.pipeline.recommender import CareerRecommender
from career_pilot.state.session_store import SessionStore
from career_pilot.state.view import (
    AuthFailed,
    CancelGeneration,
    Event,
    GenerationFailed,
    GenerationSucceeded,
    LoadingTick,
    Page,
    ReportDeleted,
    ReportSaved,
    ReportsLoaded,
    SessionChanged,
    ShowToast,
    SignUpSucceeded,
    Submit,
    ViewState,
    transition,
)
from career_pilot.storage.report_repository import ReportRepository

logger = logging.getLogger(__name__)

StateListener = Callable[[ViewState], None]


def user_message(error: Exception) -> str:
    """Map an error from the generation call to text for the form."""
    if isinstance(error, (ConfigurationError, GenerationTimeoutError)):
        return str(error)
    if isinstance(error, ParseError):
        raw = error.raw_text.strip()
        if raw:
            return f"Failed to parse AI response. The response was: {raw[:500]}"
        return "Failed to parse AI response."
    if isinstance(error, BackendError):
        return str(error) or "Something went wrong. Please try again."
    return "Something went wrong. Please try again."


class AppController:
    """Owns the ViewState and performs the calls each event implies."""

    def __init__(
        self,
        sessions: SessionStore,
        recommender: CareerRecommender,
        reports: ReportRepository,
        *,
        usage_store: UsageStore | None = None,
        loading_interval: float = 1.2,
        timeout: float | None = 90,
        min_password_length: int = 6,
    ):
        self.sessions = sessions
        self.recommender = recommender
        self.reports = reports
        self.usage_store = usage_store
        self.loading_interval = loading_interval
        self.timeout = timeout
        self.min_password_length = min_password_length
        self.state = ViewState()
        self._listeners: list[StateListener] = []
        self._generation: asyncio.Task | None = None
        # the generation loop and the UI thread both dispatch
        self._lock = threading.RLock()
        sessions.add_listener(self._on_session_change)

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, event: Event) -> ViewState:
        with self._lock:
            new_state = transition(self.state, event)
            if new_state is not self.state:
                self.state = new_state
                for listener in list(self._listeners):
                    listener(new_state)
            return self.state

    def start(self) -> None:
        """Sync the view with the current auth session."""
        self.sessions.start()
        if self.state.session != self.sessions.state:
            self._on_session_change(self.sessions.state)

    # --- Session ---

    def _on_session_change(self, session: SessionState) -> None:
        self.dispatch(SessionChanged(session))
        if isinstance(session, UserSession):
            self.refresh_reports()

    def sign_in(self, email: str, password: str) -> None:
        try:
            self.sessions.sign_in(email, password)
        except BackendError as e:
            logger.warning("Login failed", exc_info=True)
            self.dispatch(AuthFailed(str(e) or "Login failed. Check your credentials."))

    def sign_up(self, name: str, email: str, password: str) -> None:
        if len(password) < self.min_password_length:
            self.dispatch(AuthFailed(
                f"Password must be at least {self.min_password_length} characters."
            ))
            return
        try:
            session = self.sessions.sign_up(email, password, name)
        except BackendError as e:
            logger.warning("Sign up failed", exc_info=True)
            self.dispatch(AuthFailed(str(e) or "Sign up failed. Please try again."))
            return
        if session is None:
            self.dispatch(SignUpSucceeded())

    def provider_sign_in_url(self, provider: str, redirect_to: str) -> str | None:
        try:
            return self.sessions.sign_in_with_provider(provider, redirect_to)
        except BackendError as e:
            logger.warning("OAuth sign-in failed", exc_info=True)
            self.dispatch(AuthFailed(str(e)))
            return None

    def complete_provider_sign_in(self, auth_code: str) -> None:
        try:
            self.sessions.complete_provider_sign_in(auth_code)
        except BackendError as e:
            logger.warning("OAuth code exchange failed", exc_info=True)
            self.dispatch(AuthFailed(str(e)))

    def sign_out(self) -> None:
        self.sessions.sign_out()

    # --- Generation ---

    def submit(self) -> ViewState:
        return self.dispatch(Submit())

    async def run_generation(self) -> ViewState:
        """Run the LLM call for the pending submission, if any.

        The loading ticker lives exactly as long as the call. The attempt is
        logged and its outcome dispatched even when a listener raises out of
        the ticker. Results that arrive after the user left the Loading page
        are dropped by the view transition.
        """
        state = self.state
        if state.page is not Page.LOADING or self._generation is not None:
            return state
        user = state.user
        generation_id = state.generation_id
        started = time.monotonic()

        def _tick(_index: int) -> None:
            self.dispatch(LoadingTick(generation_id))

        task = asyncio.ensure_future(self.recommender.generate(state.draft))
        self._generation = task
        finished: set | None = None
        try:
            async with LoadingTicker(len(LOADING_STEPS), self.loading_interval, on_tick=_tick):
                finished, _ = await asyncio.wait({task}, timeout=self.timeout)
        finally:
            if not task.done():
                task.cancel()
            self._generation = None
            self._finish_generation(task, finished, user, generation_id, started)
        return self.state

    def _finish_generation(
        self,
        task: asyncio.Future,
        finished: set | None,
        user: UserSession | None,
        generation_id: int,
        started: float,
    ) -> None:
        error: Exception | None = None
        careers = []
        # finished is None when the wait itself was interrupted
        cancelled = finished is None or (task.done() and task.cancelled())
        if cancelled:
            logger.info("Generation %d cancelled", generation_id)
        elif not finished:
            error = GenerationTimeoutError(
                f"The AI service did not respond within {self.timeout:g} seconds. "
                "Please try again."
            )
        elif task.exception() is not None:
            error = task.exception()
        else:
            careers = task.result()

        self._record_usage(user, started, len(careers), error, cancelled=cancelled)

        if error is not None:
            if isinstance(error, CareerPilotError):
                logger.warning("Generation failed: %s", error)
            else:
                logger.error("Generation failed unexpectedly", exc_info=error)
            self.dispatch(GenerationFailed(generation_id, user_message(error)))
        elif not cancelled:
            self.dispatch(GenerationSucceeded(generation_id, tuple(careers)))

    def cancel_generation(self) -> ViewState:
        """Leave the Loading page and stop the running call.

        Safe to call from a thread other than the one running the event loop.
        """
        state = self.dispatch(CancelGeneration())
        task = self._generation
        if task is not None and not task.done():
            task.get_loop().call_soon_threadsafe(task.cancel)
        return state

    def _record_usage(
        self,
        user: UserSession | None,
        started: float,
        career_count: int,
        error: Exception | None,
        *,
        cancelled: bool = False,
    ) -> None:
        llm: LLMClient = self.recommender.llm
        summary = llm.get_token_summary()
        if self.usage_store is None:
            return
        if cancelled and error is None:
            error_kind = "Cancelled"
        else:
            error_kind = type(error).__name__ if error is not None else None
        try:
            self.usage_store.save_log(GenerationLog(
                user_id=user.user_id if user else "anonymous",
                model=self.recommender.model,
                elapsed_seconds=round(time.monotonic() - started, 2),
                input_tokens=summary["input"],
                output_tokens=summary["output"],
                career_count=career_count,
                estimated_cost_usd=calculate_cost(summary["calls"]),
                success=error_kind is None,
                error_kind=error_kind,
            ))
        except Exception:
            logger.exception("Failed to save usage log")

    # --- Reports ---

    def refresh_reports(self) -> None:
        """Reload saved reports; a failure shows an empty list."""
        try:
            reports = self.reports.list()
        except (BackendError, AuthenticationRequiredError):
            logger.exception("Error fetching reports")
            reports = []
        self.dispatch(ReportsLoaded(tuple(reports)))

    def save_report(self) -> None:
        state = self.state
        if state.user is None:
            self.dispatch(ShowToast("You must be logged in to save reports."))
            return
        if state.page is not Page.RESULTS or state.already_saved:
            return
        report = Report.from_results(state.user.user_id, state.draft, state.results)
        try:
            saved = self.reports.insert(report)
        except AuthenticationRequiredError:
            self.dispatch(ShowToast("You must be logged in to save reports."))
            return
        except BackendError:
            logger.exception("Error saving report")
            self.dispatch(ShowToast("Failed to save report. Please try again."))
            return
        self.dispatch(ReportSaved(saved))

    def delete_report(self, report_id: str) -> None:
        try:
            self.reports.delete(report_id)
        except (BackendError, AuthenticationRequiredError):
            logger.exception("Error deleting report")
            self.dispatch(ShowToast("Failed to delete report."))
            return
        self.dispatch(ReportDeleted(report_id))


