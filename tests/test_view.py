"""Tests for the page state machine."""

from dataclasses import replace

import pytest

from career_pilot.models.career import CareerRecommendation
from career_pilot.models.profile import Profile
from career_pilot.models.report import Report
from career_pilot.models.session import AnonymousSession, PendingSession, UserSession
from career_pilot.pipeline.progress import LOADING_STEPS
from career_pilot.state.view import (
    AuthFailed,
    AuthMode,
    CancelForm,
    CancelGeneration,
    DismissToast,
    GenerationFailed,
    GenerationSucceeded,
    GoHome,
    LoadingTick,
    NextStep,
    OpenSaved,
    Page,
    PreviousStep,
    ReportDeleted,
    ReportSaved,
    ReportsLoaded,
    SessionChanged,
    ShowToast,
    SignUpSucceeded,
    StartAssessment,
    Submit,
    SwitchAuthMode,
    UpdateDraft,
    ViewReport,
    ViewState,
    transition,
)
from career_pilot.state.wizard import WizardStep

USER = UserSession(user_id="user-1", email="alex@example.com", display_name="alex")
CAREER = CareerRecommendation(title="Data Analyst", matchScore=88)


def _report(report_id: str, name: str = "Alex") -> Report:
    return Report(id=report_id, user_id="user-1", date="17 Oct 2026", name=name, careers=(CAREER,))


def _run(state, *events):
    for event in events:
        state = transition(state, event)
    return state


@pytest.fixture
def signed_in() -> ViewState:
    return transition(ViewState(), SessionChanged(USER))


@pytest.fixture
def at_step3(signed_in) -> ViewState:
    return _run(
        signed_in,
        StartAssessment(),
        UpdateDraft({"name": "Alex", "education": "PhD"}),
        NextStep(),
        UpdateDraft({"skills": "Python", "interests": "data"}),
        NextStep(),
    )


@pytest.fixture
def loading(at_step3) -> ViewState:
    return transition(at_step3, Submit())


class TestSessionGate:
    def test_initial_state_pending(self):
        state = ViewState()
        assert isinstance(state.session, PendingSession)
        assert state.page is Page.HOME

    def test_events_ignored_without_user(self):
        state = transition(ViewState(), SessionChanged(AnonymousSession()))
        assert transition(state, StartAssessment()) is state
        assert transition(state, OpenSaved()) is state

    def test_sign_in_prefills_empty_name(self, signed_in):
        assert signed_in.user == USER
        assert signed_in.draft.name == "alex"

    def test_sign_in_keeps_typed_name(self):
        state = replace(ViewState(), draft=Profile(name="Sam"))
        state = transition(state, SessionChanged(USER))
        assert state.draft.name == "Sam"

    def test_sign_out_clears_cache_and_returns_home(self, signed_in):
        state = _run(
            signed_in,
            ReportsLoaded((_report("1"), _report("2"))),
            OpenSaved(),
            ViewReport(_report("1")),
        )
        assert state.page is Page.RESULTS

        state = transition(state, SessionChanged(AnonymousSession()))
        assert state.page is Page.HOME
        assert state.saved_reports == ()
        assert state.results == ()
        assert state.selected_report is None
        assert state.user is None

    def test_switching_user_drops_previous_cache(self, signed_in):
        state = transition(signed_in, ReportsLoaded((_report("1"),)))
        other = UserSession(user_id="user-2", email="sam@example.com", display_name="sam")
        state = transition(state, SessionChanged(other))
        assert state.saved_reports == ()
        assert state.draft.name == "sam"


class TestAuthForm:
    def test_switch_mode_clears_messages(self):
        state = _run(ViewState(), AuthFailed("bad password"), SwitchAuthMode(AuthMode.SIGNUP))
        assert state.auth.mode is AuthMode.SIGNUP
        assert state.auth.error is None

    def test_sign_up_success_switches_to_login(self):
        state = _run(ViewState(), SwitchAuthMode(AuthMode.SIGNUP), SignUpSucceeded())
        assert state.auth.mode is AuthMode.LOGIN
        assert state.auth.success.startswith("Account created!")

    def test_failures_can_be_resubmitted(self):
        state = _run(ViewState(), AuthFailed("first"), AuthFailed("second"))
        assert state.auth.error == "second"


class TestWizardFlow:
    def test_start_resets_draft_with_display_name(self, signed_in):
        state = _run(signed_in, StartAssessment(), UpdateDraft({"skills": "Go"}), GoHome(), StartAssessment())
        assert state.page is Page.FORM
        assert state.step is WizardStep.BACKGROUND
        assert state.draft == Profile(name="alex")

    def test_next_blocked_until_step_filled(self, signed_in):
        state = _run(signed_in, StartAssessment(), UpdateDraft({"education": ""}), NextStep())
        assert state.step is WizardStep.BACKGROUND

    def test_back_keeps_data(self, at_step3):
        state = _run(at_step3, PreviousStep(), PreviousStep(), PreviousStep())
        assert state.step is WizardStep.BACKGROUND
        assert state.draft.skills == "Python"

    def test_cancel_returns_home_at_step1(self, at_step3):
        state = transition(at_step3, CancelForm())
        assert state.page is Page.HOME
        assert state.step is WizardStep.BACKGROUND

    def test_submit_only_from_step3(self, signed_in):
        state = _run(signed_in, StartAssessment(), UpdateDraft({"name": "A", "education": "PhD"}), NextStep())
        assert transition(state, Submit()) is state

    def test_update_ignored_outside_form(self, signed_in):
        assert transition(signed_in, UpdateDraft({"name": "X"})) is signed_in


class TestGeneration:
    def test_submit_enters_loading(self, at_step3, loading):
        assert loading.page is Page.LOADING
        assert loading.loading_step == 0
        assert loading.generation_id == at_step3.generation_id + 1

    def test_success_shows_results(self, loading):
        state = transition(loading, GenerationSucceeded(loading.generation_id, (CAREER,)))
        assert state.page is Page.RESULTS
        assert state.results == (CAREER,)
        assert not state.already_saved

    def test_failure_returns_to_step3_with_error(self, loading):
        state = transition(loading, GenerationFailed(loading.generation_id, "boom"))
        assert state.page is Page.FORM
        assert state.step is WizardStep.PREFERENCES
        assert state.error == "boom"
        assert state.draft == loading.draft

    def test_tick_capped_at_last_step(self, loading):
        state = loading
        for _ in range(len(LOADING_STEPS) * 3):
            state = transition(state, LoadingTick(loading.generation_id))
        assert state.loading_step == len(LOADING_STEPS) - 1

    def test_stale_result_discarded_after_navigation(self, loading):
        state = transition(loading, GoHome())
        assert transition(state, GenerationSucceeded(loading.generation_id, (CAREER,))) is state

    def test_result_from_old_generation_discarded(self, loading):
        assert transition(loading, GenerationSucceeded(loading.generation_id - 1, (CAREER,))) is loading
        assert transition(loading, LoadingTick(loading.generation_id - 1)) is loading

    def test_cancel_generation(self, loading):
        state = transition(loading, CancelGeneration())
        assert state.page is Page.FORM
        assert state.step is WizardStep.PREFERENCES
        assert transition(state, GenerationSucceeded(loading.generation_id, (CAREER,))) is state

    def test_resubmit_clears_error(self, loading):
        state = _run(loading, GenerationFailed(loading.generation_id, "boom"), Submit())
        assert state.page is Page.LOADING
        assert state.error is None


class TestReports:
    def test_view_saved_report_marks_already_saved(self, signed_in):
        report = _report("7")
        state = _run(signed_in, OpenSaved(), ViewReport(report))
        assert state.page is Page.RESULTS
        assert state.results == report.careers
        assert state.already_saved

    def test_open_saved_clears_selection(self, signed_in):
        state = _run(signed_in, ViewReport(_report("7")), OpenSaved())
        assert state.page is Page.SAVED
        assert state.selected_report is None

    def test_saved_report_prepended(self, loading):
        state = _run(
            loading,
            ReportsLoaded((_report("1"),)),
            GenerationSucceeded(loading.generation_id, (CAREER,)),
            ReportSaved(_report("2")),
        )
        assert [r.id for r in state.saved_reports] == ["2", "1"]
        assert state.already_saved
        assert state.toast == "Report saved successfully!"

    def test_delete_selected_clears_selection(self, signed_in):
        state = _run(signed_in, ReportsLoaded((_report("1"), _report("2"))), ViewReport(_report("1")))
        state = transition(state, ReportDeleted("1"))
        assert state.selected_report is None
        assert [r.id for r in state.saved_reports] == ["2"]

    def test_delete_other_keeps_selection(self, signed_in):
        state = _run(signed_in, ReportsLoaded((_report("1"), _report("2"))), ViewReport(_report("1")))
        state = transition(state, ReportDeleted("2"))
        assert state.selected_report.id == "1"

    def test_toast_lifecycle(self, signed_in):
        state = transition(signed_in, ShowToast("hello"))
        assert state.toast == "hello"
        assert transition(state, DismissToast()).toast is None


def test_unknown_event_rejected(signed_in):
    with pytest.raises(TypeError):
        transition(signed_in, object())
