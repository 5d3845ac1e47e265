"""Streamlit Web UI for CareerPilot AI.

Pages (after sign-in):
  Home    : welcome + start button
  Form    : three-step profile wizard
  Loading : cosmetic progress while the LLM answers
  Results : career cards with skill gaps and a 6-month roadmap
  Saved   : the user's saved reports

Every widget forwards to AppController; pages render only from its ViewState.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading

logger = logging.getLogger(__name__)

import streamlit as st
from dotenv import load_dotenv

load_dotenv()

# Streamlit Cloud: sync st.secrets → os.environ so backend clients can read them
for key in ("ANTHROPIC_API_KEY", "SUPABASE_URL", "SUPABASE_ANON_KEY"):
    if key not in os.environ:
        try:
            os.environ[key] = st.secrets[key]
        except Exception:
            pass

from career_pilot.clients.llm_client import LLMClient
from career_pilot.clients.supabase_client import (
    SupabaseAuthService,
    SupabaseReportBackend,
    create_supabase_client,
)
from career_pilot.config import load_config
from career_pilot.controller import AppController
from career_pilot.errors import ConfigurationError
from career_pilot.logging.usage_store import UsageStore
from career_pilot.models.profile import EDUCATION_LEVELS, WORK_STYLE_LABELS, WorkStyle
from career_pilot.models.session import AnonymousSession, PendingSession
from career_pilot.pipeline.recommender import CareerRecommender
from career_pilot.state.session_store import SessionStore
from career_pilot.state.view import (
    AuthMode,
    CancelForm,
    DismissToast,
    GoHome,
    NextStep,
    OpenSaved,
    Page,
    PreviousStep,
    StartAssessment,
    SwitchAuthMode,
    UpdateDraft,
    ViewReport,
    ViewState,
)
from career_pilot.state.wizard import WizardStep, missing_fields
from career_pilot.storage.report_repository import ReportRepository
from career_pilot.ui.components import (
    career_cards,
    form_progress,
    loading_steps,
    results_subtitle,
    saved_report_rows,
)

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------

st.set_page_config(
    page_title="CareerPilot AI",
    page_icon=":rocket:",
    layout="wide",
)

SELECT_PLACEHOLDER = "— Select —"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

LOADING_POLL_SECONDS = 0.5


def _get_config():
    return load_config()


def _build_controller() -> AppController:
    config = _get_config()
    client = create_supabase_client()
    sessions = SessionStore(SupabaseAuthService(client))
    llm = LLMClient(timeout=config.llm.timeout)
    recommender = CareerRecommender(
        llm,
        model=config.llm.model,
        temperature=config.llm.temperature,
        max_tokens=config.llm.max_tokens,
        career_count=config.llm.career_count,
    )
    reports = ReportRepository(SupabaseReportBackend(client), sessions)
    try:
        usage_store = UsageStore(config.usage.resolved_db_path)
    except OSError:
        logger.warning("Usage log disabled (read-only filesystem)")
        usage_store = None
    controller = AppController(
        sessions,
        recommender,
        reports,
        usage_store=usage_store,
        loading_interval=config.ui.loading_step_interval,
        timeout=config.llm.timeout,
        min_password_length=config.ui.min_password_length,
    )
    controller.start()
    return controller


def _get_controller() -> AppController:
    if "controller" not in st.session_state:
        try:
            st.session_state.controller = _build_controller()
        except ConfigurationError as e:
            st.error(str(e))
            st.stop()
    return st.session_state.controller


def _dispatch_and_rerun(controller: AppController, *events) -> None:
    for event in events:
        controller.dispatch(event)
    st.rerun()


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def _render_auth(controller: AppController, state: ViewState) -> None:
    st.title("CareerPilot AI")
    st.caption("Navigate your career with confidence")

    left, right = st.columns([1, 1])
    with left:
        st.markdown(
            "- 🎯 Personalised career path suggestions\n"
            "- 📊 Skill gap analysis and insights\n"
            "- 🗺️ 6-month step-by-step roadmap\n"
            "- 💾 Save and revisit your reports anytime"
        )

    with right:
        labels = {AuthMode.LOGIN: "Log In", AuthMode.SIGNUP: "Sign Up"}
        mode = st.radio(
            "Mode",
            list(AuthMode),
            index=list(AuthMode).index(state.auth.mode),
            format_func=labels.get,
            horizontal=True,
            label_visibility="collapsed",
        )
        if mode != state.auth.mode:
            _dispatch_and_rerun(controller, SwitchAuthMode(mode))

        is_login = mode is AuthMode.LOGIN
        st.subheader("Welcome back 👋" if is_login else "Create your account")

        if state.auth.error:
            st.error(f"⚠️ {state.auth.error}")
        if state.auth.success:
            st.success(f"✅ {state.auth.success}")

        with st.form(f"auth_{mode.value}"):
            name = "" if is_login else st.text_input("Full Name", placeholder="e.g. Alex Johnson")
            email = st.text_input("Email Address", placeholder="you@example.com")
            password = st.text_input(
                "Password",
                type="password",
                placeholder="Your password" if is_login else "Min. 6 characters",
            )
            submitted = st.form_submit_button(
                "→ Log In" if is_login else "→ Create Account",
                type="primary",
                use_container_width=True,
            )

        if submitted:
            with st.spinner("Please wait..."):
                if is_login:
                    controller.sign_in(email, password)
                else:
                    controller.sign_up(name, email, password)
            st.rerun()

        st.divider()
        if st.button("Continue with Google", use_container_width=True):
            url = controller.provider_sign_in_url("google", _get_config().ui.oauth_redirect_url)
            if url:
                st.session_state.oauth_url = url
            st.rerun()
        if st.session_state.get("oauth_url"):
            st.link_button("Open Google sign-in", st.session_state.oauth_url)


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


def _render_nav(controller: AppController, state: ViewState) -> None:
    user = state.user
    with st.sidebar:
        st.title("CareerPilot AI")
        st.caption(f"{user.display_name or user.email}")

        if st.button("Home", use_container_width=True, type="primary" if state.page is Page.HOME else "secondary"):
            _dispatch_and_rerun(controller, GoHome())

        count = len(state.saved_reports)
        label = f"My Reports ({count})" if count else "My Reports"
        if st.button(label, use_container_width=True, type="primary" if state.page is Page.SAVED else "secondary"):
            _dispatch_and_rerun(controller, OpenSaved())

        if st.button("Start Now", use_container_width=True):
            _dispatch_and_rerun(controller, StartAssessment())

        st.divider()
        if st.button("Log Out", use_container_width=True):
            controller.sign_out()
            st.session_state.pop("oauth_url", None)
            st.rerun()


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


def _page_home(controller: AppController, state: ViewState) -> None:
    name = state.user.display_name
    if name:
        st.markdown(f"👋 Welcome back, **{name}**!")
    st.title("Find Your Perfect Path")
    st.markdown(
        "Answer a few questions and our AI analyses your skills, interests, and goals "
        "to suggest tailored career paths with a step-by-step 6-month roadmap."
    )
    if st.button("🚀 Start My Journey", type="primary"):
        _dispatch_and_rerun(controller, StartAssessment())
    st.caption("Free · Under 3 minutes")

    cols = st.columns(3)
    cols[0].metric("Career Paths", "3+")
    cols[1].metric("Roadmap", "6 mo.")
    cols[2].metric("Powered", "AI")


def _page_form(controller: AppController, state: ViewState) -> None:
    progress = form_progress(state.step)
    st.caption(f"{progress.label} · {progress.title}")
    st.progress(progress.percent / 100)

    if state.error:
        st.error(f"**Something went wrong**\n\n{state.error}")

    draft = state.draft
    step = state.step

    with st.form(f"profile_step_{int(step)}"):
        st.subheader(progress.title)
        if step is WizardStep.BACKGROUND:
            st.caption("Let's start with the basics to understand your starting point.")
            options = [SELECT_PLACEHOLDER, *EDUCATION_LEVELS]
            if draft.education and draft.education not in options:
                options.append(draft.education)
            changes = {
                "name": st.text_input("Full Name", value=draft.name, placeholder="e.g. Alex Johnson"),
                "education": st.selectbox(
                    "Education Level",
                    options,
                    index=options.index(draft.education) if draft.education else 0,
                ),
            }
            if changes["education"] == SELECT_PLACEHOLDER:
                changes["education"] = ""
        elif step is WizardStep.SKILLS:
            st.caption("This is the core of our AI analysis — be as detailed as you like.")
            changes = {
                "skills": st.text_area(
                    "Current Skills (comma-separated)",
                    value=draft.skills,
                    placeholder="e.g. Python, Excel, Communication, Problem Solving...",
                ),
                "interests": st.text_area(
                    "Interests & Passions",
                    value=draft.interests,
                    placeholder="e.g. I love building things, I enjoy working with data...",
                ),
            }
        else:
            st.caption("Final details to shape your perfect career roadmap.")
            styles = list(WorkStyle)
            changes = {
                "work_style": st.radio(
                    "Preferred Work Style",
                    styles,
                    index=styles.index(draft.work_style),
                    format_func=lambda s: f"{WORK_STYLE_LABELS[s][1]} {WORK_STYLE_LABELS[s][0]}",
                    horizontal=True,
                ),
                "goal": st.text_input(
                    "Long-term Career Goal (optional)",
                    value=draft.goal,
                    placeholder="e.g. Become a CTO, Launch my own product...",
                ),
            }

        back_col, next_col = st.columns(2)
        back = back_col.form_submit_button("Cancel" if step is WizardStep.BACKGROUND else "← Back")
        forward = next_col.form_submit_button(
            "Continue →" if step < WizardStep.PREFERENCES else "🧠 Generate My Roadmap",
            type="primary",
        )

    if back:
        controller.dispatch(UpdateDraft(changes))
        _dispatch_and_rerun(
            controller,
            CancelForm() if step is WizardStep.BACKGROUND else PreviousStep(),
        )
    if forward:
        new_state = controller.dispatch(UpdateDraft(changes))
        missing = missing_fields(new_state.draft, step)
        if missing:
            st.warning(f"Please fill in: {', '.join(missing)}")
        elif step < WizardStep.PREFERENCES:
            _dispatch_and_rerun(controller, NextStep())
        else:
            controller.submit()
            st.rerun()


def _generation_loop() -> asyncio.AbstractEventLoop:
    """Event loop on a daemon thread, kept for the browser session."""
    loop = st.session_state.get("generation_loop")
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        threading.Thread(target=loop.run_forever, name="generation-loop", daemon=True).start()
        st.session_state.generation_loop = loop
    return loop


@st.fragment(run_every=LOADING_POLL_SECONDS)
def _loading_progress(controller: AppController) -> None:
    state = controller.state
    if state.page is not Page.LOADING:
        st.rerun()
    for row in loading_steps(state.loading_step):
        st.markdown(f"{row.marker} {row.label}")


def _page_loading(controller: AppController, state: ViewState) -> None:
    st.title("Analysing your profile...")

    # the call runs on the session's loop; this script run only polls it
    running = st.session_state.get("generation")
    if running is None or running.done():
        if running is not None and not running.cancelled() and running.exception() is not None:
            logger.error("Generation run failed", exc_info=running.exception())
        st.session_state.generation = asyncio.run_coroutine_threadsafe(
            controller.run_generation(), _generation_loop()
        )

    _loading_progress(controller)
    st.button("Cancel", on_click=controller.cancel_generation)


def _page_results(controller: AppController, state: ViewState) -> None:
    head, actions = st.columns([3, 1])
    with head:
        st.title("Your Career Roadmap")
        st.caption(results_subtitle(state))
    with actions:
        if not state.already_saved and st.button("💾 Save Report", type="primary"):
            with st.spinner("Saving..."):
                controller.save_report()
            st.rerun()

    for card in career_cards(state):
        with st.container(border=True):
            title_col, score_col = st.columns([3, 1])
            with title_col:
                st.subheader(card.title)
                if card.category:
                    st.caption(card.category)
            with score_col:
                st.markdown(f"**{card.match_label}**")
                st.progress(card.match_score / 100)
            st.markdown(card.reason)

            st.markdown("**Skill Gap Analysis**")
            if card.has_skill_data:
                tags = [f":green-background[✓ {s}]" for s in card.have_tags]
                tags += [f":orange-background[+ {s}]" for s in card.need_tags]
                st.markdown(" ".join(tags))
            else:
                st.caption("No skill data provided.")

            st.markdown("**6-Month Roadmap**")
            for i, item in enumerate(card.roadmap, 1):
                st.markdown(f"{i}. **{item.title}** — {item.focus}")

    left, right = st.columns(2)
    if left.button("🔄 New Assessment"):
        _dispatch_and_rerun(controller, StartAssessment())
    if right.button("Back to Home"):
        _dispatch_and_rerun(controller, GoHome())


def _page_saved(controller: AppController, state: ViewState) -> None:
    st.title("Saved Reports")

    if not state.saved_reports:
        st.info("No saved reports yet. Complete an assessment and save your results to revisit them here.")
        if st.button("Start Assessment", type="primary"):
            _dispatch_and_rerun(controller, StartAssessment())
        return

    for report, row in zip(state.saved_reports, saved_report_rows(state.saved_reports)):
        with st.container(border=True):
            info, view_col, delete_col = st.columns([4, 1, 1])
            with info:
                st.markdown(f"**{row.title}**")
                st.caption(row.subtitle)
            if view_col.button("View", key=f"view_{row.report_id}"):
                _dispatch_and_rerun(controller, ViewReport(report))
            if delete_col.button("Delete", key=f"delete_{row.report_id}"):
                controller.delete_report(row.report_id)
                st.rerun()

    if st.button("Back to Home"):
        _dispatch_and_rerun(controller, GoHome())


PAGES = {
    Page.HOME: _page_home,
    Page.FORM: _page_form,
    Page.LOADING: _page_loading,
    Page.RESULTS: _page_results,
    Page.SAVED: _page_saved,
}


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    controller = _get_controller()

    auth_code = st.query_params.get("code")
    if auth_code:
        controller.complete_provider_sign_in(auth_code)
        st.query_params.clear()
        st.session_state.pop("oauth_url", None)

    state = controller.state

    if state.toast:
        st.toast(state.toast, icon="✅", duration=_get_config().ui.toast_seconds)
        state = controller.dispatch(DismissToast())

    if isinstance(state.session, PendingSession):
        st.info("Loading CareerPilot AI...")
        st.stop()
    if isinstance(state.session, AnonymousSession):
        _render_auth(controller, state)
        return

    _render_nav(controller, state)
    PAGES[state.page](controller, state)


main()
