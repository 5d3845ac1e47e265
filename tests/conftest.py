"""Shared test fixtures."""

from __future__ import annotations

import itertools
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from career_pilot.clients.llm_client import LLMClient, LLMResponse
from career_pilot.controller import AppController
from career_pilot.errors import BackendError
from career_pilot.models.profile import Profile, WorkStyle
from career_pilot.models.session import UserSession
from career_pilot.pipeline.recommender import CareerRecommender
from career_pilot.state.session_store import SessionStore
from career_pilot.storage.report_repository import ReportRepository


@pytest.fixture
def sample_profile() -> Profile:
    return Profile(
        name="Alex",
        education="Bachelor's Degree",
        skills="Python, Excel",
        interests="data",
        work_style=WorkStyle.ANALYTICAL,
        goal="",
    )


@pytest.fixture
def data_analyst_json() -> dict:
    return {
        "careers": [
            {
                "title": "Data Analyst",
                "matchScore": 88,
                "analysis": {
                    "required": ["SQL", "Excel"],
                    "matching": ["Excel"],
                    "missing": ["SQL"],
                },
                "roadmap": [{"title": "Month 1-2", "focus": "SQL basics"}],
            }
        ]
    }


@pytest.fixture
def alex_session() -> UserSession:
    return UserSession(user_id="user-1", email="alex@example.com", display_name="alex")


def make_llm_response(text: str) -> LLMResponse:
    return LLMResponse(text=text, input_tokens=120, output_tokens=480)


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Create a mock LLM client."""
    client = AsyncMock(spec=LLMClient)
    client.generate = AsyncMock(return_value=make_llm_response('{"careers": []}'))
    client.get_token_summary.return_value = {"input": 0, "output": 0, "calls": []}
    return client


@pytest.fixture
def stub_llm(mock_llm_client, data_analyst_json) -> LLMClient:
    """LLM client answering with the Data Analyst career wrapped in prose."""
    text = "Here are your results:\n" + json.dumps(data_analyst_json) + "\nGood luck!"
    mock_llm_client.generate = AsyncMock(return_value=make_llm_response(text))
    return mock_llm_client


class FakeAuthService:
    """In-memory auth backend with change notifications."""

    def __init__(self, session: UserSession | None = None):
        self.session = session
        self.callbacks: list = []
        self.users: dict[str, tuple[str, UserSession]] = {}
        self.unsubscribed = 0
        self.fail_sign_out = False
        self.require_confirmation = True

    def get_session(self) -> UserSession | None:
        return self.session

    def subscribe(self, callback):
        self.callbacks.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribed += 1
            self.callbacks.remove(callback)

        return _unsubscribe

    def emit(self, session: UserSession | None) -> None:
        self.session = session
        for cb in list(self.callbacks):
            cb(session)

    def sign_up(self, email, password, display_name):
        if email in self.users:
            raise BackendError("User already registered")
        user = UserSession(user_id=f"user-{len(self.users) + 100}", email=email, display_name=display_name)
        self.users[email] = (password, user)
        if self.require_confirmation:
            return None
        self.emit(user)
        return user

    def sign_in(self, email, password):
        stored = self.users.get(email)
        if stored is None or stored[0] != password:
            raise BackendError("Invalid login credentials")
        self.emit(stored[1])
        return stored[1]

    def sign_in_with_provider(self, provider, redirect_to):
        return f"https://auth.example.com/authorize?provider={provider}&redirect_to={redirect_to}"

    def exchange_code(self, auth_code):
        if auth_code != "good-code":
            raise BackendError("invalid flow state")
        user = UserSession(user_id="oauth-user", email="oauth@example.com", display_name="OAuth User")
        self.emit(user)
        return user

    def sign_out(self) -> None:
        if self.fail_sign_out:
            raise BackendError("network down")
        self.emit(None)


class FakeReportBackend:
    """In-memory `reports` table assigning ids and increasing timestamps."""

    def __init__(self):
        self.rows: list[dict] = []
        self.calls: list[str] = []
        self.fail = False
        self._ids = itertools.count(1)
        self._clock = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)

    def select_for_user(self, user_id):
        self.calls.append("select")
        if self.fail:
            raise BackendError("Could not load reports")
        rows = [r for r in self.rows if r["user_id"] == user_id]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)

    def insert(self, row):
        self.calls.append("insert")
        if self.fail:
            raise BackendError("Could not save report")
        self._clock += timedelta(minutes=1)
        stored = json.loads(json.dumps(row))
        stored["id"] = next(self._ids)
        stored["created_at"] = self._clock.isoformat()
        self.rows.append(stored)
        return stored

    def delete(self, report_id, user_id):
        self.calls.append("delete")
        if self.fail:
            raise BackendError("Could not delete report")
        self.rows = [
            r for r in self.rows
            if not (str(r["id"]) == str(report_id) and r["user_id"] == user_id)
        ]


@pytest.fixture
def auth_service() -> FakeAuthService:
    return FakeAuthService()


@pytest.fixture
def report_backend() -> FakeReportBackend:
    return FakeReportBackend()


@pytest.fixture
def session_store(auth_service) -> SessionStore:
    return SessionStore(auth_service)


@pytest.fixture
def signed_in_store(auth_service, alex_session) -> SessionStore:
    auth_service.session = alex_session
    store = SessionStore(auth_service)
    store.start()
    return store


@pytest.fixture
def repository(report_backend, signed_in_store) -> ReportRepository:
    return ReportRepository(report_backend, signed_in_store)


@pytest.fixture
def controller(auth_service, alex_session, report_backend, stub_llm) -> AppController:
    """Controller with a signed-in user and a stubbed LLM."""
    auth_service.session = alex_session
    sessions = SessionStore(auth_service)
    ctrl = AppController(
        sessions,
        CareerRecommender(stub_llm),
        ReportRepository(report_backend, sessions),
        loading_interval=0.01,
        timeout=5,
    )
    ctrl.start()
    return ctrl
