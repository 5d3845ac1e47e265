"""View models for the Streamlit pages.

Pure functions from domain objects to exactly what a page shows, so the
rendering code in streamlit_app.py stays free of decisions.
"""

from __future__ import annotations

from dataclasses import dataclass

from career_pilot.models.career import CareerRecommendation, RoadmapStep
from career_pilot.models.report import Report
from career_pilot.pipeline.progress import LOADING_STEPS
from career_pilot.state.view import ViewState
from career_pilot.state.wizard import STEP_TITLES, WizardStep

CARD_ACCENTS = ("", "alt-1", "alt-2")


@dataclass(frozen=True)
class CareerCard:
    title: str
    category: str | None
    match_label: str
    match_score: int
    reason: str
    have_tags: tuple[str, ...]
    need_tags: tuple[str, ...]
    roadmap: tuple[RoadmapStep, ...]
    accent: str = ""

    @property
    def has_skill_data(self) -> bool:
        return bool(self.have_tags or self.need_tags)


@dataclass(frozen=True)
class LoadingStepRow:
    label: str
    marker: str  # ✅ done, ⏳ active, ⬜ pending
    status: str


@dataclass(frozen=True)
class SavedReportRow:
    report_id: str | None
    title: str
    subtitle: str


@dataclass(frozen=True)
class FormProgress:
    label: str
    title: str
    percent: int


def career_card(career: CareerRecommendation, index: int = 0) -> CareerCard:
    return CareerCard(
        title=career.title,
        category=career.category,
        match_label=f"{career.match_score}% Match",
        match_score=career.match_score,
        reason=career.reason,
        have_tags=tuple(career.analysis.matching),
        need_tags=tuple(career.analysis.missing),
        roadmap=tuple(career.roadmap),
        accent=CARD_ACCENTS[index % len(CARD_ACCENTS)],
    )


def career_cards(state: ViewState) -> list[CareerCard]:
    return [career_card(c, i) for i, c in enumerate(state.results)]


def results_subtitle(state: ViewState) -> str:
    return f"{len(state.results)} personalised career paths generated by AI"


def loading_steps(index: int) -> list[LoadingStepRow]:
    rows = []
    for i, label in enumerate(LOADING_STEPS):
        if i < index:
            rows.append(LoadingStepRow(label, "✅", "done"))
        elif i == index:
            rows.append(LoadingStepRow(label, "⏳", "active"))
        else:
            rows.append(LoadingStepRow(label, "⬜", "pending"))
    return rows


def saved_report_rows(reports: tuple[Report, ...] | list[Report]) -> list[SavedReportRow]:
    return [
        SavedReportRow(
            report_id=r.id,
            title=r.title,
            subtitle=f"{r.date} · {r.education} · {len(r.careers)} careers found",
        )
        for r in reports
    ]


def form_progress(step: WizardStep) -> FormProgress:
    total = len(WizardStep)
    return FormProgress(
        label=f"Step {int(step)} of {total}",
        title=STEP_TITLES[step],
        percent=round((int(step) - 1) / (total - 1) * 100),
    )
