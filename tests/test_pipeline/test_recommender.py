"""Tests for CareerRecommender."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from career_pilot.clients.llm_client import LLMResponse
from career_pilot.errors import BackendError, ParseError
from career_pilot.pipeline.recommender import SYSTEM_PROMPT, CareerRecommender, dump_careers


def _respond(mock_llm_client, text: str) -> None:
    mock_llm_client.generate = AsyncMock(
        return_value=LLMResponse(text=text, input_tokens=100, output_tokens=200)
    )


class TestBuildPrompt:
    def test_embeds_profile_fields(self, mock_llm_client, sample_profile):
        prompt = CareerRecommender(mock_llm_client).build_prompt(sample_profile)
        assert "Bachelor's Degree" in prompt
        assert "Python, Excel" in prompt
        assert "Interests: data" in prompt
        assert "Analytical (analytical)" in prompt
        assert "Long-term Goal: Not specified" in prompt
        assert '"matchScore"' in prompt

    def test_goal_included_when_set(self, mock_llm_client, sample_profile):
        profile = sample_profile.model_copy(update={"goal": "Lead a data team"})
        prompt = CareerRecommender(mock_llm_client).build_prompt(profile)
        assert "Long-term Goal: Lead a data team" in prompt

    def test_career_count(self, mock_llm_client, sample_profile):
        prompt = CareerRecommender(mock_llm_client, career_count=5).build_prompt(sample_profile)
        assert "top 5 most suitable" in prompt


class TestGenerate:
    async def test_json_in_prose(self, stub_llm, sample_profile):
        careers = await CareerRecommender(stub_llm).generate(sample_profile)

        assert len(careers) == 1
        career = careers[0]
        assert career.title == "Data Analyst"
        assert career.match_score == 88
        assert career.analysis.required == ["SQL", "Excel"]
        assert career.analysis.matching == ["Excel"]
        assert career.analysis.missing == ["SQL"]
        assert [(s.title, s.focus) for s in career.roadmap] == [("Month 1-2", "SQL basics")]
        assert career.id

    async def test_call_arguments(self, stub_llm, sample_profile):
        await CareerRecommender(stub_llm, temperature=0.2, max_tokens=2000).generate(sample_profile)
        kwargs = stub_llm.generate.call_args.kwargs
        assert kwargs["system"] == SYSTEM_PROMPT
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 2000

    async def test_no_json_raises_with_raw_text(self, mock_llm_client, sample_profile):
        _respond(mock_llm_client, "I am unable to comply.")
        with pytest.raises(ParseError) as exc_info:
            await CareerRecommender(mock_llm_client).generate(sample_profile)
        assert exc_info.value.raw_text == "I am unable to comply."

    async def test_missing_careers_key(self, mock_llm_client, sample_profile):
        _respond(mock_llm_client, '{"jobs": []}')
        with pytest.raises(ParseError, match="careers"):
            await CareerRecommender(mock_llm_client).generate(sample_profile)

    async def test_malformed_entry(self, mock_llm_client, sample_profile):
        _respond(mock_llm_client, '{"careers": ["Data Analyst"]}')
        with pytest.raises(ParseError):
            await CareerRecommender(mock_llm_client).generate(sample_profile)

    async def test_invalid_entry(self, mock_llm_client, sample_profile):
        _respond(mock_llm_client, '{"careers": [{"matchScore": 50}]}')
        with pytest.raises(ParseError, match="Invalid career entry"):
            await CareerRecommender(mock_llm_client).generate(sample_profile)

    async def test_empty_list(self, mock_llm_client, sample_profile):
        _respond(mock_llm_client, '{"careers": []}')
        assert await CareerRecommender(mock_llm_client).generate(sample_profile) == []

    async def test_duplicate_ids_replaced(self, mock_llm_client, sample_profile):
        payload = {"careers": [{"id": "x", "title": "A"}, {"id": "x", "title": "B"}, {"title": "C"}]}
        _respond(mock_llm_client, json.dumps(payload))
        careers = await CareerRecommender(mock_llm_client).generate(sample_profile)
        ids = [c.id for c in careers]
        assert ids[0] == "x"
        assert len(set(ids)) == 3

    async def test_backend_error_propagates(self, mock_llm_client, sample_profile):
        mock_llm_client.generate = AsyncMock(side_effect=BackendError("boom"))
        with pytest.raises(BackendError):
            await CareerRecommender(mock_llm_client).generate(sample_profile)


async def test_dump_careers_uses_wire_names(stub_llm, sample_profile):
    careers = await CareerRecommender(stub_llm).generate(sample_profile)
    data = json.loads(dump_careers(careers))
    assert data["careers"][0]["matchScore"] == 88
    assert data["careers"][0]["analysis"]["missing"] == ["SQL"]


class TestMalformedShapes:
    @pytest.mark.parametrize(
        "career",
        [
            {"title": "X", "matchScore": [88]},
            {"title": "X", "matchScore": {"value": 88}},
            {"title": "X", "analysis": {"required": 5}},
            {"title": "X", "id": {"nested": 1}},
            {"title": "X", "roadmap": "learn SQL"},
        ],
    )
    async def test_wrong_field_types_raise_parse_error(self, mock_llm_client, sample_profile, career):
        text = "Here you go:\n" + json.dumps({"careers": [career]}) + "\nEnjoy."
        _respond(mock_llm_client, text)
        with pytest.raises(ParseError) as exc_info:
            await CareerRecommender(mock_llm_client).generate(sample_profile)
        assert exc_info.value.raw_text == text

    async def test_infinite_score_raises_parse_error(self, mock_llm_client, sample_profile):
        text = 'Result: {"careers": [{"title": "X", "matchScore": 1e400}]}'
        _respond(mock_llm_client, text)
        with pytest.raises(ParseError):
            await CareerRecommender(mock_llm_client).generate(sample_profile)

    async def test_single_skill_string_kept_whole(self, mock_llm_client, sample_profile):
        _respond(mock_llm_client, '{"careers": [{"title": "X", "analysis": {"missing": "SQL"}}]}')
        careers = await CareerRecommender(mock_llm_client).generate(sample_profile)
        assert careers[0].analysis.missing == ["SQL"]
