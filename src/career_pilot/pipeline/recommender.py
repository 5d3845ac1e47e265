"""Career recommender - turns a profile into scored career paths with roadmaps."""

from __future__ import annotations

import json
import logging
import uuid

from pydantic import ValidationError

from career_pilot.clients.llm_client import DEFAULT_MODEL, LLMClient
from career_pilot.errors import ParseError
from career_pilot.models.career import CareerRecommendation
from career_pilot.models.profile import WORK_STYLE_LABELS, Profile
from career_pilot.utils.json_parser import extract_json_object

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are an elite career navigation AI. You suggest the career paths that best \
fit a person's profile and give them actionable clarity and a professional \
learning roadmap. You always answer with a single JSON object and nothing else."""

OUTPUT_SCHEMA = """\
{
  "careers": [
    {
      "id": "unique-id",
      "title": "Career Title",
      "category": "Industry or field",
      "matchScore": 95,
      "reason": "Professional explanation of why this fits...",
      "analysis": {
        "required": ["Skill A", "Skill B", "Skill C"],
        "matching": ["Skill A"],
        "missing": ["Skill B", "Skill C"]
      },
      "roadmap": [
        { "title": "Month 1-2: Fundamentals", "focus": "What to learn and resources to look for..." },
        { "title": "Month 3-4: Intermediate Projects", "focus": "Practical application and portfolio building..." },
        { "title": "Month 5-6: Advanced & Certification", "focus": "Complex topics and preparing for interviews..." }
      ]
    }
  ]
}"""


class CareerRecommender:
    def __init__(
        self,
        llm: LLMClient,
        model: str = DEFAULT_MODEL,
        *,
        temperature: float = 0.4,
        max_tokens: int = 4096,
        career_count: int = 3,
    ):
        self.llm = llm
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.career_count = career_count

    def build_prompt(self, profile: Profile) -> str:
        """Embed the profile fields and the required output schema."""
        style_label, _ = WORK_STYLE_LABELS[profile.work_style]
        return f"""Based on the user profile below, suggest the top {self.career_count} most suitable career paths.

User Profile:
- Education: {profile.education}
- Current Skills: {profile.skills}
- Interests: {profile.interests}
- Work Style: {style_label} ({profile.work_style.value})
- Long-term Goal: {profile.goal.strip() or 'Not specified'}

For each suggested career, you MUST provide:
1. A match score (0-100) based on how well their interests and skills align.
2. A professional reasoning for the suggestion.
3. A Skill Gap Analysis:
   - required: All skills needed for this career.
   - matching: Skills the user already has (from their profile).
   - missing: Skills the user needs to acquire.
4. A 6-month learning roadmap divided into 3-4 clear phases.
   - Each phase must have a title and a detailed focus area.

Return the response strictly as a JSON object with this structure:
{OUTPUT_SCHEMA}"""

    async def generate(self, profile: Profile) -> list[CareerRecommendation]:
        """Ask the LLM for career recommendations for a profile.

        Raises:
            ConfigurationError: No API key is configured.
            BackendError: The API call failed.
            ParseError: The response holds no usable JSON object.
        """
        response = await self.llm.generate(
            prompt=self.build_prompt(profile),
            system=SYSTEM_PROMPT,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        data = extract_json_object(response.text)
        return self._parse_careers(data, response.text)

    def _parse_careers(self, data: dict, raw_text: str) -> list[CareerRecommendation]:
        items = data.get("careers")
        if not isinstance(items, list):
            raise ParseError("AI response has no 'careers' list", raw_text=raw_text)

        careers: list[CareerRecommendation] = []
        seen_ids: set[str] = set()
        for item in items:
            if not isinstance(item, dict):
                raise ParseError("AI response has a malformed career entry", raw_text=raw_text)
            if not item.get("id") or str(item["id"]) in seen_ids:
                item = {**item, "id": str(uuid.uuid4())}
            try:
                career = CareerRecommendation.model_validate(item)
            except ValidationError as e:
                raise ParseError(f"Invalid career entry: {e}", raw_text=raw_text) from e
            seen_ids.add(career.id)
            careers.append(career)

        logger.info("Generated %d career recommendations", len(careers))
        return careers


def dump_careers(careers: list[CareerRecommendation]) -> str:
    """Serialize careers in the same shape the LLM is asked to produce."""
    return json.dumps(
        {"careers": [c.model_dump(mode="json", by_alias=True) for c in careers]},
        ensure_ascii=False,
        indent=2,
    )
