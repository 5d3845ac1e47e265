"""Utility to extract a JSON object from LLM responses."""

from __future__ import annotations

import json

from career_pilot.errors import ParseError


def extract_json_object(text: str) -> dict:
    """Extract a single JSON object from LLM response text.

    Tries in order:
    1. Direct json.loads on the full text
    2. Strip fenced code block markers and parse
    3. Find first '{' to last '}' and parse

    Raises ParseError carrying the raw text when nothing parses to an object.
    Truncated output is not repaired, so a partial result is never returned.
    """
    if not isinstance(text, str) or not text.strip():
        raise ParseError("Empty AI response", raw_text=text or "")

    stripped = text.strip()

    # 1) Direct parse
    try:
        data = json.loads(stripped)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict):
        return data

    # 2) Fenced code block
    unfenced = _strip_code_fences(stripped)
    if unfenced != stripped:
        try:
            data = json.loads(unfenced)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            return data

    # 3) First '{' to last '}'
    data = _extract_braces(stripped)
    if data is not None:
        return data

    raise ParseError(
        f"Failed to parse AI response. The response was: {text[:200]}",
        raw_text=text,
    )


def _strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers from text."""
    lines = text.split("\n")

    if lines and lines[0].strip().startswith("```"):
        lines = lines[1:]

    while lines and lines[-1].strip() in ("```", ""):
        lines = lines[:-1]

    return "\n".join(lines).strip()


def _extract_braces(text: str) -> dict | None:
    """Try to extract JSON object from first '{' to last '}'."""
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            data = json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            return None
        if isinstance(data, dict):
            return data
    return None
