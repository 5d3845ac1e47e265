"""Usage logging data models."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class GenerationLog(BaseModel):
    """One recommendation attempt. Holds metadata only, never AI output."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str = "anonymous"
    timestamp: datetime = Field(default_factory=datetime.now)
    model: str
    elapsed_seconds: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    career_count: int = 0
    estimated_cost_usd: float = 0.0
    success: bool = True
    error_kind: str | None = None  # "ConfigurationError" | "BackendError" | "ParseError" | ...
