"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from svgnorm.models.diagnostics import Diagnostic


class PassInfo(BaseModel):
    id: str
    stage: str
    description: str = ""


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    passes_registered: int = 0
    passes: list[PassInfo] = Field(default_factory=list)


class NormalizeResponse(BaseModel):
    svg: str
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    passes_completed: list[str] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
    processing_time_ms: float = 0.0
