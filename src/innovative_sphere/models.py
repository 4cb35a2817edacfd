"""Pydantic models shared across generation, catalog, and API layers."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Complexity = Literal["beginner", "intermediate", "advanced"]

MAX_USER_INTERESTS = 10


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerationRequest(_CamelModel):
    """Caller parameters for one idea generation."""

    industry: str
    project_type: str
    user_interests: list[str] = Field(default_factory=list)
    complexity: Complexity = "intermediate"


class ParsedIdeaFields(_CamelModel):
    """Normalized idea content extracted from a model reply."""

    title: str
    description: str
    technologies: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    objectives: list[str] = Field(default_factory=list)
    challenges: list[str] = Field(default_factory=list)
    estimated_duration: str = ""


class Idea(ParsedIdeaFields):
    """Fully materialized idea returned to callers. Never persisted."""

    id: str
    industry: str
    project_type: str
    complexity: Complexity
    generated_at: datetime


class CatalogEntry(_CamelModel):
    """An industry or project type record."""

    id: str
    name: str
    description: str = ""
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class CatalogCreate(_CamelModel):
    name: str
    id: str | None = None
    description: str = ""


class CatalogUpdate(_CamelModel):
    name: str | None = None
    description: str | None = None
    is_active: bool | None = None
