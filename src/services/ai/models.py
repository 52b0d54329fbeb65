"""Domain models for summary orchestration.

Typed contract objects passed between the input resolver, the orchestrator
and the generation backend:

* ResolvedInput     - canonical text plus provenance for one request.
* CacheHit/CacheMiss - outcome of the prepare phase; a miss carries what the
  generate phase needs so nothing is resolved twice.
* GenerationEvent   - what a backend yields: partial payloads, then one
  complete payload.
* GenerationContext - candidate profile used to personalize prompts.

None of these are persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

from models.ai_summaries import AISummary
from models.comparison_summaries import ComparisonSummary


ArtifactT = TypeVar("ArtifactT", AISummary, ComparisonSummary)

SummaryKind = Literal["summary", "compare"]


@dataclass(slots=True)
class ResolvedListing:
    """One listing block inside a comparison."""

    listing_id: str
    title: str
    company: str | None
    snippet: str


@dataclass(slots=True)
class ResolvedInput:
    text: str
    title: str | None = None
    company: str | None = None
    from_listing: bool = False
    from_source_page: bool = False
    item_ids: list[str] = field(default_factory=list)
    items: list[ResolvedListing] = field(default_factory=list)

    @property
    def is_comparison(self) -> bool:
        return bool(self.item_ids)


@dataclass(slots=True)
class CacheHit(Generic[ArtifactT]):  # noqa: UP046
    artifact: ArtifactT


@dataclass(slots=True)
class CacheMiss:
    """Everything `generate_stream` needs to produce and store an artifact."""

    kind: SummaryKind
    resolved: ResolvedInput
    cache_key: str
    user_id: str


@dataclass(slots=True)
class GenerationEvent:
    kind: Literal["partial", "complete"]
    payload: dict[str, Any]


@dataclass(slots=True)
class GenerationContext:
    skills: list[str] = field(default_factory=list)
    current_role: str | None = None
    years_of_experience: int | None = None

    @property
    def has_skills(self) -> bool:
        return bool(self.skills)

    @classmethod
    def from_profile(cls, profile: Any | None) -> GenerationContext:
        if profile is None:
            return cls()
        titles = list(getattr(profile, "job_titles", None) or [])
        return cls(
            skills=list(getattr(profile, "skills", None) or []),
            current_role=titles[0] if titles else None,
            years_of_experience=getattr(profile, "years_of_experience", None),
        )
