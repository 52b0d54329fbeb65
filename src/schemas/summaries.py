"""Schemas for job summary generation.

Three groups live here:

* Generation requests - the tagged union accepted by the orchestrator, plus
  the HTTP body shapes that are converted into it.
* Payloads - the structured documents produced by the generation backend
  and stored as JSON (`JobSummary`, `JobComparison`). They double as the
  pydantic-ai output types, so field descriptions are read by the model.
* Response models returned by the summary routes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    model_validator,
)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ListingRequest(BaseModel):
    kind: Literal["listing"] = "listing"
    listing_id: str = Field(..., min_length=1)


class TextRequest(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class UrlRequest(BaseModel):
    kind: Literal["url"] = "url"
    url: str = Field(..., min_length=1)


class DocumentRequest(BaseModel):
    """Uploaded document; built by the upload route, never parsed from JSON."""

    kind: Literal["document"] = "document"
    filename: str = ""
    content_type: str | None = None
    data: bytes


class CompareRequest(BaseModel):
    """Comparison of two or three stored listings.

    Count and distinctness are checked by the orchestrator so that a bad
    request surfaces as `InvalidComparisonRequest` rather than a schema error.
    """

    kind: Literal["compare"] = "compare"
    item_ids: list[str] = Field(
        ..., validation_alias=AliasChoices("item_ids", "listing_ids", "listingIds")
    )
    force_regenerate: bool = Field(
        default=False,
        validation_alias=AliasChoices("force_regenerate", "forceRegenerate"),
    )


SingleRequest = Annotated[
    ListingRequest | TextRequest | UrlRequest | DocumentRequest,
    Field(discriminator="kind"),
]

_single_request = TypeAdapter(SingleRequest)


class SummaryRequestBody(BaseModel):
    """JSON body for single-summary routes.

    Accepts `{"listing_id"?, "text"?, "url"?}`; when several are given, text
    wins over listing, and listing wins over url.
    """

    model_config = ConfigDict(populate_by_name=True)

    listing_id: str | None = Field(
        default=None, validation_alias=AliasChoices("listing_id", "listingId")
    )
    text: str | None = None
    url: str | None = None

    @model_validator(mode="after")
    def _require_one_source(self) -> SummaryRequestBody:
        if not any(
            (v or "").strip() for v in (self.listing_id, self.text, self.url)
        ):
            raise ValueError("Provide one of listing_id, text or url")
        return self

    def to_request(self) -> SingleRequest:
        if self.text and self.text.strip():
            source = {"kind": "text", "text": self.text}
        elif self.listing_id and self.listing_id.strip():
            source = {"kind": "listing", "listing_id": self.listing_id.strip()}
        else:
            source = {"kind": "url", "url": (self.url or "").strip()}
        return _single_request.validate_python(source)


class SkillSuggestionRequest(BaseModel):
    role: str = Field(..., min_length=1, max_length=200)


class ResumeParseRequest(BaseModel):
    text: str = Field(..., min_length=1)
    save_to_profile: bool = False


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class JDMatch(BaseModel):
    match_score: int = Field(
        ..., ge=0, le=100, description="How well the candidate fits, 0-100"
    )
    matched_skills: list[str] = Field(
        default_factory=list, description="Candidate skills the job asks for"
    )
    missing_skills: list[str] = Field(
        default_factory=list, description="Required skills the candidate lacks"
    )


class JobSummary(BaseModel):
    tldr: str = Field(..., description="Two or three sentence overview of the role")
    key_responsibilities: list[str] | None = Field(
        default=None, description="Main duties, short bullet phrases"
    )
    requirements: list[str] | None = Field(
        default=None, description="Must-have qualifications"
    )
    nice_to_haves: list[str] | None = Field(
        default=None, description="Preferred but optional qualifications"
    )
    salary_sgd: str | None = Field(
        default=None,
        description="Salary range in SGD exactly as stated, omitted if not stated",
    )
    skills_future_keywords: list[str] | None = Field(
        default=None,
        description="Keywords useful for finding SkillsFuture courses",
    )
    jd_match: JDMatch | None = Field(
        default=None, description="Fit against the candidate's skills, if known"
    )
    caveats: list[str] | None = Field(
        default=None, description="Red flags or ambiguities in the posting"
    )


class ListingMatchScore(BaseModel):
    listing_id: str
    match_score: int = Field(..., ge=0, le=100)
    matched_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)


class JobComparison(BaseModel):
    summary: str = Field(..., description="Short overview comparing the jobs")
    similarities: list[str] | None = None
    differences: list[str] | None = None
    comparison_points: list[str] | None = Field(
        default=None,
        description="Side by side points such as seniority, pay, scope",
    )
    recommended_listing_id: str | None = Field(
        default=None, description="Id of the best fit listing, when one stands out"
    )
    recommendation_reason: str | None = None
    listing_match_scores: list[ListingMatchScore] | None = None


class SkillSuggestions(BaseModel):
    skills: list[str] = Field(
        ..., description="8 to 12 concise skills relevant to the role"
    )


class ResumeParseResult(BaseModel):
    skills: list[str] = Field(default_factory=list)
    job_titles: list[str] = Field(default_factory=list)
    resume_summary: str | None = Field(
        default=None, description="One paragraph professional summary"
    )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class SummaryArtifactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    cached: bool = False
    summary: dict[str, Any]

    @classmethod
    def from_row(cls, row: Any, *, cached: bool) -> SummaryArtifactOut:
        return cls(
            id=row.id, created_at=row.created_at, cached=cached, summary=row.payload
        )


class ComparisonArtifactOut(BaseModel):
    id: UUID
    created_at: datetime
    cached: bool = False
    listing_ids: list[str]
    comparison: dict[str, Any]

    @classmethod
    def from_row(cls, row: Any, *, cached: bool) -> ComparisonArtifactOut:
        return cls(
            id=row.id,
            created_at=row.created_at,
            cached=cached,
            listing_ids=list(row.listing_ids),
            comparison=row.payload,
        )
