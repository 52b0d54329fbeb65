"""pydantic-ai agents for job summaries, comparisons, skills and resumes."""

import logging

from pydantic_ai import Agent

from schemas.summaries import (
    JobComparison,
    JobSummary,
    ResumeParseResult,
    SkillSuggestions,
)
from services.ai.model_factory import get_text_model
from services.ai.prompts import (
    COMPARISON_SYSTEM_PROMPT,
    RESUME_SYSTEM_PROMPT,
    SKILLS_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
)


logger = logging.getLogger(__name__)


def create_summary_agent() -> Agent[None, JobSummary]:
    """Create the agent producing a structured `JobSummary`."""
    return Agent(
        get_text_model(),
        system_prompt=SUMMARY_SYSTEM_PROMPT,
        output_type=JobSummary,
    )


def create_comparison_agent() -> Agent[None, JobComparison]:
    return Agent(
        get_text_model(),
        system_prompt=COMPARISON_SYSTEM_PROMPT,
        output_type=JobComparison,
    )


def create_skills_agent() -> Agent[None, SkillSuggestions]:
    return Agent(
        get_text_model(),
        system_prompt=SKILLS_SYSTEM_PROMPT,
        output_type=SkillSuggestions,
    )


def create_resume_agent() -> Agent[None, ResumeParseResult]:
    return Agent(
        get_text_model(),
        system_prompt=RESUME_SYSTEM_PROMPT,
        output_type=ResumeParseResult,
    )
