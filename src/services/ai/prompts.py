"""Prompt text for the summary, comparison, skills and resume agents."""

from __future__ import annotations

from services.ai.models import GenerationContext, ResolvedInput


SUMMARY_SYSTEM_PROMPT = """
You are a job summary assistant for the Singapore job market. You turn job
descriptions into short structured summaries for job seekers.

Rules:
- Provide a short tldr (2-3 sentences).
- Extract key responsibilities, requirements and nice-to-haves as lists of
  short phrases.
- If a salary in SGD is mentioned, put it in salary_sgd (e.g.
  "SGD 5,000 - 7,000"). Never invent a salary.
- Suggest skills_future_keywords a candidate could search for courses with.
- Add caveats for missing, unclear or contradictory information.
- Only fill jd_match when the candidate's skills are given.
- Output must match the schema exactly (tldr required; other fields optional).
"""

COMPARISON_SYSTEM_PROMPT = """
You are a job comparison assistant for the Singapore job market. You compare
two or three job listings and produce one unified comparison.

Rules:
- Write a single "summary" paragraph: what the roles have in common and how
  they differ (seniority, focus, salary, location, requirements).
- Provide 3-6 "similarities" and 3-6 "differences" as short points.
- Optionally list 3-6 additional "comparison_points".
- If one listing is clearly a better fit, set "recommended_listing_id" to one
  of the given ids and explain briefly in "recommendation_reason".
- Output must match the schema exactly.
"""

SKILLS_SYSTEM_PROMPT = """
You suggest skills for a job seeker's profile. Given a job role, return 8 to
12 concise, commonly requested skills (tools, technologies or competencies)
for that role. No duplicates, no sentences.
"""

RESUME_SYSTEM_PROMPT = """
You read resumes and extract structured profile data: a deduplicated list of
skills, the job titles the person has held (most recent first), and a one
paragraph professional summary. Ignore contact details.
"""

_LISTING_PAGE_INTRO = (
    "You are scanning the job description of the job posting page below. The "
    "content may include some page layout or navigation; focus on the main "
    "job description and summarize it into a structured summary."
)
_PLAIN_INTRO = "Summarize the following job description into a structured summary."


def _candidate_lines(context: GenerationContext) -> list[str]:
    lines = [f"The candidate's skills are: {', '.join(context.skills)}."]
    if context.current_role:
        lines.append(
            f"The candidate's current or target role is {context.current_role}."
        )
    if context.years_of_experience is not None:
        lines.append(
            f"The candidate has {context.years_of_experience} years of experience."
        )
    return lines


def build_summary_prompt(resolved: ResolvedInput, context: GenerationContext) -> str:
    """User prompt for a single-listing summary.

    The match block is included only when the candidate has skills on file.
    """
    parts = [_LISTING_PAGE_INTRO if resolved.from_source_page else _PLAIN_INTRO]
    if resolved.title:
        header = f"Job title: {resolved.title}"
        if resolved.company:
            header += f" at {resolved.company}"
        parts.append(header)
    if context.has_skills:
        parts.append(
            "\n".join(_candidate_lines(context))
            + "\nCompare the job description to these skills and fill jd_match: "
            "match_score 0-100, matched_skills from the candidate list that are "
            "relevant, missing_skills the job needs that the candidate lacks."
        )
    parts.append(f"Job description:\n{resolved.text}")
    return "\n\n".join(parts)


def build_comparison_prompt(
    resolved: ResolvedInput, context: GenerationContext
) -> str:
    blocks = []
    for index, item in enumerate(resolved.items, start=1):
        blocks.append(
            f"--- Job {index} (ID: {item.listing_id}) ---\n"
            f"Title: {item.title}\n"
            f"Company: {item.company or 'Unknown'}\n"
            f"Description:\n{item.snippet}"
        )
    ids = ", ".join(resolved.item_ids)
    parts = [
        f"Compare the following {len(resolved.items)} job listings.",
        "\n\n".join(blocks),
        f"recommended_listing_id must be one of: {ids}.",
    ]
    if context.has_skills:
        parts.append(
            "\n".join(_candidate_lines(context))
            + "\nFor each listing add an entry to listing_match_scores with its "
            "listing_id, a match_score 0-100, matched_skills and missing_skills, "
            "and base the recommendation on the candidate's fit."
        )
    return "\n\n".join(parts)


def build_resume_prompt(text: str, max_chars: int) -> str:
    return f"Resume:\n{text[:max_chars]}"


def build_skills_prompt(role: str) -> str:
    return f"Job role: {role.strip()}"
