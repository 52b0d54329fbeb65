"""Streaming generation orchestrator for job summaries and comparisons.

Two phases:

1. ``prepare_summary`` / ``prepare_comparison`` check configuration, resolve
   the input, derive the cache key and look it up. They return a
   ``CacheHit`` carrying the stored artifact or a ``CacheMiss`` carrying
   everything needed to generate.
2. ``generate_stream`` turns a miss into a stream of ``StreamRecord``:
   zero or more partials, then exactly one terminal record.

Generation runs in a producer task that feeds an ``asyncio.Queue``; the
stream the caller iterates only drains that queue. Abandoning the stream
(client disconnect) stops relaying but not generation: the producer runs to
completion with its own database session and persists the artifact so the
next request is a cache hit.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.config import Settings, get_settings
from core.observability import get_tracer
from crud.ai_summaries import (
    find_comparison,
    find_summary,
    insert_comparison,
    insert_summary,
)
from crud.user_profiles import get_profile_by_user_id
from models.ai_summaries import AISummary
from models.comparison_summaries import ComparisonSummary
from schemas.streaming import StreamRecord
from schemas.summaries import (
    CompareRequest,
    ComparisonArtifactOut,
    JobComparison,
    JobSummary,
    ResumeParseResult,
    SingleRequest,
    SkillSuggestions,
    SummaryArtifactOut,
)
from services.ai.agents import (
    create_comparison_agent,
    create_resume_agent,
    create_skills_agent,
    create_summary_agent,
)
from services.ai.backoff import BackoffExecutor, RetryPolicy, is_rate_limit_error
from services.ai.cache_keys import hash_input_text, key_for, key_for_comparison
from services.ai.exceptions import (
    NotConfigured,
    PersistenceError,
    RateLimited,
    SummaryServiceError,
    TransientBackendError,
)
from services.ai.input_resolver import (
    DbListingSource,
    InputResolver,
    validate_comparison_ids,
)
from services.ai.interfaces import SummaryBackendProtocol
from services.ai.model_factory import is_generation_configured
from services.ai.models import (
    CacheHit,
    CacheMiss,
    GenerationContext,
    GenerationEvent,
    ResolvedInput,
)
from services.ai.prompts import (
    build_comparison_prompt,
    build_resume_prompt,
    build_skills_prompt,
    build_summary_prompt,
)


logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

SUMMARY_FAILED_MESSAGE = "Summary generation failed. Please try again."
COMPARISON_FAILED_MESSAGE = "Comparison generation failed. Please try again."

# Producer tasks are referenced here until done so a dropped consumer cannot
# let them be garbage collected mid-generation.
_background_tasks: set[asyncio.Task[None]] = set()

ResolverFactory = Callable[[AsyncSession], InputResolver]


class PydanticAISummaryBackend(SummaryBackendProtocol):
    """Generation backend over pydantic-ai agents.

    Agents are created lazily on first use so constructing the backend never
    requires model credentials.
    """

    STREAM_DEBOUNCE_SECONDS = 0.1

    def __init__(self) -> None:
        self._summary_agent: Any | None = None
        self._comparison_agent: Any | None = None
        self._skills_agent: Any | None = None
        self._resume_agent: Any | None = None

    async def _stream(self, agent: Any, prompt: str) -> AsyncIterator[GenerationEvent]:
        async with agent.run_stream(prompt) as result:
            async for partial in result.stream_output(
                debounce_by=self.STREAM_DEBOUNCE_SECONDS
            ):
                yield GenerationEvent("partial", partial.model_dump(exclude_none=True))
            output = await result.get_output()
        yield GenerationEvent("complete", output.model_dump(exclude_none=True))

    async def stream_summary(
        self, resolved: ResolvedInput, context: GenerationContext
    ) -> AsyncIterator[GenerationEvent]:
        if self._summary_agent is None:
            self._summary_agent = create_summary_agent()
        async for event in self._stream(
            self._summary_agent, build_summary_prompt(resolved, context)
        ):
            yield event

    async def stream_comparison(
        self, resolved: ResolvedInput, context: GenerationContext
    ) -> AsyncIterator[GenerationEvent]:
        if self._comparison_agent is None:
            self._comparison_agent = create_comparison_agent()
        async for event in self._stream(
            self._comparison_agent, build_comparison_prompt(resolved, context)
        ):
            yield event

    async def suggest_skills(self, role: str) -> SkillSuggestions:
        if self._skills_agent is None:
            self._skills_agent = create_skills_agent()
        result = await self._skills_agent.run(build_skills_prompt(role))
        return result.output

    async def parse_resume(self, text: str) -> ResumeParseResult:
        if self._resume_agent is None:
            self._resume_agent = create_resume_agent()
        max_chars = get_settings().MAX_INPUT_CHARS
        result = await self._resume_agent.run(build_resume_prompt(text, max_chars))
        return result.output


def is_partial_extension(previous: dict[str, Any], current: dict[str, Any]) -> bool:
    """True if `current` keeps every field of `previous` without shrinking it.

    Strings and lists may only grow; nested objects are compared recursively.
    """
    for key, old in previous.items():
        if key not in current:
            return False
        new = current[key]
        if isinstance(old, str):
            if not isinstance(new, str) or len(new) < len(old):
                return False
        elif isinstance(old, list):
            if not isinstance(new, list) or len(new) < len(old):
                return False
        elif isinstance(old, dict):
            if not isinstance(new, dict) or not is_partial_extension(old, new):
                return False
    return True


def classify_generation_error(
    exc: BaseException, fallback_message: str
) -> SummaryServiceError:
    """Map a generation failure onto the domain taxonomy."""
    if isinstance(exc, SummaryServiceError):
        return exc
    if is_rate_limit_error(exc):
        return RateLimited()
    return TransientBackendError(fallback_message)


def _fallback_message(miss: CacheMiss) -> str:
    if miss.kind == "compare":
        return COMPARISON_FAILED_MESSAGE
    return SUMMARY_FAILED_MESSAGE


def _artifact_out(
    miss: CacheMiss, row: AISummary | ComparisonSummary
) -> SummaryArtifactOut | ComparisonArtifactOut:
    if miss.kind == "compare":
        return ComparisonArtifactOut.from_row(row, cached=False)
    return SummaryArtifactOut.from_row(row, cached=False)


def _finalize_summary(payload: dict[str, Any]) -> dict[str, Any]:
    return JobSummary.model_validate(payload).model_dump(exclude_none=True)


def _finalize_comparison(
    payload: dict[str, Any], item_ids: list[str]
) -> dict[str, Any]:
    comparison = JobComparison.model_validate(payload)
    if (
        comparison.recommended_listing_id is not None
        and comparison.recommended_listing_id not in item_ids
    ):
        logger.info("Dropping recommendation for unknown listing id")
        comparison.recommended_listing_id = None
        comparison.recommendation_reason = None
    return comparison.model_dump(exclude_none=True)


class SummaryOrchestrator:
    """Coordinates resolve, cache check, generation and persistence."""

    def __init__(
        self,
        backend: SummaryBackendProtocol | None = None,
        executor: BackoffExecutor | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        resolver_factory: ResolverFactory | None = None,
        is_configured: Callable[[], bool] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.backend = backend or PydanticAISummaryBackend()
        self.executor = executor or BackoffExecutor(
            RetryPolicy.from_settings(self.settings)
        )
        self._session_factory = session_factory
        self._resolver_factory: ResolverFactory = resolver_factory or (
            lambda db: InputResolver(DbListingSource(db))
        )
        self._is_configured = is_configured or is_generation_configured

    # ------------------------------------------------------------------ #
    # Phase 1: prepare
    # ------------------------------------------------------------------ #
    def ensure_configured(self) -> None:
        if not self._is_configured():
            raise NotConfigured()

    def _cache_since(self) -> datetime | None:
        ttl = self.settings.AI_SUMMARY_CACHE_TTL_SECONDS
        if ttl <= 0:
            return None
        return datetime.now(UTC) - timedelta(seconds=ttl)

    async def prepare_summary(
        self,
        db: AsyncSession,
        request: SingleRequest,
        user_id: str,
    ) -> CacheHit[AISummary] | CacheMiss:
        """Resolve a single-summary request and check the cache.

        Raises:
            NotConfigured: before any resolution when no backend credential
                is available
            ListingNotFound | FetchFailed | UnsupportedFormat | EmptyInput:
                from the input resolver, unchanged
        """
        self.ensure_configured()
        resolved = await self._resolver_factory(db).resolve(request)
        cache_key = key_for(resolved.text, user_id)

        existing = await find_summary(db, user_id, cache_key, since=self._cache_since())
        if existing is not None:
            logger.info("Summary cache hit for user %s", user_id)
            return CacheHit(existing)
        return CacheMiss("summary", resolved, cache_key, user_id)

    async def prepare_comparison(
        self, db: AsyncSession, request: CompareRequest, user_id: str
    ) -> CacheHit[ComparisonSummary] | CacheMiss:
        """Validate, resolve and cache-check a comparison request.

        `force_regenerate` skips the cache lookup; the new artifact is added
        alongside the old one and wins later lookups by recency.
        """
        self.ensure_configured()
        validate_comparison_ids(request.item_ids)
        resolved = await self._resolver_factory(db).resolve_comparison(request)
        cache_key = key_for_comparison(resolved.item_ids, user_id)

        if not request.force_regenerate:
            existing = await find_comparison(
                db, user_id, cache_key, since=self._cache_since()
            )
            if existing is not None:
                logger.info("Comparison cache hit for user %s", user_id)
                return CacheHit(existing)
        return CacheMiss("compare", resolved, cache_key, user_id)

    async def load_context(self, db: AsyncSession, user_id: str) -> GenerationContext:
        profile = await get_profile_by_user_id(db, user_id)
        return GenerationContext.from_profile(profile)

    # ------------------------------------------------------------------ #
    # Phase 2: generate
    # ------------------------------------------------------------------ #
    async def generate_stream(
        self, miss: CacheMiss, context: GenerationContext | None = None
    ) -> AsyncIterator[StreamRecord]:
        """Relay generation of `miss` as stream records.

        Yields partials in producer order and always ends with exactly one
        terminal record. Closing this iterator early does not cancel the
        producer.
        """
        self.ensure_configured()
        queue: asyncio.Queue[StreamRecord] = asyncio.Queue()
        task = asyncio.create_task(
            self._produce(miss, context or GenerationContext(), queue)
        )
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

        while True:
            record = await queue.get()
            yield record
            if record.is_terminal:
                break

    async def generate(
        self, miss: CacheMiss, context: GenerationContext | None = None
    ) -> StreamRecord:
        """Drain `generate_stream` and return its terminal record."""
        terminal: StreamRecord | None = None
        async for record in self.generate_stream(miss, context):
            if record.is_terminal:
                terminal = record
        if terminal is None:
            raise TransientBackendError(_fallback_message(miss))
        return terminal

    async def _produce(
        self,
        miss: CacheMiss,
        context: GenerationContext,
        queue: asyncio.Queue[StreamRecord],
    ) -> None:
        terminal_sent = False

        def emit_terminal(record: StreamRecord) -> None:
            nonlocal terminal_sent
            terminal_sent = True
            queue.put_nowait(record)

        fallback = _fallback_message(miss)
        try:
            with tracer.start_as_current_span("summary.generate") as span:
                span.set_attribute("summary.kind", miss.kind)
                try:
                    payload = await self._run_generation(miss, context, queue)
                except Exception as exc:
                    error = classify_generation_error(exc, fallback)
                    logger.warning(
                        "Generation failed for user %s: %s (%s)",
                        miss.user_id,
                        error.error_code,
                        type(exc).__name__,
                    )
                    span.set_attribute("summary.error_code", error.error_code)
                    emit_terminal(StreamRecord.error(error.error_code, error.message))
                    return

                try:
                    artifact = await self._persist(miss, payload)
                except Exception:
                    logger.exception("Failed to persist generated %s", miss.kind)
                    error = PersistenceError()
                    span.set_attribute("summary.error_code", error.error_code)
                    emit_terminal(
                        StreamRecord.error(error.error_code, error.message, payload)
                    )
                    return

                emit_terminal(StreamRecord.complete(_artifact_out(miss, artifact)))
        finally:
            # Cancellation or an unexpected BaseException still ends the stream.
            if not terminal_sent:
                error = TransientBackendError(fallback)
                queue.put_nowait(StreamRecord.error(error.error_code, error.message))

    async def _run_generation(
        self,
        miss: CacheMiss,
        context: GenerationContext,
        queue: asyncio.Queue[StreamRecord],
    ) -> dict[str, Any]:
        relayed = False

        async def attempt() -> dict[str, Any]:
            nonlocal relayed
            last_partial: dict[str, Any] | None = None
            final: dict[str, Any] | None = None
            if miss.kind == "compare":
                events = self.backend.stream_comparison(miss.resolved, context)
            else:
                events = self.backend.stream_summary(miss.resolved, context)

            async for event in events:
                if event.kind == "complete":
                    final = event.payload
                    continue
                if last_partial is not None and not is_partial_extension(
                    last_partial, event.payload
                ):
                    logger.debug("Dropping non-monotonic partial")
                    continue
                last_partial = event.payload
                relayed = True
                queue.put_nowait(StreamRecord.partial(event.payload))

            if final is None:
                raise TransientBackendError("Generation ended without a result")
            return final

        # Once partials reached the caller the stream cannot restart.
        raw = await self.executor.run(
            attempt,
            fallback_message=_fallback_message(miss),
            should_retry=lambda _exc: not relayed,
        )
        if miss.kind == "compare":
            return _finalize_comparison(raw, miss.resolved.item_ids)
        return _finalize_summary(raw)

    async def _persist(
        self, miss: CacheMiss, payload: dict[str, Any]
    ) -> AISummary | ComparisonSummary:
        session_factory = self._session_factory
        if session_factory is None:
            from dependencies.db import get_session_factory

            session_factory = get_session_factory()

        async with session_factory() as session:
            if miss.kind == "compare":
                return await insert_comparison(
                    session,
                    miss.user_id,
                    miss.cache_key,
                    miss.resolved.item_ids,
                    payload,
                )
            return await insert_summary(
                session,
                miss.user_id,
                miss.cache_key,
                hash_input_text(miss.resolved.text),
                payload,
            )

    # ------------------------------------------------------------------ #
    # Auxiliary operations
    # ------------------------------------------------------------------ #
    async def suggest_skills(self, role: str) -> SkillSuggestions:
        """Suggest 8-12 profile skills for a job role."""
        self.ensure_configured()
        result = await self.executor.run(
            lambda: self.backend.suggest_skills(role),
            fallback_message="Could not suggest skills. Please try again.",
        )
        seen: set[str] = set()
        skills = []
        for skill in result.skills:
            cleaned = skill.strip()
            if cleaned and cleaned.lower() not in seen:
                seen.add(cleaned.lower())
                skills.append(cleaned)
        return SkillSuggestions(skills=skills[:12])

    async def parse_resume(self, text: str) -> ResumeParseResult:
        self.ensure_configured()
        return await self.executor.run(
            lambda: self.backend.parse_resume(text),
            fallback_message="Could not parse resume. Please try again.",
        )


_orchestrator: SummaryOrchestrator | None = None


def get_summary_orchestrator() -> SummaryOrchestrator:
    """FastAPI dependency returning the process-wide orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = SummaryOrchestrator()
    return _orchestrator
