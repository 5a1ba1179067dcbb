import dataclasses
import logging
from datetime import datetime

from core.cache import TTLCache
from core.config import Config
from memory.aggregator import aggregate
from memory.extractor import derive_skills, extract_tags
from memory.store import MemoryStore
from memory.summary import FALLBACK_SUMMARY, compile_summary
from memory.trends import analyze
from memory.types import (
    AggregateResult,
    InteractionRecord,
    MemoryContext,
    MemoryStats,
    ProjectInteraction,
    SkillInteraction,
    TechnicalSession,
    TrendResult,
)

logger = logging.getLogger(__name__)

SKILL_CONTEXT_CHARS = 100


def _local_naive(timestamp: datetime) -> datetime:
    # Stored timestamps are naive local time; aware ones are converted first
    if timestamp.tzinfo is None:
        return timestamp
    return timestamp.astimezone().replace(tzinfo=None)


class MemoryService:
    """Write and read paths over a ``MemoryStore``.

    Nothing here raises to the caller: storing memory is auxiliary to the
    chat response, so failures are logged and degrade to neutral results.
    The three writes of ``store_interaction`` are independent; a failed
    sub-store simply lags behind until the next interaction.
    """

    def __init__(self, store: MemoryStore, config: Config, cache: TTLCache | None = None):
        self.store = store
        self.config = config
        self.cache = cache if cache is not None else TTLCache(config.memory.cache_ttl_seconds)

    def store_interaction(
        self,
        user_id: str,
        channel: str,
        user_text: str | None,
        response_text: str | None,
        timestamp: datetime | None = None,
        username: str | None = None,
    ) -> InteractionRecord:
        user_text = user_text or ""
        response_text = response_text or ""
        record = InteractionRecord(
            user_id=user_id,
            channel=channel,
            user_text=user_text,
            response_text=response_text,
            timestamp=_local_naive(timestamp or datetime.now()),
            tags=extract_tags(user_text, channel),
            username=username,
        )

        try:
            self.store.insert_interaction(record)
        except Exception:
            logger.exception("Failed to store interaction for user %s", user_id)

        try:
            self._update_project(record)
        except Exception:
            logger.exception("Failed to update project context for user %s", user_id)

        try:
            self._update_skills(record)
        except Exception:
            logger.exception("Failed to update skill progression for user %s", user_id)

        self.cache.invalidate_prefix(user_id)
        return record

    def _update_project(self, record: InteractionRecord) -> None:
        name = record.tags.project_name
        if not name:
            return
        self.store.upsert_project(
            record.user_id,
            name,
            languages=record.tags.languages,
            technologies=record.tags.frameworks | record.tags.technologies,
            interaction=ProjectInteraction(
                timestamp=record.timestamp,
                message=record.user_text,
                response=record.response_text,
                channel=record.channel,
            ),
        )
        logger.debug("Updated project %r for user %s", name, record.user_id)

    def _update_skills(self, record: InteractionRecord) -> None:
        for entry in derive_skills(record.tags):
            self.store.upsert_skill(
                record.user_id,
                entry,
                SkillInteraction(
                    timestamp=record.timestamp,
                    channel=record.channel,
                    context=record.user_text[:SKILL_CONTEXT_CHARS],
                    difficulty=record.tags.complexity,
                ),
            )

    def record_session(self, session: TechnicalSession) -> bool:
        session = dataclasses.replace(session, created_at=_local_naive(session.created_at))
        try:
            self.store.insert_session(session)
        except Exception:
            logger.exception("Failed to store session for user %s", session.user_id)
            return False
        self.cache.invalidate_prefix(session.user_id)
        return True

    def get_relevant_context(
        self,
        user_id: str,
        channel_type: str,
        current_message: str = "",
        lookback_days: int | None = None,
        now: datetime | None = None,
    ) -> MemoryContext:
        lookback_days = lookback_days or self.config.memory.lookback_days
        key = (user_id, channel_type, lookback_days)
        if now is None:
            cached = self.cache.get(key)
            if cached is not None:
                return dataclasses.replace(cached, current_message=current_message)

        try:
            result = aggregate(
                self.store,
                user_id,
                window_days=lookback_days,
                now=now,
                max_interactions=self.config.memory.max_interactions,
                max_projects=self.config.memory.max_projects,
                max_skills=self.config.memory.max_skills,
                max_sessions=self.config.memory.max_sessions,
                channel_order=self.config.channels,
            )
            trends = analyze(result)
            summary = compile_summary(result, trends, max_chars=self.config.memory.summary_max_chars)
        except Exception:
            logger.exception("Failed to build memory context for user %s", user_id)
            result = AggregateResult(user_id=user_id, window_days=lookback_days)
            trends = TrendResult()
            summary = FALLBACK_SUMMARY

        context = MemoryContext(
            user_id=user_id,
            channel_type=channel_type,
            aggregate=result,
            trends=trends,
            summary=summary,
            current_message=current_message,
        )
        if now is None:
            self.cache.set(key, context)
        return context

    def reset_memory(self, channel: str | None = None, user_id: str | None = None) -> dict[str, int]:
        try:
            deleted = self.store.delete_memory(channel=channel, user_id=user_id)
        except Exception:
            logger.exception("Failed to reset memory (channel=%s, user=%s)", channel, user_id)
            return {}
        self.cache.clear()
        logger.info("Memory reset (channel=%s, user=%s): %s", channel, user_id, deleted)
        return deleted

    def get_stats(self) -> MemoryStats:
        try:
            return self.store.counts()
        except Exception:
            logger.exception("Failed to read memory statistics")
            return MemoryStats()

    def close(self) -> None:
        self.store.close()
