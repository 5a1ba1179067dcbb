import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from core.types import Complexity
from memory.extractor import FRAMEWORKS, LANGUAGES
from memory.store import MemoryStore
from memory.types import AggregateResult, InteractionRecord

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "general"
PREFERRED_LIMIT = 3


def rank_by_frequency(counts: dict[str, int], order: Sequence[str], limit: int = PREFERRED_LIMIT) -> list[str]:
    """Top ``limit`` keys by count; equal counts fall back to position in ``order``,
    then to name for keys ``order`` does not list."""
    position = {name: i for i, name in enumerate(order)}
    ranked = sorted(counts, key=lambda k: (-counts[k], position.get(k, len(position)), k))
    return [k for k in ranked if counts[k] > 0][:limit]


def most_active_channel(channel_counts: dict[str, int], channel_order: Sequence[str] = ()) -> str:
    ranked = rank_by_frequency(channel_counts, channel_order, limit=1)
    return ranked[0] if ranked else DEFAULT_CHANNEL


def summarize_interactions(
    interactions: Iterable[InteractionRecord],
    channel_order: Sequence[str] = (),
) -> AggregateResult:
    """Frequency tables and rankings over already-fetched interactions."""
    interactions = list(interactions)
    channels: Counter[str] = Counter()
    languages: Counter[str] = Counter()
    frameworks: Counter[str] = Counter()
    technologies: Counter[str] = Counter()
    question_types: Counter[str] = Counter()
    complexity = {c.value: 0 for c in Complexity}

    for record in interactions:
        channels[record.channel] += 1
        languages.update(record.tags.languages)
        frameworks.update(record.tags.frameworks)
        technologies.update(record.tags.technologies)
        question_types[record.tags.question_type.value] += 1
        complexity[record.tags.complexity.value] += 1

    return AggregateResult(
        total_interactions=len(interactions),
        channel_counts=dict(channels),
        language_counts=dict(languages),
        framework_counts=dict(frameworks),
        technology_counts=dict(technologies),
        question_types=dict(question_types),
        complexity_distribution=complexity,
        preferred_languages=rank_by_frequency(languages, LANGUAGES),
        preferred_frameworks=rank_by_frequency(frameworks, FRAMEWORKS),
        most_active_channel=most_active_channel(channels, channel_order),
        interactions=interactions,
    )


def aggregate(
    store: MemoryStore,
    user_id: str,
    window_days: int = 14,
    now: datetime | None = None,
    max_interactions: int = 50,
    max_projects: int = 5,
    max_skills: int = 10,
    max_sessions: int = 10,
    channel_order: Sequence[str] = (),
) -> AggregateResult:
    """Scan the user's records inside the lookback window.

    Each collection is read independently; a failing read is logged and
    leaves that part of the result empty.
    """
    since = (now or datetime.now()) - timedelta(days=window_days)

    try:
        interactions = store.find_interactions(user_id, since, limit=max_interactions)
    except Exception:
        logger.exception("Failed to read interactions for user %s", user_id)
        interactions = []

    result = summarize_interactions(interactions, channel_order)
    result.user_id = user_id
    result.window_days = window_days

    try:
        result.projects = store.find_projects(user_id, since, limit=max_projects)
    except Exception:
        logger.exception("Failed to read project contexts for user %s", user_id)

    try:
        result.skills = store.find_skills(user_id, since, limit=max_skills)
    except Exception:
        logger.exception("Failed to read skill progressions for user %s", user_id)

    try:
        result.sessions = store.find_sessions(user_id, since, limit=max_sessions)
    except Exception:
        logger.exception("Failed to read technical sessions for user %s", user_id)

    logger.debug(
        "Aggregated %d interactions, %d projects, %d skills for user %s over %d days",
        result.total_interactions,
        len(result.projects),
        len(result.skills),
        user_id,
        window_days,
    )
    return result
