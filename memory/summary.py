from collections.abc import Callable

from core.types import Complexity, LearningTrend, PlanningStyle, QuestionType, WorkingTime
from memory.aggregator import DEFAULT_CHANNEL, rank_by_frequency
from memory.types import AggregateResult, TrendResult

HEADER = "RECENT CONTEXT:"
FALLBACK_SUMMARY = "No significant patterns detected yet."
DEFAULT_MAX_CHARS = 1500

COMPLEX_PREFERENCE_SHARE = 0.4
TOP_PROJECTS = 3
TOP_SKILLS = 3
TOP_QUESTION_TYPES = 2

WORKING_TIME_LABELS: dict[WorkingTime, str] = {
    WorkingTime.MORNING: "Morning person",
    WorkingTime.AFTERNOON: "Afternoon person",
    WorkingTime.EVENING: "Evening person",
}

PLANNING_LABELS: dict[PlanningStyle, str] = {
    PlanningStyle.DETAILED: "breaks work into detailed tasks",
    PlanningStyle.HIGH_LEVEL: "plans at a high level",
}

Section = Callable[[AggregateResult, TrendResult], str | None]


def _latest_session(aggregate: AggregateResult, trends: TrendResult) -> str | None:
    if not aggregate.sessions:
        return None
    latest = aggregate.sessions[0]
    details = [f"Latest session ({latest.created_at:%a %b %d %Y})"]
    if latest.focus_area:
        details.append(f"focus on {latest.focus_area}")
    if latest.mood or latest.energy:
        details.append(f"mood {latest.mood or 'unknown'}, energy {latest.energy or 'unknown'}")
    line = ": ".join([details[0], ", ".join(details[1:])]) if len(details) > 1 else details[0]
    extras = []
    if latest.priorities:
        extras.append(f"Priorities: {latest.priorities}")
    if latest.goals:
        extras.append(f"Goals: {latest.goals}")
    return ". ".join([line, *extras])


def _preferred_languages(aggregate: AggregateResult, trends: TrendResult) -> str | None:
    if not aggregate.preferred_languages:
        return None
    return f"Preferred languages: {', '.join(aggregate.preferred_languages)}"


def _preferred_frameworks(aggregate: AggregateResult, trends: TrendResult) -> str | None:
    if not aggregate.preferred_frameworks:
        return None
    return f"Preferred frameworks: {', '.join(aggregate.preferred_frameworks)}"


def _active_projects(aggregate: AggregateResult, trends: TrendResult) -> str | None:
    if not aggregate.projects:
        return None
    parts = []
    for project in aggregate.projects[:TOP_PROJECTS]:
        stack = f" ({', '.join(project.tech_stack)})" if project.tech_stack else ""
        count = project.interaction_count
        parts.append(f"{project.project_name}{stack} - {count} interaction{'s' if count != 1 else ''}")
    return f"Active projects: {'; '.join(parts)}"


def _skill_focus(aggregate: AggregateResult, trends: TrendResult) -> str | None:
    if not aggregate.skills:
        return None
    # Stable sort keeps the store's recency order between equal counts
    top = sorted(aggregate.skills, key=lambda s: -s.interaction_count)[:TOP_SKILLS]
    line = f"Skill focus: {', '.join(s.skill for s in top)}"
    improving = [s.skill for s in top if trends.skill_trends.get(s.skill) == LearningTrend.IMPROVING]
    if improving:
        line += f" (currently improving: {', '.join(improving)})"
    return line


def _complexity_preference(aggregate: AggregateResult, trends: TrendResult) -> str | None:
    total = sum(aggregate.complexity_distribution.values())
    if not total:
        return None
    share = aggregate.complexity_distribution.get(Complexity.COMPLEX.value, 0) / total
    if share <= COMPLEX_PREFERENCE_SHARE:
        return None
    return f"Prefers complex problems ({round(share * 100)}% of questions)"


def _question_types(aggregate: AggregateResult, trends: TrendResult) -> str | None:
    counts = {k: v for k, v in aggregate.question_types.items() if k != QuestionType.GENERAL.value}
    top = rank_by_frequency(counts, [q.value for q in QuestionType], limit=TOP_QUESTION_TYPES)
    if not top:
        return None
    return f"Often asks about: {', '.join(q.replace('-', ' ') for q in top)}"


def _workflow_channel(aggregate: AggregateResult, trends: TrendResult) -> str | None:
    if not aggregate.total_interactions or aggregate.most_active_channel == DEFAULT_CHANNEL:
        return None
    return f"Most active in #{aggregate.most_active_channel}"


def _working_pattern(aggregate: AggregateResult, trends: TrendResult) -> str | None:
    parts = []
    if trends.working_hours.preferred_working_time:
        parts.append(WORKING_TIME_LABELS[trends.working_hours.preferred_working_time])
    if trends.planning.style:
        parts.append(PLANNING_LABELS[trends.planning.style])
    if trends.weekly.most_active_day:
        parts.append(f"most active on {trends.weekly.most_active_day}s")
    if not parts:
        return None
    return f"Working pattern: {', '.join(parts)}"


SECTIONS: tuple[Section, ...] = (
    _latest_session,
    _preferred_languages,
    _preferred_frameworks,
    _active_projects,
    _skill_focus,
    _complexity_preference,
    _question_types,
    _workflow_channel,
    _working_pattern,
)


def compile_summary(
    aggregate: AggregateResult,
    trends: TrendResult,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> str:
    """Render the digest injected into prompts.

    Sections are emitted in a fixed order and skipped when their data is
    empty. A section that would push the text past ``max_chars`` is dropped
    whole rather than cut mid-line.
    """
    lines = [HEADER]
    length = len(HEADER)
    for section in SECTIONS:
        text = section(aggregate, trends)
        if not text:
            continue
        bullet = f"- {text}"
        if length + 1 + len(bullet) > max_chars:
            continue
        lines.append(bullet)
        length += 1 + len(bullet)

    if len(lines) == 1:
        return FALLBACK_SUMMARY
    return "\n".join(lines)
