from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime

from core.types import COMPLEXITY_SCORES, Complexity, LearningTrend, PlanningStyle, WorkingTime
from memory.types import (
    AggregateResult,
    PlanningPattern,
    SkillInteraction,
    TrendResult,
    WeeklyPattern,
    WorkingHoursPattern,
)

MORNING_HOURS = range(6, 12)
AFTERNOON_HOURS = range(12, 18)
EVENING_HOURS = range(18, 24)
PEAK_HOURS_LIMIT = 3

MIN_TREND_INTERACTIONS = 3
RECENT_GROUP_SIZE = 5

PLANNING_CHANNEL = "planning"
PLANNING_KEYWORDS: tuple[str, ...] = ("task", "step", "plan")
DETAILED_PLANNING_RATIO = 0.3

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def classify_working_time(hour_counts: dict[int, int]) -> WorkingTime:
    """Ties favor morning, then evening."""
    morning = sum(hour_counts.get(h, 0) for h in MORNING_HOURS)
    afternoon = sum(hour_counts.get(h, 0) for h in AFTERNOON_HOURS)
    evening = sum(hour_counts.get(h, 0) for h in EVENING_HOURS)
    if morning >= afternoon and morning >= evening:
        return WorkingTime.MORNING
    if evening >= afternoon:
        return WorkingTime.EVENING
    return WorkingTime.AFTERNOON


def analyze_working_hours(timestamps: Iterable[datetime]) -> WorkingHoursPattern:
    hours = Counter(ts.hour for ts in timestamps)
    if not hours:
        return WorkingHoursPattern()
    peak_hours = sorted(hours, key=lambda h: (-hours[h], h))[:PEAK_HOURS_LIMIT]
    return WorkingHoursPattern(
        hour_counts=dict(sorted(hours.items())),
        peak_hours=peak_hours,
        preferred_working_time=classify_working_time(hours),
    )


def _tier_for_average(average: float) -> Complexity:
    if average < 1.5:
        return Complexity.SIMPLE
    if average < 2.5:
        return Complexity.MEDIUM
    return Complexity.COMPLEX


def _average_tier(group: Sequence[SkillInteraction]) -> Complexity:
    average = sum(COMPLEXITY_SCORES[i.difficulty] for i in group) / len(group)
    return _tier_for_average(average)


def learning_trend(recent_interactions: Iterable[SkillInteraction]) -> LearningTrend:
    """Compare the difficulty tier of the newest interactions with the older ones.

    Interactions are ordered oldest first. The recent group is the last five
    entries and the older group is the remainder. Histories of five or fewer
    keep the oldest entry as the older group.
    """
    history = list(recent_interactions)
    if len(history) < MIN_TREND_INTERACTIONS:
        return LearningTrend.INSUFFICIENT_DATA

    split = len(history) - min(RECENT_GROUP_SIZE, len(history) - 1)
    recent = COMPLEXITY_SCORES[_average_tier(history[split:])]
    older = COMPLEXITY_SCORES[_average_tier(history[:split])]
    if recent > older:
        return LearningTrend.IMPROVING
    if recent < older:
        return LearningTrend.DECLINING
    return LearningTrend.STABLE


def task_breakdown_style(planning_messages: Iterable[str]) -> PlanningPattern:
    messages = [m.lower() for m in planning_messages]
    if not messages:
        return PlanningPattern()
    detailed = sum(1 for m in messages if any(k in m for k in PLANNING_KEYWORDS))
    ratio = detailed / len(messages)
    style = PlanningStyle.DETAILED if ratio > DETAILED_PLANNING_RATIO else PlanningStyle.HIGH_LEVEL
    return PlanningPattern(style=style, ratio=ratio, total=len(messages))


def weekly_activity(timestamps: Iterable[datetime]) -> WeeklyPattern:
    days = Counter(WEEKDAYS[ts.weekday()] for ts in timestamps)
    if not days:
        return WeeklyPattern()
    most_active = min(days, key=lambda d: (-days[d], WEEKDAYS.index(d)))
    return WeeklyPattern(
        day_counts={d: days[d] for d in WEEKDAYS if d in days},
        most_active_day=most_active,
    )


def analyze(aggregate: AggregateResult) -> TrendResult:
    timestamps = [i.timestamp for i in aggregate.interactions]
    timestamps += [s.created_at for s in aggregate.sessions]
    planning = [i.user_text for i in aggregate.interactions if i.channel == PLANNING_CHANNEL]

    return TrendResult(
        working_hours=analyze_working_hours(timestamps),
        planning=task_breakdown_style(planning),
        weekly=weekly_activity(timestamps),
        skill_trends={s.skill: learning_trend(s.recent_interactions) for s in aggregate.skills},
    )
