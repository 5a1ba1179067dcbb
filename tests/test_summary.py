from datetime import datetime

from core.types import Complexity, LearningTrend, PlanningStyle, SkillCategory, WorkingTime
from memory.summary import FALLBACK_SUMMARY, HEADER, compile_summary
from memory.types import (
    AggregateResult,
    PlanningPattern,
    ProjectContext,
    ProjectInteraction,
    SkillProgression,
    TechnicalSession,
    TrendResult,
    WeeklyPattern,
    WorkingHoursPattern,
)

NOW = datetime(2026, 10, 19, 12, 0, 0)


def _project(name: str, interactions: int = 1) -> ProjectContext:
    return ProjectContext(
        user_id="u1",
        project_name=name,
        last_activity=NOW,
        languages={"python"},
        technologies={"fastapi"},
        interactions=[ProjectInteraction(NOW, "m", "r", "projects") for _ in range(interactions)],
    )


def _skill(name: str, count: int) -> SkillProgression:
    return SkillProgression(
        user_id="u1", skill=name, category=SkillCategory.PROGRAMMING, last_practiced=NOW, interaction_count=count
    )


def test_empty_returns_fallback():
    assert compile_summary(AggregateResult(), TrendResult()) == FALLBACK_SUMMARY


def test_section_order():
    aggregate = AggregateResult(
        total_interactions=5,
        preferred_languages=["python"],
        preferred_frameworks=["fastapi"],
        projects=[_project("atlas")],
        skills=[_skill("python", 4)],
        complexity_distribution={"simple": 1, "medium": 1, "complex": 3},
        question_types={"debugging": 3, "how-to": 1},
        most_active_channel="coding",
        sessions=[TechnicalSession(user_id="u1", created_at=NOW, focus_area="testing")],
    )
    trends = TrendResult(
        working_hours=WorkingHoursPattern(preferred_working_time=WorkingTime.EVENING),
        planning=PlanningPattern(style=PlanningStyle.DETAILED, ratio=0.5, total=2),
        weekly=WeeklyPattern(most_active_day="Tuesday"),
    )
    lines = compile_summary(aggregate, trends).splitlines()
    assert lines[0] == HEADER
    prefixes = [
        "- Latest session",
        "- Preferred languages",
        "- Preferred frameworks",
        "- Active projects",
        "- Skill focus",
        "- Prefers complex problems",
        "- Often asks about",
        "- Most active in #coding",
        "- Working pattern",
    ]
    assert len(lines) == len(prefixes) + 1
    for line, prefix in zip(lines[1:], prefixes, strict=True):
        assert line.startswith(prefix)
    assert lines[-1] == "- Working pattern: Evening person, breaks work into detailed tasks, most active on Tuesdays"


def test_omits_projects_when_absent():
    summary = compile_summary(AggregateResult(total_interactions=1, preferred_languages=["rust"]), TrendResult())
    assert "Active projects" not in summary
    assert "- \n" not in summary
    assert not summary.endswith("- ")
    assert summary.splitlines()[1] == "- Preferred languages: rust"


def test_active_projects_top_three():
    aggregate = AggregateResult(projects=[_project(n, i + 1) for i, n in enumerate(["a", "b", "c", "d"])])
    summary = compile_summary(aggregate, TrendResult())
    assert "a (python, fastapi) - 1 interaction;" in summary
    assert "c (python, fastapi) - 3 interactions" in summary
    assert " d " not in summary


def test_skill_focus_improving_clause():
    aggregate = AggregateResult(skills=[_skill("rust", 2), _skill("python", 5), _skill("sql", 1), _skill("css", 1)])
    trends = TrendResult(skill_trends={"rust": LearningTrend.IMPROVING, "css": LearningTrend.IMPROVING})
    summary = compile_summary(aggregate, trends)
    assert "- Skill focus: python, rust, sql (currently improving: rust)" in summary


def test_complexity_threshold():
    at_threshold = AggregateResult(complexity_distribution={"simple": 3, "medium": 0, "complex": 2})
    assert "complex" not in compile_summary(at_threshold, TrendResult())
    above = AggregateResult(complexity_distribution={"simple": 1, "medium": 1, "complex": 1})
    assert "Prefers complex problems (33%" not in compile_summary(above, TrendResult())
    majority = AggregateResult(complexity_distribution={"simple": 1, "medium": 0, "complex": 2})
    assert "Prefers complex problems (67% of questions)" in compile_summary(majority, TrendResult())


def test_question_types_top_two_without_general():
    aggregate = AggregateResult(question_types={"general": 9, "best-practices": 2, "code-review": 2, "how-to": 1})
    summary = compile_summary(aggregate, TrendResult())
    assert "- Often asks about: code review, best practices" in summary


def test_general_channel_not_reported():
    aggregate = AggregateResult(total_interactions=3, most_active_channel="general", preferred_languages=["go"])
    assert "Most active" not in compile_summary(aggregate, TrendResult())


def test_latest_session_snapshot():
    session = TechnicalSession(
        user_id="u1", created_at=NOW, focus_area="auth", mood="focused", energy="high", goals="ship login"
    )
    summary = compile_summary(AggregateResult(sessions=[session]), TrendResult())
    assert (
        "- Latest session (Mon Oct 19 2026): focus on auth, mood focused, energy high. Goals: ship login" in summary
    )


def test_bounded_length():
    aggregate = AggregateResult(
        preferred_languages=["python"],
        projects=[_project("p" * 50) for _ in range(3)],
        sessions=[TechnicalSession(user_id="u1", created_at=NOW, priorities="x" * 2000)],
    )
    summary = compile_summary(aggregate, TrendResult(), max_chars=300)
    assert len(summary) <= 300
    # The oversized session line is dropped whole, later sections survive
    assert "Latest session" not in summary
    assert "- Preferred languages: python" in summary


def test_complexity_uses_enum_keys():
    aggregate = AggregateResult(complexity_distribution={c.value: 0 for c in Complexity})
    assert compile_summary(aggregate, TrendResult()) == FALLBACK_SUMMARY
