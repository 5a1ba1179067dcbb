from collections import deque
from dataclasses import dataclass, field
from datetime import datetime

from core.types import (
    Complexity,
    LearningTrend,
    PlanningStyle,
    QuestionType,
    SkillCategory,
    WorkingTime,
)


@dataclass(frozen=True)
class CodeBlockStats:
    blocks: int = 0
    inline: int = 0
    has_code: bool = False


@dataclass(frozen=True)
class InteractionTags:
    languages: frozenset[str] = frozenset()
    frameworks: frozenset[str] = frozenset()
    technologies: frozenset[str] = frozenset()
    code_blocks: CodeBlockStats = CodeBlockStats()
    question_type: QuestionType = QuestionType.GENERAL
    complexity: Complexity = Complexity.SIMPLE
    is_project_related: bool = False
    project_name: str | None = None


@dataclass(frozen=True)
class InteractionRecord:
    user_id: str
    channel: str
    user_text: str
    response_text: str
    timestamp: datetime
    tags: InteractionTags = InteractionTags()
    username: str | None = None


@dataclass
class ProjectInteraction:
    timestamp: datetime
    message: str
    response: str
    channel: str


@dataclass
class ProjectContext:
    user_id: str
    project_name: str
    last_activity: datetime
    technologies: set[str] = field(default_factory=set)  # frameworks + technologies
    languages: set[str] = field(default_factory=set)
    interactions: list[ProjectInteraction] = field(default_factory=list)

    @property
    def interaction_count(self) -> int:
        return len(self.interactions)

    @property
    def tech_stack(self) -> list[str]:
        return sorted(self.languages) + sorted(self.technologies - self.languages)


@dataclass
class SkillInteraction:
    timestamp: datetime
    channel: str
    context: str
    difficulty: Complexity


@dataclass
class SkillEntry:
    skill: str
    category: SkillCategory
    progress_value: int


@dataclass
class SkillProgression:
    user_id: str
    skill: str
    category: SkillCategory
    last_practiced: datetime
    interaction_count: int = 0
    level_progress: dict[str, float] = field(default_factory=dict)
    # Oldest first; maxlen evicts FIFO
    recent_interactions: deque[SkillInteraction] = field(default_factory=lambda: deque(maxlen=10))


@dataclass
class TechnicalSession:
    user_id: str
    created_at: datetime
    focus_area: str | None = None
    mood: str | None = None
    energy: str | None = None
    priorities: str | None = None
    goals: str | None = None
    notes: str = ""
    duration_minutes: int = 0


@dataclass
class AggregateResult:
    user_id: str = ""
    window_days: int = 0
    total_interactions: int = 0
    channel_counts: dict[str, int] = field(default_factory=dict)
    language_counts: dict[str, int] = field(default_factory=dict)
    framework_counts: dict[str, int] = field(default_factory=dict)
    technology_counts: dict[str, int] = field(default_factory=dict)
    question_types: dict[str, int] = field(default_factory=dict)
    complexity_distribution: dict[str, int] = field(
        default_factory=lambda: {c.value: 0 for c in Complexity}
    )
    preferred_languages: list[str] = field(default_factory=list)
    preferred_frameworks: list[str] = field(default_factory=list)
    most_active_channel: str = "general"
    interactions: list[InteractionRecord] = field(default_factory=list)
    projects: list[ProjectContext] = field(default_factory=list)
    skills: list[SkillProgression] = field(default_factory=list)
    sessions: list[TechnicalSession] = field(default_factory=list)


@dataclass
class WorkingHoursPattern:
    hour_counts: dict[int, int] = field(default_factory=dict)
    peak_hours: list[int] = field(default_factory=list)
    preferred_working_time: WorkingTime | None = None


@dataclass
class PlanningPattern:
    style: PlanningStyle | None = None
    ratio: float = 0.0
    total: int = 0


@dataclass
class WeeklyPattern:
    day_counts: dict[str, int] = field(default_factory=dict)
    most_active_day: str | None = None


@dataclass
class TrendResult:
    working_hours: WorkingHoursPattern = field(default_factory=WorkingHoursPattern)
    planning: PlanningPattern = field(default_factory=PlanningPattern)
    weekly: WeeklyPattern = field(default_factory=WeeklyPattern)
    skill_trends: dict[str, LearningTrend] = field(default_factory=dict)


@dataclass
class MemoryContext:
    user_id: str
    channel_type: str
    aggregate: AggregateResult
    trends: TrendResult
    summary: str
    current_message: str = ""


@dataclass
class MemoryStats:
    interactions: int = 0
    projects: int = 0
    skills: int = 0
    sessions: int = 0
    users: int = 0

    def format(self) -> str:
        return "\n".join(
            [
                f"Interactions: {self.interactions}",
                f"Projects: {self.projects}",
                f"Skills: {self.skills}",
                f"Sessions: {self.sessions}",
                f"Users: {self.users}",
            ]
        )
