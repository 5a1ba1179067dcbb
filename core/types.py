from enum import StrEnum


class QuestionType(StrEnum):
    HOW_TO = "how-to"
    DEBUGGING = "debugging"
    CODE_REVIEW = "code-review"
    BEST_PRACTICES = "best-practices"
    EXPLANATION = "explanation"
    OPTIMIZATION = "optimization"
    ARCHITECTURE = "architecture"
    GENERAL = "general"


class Complexity(StrEnum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class SkillCategory(StrEnum):
    PROGRAMMING = "programming"
    FRAMEWORK = "framework"
    TECHNOLOGY = "technology"


class WorkingTime(StrEnum):
    MORNING = "morning-person"
    AFTERNOON = "afternoon-person"
    EVENING = "evening-person"


class LearningTrend(StrEnum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient-data"


class PlanningStyle(StrEnum):
    DETAILED = "detailed"
    HIGH_LEVEL = "high-level"


# simple=1, medium=2, complex=3
COMPLEXITY_SCORES: dict[Complexity, int] = {
    Complexity.SIMPLE: 1,
    Complexity.MEDIUM: 2,
    Complexity.COMPLEX: 3,
}
