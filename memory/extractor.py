"""Deterministic tag extraction from raw interaction text.

Every function here is pure and total: ``None`` is read as an empty string
and no input raises. Vocabulary tuples are ordered; that order is the
tie-break used when ranking preferred languages and frameworks.
"""

import re

from core.types import COMPLEXITY_SCORES, Complexity, QuestionType, SkillCategory
from memory.types import CodeBlockStats, InteractionTags, SkillEntry

LANGUAGES: tuple[str, ...] = (
    "javascript",
    "typescript",
    "python",
    "java",
    "c++",
    "c#",
    "golang",
    "rust",
    "php",
    "ruby",
    "swift",
    "kotlin",
    "scala",
    "sql",
    "html",
    "css",
    "bash",
    "dart",
    "elixir",
    "haskell",
    "lua",
)

FRAMEWORKS: tuple[str, ...] = (
    "react",
    "vue",
    "angular",
    "svelte",
    "next.js",
    "node.js",
    "express",
    "django",
    "flask",
    "fastapi",
    "spring",
    "rails",
    "laravel",
    "flutter",
    "tensorflow",
    "pytorch",
    "pandas",
    "tailwind",
    "discord.js",
)

TECHNOLOGIES: tuple[str, ...] = (
    "docker",
    "kubernetes",
    "aws",
    "gcp",
    "azure",
    "mongodb",
    "postgresql",
    "mysql",
    "sqlite",
    "redis",
    "graphql",
    "git",
    "linux",
    "nginx",
    "terraform",
    "kafka",
    "rabbitmq",
    "elasticsearch",
    "webpack",
    "ci/cd",
)

# Ordered: first match wins
QUESTION_RULES: tuple[tuple[QuestionType, tuple[str, ...]], ...] = (
    (QuestionType.HOW_TO, ("how to", "how do")),
    (QuestionType.DEBUGGING, ("debug", "error", "fix")),
    (QuestionType.CODE_REVIEW, ("review", "feedback")),
    (QuestionType.BEST_PRACTICES, ("best practice", "recommend")),
    (QuestionType.EXPLANATION, ("explain", "what is")),
    (QuestionType.OPTIMIZATION, ("optimiz", "performance")),
    (QuestionType.ARCHITECTURE, ("design", "architecture")),
)

COMPLEX_KEYWORDS: tuple[str, ...] = (
    "architecture",
    "scalable",
    "optimiz",
    "refactor",
    "complex",
    "advanced",
    "performance",
)
MEDIUM_KEYWORDS: tuple[str, ...] = ("implement", "create", "build", "design", "integrate")

PROJECT_NAME_MAX_LENGTH = 50

_ARTICLE = r"(?:(?:a|an|the|my|our)\s+)?"
_NAME = r"([A-Za-z0-9][\w\-.]*)"

PROJECT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"project\s+(?:named|called)\s+[\"']([^\"'\n]+)[\"']",
        r"project\s+(?:named|called)\s+" + _NAME,
        r"\bworking\s+on\s+" + _ARTICLE + _NAME,
        r"\bbuilding\s+" + _ARTICLE + _NAME,
        r"\bmy\s+" + _NAME + r"\s+project",
    )
)

# Pronouns and fillers that follow "working on"/"building" without naming anything
_NOT_PROJECT_NAMES = frozenset({"it", "this", "that", "something", "stuff", "things", "some", "on"})

_FENCED_BLOCK = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"`[^`\n]+`")


# Longer words that begin with a vocabulary term but mean something else
_PREFIX_COLLISIONS: dict[str, tuple[str, ...]] = {
    "java": ("script",),
    "scala": ("ble", "bil"),
    "sql": ("ite",),
    "swift": ("ly",),
    "react": ("ion",),
    "express": ("ion", "ive"),
}


def _vocabulary_pattern(term: str) -> re.Pattern[str]:
    """Match ``term`` at the start of a word, suffixes allowed ("reactjs", "dockerfile").

    A term inside another word never counts ("rust" in "trust", "sql" in
    "mysql"), and the known prefix collisions are excluded. ``.js`` names
    also match without the dot ("nodejs").
    """
    body = re.escape(term).replace(r"\.js", r"\.?js")
    guards = "".join(f"(?!{suffix})" for suffix in _PREFIX_COLLISIONS.get(term, ()))
    return re.compile(r"(?<![a-z0-9])" + body + guards, re.IGNORECASE)


_LANGUAGE_PATTERNS = tuple((term, _vocabulary_pattern(term)) for term in LANGUAGES)
_FRAMEWORK_PATTERNS = tuple((term, _vocabulary_pattern(term)) for term in FRAMEWORKS)
_TECHNOLOGY_PATTERNS = tuple((term, _vocabulary_pattern(term)) for term in TECHNOLOGIES)


def _match_vocabulary(text: str | None, patterns: tuple[tuple[str, re.Pattern[str]], ...]) -> set[str]:
    text = text or ""
    return {term for term, pattern in patterns if pattern.search(text)}


def detect_languages(text: str | None) -> set[str]:
    return _match_vocabulary(text, _LANGUAGE_PATTERNS)


def detect_frameworks(text: str | None) -> set[str]:
    return _match_vocabulary(text, _FRAMEWORK_PATTERNS)


def detect_technologies(text: str | None) -> set[str]:
    return _match_vocabulary(text, _TECHNOLOGY_PATTERNS)


def count_code_blocks(text: str | None) -> CodeBlockStats:
    """Count fenced blocks (pairs of ``` delimiters) and inline `code` spans."""
    text = text or ""
    blocks = text.count("```") // 2
    inline = len(_INLINE_CODE.findall(_FENCED_BLOCK.sub(" ", text)))
    return CodeBlockStats(blocks=blocks, inline=inline, has_code=blocks > 0 or inline > 0)


def classify_question_type(text: str | None) -> QuestionType:
    lowered = (text or "").lower()
    for question_type, keywords in QUESTION_RULES:
        if any(keyword in lowered for keyword in keywords):
            return question_type
    return QuestionType.GENERAL


def assess_complexity(text: str | None) -> Complexity:
    lowered = (text or "").lower()
    if any(keyword in lowered for keyword in COMPLEX_KEYWORDS):
        return Complexity.COMPLEX
    if any(keyword in lowered for keyword in MEDIUM_KEYWORDS):
        return Complexity.MEDIUM
    return Complexity.SIMPLE


def extract_project_name(text: str | None) -> str | None:
    text = text or ""
    for pattern in PROJECT_PATTERNS:
        match = pattern.search(text)
        if match:
            name = match.group(1).strip().rstrip(".-").strip()
            if name and name.lower() not in _NOT_PROJECT_NAMES:
                return name[:PROJECT_NAME_MAX_LENGTH]
    return None


def derive_skills(tags: InteractionTags) -> list[SkillEntry]:
    """One entry per detected language, framework and technology."""
    progress = COMPLEXITY_SCORES[tags.complexity]
    entries: list[SkillEntry] = []
    for category, names in (
        (SkillCategory.PROGRAMMING, tags.languages),
        (SkillCategory.FRAMEWORK, tags.frameworks),
        (SkillCategory.TECHNOLOGY, tags.technologies),
    ):
        for name in sorted(names):
            entries.append(SkillEntry(skill=name, category=category, progress_value=progress))
    return entries


def extract_tags(user_text: str | None, channel: str | None = None) -> InteractionTags:
    user_text = user_text or ""
    project_name = extract_project_name(user_text)
    return InteractionTags(
        languages=frozenset(detect_languages(user_text)),
        frameworks=frozenset(detect_frameworks(user_text)),
        technologies=frozenset(detect_technologies(user_text)),
        code_blocks=count_code_blocks(user_text),
        question_type=classify_question_type(user_text),
        complexity=assess_complexity(user_text),
        is_project_related=project_name is not None or channel == "projects",
        project_name=project_name,
    )
