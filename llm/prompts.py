from core.types import Complexity, QuestionType
from memory.types import MemoryContext

CHANNEL_PROMPTS: dict[str, str] = {
    "general": "You are a helpful technical assistant. Answer quick questions clearly and concisely.",
    "coding": (
        "You are a senior software engineer. Give precise, working code and explain trade-offs. "
        "Point out bugs and risky patterns when you see them."
    ),
    "projects": "You help plan software projects: scope, milestones, architecture and next steps.",
    "planning": "You help prioritize tasks and structure the day's workflow into concrete steps.",
    "analysis": "You reason carefully about data and evidence, and state your assumptions.",
    "admin": "You answer questions about the assistant's own configuration.",
}

MEMORY_INSTRUCTIONS = (
    "Use this context to understand user patterns, reference past interactions, and provide "
    "contextually relevant assistance. Be specific about their history when it helps."
)


def build_system_prompt(channel_type: str = "general", memory_summary: str = "") -> str:
    """Build the channel's system prompt with the memory digest appended."""
    parts = [CHANNEL_PROMPTS.get(channel_type, CHANNEL_PROMPTS["general"])]

    if memory_summary:
        parts.append(f"\n## Memory Context\n{memory_summary}\n\n{MEMORY_INSTRUCTIONS}")

    return "\n".join(parts)


def extract_key_insights(context: MemoryContext) -> str:
    patterns = context.aggregate
    insights = []

    if patterns.preferred_languages:
        insights.append(f"Uses {', '.join(patterns.preferred_languages[:2])}")
    if patterns.preferred_frameworks:
        insights.append(f"Works with {', '.join(patterns.preferred_frameworks[:2])}")
    if patterns.projects:
        insights.append(f"Active projects: {', '.join(p.project_name for p in patterns.projects[:2])}")
    if patterns.skills:
        insights.append(f"Developing: {', '.join(s.skill for s in patterns.skills[:2])}")

    question_types = {k: v for k, v in patterns.question_types.items() if k != QuestionType.GENERAL.value}
    if question_types:
        top = max(question_types, key=lambda k: question_types[k])
        insights.append(f"Often asks about {top.replace('-', ' ')}")

    total = sum(patterns.complexity_distribution.values())
    if total and patterns.complexity_distribution.get(Complexity.COMPLEX.value, 0) / total > 0.4:
        insights.append("Prefers complex problems")

    if context.trends.working_hours.preferred_working_time:
        insights.append(context.trends.working_hours.preferred_working_time.value)

    return ", ".join(insights)


def build_user_prompt(username: str, message: str, context: MemoryContext | None = None) -> str:
    prompt = f'User {username} says: "{message}"'
    if context:
        insights = extract_key_insights(context)
        if insights:
            prompt += f"\n\nKey behavioral insights: {insights}"
    return prompt
