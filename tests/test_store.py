from datetime import datetime, timedelta

from core.types import Complexity, QuestionType, SkillCategory
from memory.extractor import extract_tags
from memory.store import MemoryStore
from memory.types import (
    InteractionRecord,
    ProjectInteraction,
    SkillEntry,
    SkillInteraction,
    TechnicalSession,
)

NOW = datetime(2026, 10, 19, 12, 0, 0)


def _record(text: str, minutes_ago: int = 0, user_id: str = "u1", channel: str = "coding") -> InteractionRecord:
    return InteractionRecord(
        user_id=user_id,
        channel=channel,
        user_text=text,
        response_text=f"re: {text}",
        timestamp=NOW - timedelta(minutes=minutes_ago),
        tags=extract_tags(text, channel),
    )


def test_store_init(store):
    cursor = store.conn.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
    tables = {row[0] for row in cursor.fetchall()}
    assert {"interactions", "project_contexts", "skill_progressions", "technical_sessions"} <= tables


def test_interaction_write_read(store):
    store.insert_interaction(_record("how do I debug python"))
    found = store.find_interactions("u1", NOW - timedelta(days=1))
    assert len(found) == 1
    record = found[0]
    assert record.user_text == "how do I debug python"
    assert record.response_text == "re: how do I debug python"
    assert record.tags.languages == {"python"}
    assert record.tags.question_type == QuestionType.HOW_TO
    assert record.timestamp == NOW


def test_interaction_ordering_and_limit(store):
    for i in range(5):
        store.insert_interaction(_record(f"msg {i}", minutes_ago=10 - i))
    found = store.find_interactions("u1", NOW - timedelta(days=1), limit=3)
    # Most recent first
    assert [r.user_text for r in found] == ["msg 4", "msg 3", "msg 2"]


def test_interaction_window_and_user_filter(store):
    store.insert_interaction(_record("old", minutes_ago=60 * 24 * 20))
    store.insert_interaction(_record("recent"))
    store.insert_interaction(_record("other user", user_id="u2"))
    found = store.find_interactions("u1", NOW - timedelta(days=14))
    assert [r.user_text for r in found] == ["recent"]


def test_interaction_missing_tags_defaults(store):
    store.conn.execute(
        "INSERT INTO interactions (user_id, channel, user_text, response_text, tags, timestamp) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        ("u1", "general", "hi", "hello", None, NOW.isoformat(timespec="microseconds")),
    )
    record = store.find_interactions("u1", NOW - timedelta(days=1))[0]
    assert record.tags.complexity == Complexity.SIMPLE
    assert record.tags.languages == frozenset()


def test_project_upsert_appends(store):
    for i in range(3):
        store.upsert_project(
            "u1",
            "atlas",
            languages={"python"} if i == 0 else {"rust"},
            technologies={"docker"},
            interaction=ProjectInteraction(
                timestamp=NOW + timedelta(minutes=i), message=f"m{i}", response="r", channel="projects"
            ),
        )
    project = store.get_project("u1", "atlas")
    assert project.interaction_count == 3
    assert project.languages == {"python", "rust"}
    assert project.technologies == {"docker"}
    assert project.last_activity == NOW + timedelta(minutes=2)
    assert [i.message for i in project.interactions] == ["m0", "m1", "m2"]


def test_find_projects_by_recency(store):
    for i, name in enumerate(["a", "b", "c"]):
        store.upsert_project(
            "u1", name, set(), set(), ProjectInteraction(NOW + timedelta(hours=i), "m", "r", "coding")
        )
    projects = store.find_projects("u1", NOW - timedelta(days=1), limit=2)
    assert [p.project_name for p in projects] == ["c", "b"]


def test_skill_upsert_ring_buffer(store):
    entry = SkillEntry(skill="python", category=SkillCategory.PROGRAMMING, progress_value=2)
    for i in range(12):
        store.upsert_skill(
            "u1",
            entry,
            SkillInteraction(
                timestamp=NOW + timedelta(minutes=i), channel="coding", context=f"c{i}", difficulty=Complexity.MEDIUM
            ),
        )
    skill = store.get_skill("u1", "python")
    assert skill.interaction_count == 12
    assert skill.level_progress == {"programming": 24}
    assert len(skill.recent_interactions) == 10
    # Oldest two evicted
    assert skill.recent_interactions[0].context == "c2"
    assert skill.recent_interactions[-1].context == "c11"
    assert skill.last_practiced == NOW + timedelta(minutes=11)


def test_skill_history_configurable(tmp_path):
    store = MemoryStore(str(tmp_path / "small.db"), skill_history=3)
    entry = SkillEntry(skill="go", category=SkillCategory.PROGRAMMING, progress_value=1)
    for i in range(5):
        store.upsert_skill("u1", entry, SkillInteraction(NOW, "coding", str(i), Complexity.SIMPLE))
    assert [i.context for i in store.get_skill("u1", "go").recent_interactions] == ["2", "3", "4"]
    store.close()


def test_sessions(store):
    store.insert_session(TechnicalSession(user_id="u1", created_at=NOW - timedelta(days=1), focus_area="api"))
    store.insert_session(TechnicalSession(user_id="u1", created_at=NOW, focus_area="tests", mood="good"))
    sessions = store.find_sessions("u1", NOW - timedelta(days=7))
    assert [s.focus_area for s in sessions] == ["tests", "api"]
    assert sessions[0].mood == "good"
    assert sessions[1].notes == ""


def test_delete_memory_by_channel(store):
    store.insert_interaction(_record("coding msg", channel="coding"))
    store.insert_interaction(_record("planning msg", channel="planning"))
    store.upsert_project("u1", "atlas", set(), set(), ProjectInteraction(NOW, "m", "r", "coding"))
    deleted = store.delete_memory(channel="coding")
    assert deleted == {"interactions": 1, "projects": 0, "skills": 0, "sessions": 0}
    remaining = store.find_interactions("u1", NOW - timedelta(days=1))
    assert [r.channel for r in remaining] == ["planning"]
    assert store.get_project("u1", "atlas") is not None


def test_delete_memory_by_user(store):
    store.insert_interaction(_record("mine", user_id="u1"))
    store.insert_interaction(_record("theirs", user_id="u2"))
    store.upsert_project("u1", "atlas", set(), set(), ProjectInteraction(NOW, "m", "r", "coding"))
    store.upsert_project("u2", "zeus", set(), set(), ProjectInteraction(NOW, "m", "r", "coding"))
    deleted = store.delete_memory(user_id="u1")
    assert deleted["interactions"] == 1
    assert deleted["projects"] == 1
    assert store.get_project("u1", "atlas") is None
    assert store.get_project("u2", "zeus") is not None


def test_counts(store):
    store.insert_interaction(_record("a", user_id="u1"))
    store.insert_interaction(_record("b", user_id="u2"))
    store.insert_session(TechnicalSession(user_id="u3", created_at=NOW))
    stats = store.counts()
    assert stats.interactions == 2
    assert stats.sessions == 1
    assert stats.users == 3
    assert "Interactions: 2" in stats.format()
