import json
import os
import sqlite3
from collections import deque
from datetime import datetime
from typing import Any

from core.types import Complexity, QuestionType, SkillCategory
from memory.types import (
    CodeBlockStats,
    InteractionRecord,
    InteractionTags,
    MemoryStats,
    ProjectContext,
    ProjectInteraction,
    SkillEntry,
    SkillInteraction,
    SkillProgression,
    TechnicalSession,
)


def _ts(value: datetime) -> str:
    # Fixed width so that text comparison in SQL orders like datetimes
    return value.isoformat(timespec="microseconds")


def _tags_to_json(tags: InteractionTags) -> str:
    return json.dumps(
        {
            "languages": sorted(tags.languages),
            "frameworks": sorted(tags.frameworks),
            "technologies": sorted(tags.technologies),
            "code_blocks": {
                "blocks": tags.code_blocks.blocks,
                "inline": tags.code_blocks.inline,
                "has_code": tags.code_blocks.has_code,
            },
            "question_type": tags.question_type.value,
            "complexity": tags.complexity.value,
            "is_project_related": tags.is_project_related,
            "project_name": tags.project_name,
        }
    )


def _tags_from_json(raw: str | None) -> InteractionTags:
    data: dict[str, Any] = json.loads(raw) if raw else {}
    code = data.get("code_blocks") or {}
    return InteractionTags(
        languages=frozenset(data.get("languages", [])),
        frameworks=frozenset(data.get("frameworks", [])),
        technologies=frozenset(data.get("technologies", [])),
        code_blocks=CodeBlockStats(
            blocks=code.get("blocks", 0),
            inline=code.get("inline", 0),
            has_code=code.get("has_code", False),
        ),
        question_type=QuestionType(data.get("question_type", QuestionType.GENERAL.value)),
        complexity=Complexity(data.get("complexity", Complexity.SIMPLE.value)),
        is_project_related=data.get("is_project_related", False),
        project_name=data.get("project_name"),
    )


class MemoryStore:
    """sqlite persistence for interactions, project contexts, skill progressions
    and technical sessions.

    Records cross this boundary as dataclasses; missing columns and JSON keys
    are defaulted here so callers never see partial documents.
    """

    def __init__(self, db_path: str = "~/.workspace-memory/memory.db", skill_history: int = 10):
        if db_path != ":memory:":
            db_path = os.path.expanduser(db_path)
            parent = os.path.dirname(db_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
        self.skill_history = skill_history
        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row
        self._init_db()

    def _init_db(self) -> None:
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS interactions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                username TEXT,
                channel TEXT NOT NULL,
                user_text TEXT NOT NULL,
                response_text TEXT NOT NULL,
                tags TEXT,
                timestamp TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_interactions_user_ts ON interactions (user_id, timestamp);
            CREATE INDEX IF NOT EXISTS idx_interactions_channel_ts ON interactions (channel, timestamp);

            CREATE TABLE IF NOT EXISTS project_contexts (
                user_id TEXT NOT NULL,
                project_name TEXT NOT NULL,
                technologies TEXT,
                languages TEXT,
                interactions TEXT,
                last_activity TEXT NOT NULL,
                PRIMARY KEY (user_id, project_name)
            );

            CREATE TABLE IF NOT EXISTS skill_progressions (
                user_id TEXT NOT NULL,
                skill TEXT NOT NULL,
                category TEXT NOT NULL,
                interaction_count INTEGER NOT NULL DEFAULT 0,
                level_progress TEXT,
                recent_interactions TEXT,
                last_practiced TEXT NOT NULL,
                PRIMARY KEY (user_id, skill)
            );

            CREATE TABLE IF NOT EXISTS technical_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                focus_area TEXT,
                mood TEXT,
                energy TEXT,
                priorities TEXT,
                goals TEXT,
                notes TEXT,
                duration_minutes INTEGER
            );
            CREATE INDEX IF NOT EXISTS idx_sessions_user_ts ON technical_sessions (user_id, created_at);
        """)
        self.conn.commit()

    # --- interactions ---

    def insert_interaction(self, record: InteractionRecord) -> None:
        self.conn.execute(
            """INSERT INTO interactions
               (user_id, username, channel, user_text, response_text, tags, timestamp)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                record.user_id,
                record.username,
                record.channel,
                record.user_text,
                record.response_text,
                _tags_to_json(record.tags),
                _ts(record.timestamp),
            ),
        )
        self.conn.commit()

    def find_interactions(self, user_id: str, since: datetime, limit: int = 50) -> list[InteractionRecord]:
        """Interactions for ``user_id`` at or after ``since``, newest first."""
        cursor = self.conn.execute(
            """SELECT * FROM interactions
               WHERE user_id = ? AND timestamp >= ?
               ORDER BY timestamp DESC, id DESC LIMIT ?""",
            (user_id, _ts(since), limit),
        )
        return [
            InteractionRecord(
                user_id=row["user_id"],
                channel=row["channel"],
                user_text=row["user_text"] or "",
                response_text=row["response_text"] or "",
                timestamp=datetime.fromisoformat(row["timestamp"]),
                tags=_tags_from_json(row["tags"]),
                username=row["username"],
            )
            for row in cursor.fetchall()
        ]

    # --- project contexts ---

    def get_project(self, user_id: str, project_name: str) -> ProjectContext | None:
        row = self.conn.execute(
            "SELECT * FROM project_contexts WHERE user_id = ? AND project_name = ?",
            (user_id, project_name),
        ).fetchone()
        return self._row_to_project(row) if row else None

    def upsert_project(
        self,
        user_id: str,
        project_name: str,
        languages: set[str] | frozenset[str],
        technologies: set[str] | frozenset[str],
        interaction: ProjectInteraction,
    ) -> ProjectContext:
        project = self.get_project(user_id, project_name) or ProjectContext(
            user_id=user_id,
            project_name=project_name,
            last_activity=interaction.timestamp,
        )
        project.languages |= set(languages)
        project.technologies |= set(technologies)
        project.interactions.append(interaction)
        project.last_activity = max(project.last_activity, interaction.timestamp)

        self.conn.execute(
            """INSERT OR REPLACE INTO project_contexts
               (user_id, project_name, technologies, languages, interactions, last_activity)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                project.user_id,
                project.project_name,
                json.dumps(sorted(project.technologies)),
                json.dumps(sorted(project.languages)),
                json.dumps(
                    [
                        {
                            "timestamp": _ts(i.timestamp),
                            "message": i.message,
                            "response": i.response,
                            "channel": i.channel,
                        }
                        for i in project.interactions
                    ]
                ),
                _ts(project.last_activity),
            ),
        )
        self.conn.commit()
        return project

    def find_projects(self, user_id: str, since: datetime, limit: int = 5) -> list[ProjectContext]:
        cursor = self.conn.execute(
            """SELECT * FROM project_contexts
               WHERE user_id = ? AND last_activity >= ?
               ORDER BY last_activity DESC, project_name ASC LIMIT ?""",
            (user_id, _ts(since), limit),
        )
        return [self._row_to_project(row) for row in cursor.fetchall()]

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> ProjectContext:
        return ProjectContext(
            user_id=row["user_id"],
            project_name=row["project_name"],
            last_activity=datetime.fromisoformat(row["last_activity"]),
            technologies=set(json.loads(row["technologies"] or "[]")),
            languages=set(json.loads(row["languages"] or "[]")),
            interactions=[
                ProjectInteraction(
                    timestamp=datetime.fromisoformat(i["timestamp"]),
                    message=i.get("message", ""),
                    response=i.get("response", ""),
                    channel=i.get("channel", "general"),
                )
                for i in json.loads(row["interactions"] or "[]")
            ],
        )

    # --- skill progressions ---

    def get_skill(self, user_id: str, skill: str) -> SkillProgression | None:
        row = self.conn.execute(
            "SELECT * FROM skill_progressions WHERE user_id = ? AND skill = ?",
            (user_id, skill),
        ).fetchone()
        return self._row_to_skill(row) if row else None

    def upsert_skill(self, user_id: str, entry: SkillEntry, interaction: SkillInteraction) -> SkillProgression:
        progression = self.get_skill(user_id, entry.skill) or SkillProgression(
            user_id=user_id,
            skill=entry.skill,
            category=entry.category,
            last_practiced=interaction.timestamp,
            recent_interactions=deque(maxlen=self.skill_history),
        )
        progression.interaction_count += 1
        key = entry.category.value
        progression.level_progress[key] = progression.level_progress.get(key, 0) + entry.progress_value
        progression.recent_interactions.append(interaction)
        progression.last_practiced = max(progression.last_practiced, interaction.timestamp)

        self.conn.execute(
            """INSERT OR REPLACE INTO skill_progressions
               (user_id, skill, category, interaction_count, level_progress,
                recent_interactions, last_practiced)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                progression.user_id,
                progression.skill,
                progression.category.value,
                progression.interaction_count,
                json.dumps(progression.level_progress),
                json.dumps(
                    [
                        {
                            "timestamp": _ts(i.timestamp),
                            "channel": i.channel,
                            "context": i.context,
                            "difficulty": i.difficulty.value,
                        }
                        for i in progression.recent_interactions
                    ]
                ),
                _ts(progression.last_practiced),
            ),
        )
        self.conn.commit()
        return progression

    def find_skills(self, user_id: str, since: datetime, limit: int = 10) -> list[SkillProgression]:
        cursor = self.conn.execute(
            """SELECT * FROM skill_progressions
               WHERE user_id = ? AND last_practiced >= ?
               ORDER BY last_practiced DESC, skill ASC LIMIT ?""",
            (user_id, _ts(since), limit),
        )
        return [self._row_to_skill(row) for row in cursor.fetchall()]

    def _row_to_skill(self, row: sqlite3.Row) -> SkillProgression:
        recent: deque[SkillInteraction] = deque(maxlen=self.skill_history)
        for i in json.loads(row["recent_interactions"] or "[]"):
            recent.append(
                SkillInteraction(
                    timestamp=datetime.fromisoformat(i["timestamp"]),
                    channel=i.get("channel", "general"),
                    context=i.get("context", ""),
                    difficulty=Complexity(i.get("difficulty", Complexity.SIMPLE.value)),
                )
            )
        return SkillProgression(
            user_id=row["user_id"],
            skill=row["skill"],
            category=SkillCategory(row["category"]),
            last_practiced=datetime.fromisoformat(row["last_practiced"]),
            interaction_count=row["interaction_count"] or 0,
            level_progress=json.loads(row["level_progress"] or "{}"),
            recent_interactions=recent,
        )

    # --- technical sessions ---

    def insert_session(self, session: TechnicalSession) -> None:
        self.conn.execute(
            """INSERT INTO technical_sessions
               (user_id, created_at, focus_area, mood, energy, priorities, goals, notes, duration_minutes)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                session.user_id,
                _ts(session.created_at),
                session.focus_area,
                session.mood,
                session.energy,
                session.priorities,
                session.goals,
                session.notes,
                session.duration_minutes,
            ),
        )
        self.conn.commit()

    def find_sessions(self, user_id: str, since: datetime, limit: int = 10) -> list[TechnicalSession]:
        cursor = self.conn.execute(
            """SELECT * FROM technical_sessions
               WHERE user_id = ? AND created_at >= ?
               ORDER BY created_at DESC, id DESC LIMIT ?""",
            (user_id, _ts(since), limit),
        )
        return [
            TechnicalSession(
                user_id=row["user_id"],
                created_at=datetime.fromisoformat(row["created_at"]),
                focus_area=row["focus_area"],
                mood=row["mood"],
                energy=row["energy"],
                priorities=row["priorities"],
                goals=row["goals"],
                notes=row["notes"] or "",
                duration_minutes=row["duration_minutes"] or 0,
            )
            for row in cursor.fetchall()
        ]

    # --- administration ---

    def delete_memory(self, channel: str | None = None, user_id: str | None = None) -> dict[str, int]:
        """Hard delete. Interactions filter on channel and user. The derived
        collections carry no channel, so they are only cleared for a user
        reset or a full reset (no filters)."""
        clauses, params = [], []
        if channel is not None:
            clauses.append("channel = ?")
            params.append(channel)
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        user_where = " WHERE user_id = ?" if user_id is not None else ""
        user_params = (user_id,) if user_id is not None else ()
        clear_derived = user_id is not None or channel is None

        deleted = {"interactions": self.conn.execute(f"DELETE FROM interactions{where}", params).rowcount}
        for key, table in (
            ("projects", "project_contexts"),
            ("skills", "skill_progressions"),
            ("sessions", "technical_sessions"),
        ):
            if clear_derived:
                deleted[key] = self.conn.execute(f"DELETE FROM {table}{user_where}", user_params).rowcount
            else:
                deleted[key] = 0
        self.conn.commit()
        return deleted

    def counts(self) -> MemoryStats:
        def scalar(sql: str) -> int:
            return self.conn.execute(sql).fetchone()[0]

        return MemoryStats(
            interactions=scalar("SELECT COUNT(*) FROM interactions"),
            projects=scalar("SELECT COUNT(*) FROM project_contexts"),
            skills=scalar("SELECT COUNT(*) FROM skill_progressions"),
            sessions=scalar("SELECT COUNT(*) FROM technical_sessions"),
            users=scalar(
                """SELECT COUNT(*) FROM (
                       SELECT user_id FROM interactions
                       UNION SELECT user_id FROM technical_sessions
                   )"""
            ),
        )

    def close(self) -> None:
        self.conn.close()
