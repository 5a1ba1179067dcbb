import logging

import tomli
from pydantic import BaseModel, Field


class MemoryConfig(BaseModel):
    enabled: bool = True
    db_path: str = "~/.workspace-memory/memory.db"
    lookback_days: int = Field(default=14, ge=1)
    max_interactions: int = Field(default=50, ge=1)
    max_projects: int = Field(default=5, ge=1)
    max_skills: int = Field(default=10, ge=1)
    max_sessions: int = Field(default=10, ge=1)
    skill_history: int = Field(default=10, ge=1)
    summary_max_chars: int = Field(default=1500, ge=100)
    cache_ttl_seconds: float = Field(default=300.0, ge=0)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


class Config(BaseModel):
    memory: MemoryConfig = MemoryConfig()
    logging: LoggingConfig = LoggingConfig()
    # Declaration order breaks ties between equally active channels
    channels: list[str] = ["coding", "general", "projects", "planning", "analysis", "admin"]


def load_config(path: str = "config/default.toml") -> Config:
    """Load config from TOML file, validate with Pydantic."""
    with open(path, "rb") as f:
        data = tomli.load(f)
    return Config(**data)


def setup_logging(config: LoggingConfig) -> None:
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=config.format)
