import pytest

from core.cache import TTLCache
from core.config import Config, load_config
from memory.service import MemoryService
from memory.store import MemoryStore


@pytest.fixture
def config() -> Config:
    """Load default config for tests."""
    return load_config()


@pytest.fixture
def temp_config(tmp_path):
    """Create a temp config TOML for isolated tests."""
    toml_content = f"""
channels = ["coding", "general", "projects", "planning", "analysis", "admin"]
[memory]
enabled = true
db_path = "{tmp_path / 'memory.db'}"
lookback_days = 14
max_interactions = 50
summary_max_chars = 1500
cache_ttl_seconds = 60
[logging]
level = "DEBUG"
"""
    config_path = tmp_path / "test.toml"
    config_path.write_text(toml_content)
    return load_config(str(config_path))


@pytest.fixture
def store(tmp_path):
    s = MemoryStore(str(tmp_path / "test_memory.db"))
    yield s
    s.close()


@pytest.fixture
def service(store):
    return MemoryService(store, Config(), cache=TTLCache(ttl_seconds=0))
