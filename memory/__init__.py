from core.cache import TTLCache
from core.config import Config
from memory.service import MemoryService
from memory.store import MemoryStore


def create_memory(config: Config) -> MemoryService | None:
    """Create the memory service based on config."""
    if not config.memory.enabled:
        return None

    store = MemoryStore(config.memory.db_path, skill_history=config.memory.skill_history)
    return MemoryService(store, config, cache=TTLCache(config.memory.cache_ttl_seconds))
