"""Data storage layer."""

from dispenser.storage.config_files import load_cocktails, load_pump_config
from dispenser.storage.file_storage import InMemoryStorage, JsonFileStorage, KeyValueStorage
from dispenser.storage.level_store import (
    LEVELS_KEY,
    SCHEMA_VERSION,
    VERSION_KEY,
    LevelStore,
    reconcile_levels,
)

__all__ = [
    "KeyValueStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "LevelStore",
    "reconcile_levels",
    "LEVELS_KEY",
    "VERSION_KEY",
    "SCHEMA_VERSION",
    "load_pump_config",
    "load_cocktails",
]
