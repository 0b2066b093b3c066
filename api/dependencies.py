"""
API Dependencies

Dependency injection for the store, the venting orchestrator and the
read-only configuration collaborators.
"""

from functools import lru_cache
from typing import List

from api.config import get_settings
from dispenser.models.recipes import Cocktail, PumpConfig
from dispenser.services.actuation import SimulatedActuator
from dispenser.services.venting import VentingOrchestrator
from dispenser.storage import JsonFileStorage, LevelStore, load_cocktails, load_pump_config


@lru_cache()
def get_level_store() -> LevelStore:
    """Get singleton level store."""
    settings = get_settings()
    return LevelStore(
        storage=JsonFileStorage(settings.levels_path),
        debounce_seconds=settings.debounce_ms / 1000,
    )


@lru_cache()
def get_venting_orchestrator() -> VentingOrchestrator:
    """Get singleton venting orchestrator."""
    settings = get_settings()
    return VentingOrchestrator(
        actuator=SimulatedActuator(time_scale=settings.actuation_time_scale),
        auto_duration_ms=settings.auto_vent_duration_ms,
        manual_duration_ms=settings.manual_vent_duration_ms,
    )


def get_pump_config() -> List[PumpConfig]:
    """Current pump wiring. Re-read per request since the host edits it."""
    return load_pump_config(get_settings().pump_config_path)


def get_cocktails() -> List[Cocktail]:
    """Current cocktail catalog."""
    return load_cocktails(get_settings().cocktails_path)
