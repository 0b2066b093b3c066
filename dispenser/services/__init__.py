"""Business logic services."""

from dispenser.services.actuation import PumpActuator, SimulatedActuator
from dispenser.services.availability import (
    check_availability,
    check_cocktails,
    find_pump_for_ingredient,
    get_ingredient_display_name,
)
from dispenser.services.pump_binding import bind_levels, ingredient_label, sync_levels_with_pump_config
from dispenser.services.venting import VentingOrchestrator

__all__ = [
    "check_availability",
    "check_cocktails",
    "find_pump_for_ingredient",
    "get_ingredient_display_name",
    "bind_levels",
    "ingredient_label",
    "sync_levels_with_pump_config",
    "PumpActuator",
    "SimulatedActuator",
    "VentingOrchestrator",
]
