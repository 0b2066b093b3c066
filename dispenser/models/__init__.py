"""Data models for the dispenser core."""

from dispenser.models.common import AvailabilityWarning, RecipeItemType, VentingStatus
from dispenser.models.levels import (
    DEFAULT_CONTAINER_SIZE,
    MAX_CONTAINER_SIZE,
    MIN_CONTAINER_SIZE,
    PUMP_COUNT,
    IngredientLevel,
    LevelConsumption,
    LevelUpdate,
    default_levels,
)
from dispenser.models.recipes import AvailabilityResult, Cocktail, PumpConfig, RecipeItem
from dispenser.models.venting import VentingState

__all__ = [
    # Common
    "RecipeItemType",
    "AvailabilityWarning",
    "VentingStatus",
    # Levels
    "PUMP_COUNT",
    "MIN_CONTAINER_SIZE",
    "MAX_CONTAINER_SIZE",
    "DEFAULT_CONTAINER_SIZE",
    "IngredientLevel",
    "LevelUpdate",
    "LevelConsumption",
    "default_levels",
    # Recipes
    "PumpConfig",
    "RecipeItem",
    "Cocktail",
    "AvailabilityResult",
    # Venting
    "VentingState",
]
