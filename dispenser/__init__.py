"""
Dispenser Core Package

Ingredient inventory and dispensing readiness for an automated cocktail
machine: pump levels, availability checks and pump venting.
No web framework dependencies in this package.
"""

__version__ = "1.0.0"

from dispenser.models.levels import IngredientLevel
from dispenser.models.recipes import AvailabilityResult, Cocktail, PumpConfig, RecipeItem
from dispenser.models.venting import VentingState
from dispenser.storage.level_store import LevelStore

__all__ = [
    "IngredientLevel",
    "PumpConfig",
    "RecipeItem",
    "Cocktail",
    "AvailabilityResult",
    "VentingState",
    "LevelStore",
]
