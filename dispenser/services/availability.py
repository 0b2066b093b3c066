"""
Availability Engine

Decides whether a cocktail can be made from what is left behind each pump.
Only automatic ingredients count; manual ones are added by hand.

Per ingredient, with R = required and A = available:
    A < R        -> missing (not enough for one serving)
    R <= A < 2R  -> low (exactly one more serving)
    A >= 2R      -> sufficient
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from dispenser.models.levels import IngredientLevel
from dispenser.models.recipes import AvailabilityResult, Cocktail, PumpConfig, RecipeItem

logger = logging.getLogger(__name__)


def find_pump_for_ingredient(
    ingredient_id: str,
    pump_config: Iterable[PumpConfig],
) -> Optional[PumpConfig]:
    """First enabled pump wired to the ingredient."""
    for pump in pump_config:
        if pump.enabled and pump.ingredient == ingredient_id:
            return pump
    return None


def check_availability(
    recipe: Sequence[RecipeItem],
    levels: Sequence[IngredientLevel],
    pump_config: Sequence[PumpConfig],
) -> AvailabilityResult:
    """
    Classify each automatic recipe item against the current levels.

    Items are checked independently against the same snapshot, so a recipe
    listing one ingredient twice does not deduct between the two checks.
    """
    levels_by_pump: Dict[int, IngredientLevel] = {}
    for level in levels:
        levels_by_pump.setdefault(level.pump_id, level)

    low: List[str] = []
    missing: List[str] = []

    for item in recipe:
        if not item.is_automatic:
            continue

        pump = find_pump_for_ingredient(item.ingredient_id, pump_config)
        if pump is None:
            logger.debug(f"{item.ingredient_id}: no enabled pump")
            _add_once(missing, item.ingredient_id)
            continue

        level = levels_by_pump.get(pump.id)
        if level is None:
            logger.debug(f"{item.ingredient_id}: no level recorded for pump {pump.id}")
            _add_once(missing, item.ingredient_id)
            continue

        required = item.amount
        available = level.current_level

        if available < required:
            _add_once(missing, item.ingredient_id)
        elif available < required * 2:
            _add_once(low, item.ingredient_id)

    return AvailabilityResult(
        can_make=not missing,
        low_ingredients=low,
        missing_ingredients=missing,
    )


def check_cocktails(
    cocktails: Iterable[Cocktail],
    levels: Sequence[IngredientLevel],
    pump_config: Sequence[PumpConfig],
) -> Dict[str, AvailabilityResult]:
    """Availability for a whole catalog, keyed by cocktail id."""
    return {
        cocktail.id: check_availability(cocktail.recipe, levels, pump_config)
        for cocktail in cocktails
    }


def get_ingredient_display_name(ingredient_id: str) -> str:
    """'white-rum' -> 'White Rum'."""
    return " ".join(word[:1].upper() + word[1:] for word in ingredient_id.split("-"))


def _add_once(bucket: List[str], ingredient_id: str) -> None:
    if ingredient_id not in bucket:
        bucket.append(ingredient_id)
