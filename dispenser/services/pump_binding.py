"""
Pump Binding Sync

Keeps each level record pointed at the ingredient its pump is wired to.
"""

import logging
import re
from datetime import datetime
from typing import List, Sequence, Tuple

from dispenser.models.levels import IngredientLevel
from dispenser.models.recipes import PumpConfig
from dispenser.storage.level_store import LevelStore

logger = logging.getLogger(__name__)

# Ingredients created in the UI get ids like "custom-1712345678-Blue Curacao".
CUSTOM_PREFIX = re.compile(r"^custom-\d+-")


def ingredient_label(ingredient_id: str) -> str:
    """Display label for an assigned ingredient id, without the custom prefix."""
    label = CUSTOM_PREFIX.sub("", ingredient_id).strip()
    return label or ingredient_id


def bind_levels(
    pump_config: Sequence[PumpConfig],
    levels: Sequence[IngredientLevel],
) -> Tuple[List[IngredientLevel], int]:
    """
    Rebind levels to the pump wiring.

    Returns the new level list and the number of records that changed.
    A pump with an empty assignment is bound to the empty id.
    """
    result = list(levels)
    changed = 0

    for pump in pump_config:
        for index, level in enumerate(result):
            if level.pump_id != pump.id:
                continue
            if level.ingredient_id != pump.ingredient:
                logger.info(f"P{pump.id}: {level.ingredient_id} -> {pump.ingredient}")
                result[index] = level.model_copy(
                    update={
                        "ingredient_id": pump.ingredient,
                        "ingredient": ingredient_label(pump.ingredient),
                        "last_updated": datetime.utcnow(),
                    }
                )
                changed += 1
            break

    return result, changed


def sync_levels_with_pump_config(store: LevelStore, pump_config: Sequence[PumpConfig]) -> int:
    """
    Apply the current pump wiring to the store.

    Writes once, and only if something changed. Returns the change count.
    """
    logger.debug("Syncing levels with pump config")
    levels, changed = bind_levels(pump_config, store.get())
    if changed:
        store.set_all(levels)
    return changed
