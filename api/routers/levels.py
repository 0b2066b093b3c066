"""Ingredient level endpoints."""

from typing import Any, List

from fastapi import APIRouter, Body, Depends

from api.dependencies import get_level_store, get_pump_config
from api.middleware.errors import NotFoundError
from dispenser.models.levels import IngredientLevel, LevelConsumption, LevelUpdate
from dispenser.models.recipes import PumpConfig
from dispenser.services.pump_binding import sync_levels_with_pump_config
from dispenser.storage import LevelStore

router = APIRouter()


def _dump(levels: List[IngredientLevel]) -> dict:
    return {
        "levels": [level.model_dump(mode="json", by_alias=True) for level in levels],
        "count": len(levels),
    }


@router.get("")
async def list_levels(store: LevelStore = Depends(get_level_store)):
    """All pump levels, ordered by pump id."""
    return _dump(store.get())


@router.put("")
async def import_levels(
    payload: Any = Body(...),
    store: LevelStore = Depends(get_level_store),
):
    """
    Replace all levels from an external source (backup restore).

    Accepts a bare list or {"levels": [...]}. Written immediately; a failed
    write is reported to the caller.
    """
    if isinstance(payload, dict) and "levels" in payload:
        payload = payload["levels"]
    return _dump(store.import_levels(payload))


@router.post("/reset")
async def reset_levels(store: LevelStore = Depends(get_level_store)):
    """Refill every container."""
    return _dump(store.reset_all())


@router.post("/consume")
async def consume_levels(
    consumptions: List[LevelConsumption],
    store: LevelStore = Depends(get_level_store),
):
    """Deduct dispensed volumes after a cocktail or shot."""
    updated = store.consume(consumptions)
    return {"updated": updated, **_dump(store.get())}


@router.post("/sync")
async def sync_levels(
    store: LevelStore = Depends(get_level_store),
    pump_config: List[PumpConfig] = Depends(get_pump_config),
):
    """Rebind levels to the current pump wiring."""
    changed = sync_levels_with_pump_config(store, pump_config)
    return {"changed": changed, **_dump(store.get())}


@router.get("/{pump_id}")
async def get_level(pump_id: int, store: LevelStore = Depends(get_level_store)):
    level = store.get_level(pump_id)
    if level is None:
        raise NotFoundError("Pump", str(pump_id))
    return level.model_dump(mode="json", by_alias=True)


@router.patch("/{pump_id}")
async def update_level(
    pump_id: int,
    mutation: LevelUpdate,
    store: LevelStore = Depends(get_level_store),
):
    """Change level, container size or ingredient of one pump. Values are clamped."""
    level = store.update(pump_id, mutation)
    if level is None:
        raise NotFoundError("Pump", str(pump_id))
    return level.model_dump(mode="json", by_alias=True)
