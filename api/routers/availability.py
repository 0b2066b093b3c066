"""Availability endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.dependencies import get_cocktails, get_level_store, get_pump_config
from api.middleware.errors import NotFoundError
from dispenser.models.recipes import Cocktail, PumpConfig, RecipeItem
from dispenser.services.availability import check_availability, check_cocktails
from dispenser.storage import LevelStore

router = APIRouter()


class AvailabilityRequest(BaseModel):
    recipe: List[RecipeItem]


@router.post("/check")
async def check_recipe(
    request: AvailabilityRequest,
    store: LevelStore = Depends(get_level_store),
    pump_config: List[PumpConfig] = Depends(get_pump_config),
):
    """Check an inline recipe against the current levels."""
    return check_availability(request.recipe, store.get(), pump_config).model_dump(mode="json")


@router.get("/cocktails")
async def check_catalog(
    store: LevelStore = Depends(get_level_store),
    pump_config: List[PumpConfig] = Depends(get_pump_config),
    cocktails: List[Cocktail] = Depends(get_cocktails),
):
    """Availability of every cocktail in the catalog."""
    results = check_cocktails(cocktails, store.get(), pump_config)
    return {
        "cocktails": {cocktail_id: r.model_dump(mode="json") for cocktail_id, r in results.items()},
        "count": len(results),
    }


@router.get("/cocktails/{cocktail_id}")
async def check_cocktail(
    cocktail_id: str,
    store: LevelStore = Depends(get_level_store),
    pump_config: List[PumpConfig] = Depends(get_pump_config),
    cocktails: List[Cocktail] = Depends(get_cocktails),
):
    for cocktail in cocktails:
        if cocktail.id == cocktail_id:
            return check_availability(cocktail.recipe, store.get(), pump_config).model_dump(mode="json")
    raise NotFoundError("Cocktail", cocktail_id)
