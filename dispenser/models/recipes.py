"""Pump wiring, recipe and availability models."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from dispenser.models.common import AvailabilityWarning, RecipeItemType


class PumpConfig(BaseModel):
    """Which ingredient a pump is wired to. Owned by the host configuration."""

    id: int
    ingredient: str = ""
    enabled: bool = True


class RecipeItem(BaseModel):
    """One ingredient of a cocktail."""

    model_config = ConfigDict(populate_by_name=True)

    ingredient_id: str = Field(..., alias="ingredientId")
    amount: int = Field(..., ge=0, description="Volume units required")
    type: RecipeItemType = RecipeItemType.AUTOMATIC
    manual: Optional[bool] = None

    @property
    def is_automatic(self) -> bool:
        return self.type == RecipeItemType.AUTOMATIC and not self.manual


class Cocktail(BaseModel):
    """Recipe provider payload."""

    id: str
    name: str
    recipe: List[RecipeItem] = Field(default_factory=list)


class AvailabilityResult(BaseModel):
    """Whether a recipe can be made from the current levels."""

    can_make: bool = True
    low_ingredients: List[str] = Field(default_factory=list)
    missing_ingredients: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def warning(self) -> AvailabilityWarning:
        if not self.can_make:
            return AvailabilityWarning.MISSING
        if self.low_ingredients:
            return AvailabilityWarning.LOW
        return AvailabilityWarning.NONE
