"""
Ingredient Level Models

One record per physical pump slot. The persisted JSON keeps camelCase keys
(pumpId, currentLevel, ...) so existing machine data loads unchanged.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

PUMP_COUNT = 18
MIN_CONTAINER_SIZE = 100
MAX_CONTAINER_SIZE = 5000
DEFAULT_CONTAINER_SIZE = 1000


def clamp_container_size(size: int) -> int:
    return max(MIN_CONTAINER_SIZE, min(int(size), MAX_CONTAINER_SIZE))


def clamp_level(level: int, container_size: int) -> int:
    return max(0, min(int(level), container_size))


def default_ingredient_label(pump_id: int) -> str:
    return f"Zutat {pump_id}"


def default_ingredient_id(pump_id: int) -> str:
    return f"ingredient-{pump_id}"


class IngredientLevel(BaseModel):
    """Liquid remaining behind one pump."""

    model_config = ConfigDict(populate_by_name=True)

    pump_id: int = Field(..., alias="pumpId", ge=1, le=PUMP_COUNT)
    ingredient_id: str = Field(..., alias="ingredientId", description="Key matched against recipe items")
    ingredient: str = Field(..., description="Display label")
    current_level: int = Field(default=DEFAULT_CONTAINER_SIZE, alias="currentLevel")
    container_size: int = Field(default=DEFAULT_CONTAINER_SIZE, alias="containerSize")
    last_updated: datetime = Field(default_factory=datetime.utcnow, alias="lastUpdated")

    @property
    def fill_percent(self) -> float:
        if not self.container_size:
            return 0.0
        return round(self.current_level / self.container_size * 100, 1)


class LevelUpdate(BaseModel):
    """Field-level change for a single pump. Unset fields are left alone."""

    model_config = ConfigDict(populate_by_name=True)

    current_level: Optional[int] = Field(default=None, alias="currentLevel")
    container_size: Optional[int] = Field(default=None, alias="containerSize")
    ingredient: Optional[str] = None
    ingredient_id: Optional[str] = Field(default=None, alias="ingredientId")


class LevelConsumption(BaseModel):
    """Volume drawn from one pump while dispensing."""

    model_config = ConfigDict(populate_by_name=True)

    pump_id: int = Field(..., alias="pumpId")
    amount: int = Field(..., ge=0)


def default_level(pump_id: int) -> IngredientLevel:
    return IngredientLevel(
        pump_id=pump_id,
        ingredient=default_ingredient_label(pump_id),
        ingredient_id=default_ingredient_id(pump_id),
        current_level=DEFAULT_CONTAINER_SIZE,
        container_size=DEFAULT_CONTAINER_SIZE,
    )


def default_levels() -> List[IngredientLevel]:
    """Full set of pumps, each holding a full default container."""
    return [default_level(pump_id) for pump_id in range(1, PUMP_COUNT + 1)]
