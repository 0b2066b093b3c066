"""Common types used across the dispenser core."""

from enum import Enum

# ============================================================================
# Status Enums
# ============================================================================

class RecipeItemType(str, Enum):
    """How a recipe ingredient gets into the glass."""
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class AvailabilityWarning(str, Enum):
    """Badge shown on a cocktail card."""
    NONE = "none"
    LOW = "low"
    MISSING = "missing"


class VentingStatus(str, Enum):
    """Automatic venting state."""
    IDLE = "idle"
    VENTING = "venting"
