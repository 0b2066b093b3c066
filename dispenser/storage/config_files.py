"""
Read-only collaborators: pump wiring and cocktail catalog.

Both live in JSON files maintained by the host's configuration screens.
The core never writes them.
"""

import json
import logging
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError

from dispenser.models.recipes import Cocktail, PumpConfig

logger = logging.getLogger(__name__)


def _read_json(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_pump_config(path: Union[str, Path]) -> List[PumpConfig]:
    """
    Load pump wiring from a JSON list of {id, ingredient, enabled}.

    Returns an empty list if the file does not exist. Malformed entries are
    skipped with a warning.
    """
    path = Path(path)
    if not path.exists():
        logger.info(f"Pump config not found at {path}")
        return []

    raw = _read_json(path)
    if isinstance(raw, dict):
        raw = raw.get("pumps", [])

    pumps = []
    for entry in raw:
        try:
            pumps.append(PumpConfig.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping invalid pump config entry {entry!r}: {e}")
    return pumps


def load_cocktails(path: Union[str, Path]) -> List[Cocktail]:
    """
    Load the cocktail catalog.

    Accepts either a bare list or the versioned envelope
    {"version": ..., "cocktails": [...]}.
    """
    path = Path(path)
    if not path.exists():
        logger.info(f"Cocktail catalog not found at {path}")
        return []

    raw = _read_json(path)
    if isinstance(raw, dict):
        raw = raw.get("cocktails", [])

    cocktails = []
    for entry in raw:
        try:
            cocktails.append(Cocktail.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping invalid cocktail {entry.get('id') if isinstance(entry, dict) else entry!r}: {e}")

    logger.info(f"Loaded {len(cocktails)} cocktails from {path}")
    return cocktails
