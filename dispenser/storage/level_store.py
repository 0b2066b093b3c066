"""
Level Store

Owns the per-pump ingredient levels. Reads come from an in-process cache;
writes update the cache immediately and schedule one debounced durable write.

Persisted as two keys:
- LEVELS_KEY: JSON array of level records (camelCase)
- VERSION_KEY: schema tag; any other tag discards the stored levels
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from dispenser.errors import InvalidLevelsError, PersistenceError, StorageCorruptError
from dispenser.models.levels import (
    DEFAULT_CONTAINER_SIZE,
    IngredientLevel,
    LevelConsumption,
    LevelUpdate,
    clamp_container_size,
    clamp_level,
    default_ingredient_id,
    default_ingredient_label,
    default_levels,
)
from dispenser.storage.file_storage import KeyValueStorage

logger = logging.getLogger(__name__)

LEVELS_KEY = "cocktail-ingredient-levels"
VERSION_KEY = "cocktail-ingredient-levels-version"
SCHEMA_VERSION = "2.1"

DEFAULT_DEBOUNCE_SECONDS = 0.5

LevelsListener = Callable[[], None]
LevelInput = Union[IngredientLevel, Dict[str, Any]]


# ============================================================================
# Reconciliation
# ============================================================================

def _as_int(value: Any, fallback: int) -> int:
    if isinstance(value, bool) or value is None:
        return fallback
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return fallback


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return datetime.utcnow()


def _coerce_record(raw: Dict[str, Any], pump_id: int) -> IngredientLevel:
    """Build a level from a stored record, clamping it into range."""
    size = _as_int(raw.get("containerSize", raw.get("container_size")), 0) or DEFAULT_CONTAINER_SIZE
    size = clamp_container_size(size)
    level = clamp_level(_as_int(raw.get("currentLevel", raw.get("current_level")), 0), size)

    ingredient_id = raw.get("ingredientId", raw.get("ingredient_id"))
    ingredient = raw.get("ingredient")

    return IngredientLevel(
        pump_id=pump_id,
        ingredient_id=ingredient_id if isinstance(ingredient_id, str) and ingredient_id else default_ingredient_id(pump_id),
        ingredient=ingredient if isinstance(ingredient, str) and ingredient else default_ingredient_label(pump_id),
        current_level=level,
        container_size=size,
        last_updated=_as_datetime(raw.get("lastUpdated", raw.get("last_updated"))),
    )


def reconcile_levels(records: Iterable[Any]) -> List[IngredientLevel]:
    """
    Map arbitrary stored records onto the canonical pump set.

    Every pump id 1..PUMP_COUNT appears exactly once, in order. Stored records
    win where present (first one per id), defaults fill the gaps, and ids
    outside the range are dropped.
    """
    by_id: Dict[int, Dict[str, Any]] = {}
    for raw in records:
        if isinstance(raw, IngredientLevel):
            raw = raw.model_dump(by_alias=True)
        if not isinstance(raw, dict):
            continue
        pump_id = raw.get("pumpId", raw.get("pump_id"))
        if isinstance(pump_id, bool) or not isinstance(pump_id, int):
            continue
        by_id.setdefault(pump_id, raw)

    result = []
    for default in default_levels():
        raw = by_id.get(default.pump_id)
        result.append(_coerce_record(raw, default.pump_id) if raw is not None else default)
    return result


def _decode_payload(payload: Optional[str]) -> List[IngredientLevel]:
    if payload is None:
        raise StorageCorruptError("no stored levels")
    try:
        records = json.loads(payload)
    except ValueError as e:
        raise StorageCorruptError(f"levels payload is not JSON: {e}") from e
    if not isinstance(records, list) or not records:
        raise StorageCorruptError("levels payload is not a non-empty array")
    return reconcile_levels(records)


def _summary(levels: Sequence[IngredientLevel]) -> str:
    return ", ".join(f"P{level.pump_id}:{level.current_level}ml" for level in levels)


# ============================================================================
# Store
# ============================================================================

class LevelStore:
    """
    Cached, validated, debounced ingredient level storage.

    All mutation of the level set goes through this class. Inside a running
    asyncio loop each mutation (re)starts the debounce window and only the
    state at expiry is written; with no running loop writes go straight
    through. Call flush() before shutdown so a pending write is not lost.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.storage = storage
        self.debounce_seconds = debounce_seconds

        self._cache: Optional[List[IngredientLevel]] = None
        self._pending: Optional[asyncio.TimerHandle] = None
        self._listeners: List[LevelsListener] = []

        self._levels()

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self) -> List[IngredientLevel]:
        """Snapshot of all pump levels, ordered by pump id."""
        return [level.model_copy() for level in self._levels()]

    def get_level(self, pump_id: int) -> Optional[IngredientLevel]:
        level = self._find(pump_id)
        return level.model_copy() if level else None

    @property
    def has_pending_write(self) -> bool:
        return self._pending is not None

    def _levels(self) -> List[IngredientLevel]:
        if self._cache is None:
            self._cache = self._load()
        return self._cache

    def _find(self, pump_id: int) -> Optional[IngredientLevel]:
        for level in self._levels():
            if level.pump_id == pump_id:
                return level
        return None

    def _load(self) -> List[IngredientLevel]:
        try:
            stored_version = self.storage.get(VERSION_KEY)
            if stored_version != SCHEMA_VERSION:
                raise StorageCorruptError(
                    f"storage version mismatch ({stored_version} vs {SCHEMA_VERSION})"
                )
            levels = _decode_payload(self.storage.get(LEVELS_KEY))
        except StorageCorruptError as e:
            logger.info(f"Discarding stored levels: {e}. Initializing defaults")
            levels = default_levels()
            try:
                self._write(levels)
            except PersistenceError as write_error:
                logger.error(f"Failed to save default levels: {write_error}")
            return levels

        logger.info(f"Loaded levels from storage: {_summary(levels)}")
        return levels

    def invalidate_cache(self) -> None:
        """Drop the cache so the next read reloads from storage."""
        self.flush()
        logger.debug("Resetting level cache")
        self._cache = None

    # =========================================================================
    # Mutations
    # =========================================================================

    def update(self, pump_id: int, mutation: LevelUpdate) -> Optional[IngredientLevel]:
        """
        Apply a field-level change to one pump.

        Container size is clamped first, then the level is clamped to the
        (possibly new) size. Returns the updated record, or None if no such
        pump exists.
        """
        levels = self._levels()
        for index, level in enumerate(levels):
            if level.pump_id == pump_id:
                break
        else:
            logger.debug(f"Ignoring update for unknown pump {pump_id}")
            return None

        size = level.container_size
        if mutation.container_size is not None:
            size = clamp_container_size(mutation.container_size)

        current = level.current_level if mutation.current_level is None else mutation.current_level

        changes: Dict[str, Any] = {
            "container_size": size,
            "current_level": clamp_level(current, size),
            "last_updated": datetime.utcnow(),
        }
        if mutation.ingredient is not None:
            changes["ingredient"] = mutation.ingredient
        if mutation.ingredient_id is not None:
            changes["ingredient_id"] = mutation.ingredient_id

        updated = level.model_copy(update=changes)
        levels[index] = updated
        self._schedule_persist()
        return updated.model_copy()

    def update_level(self, pump_id: int, new_level: int) -> Optional[IngredientLevel]:
        return self.update(pump_id, LevelUpdate(current_level=new_level))

    def update_container_size(self, pump_id: int, new_size: int) -> Optional[IngredientLevel]:
        return self.update(pump_id, LevelUpdate(container_size=new_size))

    def update_ingredient_name(self, pump_id: int, name: str) -> Optional[IngredientLevel]:
        """Rename a pump's ingredient. An empty name restores the defaults."""
        return self.update(
            pump_id,
            LevelUpdate(
                ingredient=name or default_ingredient_label(pump_id),
                ingredient_id=name or default_ingredient_id(pump_id),
            ),
        )

    def consume(self, consumptions: Iterable[LevelConsumption]) -> bool:
        """
        Deduct dispensed volume from each pump, flooring at zero.

        Persists once for the whole batch. Returns True if any pump matched.
        """
        consumptions = list(consumptions)
        logger.info(
            "Updating levels after dispense: "
            + ", ".join(f"P{c.pump_id}:-{c.amount}ml" for c in consumptions)
        )

        levels = self._levels()
        updated = False
        for consumption in consumptions:
            for index, level in enumerate(levels):
                if level.pump_id != consumption.pump_id:
                    continue
                new_level = max(0, level.current_level - consumption.amount)
                logger.debug(f"P{level.pump_id}: {level.current_level}ml -> {new_level}ml")
                levels[index] = level.model_copy(
                    update={"current_level": new_level, "last_updated": datetime.utcnow()}
                )
                updated = True
                break

        if updated:
            self._schedule_persist()
        return updated

    def consume_shot(self, pump_id: int, amount: int) -> bool:
        return self.consume([LevelConsumption(pump_id=pump_id, amount=amount)])

    def reset_all(self) -> List[IngredientLevel]:
        """Refill every container to its full size."""
        now = datetime.utcnow()
        self._cache = [
            level.model_copy(update={"current_level": level.container_size, "last_updated": now})
            for level in self._levels()
        ]
        logger.info("Resetting all levels to full capacity")
        self._schedule_persist()
        return self.get()

    def refill_all(self) -> List[IngredientLevel]:
        return self.reset_all()

    def set_all(self, levels: Sequence[LevelInput]) -> List[IngredientLevel]:
        """
        Replace the whole level set.

        Raises InvalidLevelsError if `levels` is empty or not a list of
        level records. The input is reconciled onto the canonical pump set.
        """
        self._cache = self._validate_bulk(levels)
        self._schedule_persist()
        return self.get()

    def import_levels(self, levels: Sequence[LevelInput]) -> List[IngredientLevel]:
        """
        Replace the whole level set and write it immediately.

        Unlike routine updates, a failed write raises PersistenceError and
        the current levels are kept.
        """
        levels = self._validate_bulk(levels)
        self._cancel_pending()
        self._write(levels)
        self._cache = levels
        self._notify()
        return self.get()

    def _validate_bulk(self, levels: Sequence[LevelInput]) -> List[IngredientLevel]:
        if not isinstance(levels, (list, tuple)) or not levels:
            logger.error("Invalid levels provided for bulk set")
            raise InvalidLevelsError("levels must be a non-empty list")
        for entry in levels:
            if not isinstance(entry, (IngredientLevel, dict)):
                raise InvalidLevelsError(f"not a level record: {entry!r}")

        logger.info(f"Setting ingredient levels from external source: {len(levels)} levels")
        return reconcile_levels(levels)

    # =========================================================================
    # Persistence
    # =========================================================================

    def subscribe(self, listener: LevelsListener) -> Callable[[], None]:
        """
        Register a callback fired after every successful durable write.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def flush(self) -> bool:
        """Write a pending debounced change now. Returns True if one was pending."""
        if self._pending is None:
            return False
        self._cancel_pending()
        self._persist_best_effort()
        return True

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule_persist(self) -> None:
        self._cancel_pending()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._persist_best_effort()
            return
        self._pending = loop.call_later(self.debounce_seconds, self._on_window_expired)

    def _on_window_expired(self) -> None:
        self._pending = None
        self._persist_best_effort()

    def _persist_best_effort(self) -> None:
        try:
            self._persist()
        except PersistenceError as e:
            logger.error(f"Error saving ingredient levels: {e}")

    def _persist(self) -> None:
        levels = self._levels()
        logger.debug(f"Saving levels: {_summary(levels)}")
        self._write(levels)
        self._notify()

    def _write(self, levels: Sequence[IngredientLevel]) -> None:
        payload = json.dumps([level.model_dump(mode="json", by_alias=True) for level in levels])
        try:
            self.storage.set(LEVELS_KEY, payload)
            self.storage.set(VERSION_KEY, SCHEMA_VERSION)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(str(e)) from e

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Level update listener failed")
