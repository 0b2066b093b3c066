"""Tests for the level store."""

import asyncio
import json
from datetime import datetime

import pytest

from dispenser.errors import InvalidLevelsError, PersistenceError
from dispenser.models.levels import IngredientLevel, LevelConsumption, LevelUpdate
from dispenser.storage import (
    LEVELS_KEY,
    SCHEMA_VERSION,
    VERSION_KEY,
    JsonFileStorage,
    LevelStore,
    reconcile_levels,
)

WINDOW = 0.05


def seed(storage, records, version=SCHEMA_VERSION):
    """Put a raw payload into storage and reset the write counter."""
    storage.set(LEVELS_KEY, records if isinstance(records, str) else json.dumps(records))
    if version is not None:
        storage.set(VERSION_KEY, version)
    storage.level_writes = 0


def assert_invariants(levels):
    assert [level.pump_id for level in levels] == list(range(1, 19))
    for level in levels:
        assert 100 <= level.container_size <= 5000
        assert 0 <= level.current_level <= level.container_size


class TestInitialLoad:
    """Loading and reconciling stored levels."""

    def test_empty_storage_materializes_defaults(self, storage):
        store = LevelStore(storage)
        levels = store.get()

        assert_invariants(levels)
        assert all(level.current_level == 1000 for level in levels)
        assert all(level.container_size == 1000 for level in levels)
        assert levels[0].ingredient == "Zutat 1"
        assert levels[0].ingredient_id == "ingredient-1"

        # Defaults are written right away under the current version
        assert storage.level_writes == 1
        assert storage.get(VERSION_KEY) == SCHEMA_VERSION
        assert len(storage.stored_levels()) == 18

    def test_version_mismatch_discards_stored_levels(self, storage):
        seed(storage, [{"pumpId": 1, "currentLevel": 5, "containerSize": 1000}], version="2.0")

        store = LevelStore(storage)

        assert store.get_level(1).current_level == 1000
        assert storage.get(VERSION_KEY) == SCHEMA_VERSION
        assert storage.stored_levels()[0]["currentLevel"] == 1000

    def test_missing_version_discards_stored_levels(self, storage):
        seed(storage, [{"pumpId": 1, "currentLevel": 5, "containerSize": 1000}], version=None)

        store = LevelStore(storage)

        assert store.get_level(1).current_level == 1000

    @pytest.mark.parametrize("payload", ["{not json", "[]", '{"pumpId": 1}'])
    def test_corrupt_payload_falls_back_to_defaults(self, storage, payload):
        seed(storage, payload)

        store = LevelStore(storage)

        assert_invariants(store.get())
        assert storage.level_writes == 1

    def test_stored_levels_are_loaded_without_rewrite(self, storage):
        seed(storage, [
            {"pumpId": 1, "ingredientId": "vodka", "ingredient": "Vodka",
             "currentLevel": 300, "containerSize": 700, "lastUpdated": "2024-03-01T12:00:00.000Z"},
        ])

        store = LevelStore(storage)
        level = store.get_level(1)

        assert level.ingredient_id == "vodka"
        assert level.current_level == 300
        assert level.container_size == 700
        assert level.last_updated.year == 2024
        assert storage.level_writes == 0

    def test_missing_and_extra_ids_are_reconciled(self, storage):
        seed(storage, [
            {"pumpId": 3, "currentLevel": 200, "containerSize": 1000},
            {"pumpId": 25, "currentLevel": 200, "containerSize": 1000},
            {"pumpId": 0, "currentLevel": 200, "containerSize": 1000},
        ])

        levels = LevelStore(storage).get()

        assert_invariants(levels)
        assert levels[2].current_level == 200
        assert levels[0].current_level == 1000

    def test_stored_values_are_clamped(self, storage):
        seed(storage, [
            {"pumpId": 1, "currentLevel": 9999, "containerSize": 700},
            {"pumpId": 2, "currentLevel": -40, "containerSize": 1000},
            {"pumpId": 3, "currentLevel": 80, "containerSize": 50},
            {"pumpId": 4, "currentLevel": 8000, "containerSize": 99999},
            {"pumpId": 5, "currentLevel": "junk", "containerSize": 0},
        ])

        levels = LevelStore(storage).get()

        assert_invariants(levels)
        assert (levels[0].current_level, levels[0].container_size) == (700, 700)
        assert levels[1].current_level == 0
        assert (levels[2].current_level, levels[2].container_size) == (80, 100)
        assert (levels[3].current_level, levels[3].container_size) == (5000, 5000)
        assert (levels[4].current_level, levels[4].container_size) == (0, 1000)

    def test_reconcile_first_duplicate_wins(self):
        levels = reconcile_levels([
            {"pumpId": 1, "currentLevel": 100, "containerSize": 1000},
            {"pumpId": 1, "currentLevel": 900, "containerSize": 1000},
        ])
        assert levels[0].current_level == 100


class TestUpdates:
    """Field-level mutations (no event loop, so writes go straight through)."""

    def test_update_level_clamps_to_container(self, storage):
        store = LevelStore(storage)

        assert store.update_level(1, 1500).current_level == 1000
        assert store.update_level(1, -5).current_level == 0
        assert store.update_level(1, 420).current_level == 420

    def test_shrinking_container_clamps_level(self, storage):
        store = LevelStore(storage)

        level = store.update_container_size(2, 600)
        assert level.container_size == 600
        assert level.current_level == 600

        assert store.update_container_size(2, 10).container_size == 100
        assert store.update_container_size(2, 10000).container_size == 5000
        assert store.get_level(2).current_level == 100

    def test_combined_update_applies_size_first(self, storage):
        store = LevelStore(storage)

        level = store.update(3, LevelUpdate(container_size=2000, current_level=1800))

        assert (level.current_level, level.container_size) == (1800, 2000)

    def test_update_stamps_last_updated(self, storage):
        store = LevelStore(storage)
        before = store.get_level(4).last_updated

        level = store.update_level(4, 10)

        assert level.last_updated >= before
        assert isinstance(level.last_updated, datetime)

    def test_unknown_pump_is_a_no_op(self, storage):
        store = LevelStore(storage)
        writes = storage.level_writes

        assert store.update_level(19, 10) is None
        assert storage.level_writes == writes

    def test_rename_ingredient(self, storage):
        store = LevelStore(storage)

        level = store.update_ingredient_name(5, "Tequila")
        assert (level.ingredient, level.ingredient_id) == ("Tequila", "Tequila")

        level = store.update_ingredient_name(5, "")
        assert (level.ingredient, level.ingredient_id) == ("Zutat 5", "ingredient-5")

    def test_returned_snapshots_do_not_alias_cache(self, storage):
        store = LevelStore(storage)

        snapshot = store.get()
        snapshot[0].current_level = -100

        assert store.get_level(1).current_level == 1000

    def test_consume_floors_at_zero(self, storage):
        store = LevelStore(storage)

        updated = store.consume([
            LevelConsumption(pump_id=1, amount=300),
            LevelConsumption(pump_id=2, amount=5000),
        ])

        assert updated is True
        assert store.get_level(1).current_level == 700
        assert store.get_level(2).current_level == 0

    def test_consume_unknown_pump(self, storage):
        store = LevelStore(storage)
        writes = storage.level_writes

        assert store.consume_shot(42, 20) is False
        assert storage.level_writes == writes

    def test_reset_all_is_idempotent(self, storage):
        store = LevelStore(storage)
        store.update_level(1, 10)
        store.update_container_size(2, 3000)

        first = [(l.current_level, l.container_size) for l in store.reset_all()]
        second = [(l.current_level, l.container_size) for l in store.reset_all()]

        assert first == second
        assert all(level.current_level == level.container_size for level in store.get())
        assert store.get_level(2).current_level == 3000


class TestBulkSet:
    """Replacing the whole level set."""

    @pytest.mark.parametrize("bad", [[], None, "levels", {"pumpId": 1}, [1, 2, 3]])
    def test_rejects_malformed_input(self, storage, bad):
        store = LevelStore(storage)
        store.update_level(1, 123)

        with pytest.raises(InvalidLevelsError):
            store.set_all(bad)

        assert store.get_level(1).current_level == 123

    def test_set_all_reconciles_to_full_set(self, storage):
        store = LevelStore(storage)

        levels = store.set_all([
            IngredientLevel(pump_id=7, ingredient_id="gin", ingredient="Gin",
                            current_level=250, container_size=700),
            {"pumpId": 8, "ingredientId": "rum", "ingredient": "Rum",
             "currentLevel": 900, "containerSize": 500},
        ])

        assert_invariants(levels)
        assert levels[6].current_level == 250
        assert levels[7].current_level == 500
        assert store.get_level(7).ingredient_id == "gin"

    def test_import_writes_immediately(self, storage):
        store = LevelStore(storage)

        async def scenario():
            store.import_levels([{"pumpId": 1, "currentLevel": 10, "containerSize": 1000}])

            assert not store.has_pending_write
        assert store.get_level(1).current_level == 1000

        asyncio.run(scenario())
        assert storage.stored_levels()[0]["currentLevel"] == 10

    def test_import_propagates_write_failure(self, storage):
        store = LevelStore(storage)
        storage.fail = True

        with pytest.raises(PersistenceError):
            store.import_levels([{"pumpId": 1, "currentLevel": 10, "containerSize": 1000}])

        assert store.get_level(1).current_level == 1000
        assert not store.has_pending_write

    def test_routine_write_failure_is_swallowed(self, storage):
        store = LevelStore(storage)
        storage.fail = True

        level = store.update_level(1, 10)

        assert level.current_level == 10
        assert store.get_level(1).current_level == 10


class TestDebouncedPersistence:
    """Writes inside an event loop are coalesced."""

    def test_updates_within_window_coalesce(self, storage):
        async def scenario():
            store = LevelStore(storage, debounce_seconds=WINDOW)
            storage.level_writes = 0

            store.update_level(1, 500)
            store.update_level(1, 400)
            store.update_level(1, 300)

            # Read-your-writes before anything is durable
            assert store.get_level(1).current_level == 300
            assert storage.stored_levels()[0]["currentLevel"] == 1000
            assert store.has_pending_write

            await asyncio.sleep(WINDOW * 4)

        asyncio.run(scenario())
        assert storage.level_writes == 1
        assert storage.stored_levels()[0]["currentLevel"] == 300

    def test_separate_windows_write_separately(self, storage):
        async def scenario():
            store = LevelStore(storage, debounce_seconds=WINDOW)
            storage.level_writes = 0

            store.update_level(1, 500)
            await asyncio.sleep(WINDOW * 4)
            store.update_level(2, 400)
            await asyncio.sleep(WINDOW * 4)

        asyncio.run(scenario())
        assert storage.level_writes == 2

    def test_flush_writes_pending_change(self, storage):
        async def scenario():
            store = LevelStore(storage, debounce_seconds=60)
            storage.level_writes = 0

            assert store.flush() is False
            store.update_level(3, 123)
            assert store.flush() is True
            assert store.flush() is False

        asyncio.run(scenario())
        assert storage.level_writes == 1
        assert storage.stored_levels()[2]["currentLevel"] == 123

    def test_subscribers_notified_after_write(self, storage):
        events = []

        async def scenario():
            store = LevelStore(storage, debounce_seconds=WINDOW)
            unsubscribe = store.subscribe(lambda: events.append("updated"))

            store.update_level(1, 500)
            assert events == []
            await asyncio.sleep(WINDOW * 4)
            assert events == ["updated"]

            unsubscribe()
            store.update_level(1, 400)
            await asyncio.sleep(WINDOW * 4)

        asyncio.run(scenario())
        assert events == ["updated"]

    def test_failing_subscriber_does_not_block_others(self, storage):
        events = []

        def broken():
            raise RuntimeError("boom")

        store = LevelStore(storage)
        store.subscribe(broken)
        store.subscribe(lambda: events.append("updated"))

        store.update_level(1, 500)

        assert events == ["updated"]

    def test_invalidate_cache_reloads_from_storage(self, storage):
        store = LevelStore(storage)
        store.update_level(1, 250)

        seed(storage, [{"pumpId": 1, "currentLevel": 600, "containerSize": 1000}])
        assert store.get_level(1).current_level == 250

        store.invalidate_cache()
        assert store.get_level(1).current_level == 600


class TestJsonFileStorage:
    """Disk-backed storage."""

    def test_levels_survive_restart(self, temp_dir):
        path = temp_dir / "levels.json"

        store = LevelStore(JsonFileStorage(path))
        store.update_level(9, 321)

        reloaded = LevelStore(JsonFileStorage(path))
        assert reloaded.get_level(9).current_level == 321

    def test_corrupt_file_reads_as_empty(self, temp_dir):
        path = temp_dir / "levels.json"
        path.write_text("{broken")

        storage = JsonFileStorage(path)
        assert storage.get(VERSION_KEY) is None

        store = LevelStore(storage)
        assert len(store.get()) == 18
        assert storage.get(VERSION_KEY) == SCHEMA_VERSION

    def test_remove_key(self, temp_dir):
        storage = JsonFileStorage(temp_dir / "kv.json")
        storage.set("a", "1")
        storage.remove("a")
        assert storage.get("a") is None
