"""Pytest configuration and fixtures."""

import json
import os
import tempfile
from pathlib import Path
from typing import Generator, List

import pytest
from fastapi.testclient import TestClient

from dispenser.models.recipes import PumpConfig
from dispenser.storage import LEVELS_KEY, InMemoryStorage

# Set test environment before importing app
os.environ["DEBUG"] = "true"


class CountingStorage(InMemoryStorage):
    """In-memory storage that counts level payload writes."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.level_writes = 0
        self.fail = False

    def set(self, key: str, value: str) -> None:
        if self.fail:
            raise OSError("disk full")
        if key == LEVELS_KEY:
            self.level_writes += 1
        super().set(key, value)

    def stored_levels(self) -> list:
        return json.loads(self.get(LEVELS_KEY))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage() -> CountingStorage:
    return CountingStorage()


@pytest.fixture
def pump_config() -> List[PumpConfig]:
    """Five enabled pumps plus one disabled."""
    return [
        PumpConfig(id=1, ingredient="vodka"),
        PumpConfig(id=2, ingredient="white-rum"),
        PumpConfig(id=3, ingredient="lime-juice"),
        PumpConfig(id=4, ingredient="custom-1712345678-Blue Curacao"),
        PumpConfig(id=5, ingredient="orange-juice"),
        PumpConfig(id=6, ingredient="gin", enabled=False),
    ]


@pytest.fixture
def app_env(temp_dir, pump_config, monkeypatch) -> Path:
    """Point the API at a fresh data directory with pump and cocktail files."""
    from api import dependencies
    from api.config import get_settings

    monkeypatch.setenv("DATA_DIR", str(temp_dir))
    monkeypatch.setenv("ACTUATION_TIME_SCALE", "0")

    (temp_dir / "pump-config.json").write_text(
        json.dumps([p.model_dump() for p in pump_config])
    )
    (temp_dir / "cocktails.json").write_text(json.dumps({
        "version": "1.0.0",
        "cocktails": [
            {
                "id": "screwdriver",
                "name": "Screwdriver",
                "recipe": [
                    {"ingredientId": "vodka", "amount": 50, "type": "automatic"},
                    {"ingredientId": "orange-juice", "amount": 150, "type": "automatic"},
                    {"ingredientId": "ice", "amount": 100, "type": "manual"},
                ],
            },
            {
                "id": "gin-fizz",
                "name": "Gin Fizz",
                "recipe": [{"ingredientId": "gin", "amount": 50, "type": "automatic"}],
            },
        ],
    }))

    get_settings.cache_clear()
    dependencies.get_level_store.cache_clear()
    dependencies.get_venting_orchestrator.cache_clear()

    yield temp_dir

    get_settings.cache_clear()
    dependencies.get_level_store.cache_clear()
    dependencies.get_venting_orchestrator.cache_clear()


@pytest.fixture
def api_client(app_env) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client."""
    from api.main import app

    with TestClient(app) as client:
        yield client
