"""Tests for the cache service."""

import asyncio

import pytest

from workspace_assistant.cache import CacheService, TTLCache
from workspace_assistant.config import AppConfig


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(clock: FakeClock) -> CacheService:
    return CacheService(
        classification=TTLCache("classification", max_size=10, ttl_seconds=900, clock=clock),
        selection=TTLCache("selection", max_size=10, ttl_seconds=600, clock=clock),
        confirmation=TTLCache("confirmation", max_size=10, ttl_seconds=300, clock=clock),
        sweep_interval_seconds=0.01,
    )


def test_from_settings_sizes_tiers() -> None:
    """Test tiers take their limits from settings."""
    settings = AppConfig(
        cache_classification_max_size=7,
        cache_selection_ttl_seconds=42,
        cache_confirmation_max_size=3,
    )
    service = CacheService.from_settings(settings)

    stats = service.get_stats()
    assert stats["classification"]["max_size"] == 7
    assert stats["selection"]["ttl_seconds"] == 42
    assert stats["confirmation"]["max_size"] == 3


def test_sweep_removes_expired_per_tier(service: CacheService, clock: FakeClock) -> None:
    service.classification.set("q", "intent")
    service.selection.set("s", "tools")
    service.confirmation.set("c", "risk")
    clock.now = 400  # past the confirmation TTL only

    removed = service.sweep()

    assert removed == {"classification": 0, "selection": 0, "confirmation": 1}
    assert service.classification.get("q") == "intent"


def test_sweep_includes_registered_stores(service: CacheService) -> None:
    calls: list[str] = []

    def drop_stale() -> int:
        calls.append("swept")
        return 2

    service.register_sweep("pending", drop_stale)

    removed = service.sweep()

    assert removed["pending"] == 2
    assert removed["confirmation"] == 0
    assert calls == ["swept"]


def test_clear_all(service: CacheService) -> None:
    service.classification.set("q", "intent")
    service.selection.set("s", "tools")
    service.clear_all()
    assert all(stats["size"] == 0 for stats in service.get_stats().values())


@pytest.mark.asyncio
async def test_start_and_stop(service: CacheService, clock: FakeClock) -> None:
    """Test the background sweep runs and stops cleanly."""
    service.confirmation.set("c", "risk")
    clock.now = 1000

    await service.start()
    assert service.running is True
    await asyncio.sleep(0.05)
    await service.stop()

    assert service.running is False
    assert len(service.confirmation) == 0


@pytest.mark.asyncio
async def test_start_twice_is_noop(service: CacheService) -> None:
    await service.start()
    first_task = service._sweep_task
    await service.start()
    assert service._sweep_task is first_task
    await service.stop()


@pytest.mark.asyncio
async def test_stop_without_start(service: CacheService) -> None:
    await service.stop()
    assert service.running is False
