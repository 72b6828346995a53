"""Cache service owning the three decision caches and their sweep loop.

Usage:
    caches = CacheService.from_settings()
    await caches.start()  # background sweep of expired entries
    # ... classifier/selector/analyzer read and write the tiers ...
    await caches.stop()
"""

import asyncio
from typing import Any, Callable

from workspace_assistant.cache.store import CacheStats, TTLCache
from workspace_assistant.config.settings import AppConfig, get_settings
from workspace_assistant.telemetry import (
    CACHE_SERVICE_STARTED,
    CACHE_SERVICE_STOPPED,
    CACHE_SWEEP,
    get_logger,
)

log = get_logger(__name__)


class CacheService:
    """Owns the classification, selection and confirmation caches.

    The tiers differ by volatility: classifications are stable for a given
    text, selections depend on the connected catalog, and risk decisions are
    context-sensitive so they live shortest.
    """

    def __init__(
        self,
        classification: TTLCache[Any],
        selection: TTLCache[Any],
        confirmation: TTLCache[Any],
        sweep_interval_seconds: float = 300.0,
    ) -> None:
        """Initialize the service.

        Args:
            classification: Cache for query classifications.
            selection: Cache for tool selections.
            confirmation: Cache for risk assessments.
            sweep_interval_seconds: Delay between expired-entry sweeps.
        """
        self.classification = classification
        self.selection = selection
        self.confirmation = confirmation
        self.sweep_interval_seconds = sweep_interval_seconds
        self.running = False
        self._sweep_task: asyncio.Task[None] | None = None
        self._extra_sweeps: dict[str, Callable[[], int]] = {}

    @classmethod
    def from_settings(cls, settings: AppConfig | None = None) -> "CacheService":
        """Build the three tiers from application settings."""
        settings = settings or get_settings()
        return cls(
            classification=TTLCache(
                "classification",
                max_size=settings.cache_classification_max_size,
                ttl_seconds=settings.cache_classification_ttl_seconds,
            ),
            selection=TTLCache(
                "selection",
                max_size=settings.cache_selection_max_size,
                ttl_seconds=settings.cache_selection_ttl_seconds,
            ),
            confirmation=TTLCache(
                "confirmation",
                max_size=settings.cache_confirmation_max_size,
                ttl_seconds=settings.cache_confirmation_ttl_seconds,
            ),
            sweep_interval_seconds=settings.cache_sweep_interval_seconds,
        )

    @property
    def tiers(self) -> tuple[TTLCache[Any], ...]:
        """All cache tiers, in a fixed order."""
        return (self.classification, self.selection, self.confirmation)

    async def start(self) -> None:
        """Start the background sweep task."""
        if self.running:
            log.warning("cache_service_already_running")
            return

        self.running = True
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        log.info(CACHE_SERVICE_STARTED, sweep_interval_seconds=self.sweep_interval_seconds)

    async def stop(self) -> None:
        """Stop the sweep task and wait for it to finish."""
        self.running = False
        task = self._sweep_task
        self._sweep_task = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        log.info(CACHE_SERVICE_STOPPED)

    def sweep(self) -> dict[str, int]:
        """Remove expired entries from every tier and registered store.

        Returns:
            Number of entries removed per tier or store name.
        """
        removed = {cache.name: cache.clear_expired() for cache in self.tiers}
        for name, extra in self._extra_sweeps.items():
            removed[name] = extra()
        log.debug(CACHE_SWEEP, removed=removed)
        return removed

    def get_stats(self) -> dict[str, CacheStats]:
        """Return statistics for every tier, keyed by tier name."""
        return {cache.name: cache.get_stats() for cache in self.tiers}

    def register_sweep(self, name: str, sweep: Callable[[], int]) -> None:
        """Add a store to the periodic sweep.

        Args:
            name: Key the store's removed count is reported under.
            sweep: Callable dropping expired records and returning how many.
        """
        self._extra_sweeps[name] = sweep

    def clear_all(self) -> None:
        """Empty every tier."""
        for cache in self.tiers:
            cache.clear()

    async def _sweep_loop(self) -> None:
        while self.running:
            try:
                await asyncio.sleep(self.sweep_interval_seconds)
                self.sweep()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error("cache_sweep_error", error=str(e), exc_info=True)
