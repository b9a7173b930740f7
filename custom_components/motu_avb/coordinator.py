"""Data update coordinator for the MOTU AVB integration."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import contextlib
from dataclasses import dataclass, field
import logging

from motu_avb_lib import ChannelBank, Update

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .const import DOMAIN
from .hub import MotuAvbHub

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MotuSnapshot:
    """Point-in-time view of the mirrored datastore."""

    input_banks: dict[int, ChannelBank] = field(default_factory=dict)
    output_banks: dict[int, ChannelBank] = field(default_factory=dict)
    mixer: ChannelBank | None = None
    connected: bool = False
    paths: int = 0
    external_updates: int = 0
    version: int = 0


class MotuAvbDataUpdateCoordinator(DataUpdateCoordinator[MotuSnapshot]):
    """Push datastore changes to entities, coalescing bursts of updates."""

    def __init__(
        self,
        hass: HomeAssistant,
        hub: MotuAvbHub,
        entry: ConfigEntry,
        *,
        debounce_seconds: float = 0.1,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(hass, _LOGGER, name=DOMAIN, config_entry=entry)
        self._hub = hub
        self._debounce_seconds = debounce_seconds
        self._debounce_task: asyncio.Task[None] | None = None
        self._unsubscribes: list[Callable[[], None]] = []
        self._external_updates = 0
        self._version = 0

    async def async_start(self) -> None:
        """Subscribe to hub updates and seed snapshot data."""
        self._clear_subscriptions()
        self._unsubscribes.append(self._hub.subscribe(self._handle_update))
        self._unsubscribes.append(
            self._hub.subscribe_connection(self._handle_connection)
        )
        self._set_snapshot()

    async def async_stop(self) -> None:
        """Stop coordinating updates and clean up resources."""
        self._clear_subscriptions()
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._debounce_task
            self._debounce_task = None

    def _clear_subscriptions(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes.clear()

    def _handle_update(self, update: Update) -> None:
        """Handle device updates on the Home Assistant event loop."""
        self.hass.loop.call_soon_threadsafe(self._process_update, update)

    def _handle_connection(self, connected: bool) -> None:
        self.hass.loop.call_soon_threadsafe(self._process_connection, connected)

    @callback
    def _process_update(self, update: Update) -> None:
        if not update.internal:
            self._external_updates += 1
        self._queue_refresh()

    @callback
    def _process_connection(self, connected: bool) -> None:
        _LOGGER.debug("Connection state changed: connected=%s", connected)
        self._set_snapshot()

    def _queue_refresh(self) -> None:
        """Debounce snapshot rebuilds while a burst of updates arrives."""
        if self._debounce_task is None or self._debounce_task.done():
            self._debounce_task = self.hass.async_create_task(
                self._async_debounced_refresh()
            )

    async def _async_debounced_refresh(self) -> None:
        await asyncio.sleep(self._debounce_seconds)
        self._set_snapshot()

    def _set_snapshot(self) -> None:
        """Rebuild the bank views and publish them to entities."""
        self._version += 1
        device = self._hub.device
        snapshot = MotuSnapshot(
            input_banks=self._hub.input_banks(),
            output_banks=self._hub.output_banks(),
            mixer=self._hub.mixer_bank(),
            connected=self._hub.is_connected,
            paths=len(device.snapshot()) if device is not None else 0,
            external_updates=self._external_updates,
            version=self._version,
        )
        self.async_set_updated_data(snapshot)
