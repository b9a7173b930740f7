"""Hub wrapper for the MOTU AVB device lifecycle."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import contextlib
import logging
from typing import Any

from motu_avb_lib import (
    ChannelBank,
    Device,
    DeviceConfig,
    DeviceType,
    MotuError,
    NotConnectedError,
    TransportError,
    Update,
    ValidationError,
    WriteRequest,
)

from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.httpx_client import get_async_client

from .const import CONNECT_TIMEOUT, RECONNECT_MAX_DELAY

_LOGGER = logging.getLogger(__name__)


class MotuAvbHub:
    """Manage a single Device instance."""

    def __init__(
        self,
        hass: HomeAssistant,
        host: str,
        port: int,
        name: str,
        uid: str | None,
        device_type: DeviceType = DeviceType.DEVICE,
    ) -> None:
        """Initialize the hub wrapper."""
        self._hass = hass
        self._host = host
        self._port = port
        self._name = name
        self._uid = uid
        self._device_type = device_type
        self._device: Device | None = None
        self._device_unsubscribes: list[Callable[[], None]] = []
        self._connect_lock = asyncio.Lock()
        self._reconnect_task: asyncio.Task[None] | None = None
        self._reconnect_attempts = 0
        self._stopping = False
        self._unavailable_logged = False
        self._update_callbacks: dict[
            Callable[[Update], None], Callable[[], None] | None
        ] = {}
        self._connection_callbacks: list[Callable[[bool], None]] = []

    @property
    def device(self) -> Device | None:
        """Return the underlying device."""
        return self._device

    @property
    def is_connected(self) -> bool:
        """Return if the device is connected."""
        return self._device is not None and self._device.connected

    @property
    def name(self) -> str:
        """Return the device name."""
        return self._name

    @property
    def uid(self) -> str | None:
        """Return the device uid if known."""
        return self._uid

    @property
    def api_version(self) -> str | None:
        """Return the datastore API version reported by the device."""
        return self._device.api_version if self._device is not None else None

    async def async_connect(self) -> None:
        """Connect the device and start polling."""
        self._stopping = False
        await self._async_connect()

    async def _async_connect(self) -> None:
        async with self._connect_lock:
            await self._async_disconnect()
            device = Device(
                self._name,
                self._host,
                self._port,
                self._uid,
                self._device_type,
                config=DeviceConfig(logger_name=__package__),
                http_client=get_async_client(self._hass),
            )
            self._device = device
            try:
                async with asyncio.timeout(CONNECT_TIMEOUT):
                    await device.connect()
            except BaseException:
                with contextlib.suppress(Exception):
                    await device.disconnect()
                self._device = None
                raise
            self._device_unsubscribes.append(
                device.on_disconnected(self._handle_disconnected)
            )
            self._resubscribe_update_callbacks()
            if self._unavailable_logged:
                _LOGGER.info("Device connection restored")
                self._unavailable_logged = False
            self._notify_connection(True)

    async def async_disconnect(self) -> None:
        """Disconnect the device and stop reconnecting."""
        self._stopping = True
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reconnect_task
            self._reconnect_task = None
        await self._async_disconnect()

    async def _async_disconnect(self) -> None:
        device = self._device
        for unsubscribe in self._device_unsubscribes:
            unsubscribe()
        self._device_unsubscribes.clear()
        self._clear_update_subscriptions()
        self._device = None
        if device is not None:
            was_connected = device.connected
            await device.disconnect()
            if was_connected:
                self._notify_connection(False)

    def subscribe(self, callback: Callable[[Update], None]) -> Callable[[], None]:
        """Subscribe to device updates; survives reconnects."""
        if callback not in self._update_callbacks:
            self._update_callbacks[callback] = None
        device = self._device
        if device is not None:
            self._update_callbacks[callback] = device.subscribe(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Callable[[Update], None]) -> bool:
        """Unsubscribe from device updates."""
        if callback not in self._update_callbacks:
            return False
        unsubscribe = self._update_callbacks.pop(callback)
        if unsubscribe is not None:
            unsubscribe()
        return True

    def subscribe_connection(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        """Call callback with True/False when the connection comes up or goes down."""
        self._connection_callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._connection_callbacks:
                self._connection_callbacks.remove(callback)

        return _unsubscribe

    def input_banks(self) -> dict[int, ChannelBank]:
        """Return input bank views."""
        return self._device.input_banks() if self._device is not None else {}

    def output_banks(self) -> dict[int, ChannelBank]:
        """Return output bank views."""
        return self._device.output_banks() if self._device is not None else {}

    def mixer_bank(self) -> ChannelBank | None:
        """Return the mixer bank view."""
        return self._device.mixer_bank() if self._device is not None else None

    async def async_set(self, request: WriteRequest) -> None:
        """Send a write request to the device."""
        device = self._device
        if device is None:
            raise HomeAssistantError("Device is not connected.")
        _LOGGER.debug("Writing %s=%r", request.path, request.value)
        try:
            await device.set(request)
        except NotConnectedError as err:
            raise HomeAssistantError("Device is not connected.") from err
        except TransportError as err:
            raise HomeAssistantError(f"Write to {request.path} failed: {err}") from err
        except ValidationError as err:
            raise HomeAssistantError(str(err)) from err

    def diagnostics(self) -> dict[str, Any]:
        """Return device counters for diagnostics."""
        device = self._device
        if device is None:
            return {"state": "disconnected", "reconnect_attempts": self._reconnect_attempts}
        return {**device.diagnostics(), "reconnect_attempts": self._reconnect_attempts}

    def _resubscribe_update_callbacks(self) -> None:
        """Re-register update callbacks on a new device connection."""
        device = self._device
        if device is None or not self._update_callbacks:
            return
        for cb in list(self._update_callbacks):
            self._update_callbacks[cb] = device.subscribe(cb)

    def _clear_update_subscriptions(self) -> None:
        """Clear update subscriptions when the device goes away."""
        for cb, unsubscribe in list(self._update_callbacks.items()):
            if unsubscribe is not None:
                unsubscribe()
            self._update_callbacks[cb] = None

    def _notify_connection(self, connected: bool) -> None:
        for cb in list(self._connection_callbacks):
            try:
                cb(connected)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Connection listener failed")

    def _handle_disconnected(self, reason: Exception | None) -> None:
        """Handle the device dropping its session."""
        if reason is None:
            return
        _LOGGER.debug("Device connection lost (%s); scheduling reconnect", reason)
        self._log_unavailable()
        self._notify_connection(False)
        self._hass.loop.call_soon_threadsafe(self._schedule_reconnect)

    @callback
    def _schedule_reconnect(self) -> None:
        """Schedule reconnection attempts when the device disconnects."""
        if self._stopping:
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        _LOGGER.debug("Creating reconnect task")
        self._reconnect_task = self._hass.async_create_task(
            self._async_reconnect_loop()
        )

    def _log_unavailable(self) -> None:
        """Log the device as unavailable once."""
        if self._unavailable_logged:
            return
        _LOGGER.info("Device connection lost")
        self._unavailable_logged = True

    async def _async_reconnect_loop(self) -> None:
        """Reconnect with exponential backoff until successful or stopped."""
        while not self._stopping:
            _LOGGER.debug("Reconnect attempt %s starting", self._reconnect_attempts + 1)
            try:
                await self._async_connect()
            except (MotuError, TimeoutError) as err:
                _LOGGER.debug("Reconnect attempt failed: %s", err)
            else:
                self._reconnect_attempts = 0
                return
            self._reconnect_attempts += 1
            delay = min(RECONNECT_MAX_DELAY, 2**self._reconnect_attempts)
            _LOGGER.debug(
                "Reconnect attempt %s sleeping for %s seconds",
                self._reconnect_attempts,
                delay,
            )
            await asyncio.sleep(delay)
