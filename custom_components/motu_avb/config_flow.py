"""Config flow for the MOTU AVB integration."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from motu_avb_lib import Device, DeviceConfig, DeviceType, DiscoveredDevice
from motu_avb_lib.discovery import device_from_service
from motu_avb_lib.errors import DecodeError, MotuError, TransportError
import voluptuous as vol

from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.const import CONF_HOST, CONF_PORT
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.httpx_client import get_async_client
from homeassistant.helpers.service_info.zeroconf import ZeroconfServiceInfo

from .const import (
    CONF_DEVICE_NAME,
    CONF_DEVICE_TYPE,
    CONF_UID,
    CONNECT_TIMEOUT,
    DEFAULT_PORT,
    DOMAIN,
)

_LOGGER = logging.getLogger(__name__)

STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_HOST): cv.string,
        vol.Optional(CONF_PORT, default=DEFAULT_PORT): cv.port,
    }
)


class MotuAvbConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for MOTU AVB interfaces."""

    VERSION = 1
    MINOR_VERSION = 1

    def __init__(self) -> None:
        """Initialize the flow."""
        self._discovered: DiscoveredDevice | None = None

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle manual entry of a host and port."""
        errors: dict[str, str] = {}
        if user_input is not None:
            host = user_input[CONF_HOST]
            port = user_input.get(CONF_PORT, DEFAULT_PORT)
            self._async_abort_entries_match({CONF_HOST: host, CONF_PORT: port})
            errors = await self._async_validate(host, port)
            if not errors:
                await self.async_set_unique_id(f"{host}:{port}")
                self._abort_if_unique_id_configured()
                return self.async_create_entry(
                    title=host,
                    data={CONF_HOST: host, CONF_PORT: port, CONF_DEVICE_NAME: host},
                )

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_USER_DATA_SCHEMA,
            errors=errors,
        )

    async def async_step_zeroconf(
        self, discovery_info: ZeroconfServiceInfo
    ) -> ConfigFlowResult:
        """Handle an interface advertised over mDNS."""
        discovered = device_from_service(
            discovery_info.name,
            discovery_info.properties,
            discovery_info.host,
            discovery_info.port,
        )
        if discovered is None or discovered.device_type is not DeviceType.DEVICE:
            return self.async_abort(reason="not_motu_device")

        await self.async_set_unique_id(discovered.uid)
        self._abort_if_unique_id_configured(
            updates={CONF_HOST: discovered.host, CONF_PORT: discovered.port}
        )
        self._discovered = discovered
        self.context["title_placeholders"] = {"name": discovered.name}
        return await self.async_step_zeroconf_confirm()

    async def async_step_zeroconf_confirm(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Confirm adding a discovered interface."""
        discovered = self._discovered
        if discovered is None:
            return self.async_abort(reason="missing_context")
        errors: dict[str, str] = {}
        if user_input is not None:
            errors = await self._async_validate(discovered.host, discovered.port)
            if not errors:
                return self.async_create_entry(
                    title=discovered.name,
                    data={
                        CONF_HOST: discovered.host,
                        CONF_PORT: discovered.port,
                        CONF_DEVICE_NAME: discovered.name,
                        CONF_UID: discovered.uid,
                        CONF_DEVICE_TYPE: discovered.device_type.value,
                    },
                )

        return self.async_show_form(
            step_id="zeroconf_confirm",
            description_placeholders={"name": discovered.name},
            errors=errors,
        )

    async def _async_validate(self, host: str, port: int) -> dict[str, str]:
        """Connect once to prove the datastore answers."""
        device = Device(
            host,
            host,
            port,
            config=DeviceConfig(logger_name=__package__),
            http_client=get_async_client(self.hass),
        )
        try:
            async with asyncio.timeout(CONNECT_TIMEOUT):
                await device.connect()
        except (TransportError, DecodeError, TimeoutError):
            _LOGGER.debug("Validation failed for %s:%s", host, port, exc_info=True)
            return {"base": "cannot_connect"}
        except MotuError:
            _LOGGER.exception("Unexpected error validating %s:%s", host, port)
            return {"base": "unknown"}
        finally:
            await device.disconnect()
        return {}
