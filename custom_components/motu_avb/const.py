"""Constants for motu_avb."""

from logging import Logger, getLogger

LOGGER: Logger = getLogger(__package__)

DOMAIN = "motu_avb"
MANUFACTURER = "MOTU"

DEFAULT_PORT = 80
CONNECT_TIMEOUT = 10.0

CONF_DEVICE_NAME = "device_name"
CONF_UID = "uid"
CONF_DEVICE_TYPE = "device_type"

DATA_HUB = "hub"
DATA_COORDINATOR = "coordinator"

RECONNECT_MAX_DELAY = 300
