""" Azure IoT Central Device Client

This library runs an Azure IoT Central device: it provisions the device with the Device
Provisioning Service, connects it to its IoT Hub, sends heartbeat telemetry, keeps a writable
setting in sync with the cloud, and uploads a file to blob storage on command.
"""

from .device_session import DeviceSession  # noqa: F401
from .config import SessionConfig  # noqa: F401
from .connection_state import ConnectionState, ReconnectPolicy  # noqa: F401
from .models import DeviceIdentity, DeviceSettings, CommandResult, RegistrationInfo  # noqa: F401
from .naming import (  # noqa: F401
    NamingPolicy,
    FolderNamingPolicy,
    TimestampSuffixNamingPolicy,
    create_naming_policy,
)
from .exceptions import ConfigurationError, ProvisioningError, BlobUploadError  # noqa: F401
from .constant import VERSION as __version__  # noqa: F401
