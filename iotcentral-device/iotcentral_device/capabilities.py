# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""Capabilities a DeviceSession consumes.

The session only talks to provisioning, transport, twin, blob storage and the filesystem through
these interfaces. The Azure IoT implementations live in `provisioning_client`,
`iothub_connection`, `blob_client` and `filesystem`.
"""
import os
from typing import BinaryIO, Callable, Optional
from typing_extensions import Protocol
from .custom_typing import (
    CommandHandler,
    ConnectionStateHandler,
    DesiredPropertiesHandler,
    ErrorHandler,
    JSONSerializable,
    Telemetry,
    TwinPatch,
)
from .models import RegistrationInfo


class ProvisioningCapability(Protocol):
    async def register(
        self,
        *,
        provisioning_host: str,
        id_scope: str,
        registration_id: str,
        symmetric_key: str,
        payload: JSONSerializable
    ) -> RegistrationInfo:
        """Register the device and return its IoT Hub assignment"""
        ...


class TwinHandle(Protocol):
    def on_desired_properties(self, handler: DesiredPropertiesHandler) -> None:
        """Invoke `handler` with the desired property document, then with every patch"""
        ...

    async def update_reported_properties(self, patch: TwinPatch) -> None:
        ...


class BlobUploadCapability(Protocol):
    async def upload(self, blob_name: str, stream: BinaryIO, size: Optional[int]) -> None:
        ...


class DeviceConnection(Protocol):
    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def send_event(self, payload: Telemetry) -> None:
        ...

    async def get_twin(self) -> TwinHandle:
        ...

    def on_method(self, method_name: str, handler: CommandHandler) -> None:
        ...

    def on_error(self, handler: ErrorHandler) -> None:
        ...

    def on_connection_state_change(self, handler: ConnectionStateHandler) -> None:
        ...

    async def upload_to_blob(self, blob_name: str, stream: BinaryIO, size: Optional[int]) -> None:
        ...


class FileSystemCapability(Protocol):
    async def stat(self, path: str) -> os.stat_result:
        ...

    def open_read_stream(self, path: str) -> BinaryIO:
        ...


# Builds a DeviceConnection from a connection string. May return None if no connection
# could be created from it.
ConnectionFactory = Callable[[str], Optional[DeviceConnection]]
