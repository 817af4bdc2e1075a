# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""IoT Hub connection and twin backed by the Azure IoT device client.

The Azure IoT client invokes handlers on its own threads. Every handler registered here is
instead invoked on the event loop that opened the connection.
"""
import asyncio
import functools
import json
import logging
from typing import Any, BinaryIO, Dict, Optional
from azure.iot.device import Message, MethodResponse
from azure.iot.device.aio import IoTHubDeviceClient
from . import constant
from .blob_client import BlobUploader
from .custom_typing import (
    CommandHandler,
    ConnectionStateHandler,
    DesiredPropertiesHandler,
    ErrorHandler,
    JSONSerializable,
    Telemetry,
    TwinPatch,
)

logger = logging.getLogger(__name__)

PRODUCT_INFO = "{}/{}".format(constant.USER_AGENT_IDENTIFIER, constant.VERSION)


class IoTHubTwin:
    """Twin of the connected device"""

    def __init__(self, connection: "IoTHubConnection", document: Dict[str, Any]) -> None:
        self._connection = connection
        self._document = document

    @property
    def desired(self) -> TwinPatch:
        return dict(self._document.get("desired", {}))

    @property
    def reported(self) -> TwinPatch:
        return dict(self._document.get("reported", {}))

    def on_desired_properties(self, handler: DesiredPropertiesHandler) -> None:
        """Invoke `handler` with the desired properties of the fetched twin, and then again
        with every desired property patch IoT Hub sends afterwards.
        """
        self._connection._set_desired_properties_handler(handler)
        handler(self.desired)

    async def update_reported_properties(self, patch: TwinPatch) -> None:
        await self._connection.client.patch_twin_reported_properties(patch)


class IoTHubConnection:
    def __init__(
        self, device_client: IoTHubDeviceClient, *, blob_uploader: Optional[BlobUploader] = None
    ) -> None:
        """
        :param device_client: The Azure IoT Hub device client used as transport
        :type device_client: :class:`azure.iot.device.aio.IoTHubDeviceClient`
        :param blob_uploader: Uploader for files. If not provided, one using `device_client`
            will be created
        :type blob_uploader: :class:`BlobUploader`
        """
        self._client = device_client
        self._blob_uploader = blob_uploader or BlobUploader(device_client)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._method_handlers: Dict[str, CommandHandler] = {}
        self._desired_properties_handler: Optional[DesiredPropertiesHandler] = None
        self._error_handler: Optional[ErrorHandler] = None
        self._connection_state_handler: Optional[ConnectionStateHandler] = None

    @classmethod
    def create_from_connection_string(cls, connection_string: str) -> "IoTHubConnection":
        """Instantiate a connection from a symmetric key device connection string

        Automatic reconnection of the underlying client is turned off; reconnecting is left
        to the DeviceSession that owns the connection.

        :raises: ValueError if the connection string is invalid
        """
        device_client = IoTHubDeviceClient.create_from_connection_string(
            connection_string, connection_retry=False, product_info=PRODUCT_INFO
        )
        return cls(device_client)

    @property
    def client(self) -> IoTHubDeviceClient:
        return self._client

    @property
    def connected(self) -> bool:
        return self._client.connected

    async def open(self) -> None:
        """Connect to IoT Hub. May be called again after the connection has dropped."""
        self._loop = asyncio.get_running_loop()
        self._client.on_background_exception = self._on_background_exception
        self._client.on_connection_state_change = self._on_connection_state_change
        await self._client.connect()

    async def close(self) -> None:
        await self._client.shutdown()

    async def send_event(self, payload: Telemetry) -> None:
        message = Message(
            json.dumps(payload), content_encoding="utf-8", content_type="application/json"
        )
        await self._client.send_message(message)

    async def get_twin(self) -> IoTHubTwin:
        document = await self._client.get_twin()
        return IoTHubTwin(self, document)

    def on_method(self, method_name: str, handler: CommandHandler) -> None:
        self._method_handlers[method_name] = handler
        self._client.on_method_request_received = self._on_method_request_received

    def on_error(self, handler: ErrorHandler) -> None:
        self._error_handler = handler

    def on_connection_state_change(self, handler: ConnectionStateHandler) -> None:
        self._connection_state_handler = handler

    async def upload_to_blob(self, blob_name: str, stream: BinaryIO, size: Optional[int]) -> None:
        await self._blob_uploader.upload(blob_name, stream, size)

    def _set_desired_properties_handler(self, handler: DesiredPropertiesHandler) -> None:
        self._desired_properties_handler = handler
        self._client.on_twin_desired_properties_patch_received = self._on_twin_patch_received

    # Handlers invoked by the Azure IoT client (on its threads)

    def _on_twin_patch_received(self, patch: TwinPatch) -> None:
        self._call_on_loop(self._desired_properties_handler, patch)

    def _on_background_exception(self, e: Exception) -> None:
        self._call_on_loop(self._error_handler, e)

    def _on_connection_state_change(self) -> None:
        self._call_on_loop(self._connection_state_handler, self._client.connected)

    def _on_method_request_received(self, method_request) -> None:
        handler = self._method_handlers.get(method_request.name)
        if handler is None:
            logger.warning("Received request for unknown command '{}'".format(method_request.name))
            self._run_on_loop(
                self._respond(method_request, constant.COMMAND_NOT_FOUND_STATUS, None)
            )
            return
        respond = functools.partial(self._respond, method_request)
        self._call_on_loop(handler, method_request, respond)

    async def _respond(
        self, method_request, status: int, payload: Optional[JSONSerializable] = None
    ) -> None:
        response = MethodResponse.create_from_method_request(method_request, status, payload)
        await self._client.send_method_response(response)

    def _call_on_loop(self, handler, *args) -> None:
        if handler is None or self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(handler, *args)

    def _run_on_loop(self, coro) -> None:
        if self._loop is None or self._loop.is_closed():
            coro.close()
            return
        asyncio.run_coroutine_threadsafe(coro, self._loop)
