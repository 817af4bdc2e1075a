# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""This module contains the DeviceSession, which runs an IoT Central device: provisioning,
connecting, heartbeat telemetry, writable setting reconciliation and the upload file command.
"""
import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple
from . import constant
from . import connection_string as cs
from .capabilities import (
    ConnectionFactory,
    DeviceConnection,
    FileSystemCapability,
    ProvisioningCapability,
    TwinHandle,
)
from .config import SessionConfig
from .connection_state import ConnectionState, is_valid_transition
from .custom_typing import CommandResponder, Telemetry, TwinPatch
from .filesystem import LocalFileSystem
from .iothub_connection import IoTHubConnection
from .models import CommandResult, DeviceIdentity, DeviceSettings
from .provisioning_client import ProvisioningClient

_Event = Tuple[Callable[..., Awaitable[None]], Tuple[Any, ...]]


class DeviceSession:
    """Runtime state of one device.

    Heartbeat ticks, desired property patches, commands and connection changes are put on a
    single queue and handled one at a time by a worker task, so the settings mirror only ever
    has one writer. Reconnecting after a dropped connection runs in a task of its own, so the
    worker keeps handling events while the backoff is in progress.
    """

    def __init__(
        self,
        identity: DeviceIdentity,
        *,
        config: Optional[SessionConfig] = None,
        logger: Optional[logging.Logger] = None,
        provisioning: Optional[ProvisioningCapability] = None,
        connection_factory: Optional[ConnectionFactory] = None,
        filesystem: Optional[FileSystemCapability] = None,
    ) -> None:
        """
        :param identity: The identity of the device
        :type identity: :class:`DeviceIdentity`
        :param config: Runtime options. Defaults are used if not provided
        :type config: :class:`SessionConfig`
        :param logger: Logger that receives all output of the session
        :type logger: :class:`logging.Logger`
        :param provisioning: Device Provisioning Service registration
        :param connection_factory: Callable creating a DeviceConnection from a connection string
        :param filesystem: Local file access used by file upload
        """
        self._identity = identity
        self._config = config or SessionConfig()
        self._logger = logger or logging.getLogger(__name__)
        self._naming_policy = self._config.naming_policy
        self._settings = self._naming_policy.create_settings()
        self._provisioning = provisioning or ProvisioningClient()
        self._connection_factory = (
            connection_factory or IoTHubConnection.create_from_connection_string
        )
        self._filesystem = filesystem or LocalFileSystem()

        self._connection: Optional[DeviceConnection] = None
        self._twin: Optional[TwinHandle] = None
        self._state = ConnectionState.DISCONNECTED

        # Created on the running loop when the session connects
        self._events: Optional["asyncio.Queue[_Event]"] = None
        self._worker_task: Optional["asyncio.Task[None]"] = None
        self._heartbeat_task: Optional["asyncio.Task[None]"] = None
        self._reconnect_task: Optional["asyncio.Task[None]"] = None
        self._shutdown_event: Optional[asyncio.Event] = None

    @property
    def identity(self) -> DeviceIdentity:
        return self._identity

    @property
    def settings(self) -> DeviceSettings:
        return self._settings

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def connection(self) -> Optional[DeviceConnection]:
        """The connection handle, or None unless both connection and twin are established"""
        return self._connection if self._twin is not None else None

    @property
    def twin(self) -> Optional[TwinHandle]:
        """The twin handle, or None unless both connection and twin are established"""
        return self._twin if self._connection is not None else None

    # ~~~~~ Provisioning ~~~~~

    async def provision(self) -> str:
        """Register the device with the Device Provisioning Service

        :returns: A connection string for the assigned IoT Hub, or an empty string if
            registration failed. Never raises.
        """
        connection_string = ""

        try:
            self._set_state(ConnectionState.PROVISIONING)
            registration = await self._provisioning.register(
                provisioning_host=self._config.provisioning_host,
                id_scope=self._identity.scope_id,
                registration_id=self._identity.device_id,
                symmetric_key=self._identity.device_key,
                payload={constant.PROVISIONING_PAYLOAD_MODEL_ID: self._identity.model_id},
            )

            self._logger.info(
                "DPS registration succeeded - hub: {}".format(registration.assigned_hub)
            )

            connection_string = cs.format_connection_string(
                registration.assigned_hub, registration.device_id, self._identity.device_key
            )
        except Exception as e:
            self._logger.error(
                "Failed to instantiate client interface from configuration: {}".format(e)
            )

        if self._state is ConnectionState.PROVISIONING:
            self._set_state(
                ConnectionState.DISCONNECTED if connection_string else ConnectionState.FAULTED
            )
        return connection_string

    # ~~~~~ Connection ~~~~~

    async def connect(self, connection_string: str) -> None:
        """Connect to the assigned IoT Hub and start handling events. Never raises.

        If anything fails part way, the failure is logged and the session is left FAULTED
        with whatever handlers were registered before the failure.
        """
        try:
            self._set_state(ConnectionState.CONNECTING)

            # A repeated connect replaces the timer and any reconnection still in progress
            await self._cancel_tasks(self._heartbeat_task, self._reconnect_task)
            self._heartbeat_task = None
            self._reconnect_task = None

            connection = self._connection_factory(connection_string)
            if not connection:
                self._logger.error(
                    "Failed to connect device client interface from connection string - device: {}".format(
                        self._identity.device_id
                    )
                )
                self._set_state(ConnectionState.FAULTED)
                return
            self._connection = connection

            self._start_event_processing()
            self._heartbeat_task = asyncio.create_task(self._run_heartbeat_timer())

            await connection.open()

            self._logger.info(
                "Successfully connected to IoT Central - device: {}".format(
                    self._identity.device_id
                )
            )

            self._twin = await connection.get_twin()
            self._twin.on_desired_properties(self._on_desired_properties)

            connection.on_error(self._on_connection_error)
            connection.on_connection_state_change(self._on_connection_state_change)

            connection.on_method(constant.COMMAND_UPLOAD_FILE, self._on_upload_file_command)

            self._set_state(ConnectionState.CONNECTED)
            self._logger.info(
                "IoT Central successfully connected device: {}".format(self._identity.device_id)
            )
        except Exception as e:
            self._logger.error("IoT Central connection error: {}".format(e))
            self._state = ConnectionState.FAULTED

    async def shutdown(self) -> None:
        """Stop the heartbeat and event processing and close the connection"""
        await self._cancel_tasks(self._heartbeat_task, self._reconnect_task, self._worker_task)
        self._heartbeat_task = None
        self._reconnect_task = None
        self._worker_task = None

        if self._connection is not None:
            try:
                await self._connection.close()
            except Exception as e:
                self._logger.error("Error closing device client connection: {}".format(e))
        self._connection = None
        self._twin = None
        self._state = ConnectionState.DISCONNECTED

        self._get_shutdown_event().set()
        self._logger.info("Device session shut down - device: {}".format(self._identity.device_id))

    async def wait_for_shutdown(self) -> None:
        """Wait until `shutdown()` has been called"""
        await self._get_shutdown_event().wait()

    async def wait_for_idle(self) -> None:
        """Wait until every event submitted so far has been handled, including any
        reconnection started by one of them
        """
        if self._events is not None:
            await self._events.join()
        if self._reconnect_task is not None:
            await asyncio.wait({self._reconnect_task})

    # ~~~~~ Event handlers ~~~~~

    async def send_heartbeat(self) -> None:
        # Skipped while connecting or reconnecting, including ticks queued before a drop
        if not self.connected:
            return
        await self._send_measurement({constant.TELEMETRY_SYSTEM_HEARTBEAT: 1})

    async def handle_desired_properties(self, desired_changed_settings: TwinPatch) -> None:
        """Apply a desired property document (full or patch) to the settings mirror and
        report the applied values back in a single update.
        """
        try:
            patched_properties: TwinPatch = {}

            for setting, value in desired_changed_settings.items():
                if setting == constant.TWIN_VERSION_KEY:
                    continue

                if self._settings.is_recognized(setting):
                    patched_properties[setting] = self._settings.apply(setting, value)
                else:
                    self._logger.warning(
                        "Received desired property change for unknown setting '{}'".format(
                            setting
                        )
                    )

            if patched_properties:
                await self._update_device_properties(patched_properties)
        except Exception as e:
            self._logger.error("Exception while handling desired properties: {}".format(e))

    async def handle_upload_file_command(
        self, command_request: Any, respond: CommandResponder
    ) -> None:
        """Upload the configured file, then acknowledge the command and report its result.

        The acknowledgement is always a success, whatever the outcome of the upload.
        """
        self._logger.info("Received upload file command")

        blob_name = await self.upload_file(self._config.upload_file_path)

        try:
            await respond(constant.COMMAND_ACK_STATUS, None)
        except Exception as e:
            self._logger.error(
                "Failed to acknowledge {} command: {}".format(constant.COMMAND_UPLOAD_FILE, e)
            )

        result = CommandResult(
            status_code=constant.COMMAND_RESULT_STATUS,
            message=self._naming_policy.command_message(self._identity.device_id, blob_name),
            data="",
        )
        await self._update_device_properties(
            result.to_reported_properties(constant.COMMAND_UPLOAD_FILE)
        )

    async def handle_connection_state_change(self, connected: bool) -> None:
        # Only a drop of an established connection needs handling; reconnects are driven here
        connection = self._connection
        if connected or connection is None or self._state is not ConnectionState.CONNECTED:
            return

        self._logger.warning(
            "Lost connection to IoT Central - device: {}".format(self._identity.device_id)
        )
        if not self._config.auto_reconnect:
            self._set_state(ConnectionState.DISCONNECTED)
            return

        self._set_state(ConnectionState.CONNECTING)
        self._reconnect_task = asyncio.create_task(self._reconnect(connection))

    # ~~~~~ File upload ~~~~~

    async def upload_file(self, file_path: str) -> Optional[str]:
        """Upload a local file to the storage account linked to the IoT Hub

        :returns: The name of the uploaded blob, or None if the upload failed. Never raises.
        """
        if self._connection is None:
            self._logger.error("Cannot upload {} - device is not connected".format(file_path))
            return None

        try:
            file_size = await self._get_file_size(file_path)
            blob_name = self._naming_policy.blob_name(file_path, self._settings)

            self._logger.info(
                "uploadContent - data length: {}, blob path: {}".format(
                    file_size, self._naming_policy.describe_destination(file_path, self._settings)
                )
            )

            with self._filesystem.open_read_stream(file_path) as readable_stream:
                await self._connection.upload_to_blob(blob_name, readable_stream, file_size)

            await self._send_measurement(
                {constant.EVENT_UPLOAD_FILE: self._naming_policy.event_value(file_path, blob_name)}
            )

            self._logger.info("Uploaded {} to blob {}".format(file_path, blob_name))
            return blob_name
        except Exception as e:
            self._logger.error("Error during upload to blob: {}".format(e))
            return None

    # ~~~~~ Internals ~~~~~

    def _set_state(self, new_state: ConnectionState) -> None:
        if not is_valid_transition(self._state, new_state):
            raise RuntimeError(
                "Invalid connection state transition {} -> {}".format(
                    self._state.name, new_state.name
                )
            )
        if new_state is not self._state:
            self._logger.debug(
                "Connection state {} -> {}".format(self._state.name, new_state.name)
            )
        self._state = new_state

    def _get_shutdown_event(self) -> asyncio.Event:
        if self._shutdown_event is None:
            self._shutdown_event = asyncio.Event()
        return self._shutdown_event

    def _start_event_processing(self) -> None:
        if self._events is None:
            self._events = asyncio.Queue()
        if self._worker_task is None or self._worker_task.done():
            self._worker_task = asyncio.create_task(self._process_events(self._events))

    def _submit(self, handler: Callable[..., Awaitable[None]], *args: Any) -> None:
        if self._events is None:
            self._logger.warning(
                "Dropping {} - event processing not started".format(handler.__name__)
            )
            return
        self._events.put_nowait((handler, args))

    async def _process_events(self, events: "asyncio.Queue[_Event]") -> None:
        while True:
            handler, args = await events.get()
            try:
                await handler(*args)
            except Exception as e:
                self._logger.error(
                    "Unhandled exception in {}: {}".format(handler.__name__, e)
                )
            finally:
                events.task_done()

    async def _run_heartbeat_timer(self) -> None:
        while True:
            await asyncio.sleep(self._config.heartbeat_interval)
            # Not queued while disconnected, so no backlog builds up during a reconnect
            if self.connected:
                self._submit(self.send_heartbeat)

    async def _cancel_tasks(self, *tasks: Optional["asyncio.Task[None]"]) -> None:
        for task in tasks:
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    async def _reconnect(self, connection: DeviceConnection) -> None:
        policy = self._config.reconnect_policy
        for attempt, delay in enumerate(policy.delays(), start=1):
            self._set_state(ConnectionState.CONNECTING)
            self._logger.info(
                "Reconnecting in {:.1f} seconds (attempt {} of {})".format(
                    delay, attempt, policy.max_attempts
                )
            )
            await asyncio.sleep(delay)
            try:
                await connection.open()
            except Exception as e:
                self._logger.warning("Reconnect attempt {} failed: {}".format(attempt, e))
                continue
            self._set_state(ConnectionState.CONNECTED)
            self._logger.info(
                "Reconnected to IoT Central - device: {}".format(self._identity.device_id)
            )
            return

        self._set_state(ConnectionState.FAULTED)
        self._logger.error(
            "Giving up reconnecting after {} attempts - device: {}".format(
                policy.max_attempts, self._identity.device_id
            )
        )

    async def _get_file_size(self, file_path: str) -> Optional[int]:
        try:
            file_stats = await self._filesystem.stat(file_path)
        except Exception as e:
            self._logger.error("An error occurred while getting file stats: {}".format(e))
            return None
        return file_stats.st_size

    async def _send_measurement(self, data: Telemetry) -> None:
        if not data or self._connection is None:
            return

        try:
            await self._connection.send_event(data)
        except Exception as e:
            self._logger.error("Failed to send measurement: {}".format(e))

    async def _update_device_properties(self, properties: TwinPatch) -> None:
        if not properties or self._twin is None:
            return

        try:
            await self._twin.update_reported_properties(properties)
        except Exception as e:
            self._logger.error("Error updating device properties: {}".format(e))

    # Callbacks registered with the connection and twin, invoked on the session's loop

    def _on_desired_properties(self, patch: TwinPatch) -> None:
        self._submit(self.handle_desired_properties, patch)

    def _on_upload_file_command(self, command_request: Any, respond: CommandResponder) -> None:
        self._submit(self.handle_upload_file_command, command_request, respond)

    def _on_connection_state_change(self, connected: bool) -> None:
        self._submit(self.handle_connection_state_change, connected)

    def _on_connection_error(self, error: Exception) -> None:
        self._logger.error("Device client connection error: {}".format(error))
