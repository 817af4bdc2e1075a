# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------

import logging
import os
from typing import Mapping, Optional
from . import constant
from .connection_state import ReconnectPolicy
from .exceptions import ConfigurationError
from .models import DeviceIdentity
from .naming import NamingPolicy, FolderNamingPolicy, create_naming_policy

# Environment variables
ENV_SCOPE_ID = "scopeId"
ENV_DEVICE_ID = "deviceId"
ENV_DEVICE_KEY = "deviceKey"
ENV_MODEL_ID = "modelId"
ENV_HEARTBEAT_INTERVAL = "heartbeatInterval"
ENV_UPLOAD_FILE_PATH = "uploadFilePath"
ENV_NAMING_POLICY = "namingPolicy"
ENV_AUTO_RECONNECT = "autoReconnect"
ENV_PROVISIONING_HOST = "provisioningHost"
ENV_LOG_LEVEL = "logLevel"

REQUIRED_ENVIRONMENT = (ENV_SCOPE_ID, ENV_DEVICE_ID, ENV_DEVICE_KEY, ENV_MODEL_ID)


class SessionConfig:
    """
    Class for storing the runtime options of a DeviceSession.
    """

    def __init__(
        self,
        *,
        heartbeat_interval: float = constant.DEFAULT_HEARTBEAT_INTERVAL,
        upload_file_path: str = constant.DEFAULT_UPLOAD_FILE_PATH,
        provisioning_host: str = constant.PROVISIONING_GLOBAL_ENDPOINT,
        naming_policy: Optional[NamingPolicy] = None,
        auto_reconnect: bool = True,
        reconnect_policy: Optional[ReconnectPolicy] = None,
    ) -> None:
        """Initializer for SessionConfig

        :param float heartbeat_interval: Seconds between heartbeat telemetry messages
        :param str upload_file_path: Local file uploaded when the upload command is received
        :param str provisioning_host: Device Provisioning Service endpoint
        :param naming_policy: Rules for the writable setting and blob naming.
            Defaults to :class:`FolderNamingPolicy`
        :param bool auto_reconnect: Indicates if a dropped connection should result in attempts
            to re-establish it
        :param reconnect_policy: Backoff used when reconnecting
        :type reconnect_policy: :class:`ReconnectPolicy`
        """
        self.heartbeat_interval = _sanitize_heartbeat_interval(heartbeat_interval)
        self.upload_file_path = upload_file_path
        self.provisioning_host = provisioning_host
        self.naming_policy = naming_policy or FolderNamingPolicy()
        self.auto_reconnect = auto_reconnect
        self.reconnect_policy = reconnect_policy or ReconnectPolicy()


def identity_from_environment(environ: Optional[Mapping[str, str]] = None) -> DeviceIdentity:
    """Read the device identity from the environment

    :raises: :class:`ConfigurationError` if any of the required variables are missing or empty
    """
    if environ is None:
        environ = os.environ
    missing = tuple(name for name in REQUIRED_ENVIRONMENT if not environ.get(name))
    if missing:
        raise ConfigurationError(
            "Missing required environment variables: {}".format(", ".join(missing)),
            missing=missing,
        )
    return DeviceIdentity(
        scope_id=environ[ENV_SCOPE_ID],
        device_id=environ[ENV_DEVICE_ID],
        device_key=environ[ENV_DEVICE_KEY],
        model_id=environ[ENV_MODEL_ID],
    )


def session_config_from_environment(environ: Optional[Mapping[str, str]] = None) -> SessionConfig:
    """Build a SessionConfig from the optional environment variables

    :raises: :class:`ConfigurationError` if an optional variable has an invalid value
    """
    if environ is None:
        environ = os.environ
    kwargs = {}
    try:
        if environ.get(ENV_HEARTBEAT_INTERVAL):
            kwargs["heartbeat_interval"] = environ[ENV_HEARTBEAT_INTERVAL]
        if environ.get(ENV_UPLOAD_FILE_PATH):
            kwargs["upload_file_path"] = environ[ENV_UPLOAD_FILE_PATH]
        if environ.get(ENV_PROVISIONING_HOST):
            kwargs["provisioning_host"] = environ[ENV_PROVISIONING_HOST]
        if environ.get(ENV_NAMING_POLICY):
            kwargs["naming_policy"] = create_naming_policy(environ[ENV_NAMING_POLICY])
        if environ.get(ENV_AUTO_RECONNECT):
            kwargs["auto_reconnect"] = _parse_bool(environ[ENV_AUTO_RECONNECT])
        return SessionConfig(**kwargs)
    except (ValueError, TypeError) as e:
        raise ConfigurationError("Invalid device configuration: {}".format(e)) from e


def log_level_from_environment(environ: Optional[Mapping[str, str]] = None) -> int:
    """Return the logging level named by the environment, INFO if unset or unknown"""
    if environ is None:
        environ = os.environ
    name = environ.get(ENV_LOG_LEVEL, "")
    level = logging.getLevelName(name.upper()) if name else logging.INFO
    if not isinstance(level, int):
        return logging.INFO
    return level


# Sanitization #


def _sanitize_heartbeat_interval(heartbeat_interval):
    try:
        heartbeat_interval = float(heartbeat_interval)
    except (ValueError, TypeError):
        raise TypeError("Invalid type for 'heartbeat interval'. Must be a numeric value.")

    if heartbeat_interval <= 0:
        raise ValueError("'heartbeat interval' must be greater than 0")

    return heartbeat_interval


def _parse_bool(value):
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError("Invalid boolean value '{}'".format(value))
