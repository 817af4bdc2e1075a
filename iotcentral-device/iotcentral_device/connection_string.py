# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""This module contains tools for building device connection strings"""

__all__ = ["format_connection_string"]

CS_DELIMITER = ";"
CS_VAL_SEPARATOR = "="

HOST_NAME = "HostName"
DEVICE_ID = "DeviceId"
SHARED_ACCESS_KEY = "SharedAccessKey"


def format_connection_string(hostname: str, device_id: str, shared_access_key: str) -> str:
    """Return a symmetric key device connection string for an assigned IoT Hub

    :param str hostname: Hostname of the IoT Hub the device was assigned to
    :param str device_id: The device identity assigned by provisioning
    :param str shared_access_key: The device's symmetric key
    """
    return CS_DELIMITER.join(
        [
            HOST_NAME + CS_VAL_SEPARATOR + hostname,
            DEVICE_ID + CS_VAL_SEPARATOR + device_id,
            SHARED_ACCESS_KEY + CS_VAL_SEPARATOR + shared_access_key,
        ]
    )
