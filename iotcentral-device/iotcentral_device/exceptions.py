# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""This module defines exceptions raised by the iotcentral-device package.

None of these propagate past a DeviceSession operation. They exist so that the boundaries that
catch them can tell failure causes apart in their log output.
"""


class ConfigurationError(ValueError):
    """Required device configuration is missing or invalid"""

    def __init__(self, message: str, missing: tuple = ()) -> None:
        super().__init__(message)
        self.missing = missing


class ProvisioningError(Exception):
    """The Device Provisioning Service did not assign the device to an IoT Hub"""

    def __init__(self, message: str, status: str = "") -> None:
        super().__init__(message)
        self.status = status


class BlobUploadError(Exception):
    """Azure Storage rejected a blob upload"""

    def __init__(self, message: str, status_code: int = -1) -> None:
        super().__init__(message)
        self.status_code = status_code
