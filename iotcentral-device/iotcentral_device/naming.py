# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""Naming policies decide which writable setting a device exposes, what its default is, and
how an uploaded file is named in blob storage.
"""
import abc
import datetime
import os
from typing import Callable, Optional
from . import constant
from .models import DeviceSettings


class NamingPolicy(abc.ABC):
    """Pluggable rule set used by a DeviceSession for settings and blob naming"""

    @property
    @abc.abstractmethod
    def setting_name(self) -> str:
        """Name of the single writable setting recognized by the device"""
        pass

    @abc.abstractmethod
    def default_value(self) -> str:
        """Value used when the setting is first created or set to a falsy value"""
        pass

    @abc.abstractmethod
    def blob_name(self, file_path: str, settings: DeviceSettings) -> str:
        """Destination blob name for the given local file"""
        pass

    @abc.abstractmethod
    def describe_destination(self, file_path: str, settings: DeviceSettings) -> str:
        """Human readable destination used in log output"""
        pass

    @abc.abstractmethod
    def event_value(self, file_path: str, blob_name: str) -> str:
        """Value sent with the upload-completed telemetry event"""
        pass

    @abc.abstractmethod
    def command_message(self, device_id: str, blob_name: Optional[str]) -> str:
        """Message reported back after an upload command has been handled"""
        pass

    def create_settings(self) -> DeviceSettings:
        return DeviceSettings(self.setting_name, self.default_value)


class FolderNamingPolicy(NamingPolicy):
    """The device exposes an upload folder name.

    By default every file is uploaded to a fixed destination and the folder setting only shows
    up in log output. Pass `use_folder_setting=True` to upload to `<folder>/<file name>` instead.
    """

    def __init__(
        self,
        *,
        default_folder: str = constant.DEFAULT_UPLOAD_FOLDERNAME,
        destination: str = constant.DEFAULT_BLOB_DESTINATION,
        use_folder_setting: bool = False,
    ) -> None:
        if not default_folder:
            raise ValueError("'default_folder' cannot be empty")
        self._default_folder = default_folder
        self._destination = destination
        self._use_folder_setting = use_folder_setting

    @property
    def setting_name(self) -> str:
        return constant.SETTING_UPLOAD_FOLDERNAME

    def default_value(self) -> str:
        return self._default_folder

    def _folder_path(self, file_path: str, settings: DeviceSettings) -> str:
        folder = settings.value or self._default_folder
        return "{folder}/{name}".format(folder=folder, name=os.path.basename(file_path))

    def blob_name(self, file_path: str, settings: DeviceSettings) -> str:
        if self._use_folder_setting:
            return self._folder_path(file_path, settings)
        return self._destination

    def describe_destination(self, file_path: str, settings: DeviceSettings) -> str:
        return self._folder_path(file_path, settings)

    def event_value(self, file_path: str, blob_name: str) -> str:
        return os.path.basename(file_path)

    def command_message(self, device_id: str, blob_name: Optional[str]) -> str:
        return "Received upload file command for deviceId: {}".format(device_id)


class TimestampSuffixNamingPolicy(NamingPolicy):
    """The device exposes a filename suffix, defaulting to the current local time"""

    def __init__(
        self,
        *,
        timestamp_format: str = constant.FILENAME_SUFFIX_FORMAT,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ) -> None:
        self._timestamp_format = timestamp_format
        self._clock = clock or datetime.datetime.now

    @property
    def setting_name(self) -> str:
        return constant.SETTING_FILENAME_SUFFIX

    def default_value(self) -> str:
        return self._clock().strftime(self._timestamp_format)

    def blob_name(self, file_path: str, settings: DeviceSettings) -> str:
        stem, extension = os.path.splitext(os.path.basename(file_path))
        return "{stem}-{suffix}{extension}".format(
            stem=stem, suffix=settings.value, extension=extension
        )

    def describe_destination(self, file_path: str, settings: DeviceSettings) -> str:
        return self.blob_name(file_path, settings)

    def event_value(self, file_path: str, blob_name: str) -> str:
        return blob_name

    def command_message(self, device_id: str, blob_name: Optional[str]) -> str:
        if blob_name:
            return "Uploaded file {} for deviceId: {}".format(blob_name, device_id)
        return "Received upload file command for deviceId: {}, but the upload failed".format(
            device_id
        )


_policies = {
    "folder": FolderNamingPolicy,
    "timestamp": TimestampSuffixNamingPolicy,
}


def create_naming_policy(name: str) -> NamingPolicy:
    """Instantiate a naming policy by its configuration name ('folder' or 'timestamp')

    :raises: ValueError if the name is not known
    """
    try:
        policy_cls = _policies[name.lower()]
    except (KeyError, AttributeError):
        raise ValueError(
            "Invalid naming policy '{}' - must be one of: {}".format(name, ", ".join(_policies))
        )
    return policy_cls()
