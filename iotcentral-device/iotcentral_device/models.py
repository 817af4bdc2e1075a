# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""This module contains the data models used by a DeviceSession"""
from typing import Any, Callable, Dict
from . import constant
from .custom_typing import CommandResultValue, TwinPatch


class DeviceIdentity:
    """Identity used to provision and authenticate the device. Immutable."""

    __slots__ = ("_scope_id", "_device_id", "_device_key", "_model_id")

    def __init__(self, *, scope_id: str, device_id: str, device_key: str, model_id: str) -> None:
        object.__setattr__(self, "_scope_id", scope_id)
        object.__setattr__(self, "_device_id", device_id)
        object.__setattr__(self, "_device_key", device_key)
        object.__setattr__(self, "_model_id", model_id)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("DeviceIdentity is immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DeviceIdentity):
            return NotImplemented
        return (self.scope_id, self.device_id, self.device_key, self.model_id) == (
            other.scope_id,
            other.device_id,
            other.device_key,
            other.model_id,
        )

    def __hash__(self) -> int:
        return hash((self.scope_id, self.device_id, self.device_key, self.model_id))

    def __repr__(self) -> str:
        return "DeviceIdentity(scope_id={}, device_id={}, model_id={})".format(
            self.scope_id, self.device_id, self.model_id
        )

    @property
    def scope_id(self) -> str:
        return self._scope_id

    @property
    def device_id(self) -> str:
        return self._device_id

    @property
    def device_key(self) -> str:
        return self._device_key

    @property
    def model_id(self) -> str:
        return self._model_id


class RegistrationInfo:
    """The IoT Hub assignment returned by the Device Provisioning Service"""

    def __init__(self, *, assigned_hub: str, device_id: str) -> None:
        self.assigned_hub = assigned_hub
        self.device_id = device_id

    def __repr__(self) -> str:
        return "RegistrationInfo(assigned_hub={}, device_id={})".format(
            self.assigned_hub, self.device_id
        )


class CommandResult:
    """Outcome of a command, reported back through the twin under the command's name"""

    def __init__(self, *, status_code: int, message: str, data: str = "") -> None:
        self.status_code = status_code
        self.message = message
        self.data = data

    def to_value(self) -> CommandResultValue:
        return {
            constant.COMMANDRESPONSE_STATUSCODE: self.status_code,
            constant.COMMANDRESPONSE_MESSAGE: self.message,
            constant.COMMANDRESPONSE_DATA: self.data,
        }

    def to_reported_properties(self, command_name: str) -> TwinPatch:
        """Return the reported property patch that records this result"""
        return {command_name: {"value": dict(self.to_value())}}


class DeviceSettings:
    """Local mirror of the device's single writable setting.

    The recognized setting always holds a non-empty string. Falsy values are replaced by
    the value produced by `default_factory`.
    """

    def __init__(self, setting_name: str, default_factory: Callable[[], str]) -> None:
        self._setting_name = setting_name
        self._default_factory = default_factory
        self._values: Dict[str, str] = {setting_name: default_factory()}

    @property
    def setting_name(self) -> str:
        return self._setting_name

    @property
    def value(self) -> str:
        return self._values[self._setting_name]

    def is_recognized(self, name: str) -> bool:
        return name == self._setting_name

    def apply(self, name: str, value: Any) -> str:
        """Store a new value for the recognized setting and return what was stored

        :raises: KeyError if `name` is not the recognized setting
        """
        if not self.is_recognized(name):
            raise KeyError(name)
        new_value = str(value) if value else self._default_factory()
        self._values[name] = new_value
        return new_value

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._values)
