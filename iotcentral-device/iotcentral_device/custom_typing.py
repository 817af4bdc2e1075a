# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
from typing import Union, Dict, List, Tuple, Callable, Awaitable, Any, Optional
from typing_extensions import TypedDict


# typing does not support recursion, so we must use forward references here (PEP484)
JSONSerializable = Union[
    Dict[str, "JSONSerializable"],
    List["JSONSerializable"],
    Tuple["JSONSerializable", ...],
    str,
    int,
    float,
    bool,
    None,
]

TwinPatch = Dict[str, JSONSerializable]
Telemetry = Dict[str, JSONSerializable]

# Responds to a command with a status code and an optional payload
CommandResponder = Callable[[int, Optional[JSONSerializable]], Awaitable[None]]
CommandHandler = Callable[[Any, CommandResponder], None]
DesiredPropertiesHandler = Callable[[TwinPatch], None]
ErrorHandler = Callable[[Exception], None]
ConnectionStateHandler = Callable[[bool], None]


class StorageInfo(TypedDict):
    correlationId: str
    hostName: str
    containerName: str
    blobName: str
    sasToken: str


class CommandResultValue(TypedDict):
    COMMANDRESPONSE_STATUSCODE: int
    COMMANDRESPONSE_MESSAGE: str
    COMMANDRESPONSE_DATA: str
