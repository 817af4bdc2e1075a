# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""This module defines constants for use across the iotcentral-device package
"""

VERSION = "1.0.0"
USER_AGENT_IDENTIFIER = "iotcentral-device-py"
PROVISIONING_GLOBAL_ENDPOINT = "global.azure-devices-provisioning.net"
PROVISIONING_ASSIGNED_STATUS = "assigned"
PROVISIONING_PAYLOAD_MODEL_ID = "iotcModelId"

# Capability names as modelled in IoT Central
COMMAND_UPLOAD_FILE = "COMMAND_UPLOAD_FILE"
TELEMETRY_SYSTEM_HEARTBEAT = "TELEMETRY_SYSTEM_HEARTBEAT"
EVENT_UPLOAD_FILE = "EVENT_UPLOAD_FILE"
SETTING_UPLOAD_FOLDERNAME = "SETTING_UPLOAD_FOLDERNAME"
SETTING_FILENAME_SUFFIX = "SETTING_FILENAME_SUFFIX"
COMMANDRESPONSE_STATUSCODE = "COMMANDRESPONSE_STATUSCODE"
COMMANDRESPONSE_MESSAGE = "COMMANDRESPONSE_MESSAGE"
COMMANDRESPONSE_DATA = "COMMANDRESPONSE_DATA"

# Reserved key present in every desired property document
TWIN_VERSION_KEY = "$version"

# Command handling
COMMAND_ACK_STATUS = 200
COMMAND_RESULT_STATUS = 202
COMMAND_NOT_FOUND_STATUS = 404

# Defaults
DEFAULT_HEARTBEAT_INTERVAL = 15
DEFAULT_UPLOAD_FILE_PATH = "./datafile.json"
DEFAULT_UPLOAD_FOLDERNAME = "Temp01"
DEFAULT_BLOB_DESTINATION = "foo/bar/test.json"
FILENAME_SUFFIX_FORMAT = "%Y%m%d-%H%M%S"

# Reconnection
INITIAL_RECONNECT_DELAY = 3
RECONNECT_BACKOFF_FACTOR = 2
MAX_RECONNECT_DELAY = 81
MAX_RECONNECT_ATTEMPTS = 10

# Blob upload
BLOB_UPLOAD_TIMEOUT = 60
BLOB_UPLOAD_SUCCESS_STATUS = 200
