# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------

import logging
import pytest
from iotcentral_device import config
from iotcentral_device import constant
from iotcentral_device.connection_state import ReconnectPolicy
from iotcentral_device.exceptions import ConfigurationError
from iotcentral_device.models import DeviceIdentity
from iotcentral_device.naming import FolderNamingPolicy, TimestampSuffixNamingPolicy

FAKE_ENVIRONMENT = {
    "scopeId": "0ne00000000",
    "deviceId": "d1",
    "deviceKey": "Zm9vYmFy",
    "modelId": "dtmi:fake:device;1",
}


@pytest.mark.describe("SessionConfig")
class TestSessionConfig:
    @pytest.mark.it("Uses defaults for every option that is not provided")
    def test_defaults(self):
        session_config = config.SessionConfig()
        assert session_config.heartbeat_interval == 15
        assert session_config.upload_file_path == "./datafile.json"
        assert session_config.provisioning_host == "global.azure-devices-provisioning.net"
        assert isinstance(session_config.naming_policy, FolderNamingPolicy)
        assert session_config.auto_reconnect is True
        assert isinstance(session_config.reconnect_policy, ReconnectPolicy)

    @pytest.mark.it("Requires keyword arguments")
    def test_keyword_only(self):
        with pytest.raises(TypeError):
            config.SessionConfig(15)

    @pytest.mark.it("Accepts a numeric heartbeat interval given as a string")
    @pytest.mark.parametrize("value, expected", [("30", 30.0), ("0.5", 0.5), (5, 5.0)])
    def test_heartbeat_interval(self, value, expected):
        assert config.SessionConfig(heartbeat_interval=value).heartbeat_interval == expected

    @pytest.mark.it("Raises TypeError for a non-numeric heartbeat interval")
    @pytest.mark.parametrize("value", ["often", None, object()])
    def test_heartbeat_interval_type(self, value):
        with pytest.raises(TypeError):
            config.SessionConfig(heartbeat_interval=value)

    @pytest.mark.it("Raises ValueError for a heartbeat interval that is not positive")
    @pytest.mark.parametrize("value", [0, -1, "-15"])
    def test_heartbeat_interval_value(self, value):
        with pytest.raises(ValueError):
            config.SessionConfig(heartbeat_interval=value)


@pytest.mark.describe("identity_from_environment()")
class TestIdentityFromEnvironment:
    @pytest.mark.it("Reads the device identity from the environment variables")
    def test_identity(self):
        identity = config.identity_from_environment(FAKE_ENVIRONMENT)
        assert identity == DeviceIdentity(
            scope_id="0ne00000000",
            device_id="d1",
            device_key="Zm9vYmFy",
            model_id="dtmi:fake:device;1",
        )

    @pytest.mark.it("Reads os.environ if no environment is provided")
    def test_os_environ(self, mocker):
        mocker.patch.dict("os.environ", FAKE_ENVIRONMENT)
        assert config.identity_from_environment().device_id == "d1"

    @pytest.mark.it("Raises ConfigurationError naming every missing or empty variable")
    @pytest.mark.parametrize(
        "removed",
        [
            pytest.param(("scopeId",), id="Scope id"),
            pytest.param(("deviceKey", "modelId"), id="Key and model id"),
            pytest.param(("scopeId", "deviceId", "deviceKey", "modelId"), id="All"),
        ],
    )
    @pytest.mark.parametrize("empty", [True, False], ids=["Empty", "Absent"])
    def test_missing(self, removed, empty):
        environ = dict(FAKE_ENVIRONMENT)
        for name in removed:
            if empty:
                environ[name] = ""
            else:
                del environ[name]

        with pytest.raises(ConfigurationError) as e_info:
            config.identity_from_environment(environ)
        assert e_info.value.missing == removed


@pytest.mark.describe("session_config_from_environment()")
class TestSessionConfigFromEnvironment:
    @pytest.mark.it("Uses defaults when no optional variables are set")
    def test_defaults(self):
        session_config = config.session_config_from_environment(FAKE_ENVIRONMENT)
        assert session_config.heartbeat_interval == constant.DEFAULT_HEARTBEAT_INTERVAL
        assert session_config.upload_file_path == constant.DEFAULT_UPLOAD_FILE_PATH
        assert isinstance(session_config.naming_policy, FolderNamingPolicy)
        assert session_config.auto_reconnect is True

    @pytest.mark.it("Reads the optional variables")
    def test_optional(self):
        environ = dict(
            FAKE_ENVIRONMENT,
            heartbeatInterval="5",
            uploadFilePath="/tmp/upload.json",
            namingPolicy="timestamp",
            autoReconnect="false",
            provisioningHost="dps.example.net",
        )
        session_config = config.session_config_from_environment(environ)
        assert session_config.heartbeat_interval == 5.0
        assert session_config.upload_file_path == "/tmp/upload.json"
        assert isinstance(session_config.naming_policy, TimestampSuffixNamingPolicy)
        assert session_config.auto_reconnect is False
        assert session_config.provisioning_host == "dps.example.net"

    @pytest.mark.it("Raises ConfigurationError for an invalid optional variable")
    @pytest.mark.parametrize(
        "name, value",
        [
            ("heartbeatInterval", "often"),
            ("heartbeatInterval", "0"),
            ("namingPolicy", "random"),
            ("autoReconnect", "maybe"),
        ],
    )
    def test_invalid(self, name, value):
        environ = dict(FAKE_ENVIRONMENT)
        environ[name] = value
        with pytest.raises(ConfigurationError):
            config.session_config_from_environment(environ)


@pytest.mark.describe("log_level_from_environment()")
class TestLogLevelFromEnvironment:
    @pytest.mark.it("Returns the named logging level")
    @pytest.mark.parametrize(
        "value, expected", [("debug", logging.DEBUG), ("WARNING", logging.WARNING)]
    )
    def test_level(self, value, expected):
        assert config.log_level_from_environment({"logLevel": value}) == expected

    @pytest.mark.it("Returns INFO if the level is unset or unknown")
    @pytest.mark.parametrize("environ", [{}, {"logLevel": ""}, {"logLevel": "chatty"}])
    def test_default(self, environ):
        assert config.log_level_from_environment(environ) == logging.INFO
