# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------

import pytest
import logging
from iotcentral_device.connection_string import format_connection_string

logging.basicConfig(level=logging.DEBUG)


@pytest.mark.describe("format_connection_string()")
class TestFormatConnectionString(object):
    @pytest.mark.it("Formats the hub, device id and key as a device connection string")
    def test_format(self):
        assert (
            format_connection_string("h1", "d1", "Zm9vYmFy")
            == "HostName=h1;DeviceId=d1;SharedAccessKey=Zm9vYmFy"
        )

    @pytest.mark.it("Preserves keys containing '=' padding")
    def test_padding(self):
        connection_string = format_connection_string(
            "my.host.name", "my-device", "c2VjcmV0IGtleQ=="
        )
        assert connection_string.split(";")[2] == "SharedAccessKey=c2VjcmV0IGtleQ=="

