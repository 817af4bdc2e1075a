# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------

import datetime
import pytest
from iotcentral_device import constant
from iotcentral_device.naming import (
    FolderNamingPolicy,
    TimestampSuffixNamingPolicy,
    create_naming_policy,
)

FAKE_FILE_PATH = "/var/data/datafile.json"
FAKE_TIME = datetime.datetime(2021, 12, 31, 23, 59, 58)


@pytest.mark.describe("FolderNamingPolicy")
class TestFolderNamingPolicy:
    @pytest.mark.it("Exposes the upload folder setting, defaulting to 'Temp01'")
    def test_setting(self):
        policy = FolderNamingPolicy()
        settings = policy.create_settings()
        assert policy.setting_name == constant.SETTING_UPLOAD_FOLDERNAME
        assert settings.as_dict() == {"SETTING_UPLOAD_FOLDERNAME": "Temp01"}

    @pytest.mark.it("Uploads to the fixed destination regardless of the folder setting by default")
    def test_fixed_destination(self):
        policy = FolderNamingPolicy()
        settings = policy.create_settings()
        settings.apply(constant.SETTING_UPLOAD_FOLDERNAME, "Temp02")
        assert policy.blob_name(FAKE_FILE_PATH, settings) == "foo/bar/test.json"

    @pytest.mark.it("Describes the destination using the folder setting and the file name")
    def test_describe_destination(self):
        policy = FolderNamingPolicy()
        settings = policy.create_settings()
        settings.apply(constant.SETTING_UPLOAD_FOLDERNAME, "Temp02")
        assert policy.describe_destination(FAKE_FILE_PATH, settings) == "Temp02/datafile.json"

    @pytest.mark.it("Uploads to the folder setting when enabled")
    def test_use_folder_setting(self):
        policy = FolderNamingPolicy(use_folder_setting=True)
        settings = policy.create_settings()
        assert policy.blob_name(FAKE_FILE_PATH, settings) == "Temp01/datafile.json"
        settings.apply(constant.SETTING_UPLOAD_FOLDERNAME, "Temp02")
        assert policy.blob_name(FAKE_FILE_PATH, settings) == "Temp02/datafile.json"

    @pytest.mark.it("Uses the local file name as the upload event value")
    def test_event_value(self):
        policy = FolderNamingPolicy()
        assert policy.event_value(FAKE_FILE_PATH, "foo/bar/test.json") == "datafile.json"

    @pytest.mark.it("Reports that the command was received, whatever the upload outcome")
    @pytest.mark.parametrize("blob_name", ["foo/bar/test.json", None])
    def test_command_message(self, blob_name):
        policy = FolderNamingPolicy()
        assert (
            policy.command_message("d1", blob_name)
            == "Received upload file command for deviceId: d1"
        )

    @pytest.mark.it("Raises ValueError if the default folder is empty")
    def test_empty_default(self):
        with pytest.raises(ValueError):
            FolderNamingPolicy(default_folder="")


@pytest.mark.describe("TimestampSuffixNamingPolicy")
class TestTimestampSuffixNamingPolicy:
    @pytest.fixture
    def policy(self):
        return TimestampSuffixNamingPolicy(clock=lambda: FAKE_TIME)

    @pytest.mark.it("Exposes the filename suffix setting, defaulting to the formatted current time")
    def test_setting(self, policy):
        settings = policy.create_settings()
        assert policy.setting_name == constant.SETTING_FILENAME_SUFFIX
        assert settings.as_dict() == {"SETTING_FILENAME_SUFFIX": "20211231-235958"}

    @pytest.mark.it("Generates a new default from the clock every time one is needed")
    def test_default_regenerated(self, mocker):
        clock = mocker.MagicMock(
            side_effect=[FAKE_TIME, FAKE_TIME + datetime.timedelta(seconds=1)]
        )
        policy = TimestampSuffixNamingPolicy(clock=clock)
        settings = policy.create_settings()
        assert settings.apply(constant.SETTING_FILENAME_SUFFIX, "") == "20211231-235959"

    @pytest.mark.it("Uses the local clock by default")
    def test_default_clock(self, mocker):
        mock_datetime = mocker.patch("iotcentral_device.naming.datetime")
        mock_datetime.datetime.now.return_value = FAKE_TIME
        assert TimestampSuffixNamingPolicy().default_value() == "20211231-235958"

    @pytest.mark.it("Inserts the suffix between the file stem and its extension")
    @pytest.mark.parametrize(
        "file_path, expected",
        [
            pytest.param(FAKE_FILE_PATH, "datafile-custom.json", id="With extension"),
            pytest.param("./datafile", "datafile-custom", id="Without extension"),
            pytest.param("archive.tar.gz", "archive.tar-custom.gz", id="Multiple extensions"),
        ],
    )
    def test_blob_name(self, policy, file_path, expected):
        settings = policy.create_settings()
        settings.apply(constant.SETTING_FILENAME_SUFFIX, "custom")
        assert policy.blob_name(file_path, settings) == expected
        assert policy.describe_destination(file_path, settings) == expected

    @pytest.mark.it("Uses the blob name as the upload event value")
    def test_event_value(self, policy):
        assert policy.event_value(FAKE_FILE_PATH, "datafile-x.json") == "datafile-x.json"

    @pytest.mark.it("Names the uploaded blob in the command message, if there is one")
    def test_command_message(self, policy):
        assert (
            policy.command_message("d1", "datafile-x.json")
            == "Uploaded file datafile-x.json for deviceId: d1"
        )
        assert (
            policy.command_message("d1", None)
            == "Received upload file command for deviceId: d1, but the upload failed"
        )


@pytest.mark.describe("create_naming_policy()")
class TestCreateNamingPolicy:
    @pytest.mark.it("Creates the policy registered under the given name")
    @pytest.mark.parametrize(
        "name, expected_cls",
        [
            ("folder", FolderNamingPolicy),
            ("timestamp", TimestampSuffixNamingPolicy),
            ("Timestamp", TimestampSuffixNamingPolicy),
        ],
    )
    def test_create(self, name, expected_cls):
        assert isinstance(create_naming_policy(name), expected_cls)

    @pytest.mark.it("Raises ValueError for an unknown name")
    @pytest.mark.parametrize("name", ["", "blob", None])
    def test_unknown(self, name):
        with pytest.raises(ValueError):
            create_naming_policy(name)
