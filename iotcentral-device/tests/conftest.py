# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------

import pytest

"""
NOTE: Tests needing a non-specific, arbitrary exception should use the fixture below. Raising
Exception directly lets broad "except Exception" handling hide other errors. A subclass defined
nowhere else guarantees that the exception is unexpected and only caught by broad handling.

You may (and should!) still use exceptions defined elsewhere for specific, non-arbitrary exceptions
(e.g. BlobUploadError)
"""


@pytest.fixture
def arbitrary_exception():
    class ArbitraryException(Exception):
        pass

    e = ArbitraryException("arbitrary description")
    return e
