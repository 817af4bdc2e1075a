# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
import asyncio
import os
from typing import BinaryIO


class LocalFileSystem:
    """Local disk access. `stat` runs in the default executor so the event loop never blocks."""

    async def stat(self, path: str) -> os.stat_result:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, os.stat, path)

    def open_read_stream(self, path: str) -> BinaryIO:
        return open(path, "rb")
