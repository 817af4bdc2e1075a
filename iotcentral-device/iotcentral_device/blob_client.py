# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""Upload files to the Azure Storage account linked to an IoT Hub"""
import logging
from typing import BinaryIO, Callable, Optional
from azure.core.exceptions import HttpResponseError
from azure.storage.blob.aio import BlobClient
from . import constant
from .custom_typing import StorageInfo
from .exceptions import BlobUploadError

logger = logging.getLogger(__name__)

BlobClientFactory = Callable[[str], BlobClient]


class BlobUploader:
    """Performs the IoT Hub file upload flow:

    1. Request a SAS URI for the blob from IoT Hub
    2. Upload the file contents to Azure Storage
    3. Notify IoT Hub of the outcome, so that it can raise a file upload notification
    """

    def __init__(
        self,
        device_client,
        *,
        blob_client_factory: Optional[BlobClientFactory] = None,
        timeout: int = constant.BLOB_UPLOAD_TIMEOUT
    ) -> None:
        """
        :param device_client: Connected Azure IoT Hub device client
        :type device_client: :class:`azure.iot.device.aio.IoTHubDeviceClient`
        :param blob_client_factory: Callable creating an Azure Storage blob client from a SAS
            URL. Defaults to :meth:`azure.storage.blob.aio.BlobClient.from_blob_url`
        :param int timeout: Seconds Azure Storage may take to process the upload
        """
        self._device_client = device_client
        self._blob_client_factory = blob_client_factory or BlobClient.from_blob_url
        self._timeout = timeout

    async def upload(self, blob_name: str, stream: BinaryIO, size: Optional[int]) -> None:
        """Upload the contents of `stream` as `blob_name`

        :raises: :class:`BlobUploadError` if Azure Storage responds with failure
        :raises: :class:`azure.core.exceptions.AzureError` if Azure Storage could not be reached
        :raises: :class:`azure.iot.device.exceptions.ClientError` if IoT Hub could not be
            reached for storage info or notification
        """
        storage_info = await self._device_client.get_storage_info_for_blob(blob_name)
        sas_url = _format_sas_url(storage_info)
        logger.debug(
            "Uploading {size} bytes to container {container} as {blob}".format(
                size=size if size is not None else "an unknown number of",
                container=storage_info["containerName"],
                blob=storage_info["blobName"],
            )
        )

        try:
            async with self._blob_client_factory(sas_url) as blob_client:
                await blob_client.upload_blob(
                    stream, length=size, overwrite=True, timeout=self._timeout
                )
        except HttpResponseError as e:
            status_code = e.status_code or -1
            await self._notify_failure(storage_info, status_code, e.reason or str(e))
            raise BlobUploadError(
                "Azure Storage responded to blob upload with a failed status ({status}) - {reason}".format(
                    status=status_code, reason=e.reason
                ),
                status_code=status_code,
            ) from e
        except Exception as e:
            await self._notify_failure(storage_info, -1, str(e))
            raise

        await self._device_client.notify_blob_upload_status(
            storage_info["correlationId"], True, constant.BLOB_UPLOAD_SUCCESS_STATUS, "OK"
        )
        logger.debug("Notified IoT Hub of completed upload of {}".format(blob_name))

    async def _notify_failure(
        self, storage_info: StorageInfo, status_code: int, description: str
    ) -> None:
        try:
            await self._device_client.notify_blob_upload_status(
                storage_info["correlationId"], False, status_code, description
            )
        except Exception as e:
            # The upload failure is what the caller needs to see
            logger.warning("Could not notify IoT Hub of failed upload: {}".format(e))


def _format_sas_url(storage_info: StorageInfo) -> str:
    """Return the SAS URL of the blob described by the storage info"""
    return "https://{host}/{container}/{blob}{sas_token}".format(
        host=storage_info["hostName"],
        container=storage_info["containerName"],
        blob=storage_info["blobName"],
        sas_token=storage_info["sasToken"],
    )
