# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""Device Provisioning Service registration using symmetric key attestation"""
import logging
from azure.iot.device.aio import ProvisioningDeviceClient
from . import constant
from .custom_typing import JSONSerializable
from .exceptions import ProvisioningError
from .models import RegistrationInfo

logger = logging.getLogger(__name__)


class ProvisioningClient:
    """Registers a device with DPS and reports the IoT Hub it was assigned to.

    A new Azure IoT provisioning client is created for every registration, since those clients
    are not operable once a registration has completed.
    """

    async def register(
        self,
        *,
        provisioning_host: str = constant.PROVISIONING_GLOBAL_ENDPOINT,
        id_scope: str,
        registration_id: str,
        symmetric_key: str,
        payload: JSONSerializable = None
    ) -> RegistrationInfo:
        """Register the device with the provisioning service

        :param str provisioning_host: The provisioning endpoint
        :param str id_scope: The ID scope of the provisioning service instance
        :param str registration_id: The registration identity of the device
        :param str symmetric_key: The device's symmetric key
        :param payload: Custom payload sent along with the registration request

        :returns: The IoT Hub assignment of the device
        :rtype: :class:`RegistrationInfo`

        :raises: :class:`ProvisioningError` if the device was not assigned to an IoT Hub
        :raises: :class:`azure.iot.device.exceptions.ClientError` (or a subclass) if the
            registration could not be completed
        """
        client = ProvisioningDeviceClient.create_from_symmetric_key(
            provisioning_host=provisioning_host,
            registration_id=registration_id,
            id_scope=id_scope,
            symmetric_key=symmetric_key,
        )
        logger.info("Created provisioning client for registration {}".format(registration_id))

        if payload is not None:
            client.provisioning_payload = payload

        result = await client.register()

        if result is None or result.status != constant.PROVISIONING_ASSIGNED_STATUS:
            status = result.status if result is not None else "unknown"
            raise ProvisioningError(
                "Registration of {} completed with status '{}'".format(registration_id, status),
                status=status,
            )

        registration_state = result.registration_state
        logger.debug(
            "Registration of {} assigned to {}".format(
                registration_id, registration_state.assigned_hub
            )
        )
        return RegistrationInfo(
            assigned_hub=registration_state.assigned_hub, device_id=registration_state.device_id
        )
