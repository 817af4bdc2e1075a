# -------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# --------------------------------------------------------------------------
"""Process entry point: read the device configuration from the environment, provision the
device and keep it connected until the process is interrupted.
"""
import asyncio
import logging
import os
import platform
from typing import Callable, Mapping, Optional
from . import config
from . import constant
from .device_session import DeviceSession
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-5s (%(threadName)s) %(filename)s:%(funcName)s():%(message)s"

SessionFactory = Callable[..., DeviceSession]


def log_banner() -> None:
    logger.info("IoT Central device client v{} starting".format(constant.VERSION))
    logger.info(
        " > Machine: {}, {} core(s)".format(platform.system() or "unknown", os.cpu_count() or 1)
    )


async def start(
    environ: Optional[Mapping[str, str]] = None,
    *,
    session_factory: SessionFactory = DeviceSession
) -> Optional[DeviceSession]:
    """Provision and connect the device described by the environment

    :returns: The DeviceSession, or None if no connection could be attempted.
    """
    log_banner()

    try:
        identity = config.identity_from_environment(environ)
    except ConfigurationError:
        logger.error(
            "Error - missing required environment variables {}".format(
                ", ".join(config.REQUIRED_ENVIRONMENT)
            )
        )
        return None

    try:
        session_config = config.session_config_from_environment(environ)
        session = session_factory(identity, config=session_config)

        connection_string = await session.provision()
        if not connection_string:
            logger.error("Failed to obtain connection string for device.")
            return None

        await session.connect(connection_string)
        return session
    except Exception as e:
        logger.error("Error starting process: {}".format(e))
        return None


async def run(environ: Optional[Mapping[str, str]] = None) -> None:
    session = await start(environ)
    if session is None:
        return

    try:
        await session.wait_for_shutdown()
    finally:
        await session.shutdown()


def main() -> None:
    logging.basicConfig(level=config.log_level_from_environment(), format=LOG_FORMAT)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("IoT Central device client stopped by user")


if __name__ == "__main__":
    main()
