"""
Distro Installer for installing a WSL distribution and preparing its user.

`wsl --install -d <distro>` never returns on its own once the distribution
launches its first-run prompt, so the installer process is started in the
background, the distro list is polled until the distribution appears, and the
process is then cancelled.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from wslstack.config import (
    INSTALL_MAX_WAIT,
    INSTALL_POLL_INTERVAL,
    INSTALL_SETTLE_GRACE,
)
from wslstack.exceptions import DistroInstallTimeoutError
from wslstack.protocols.command_protocols import (
    BackgroundProcessProtocol,
    CommandRunnerProtocol,
)
from wslstack.services.wsl.distro_users import DistroUserService
from wslstack.services.wsl.wsl_state_detector import WSLStateDetector

logger = logging.getLogger(__name__)

ConfigureRuntime = Callable[[str], Awaitable[bool]]


class DistroInstaller:
    """Installs a distribution, waits for it, then hands over to configuration."""

    def __init__(
        self,
        command_runner: CommandRunnerProtocol,
        detector: WSLStateDetector,
        user_service: DistroUserService,
        configure_runtime: ConfigureRuntime,
        poll_interval: float = INSTALL_POLL_INTERVAL,
        settle_grace: float = INSTALL_SETTLE_GRACE,
        max_wait: Optional[float] = INSTALL_MAX_WAIT,
    ) -> None:
        """
        Initialize the distro installer.

        Args:
            command_runner: Gateway used to start the installer process
            detector: Probes used to watch for the distribution
            user_service: Creates the OS user once the distribution exists
            configure_runtime: Configuration flow run after the user is added
            poll_interval: Seconds between distro presence checks
            settle_grace: Seconds to let the installer settle after detection
            max_wait: Upper bound on the wait in seconds (None or 0 for no bound)
        """
        self.command_runner = command_runner
        self.detector = detector
        self.user_service = user_service
        self.configure_runtime = configure_runtime
        self.poll_interval = poll_interval
        self.settle_grace = settle_grace
        self.max_wait = max_wait if max_wait else None

    async def install_distro(self, distro_name: str) -> None:
        """
        Install a distribution and return once it shows up in the distro list.

        Raises:
            DistroInstallTimeoutError: The distribution did not appear in time
        """
        logger.info(f"Installing the desired distro: {distro_name}")
        process = await self.command_runner.start_background(
            ["wsl", "--install", "-d", distro_name]
        )
        try:
            await self.wait_for_distro(distro_name, process)
        finally:
            process.cancel()

    async def wait_for_distro(
        self, distro_name: str, process: BackgroundProcessProtocol
    ) -> None:
        """Poll until the distribution is present, then allow the installer to settle."""
        started = time.monotonic()

        while True:
            if await self.detector.check_distro_present(distro_name):
                logger.info(
                    f"Distro {distro_name} found, waiting {self.settle_grace}s for the installer to settle"
                )
                await asyncio.sleep(self.settle_grace)
                return

            waited = time.monotonic() - started
            if self.max_wait is not None and waited >= self.max_wait:
                logger.error(
                    f"Distro {distro_name} not detected after {waited:.0f}s, giving up"
                )
                raise DistroInstallTimeoutError(distro_name, waited)

            if not process.running:
                logger.debug("Installer process exited before the distro appeared")

            await asyncio.sleep(self.poll_interval)

    async def install_distro_and_configure_user(
        self,
        username: str,
        password: str,
        distro_name: str,
        sudo_access: bool = True,
    ) -> bool:
        """
        Install the distribution from scratch and configure it for containers.

        Returns:
            True if the container runtime ended up fully configured
        """
        await self.install_distro(distro_name)
        logger.info("Distro installed, moving on to adding the user")

        await self.user_service.add_new_user(
            username, password, distro_name, sudo_access=sudo_access
        )
        logger.info(f"User {username} added, configuring the distro")

        return await self.configure_runtime(distro_name)
