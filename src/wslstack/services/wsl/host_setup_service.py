"""
Host-level WSL setup: Windows feature enablement and system restart.
"""

import logging
from typing import List

from wslstack.protocols.command_protocols import CommandResult, CommandRunnerProtocol

logger = logging.getLogger(__name__)

ENABLE_VMP_COMMAND = [
    "dism.exe",
    "/online",
    "/enable-feature",
    "/featurename:VirtualMachinePlatform",
    "/all",
    "/norestart",
]
INSTALL_WSL_COMMAND = ["wsl.exe", "--install", "--no-distribution"]
UPDATE_KERNEL_COMMAND = ["wsl.exe", "--update"]
RESTART_COMMAND = ["shutdown", "/r", "/t", "0"]


class HostSetupService:
    """Prepares the Windows host so that WSL distributions can run."""

    def __init__(self, command_runner: CommandRunnerProtocol) -> None:
        self.command_runner = command_runner

    async def install_wsl(self) -> List[CommandResult]:
        """
        Enable the Virtual Machine Platform, install WSL without a distribution
        and update the kernel. Every step runs even when an earlier one fails.
        """
        logger.info("Starting WSL prerequisites")
        results = await self.command_runner.run_sequence(
            [ENABLE_VMP_COMMAND, INSTALL_WSL_COMMAND, UPDATE_KERNEL_COMMAND],
            continue_on_failure=True,
        )
        succeeded = sum(1 for r in results if r.success)
        logger.info(f"WSL prerequisites done: {succeeded}/{len(results)} steps succeeded")
        return results

    async def restart_system(self) -> CommandResult:
        logger.info("Restarting system")
        return await self.command_runner.run(RESTART_COMMAND, capture_output=False)
