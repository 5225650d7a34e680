"""
User & Runtime Configurator.

Runs only the provisioning steps that are missing: installs the distribution
when it is absent, creates the OS user when it is absent, then walks the
remediation chain until the container runtime probes all pass.
"""

import logging
from typing import List, Optional, Sequence

from wslstack.config import WSL_PASSWORD, WSL_USER
from wslstack.protocols.command_protocols import CommandRunnerProtocol
from wslstack.services.wsl.distro_installer import DistroInstaller
from wslstack.services.wsl.distro_users import DistroUserService
from wslstack.services.wsl.remediation import (
    RemediationOutcome,
    RemediationStrategy,
    SetupScriptRemediation,
    TargetedRemediation,
)
from wslstack.services.wsl.wsl_state_detector import WSLStateDetector

logger = logging.getLogger(__name__)


class RuntimeConfigurator:
    """Drives a distribution to a state where docker is reachable over TCP."""

    def __init__(
        self,
        command_runner: CommandRunnerProtocol,
        detector: WSLStateDetector,
        user_service: Optional[DistroUserService] = None,
        strategies: Optional[Sequence[RemediationStrategy]] = None,
        installer: Optional[DistroInstaller] = None,
        username: str = WSL_USER,
        password: str = WSL_PASSWORD,
    ) -> None:
        self.command_runner = command_runner
        self.detector = detector
        self.user_service = user_service or DistroUserService(command_runner)
        self.username = username
        self.password = password
        self.strategies: List[RemediationStrategy] = list(
            strategies
            if strategies is not None
            else [
                TargetedRemediation(command_runner, detector),
                SetupScriptRemediation(
                    command_runner, detector, username=username, password=password
                ),
            ]
        )
        self.installer = installer or DistroInstaller(
            command_runner,
            detector,
            self.user_service,
            configure_runtime=self.configure_runtime,
        )

    async def configure_runtime(self, distro_name: str) -> bool:
        """
        Apply remediation strategies in order until the runtime is ready.

        Errors raised by a strategy propagate; the last strategy in the default
        chain raises when it cannot converge.

        Returns:
            True once a strategy leaves every runtime probe passing
        """
        outcomes: List[RemediationOutcome] = []

        for i, strategy in enumerate(self.strategies):
            logger.info(
                f"Applying remediation strategy {i + 1}/{len(self.strategies)}: {strategy.name}"
            )
            outcome = await strategy.apply(distro_name)
            outcomes.append(outcome)

            if outcome.converged:
                logger.info(
                    f"All WSL and Docker configurations are complete after '{strategy.name}'"
                )
                return True

            if i + 1 < len(self.strategies):
                logger.warning(
                    f"Configuration still incomplete after '{strategy.name}' "
                    f"({', '.join(outcome.status.failed_probes())}), escalating"
                )

        logger.error(
            f"Remediation chain exhausted after {len(outcomes)} strategies, runtime not ready"
        )
        return False

    async def check_and_configure_wsl_distro(self, distro_name: str) -> bool:
        """
        Check the distribution and perform only the missing configuration steps.

        Returns:
            True if the distribution ends up ready to run containers
        """
        logger.info("Starting WSL distro check and configuration...")

        if not await self.detector.check_distro_present(distro_name):
            logger.info("Distro does not exist, installing from scratch...")
            return await self.installer.install_distro_and_configure_user(
                self.username, self.password, distro_name
            )

        logger.info("Distro exists, checking user and Docker configuration...")

        if not await self.detector.check_user_exists(distro_name, self.username):
            logger.info(f"Required user {self.username} does not exist, creating user...")
            await self.user_service.add_new_user(
                self.username, self.password, distro_name
            )

        return await self.configure_runtime(distro_name)
