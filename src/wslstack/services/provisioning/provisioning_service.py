"""
Provisioning facade behind the operations exposed to the UI.

Boolean operations never raise: failures are logged and reported as False so
the caller can simply re-run the idempotent check later.
"""

import logging
from typing import List, Optional

from wslstack.exceptions import RuntimeUnavailableError
from wslstack.protocols.command_protocols import CommandResult
from wslstack.services.containers.container_orchestrator import (
    ContainerOrchestrator,
    FinalizeReport,
)
from wslstack.services.provisioning.navigation import (
    CONFIG_LOADING_ROUTE,
    MAIN_PAGE_ROUTE,
    RESTART_WIDGET_ROUTE,
    NavigationChannelProtocol,
)
from wslstack.services.settings.settings_store import WSL_SETUP_DONE_KEY, SettingsStore
from wslstack.services.wsl.host_setup_service import HostSetupService
from wslstack.services.wsl.runtime_configurator import RuntimeConfigurator
from wslstack.services.wsl.wsl_state_detector import ProvisioningState, WSLStateDetector
from wslstack.utils.configuration_guard import ConfigurationGuard

logger = logging.getLogger(__name__)


class ProvisioningService:
    """Entry points for provisioning WSL and finalizing the backing services."""

    def __init__(
        self,
        detector: WSLStateDetector,
        configurator: RuntimeConfigurator,
        host_setup: HostSetupService,
        orchestrator: ContainerOrchestrator,
        navigation: NavigationChannelProtocol,
        settings: SettingsStore,
        guard: Optional[ConfigurationGuard] = None,
    ) -> None:
        self.detector = detector
        self.configurator = configurator
        self.host_setup = host_setup
        self.orchestrator = orchestrator
        self.navigation = navigation
        self.settings = settings
        self.guard = guard or ConfigurationGuard()
        self.last_finalize_report: Optional[FinalizeReport] = None

    async def install_wsl(self) -> List[CommandResult]:
        return await self.host_setup.install_wsl()

    async def check_wsl(self) -> bool:
        return await self.detector.check_wsl()

    async def check_wsl_config_done(self, distro_name: Optional[str] = None) -> bool:
        """
        Configure the distribution if needed, at most one run at a time.

        Returns:
            True if the distribution is ready to run containers. A call made
            while another configuration run is in flight returns False at once.
        """
        distro_name = distro_name or self.detector.distro_name

        with self.guard.hold() as acquired:
            if not acquired:
                logger.warning("Configuration already in progress, skipping")
                return False

            try:
                return await self.configurator.check_and_configure_wsl_distro(
                    distro_name
                )
            except Exception as e:
                logger.exception(f"Error checking WSL config: {e}")
                return False

    async def restart_system(self) -> bool:
        result = await self.host_setup.restart_system()
        if not result.success:
            logger.error(
                f"Restart command failed: {result.error or result.stderr.strip()}"
            )
        return result.success

    async def finalizing_agent(self) -> bool:
        """Stand up the backing-service containers."""
        try:
            self.last_finalize_report = await self.orchestrator.finalize_environment()
            return True
        except RuntimeUnavailableError as e:
            logger.error(str(e))
            return False
        except Exception as e:
            logger.exception(f"Error finalizing environment: {e}")
            return False

    async def get_wsl_state(self) -> ProvisioningState:
        return await self.detector.get_wsl_state()

    async def handle_wsl_state_actions(self, state: ProvisioningState) -> None:
        """Move the UI to the screen that deals with the given state."""
        if state == ProvisioningState.RESTART_SYSTEM:
            await self.install_wsl()
            self.navigation.navigate(RESTART_WIDGET_ROUTE)
        elif state in (
            ProvisioningState.INSTALL_DISTRO,
            ProvisioningState.CONFIGURE_DISTRO,
        ):
            self.navigation.navigate(CONFIG_LOADING_ROUTE)
        elif state == ProvisioningState.GOOD:
            self.settings.set(WSL_SETUP_DONE_KEY, True)
            self.navigation.navigate(MAIN_PAGE_ROUTE)

    async def sync_state(self) -> ProvisioningState:
        """Detect the current state and act on it."""
        state = await self.get_wsl_state()
        await self.handle_wsl_state_actions(state)
        return state
