"""
WSL State Detector for classifying how far provisioning has progressed.

All probes are read-only and re-run on every query. A probe that cannot
reach a conclusion reports "not ready" instead of raising, so the detector
always produces a state.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from wslstack.config import DISTRO_NAME, DOCKER_TCP_HOST, DOCKER_TCP_PORT
from wslstack.protocols.command_protocols import CommandRunnerProtocol, WSLTarget
from wslstack.utils.output_text import clean_lines, strip_nulls

logger = logging.getLogger(__name__)

ENABLE_VMP_STATEMENT = (
    'Please enable the "Virtual Machine Platform" optional component '
    "and ensure virtualization is enabled in the BIOS."
)
COMMAND_TO_ENABLE_STATEMENT = (
    'Enable "Virtual Machine Platform" by running: wsl.exe --install --no-distribution '
    "For information please visit https://aka.ms/enablevirtualization"
)
NEEDS_ENABLEMENT_STATEMENTS = (ENABLE_VMP_STATEMENT, COMMAND_TO_ENABLE_STATEMENT)

DOCKER_DROP_IN_DIR = "/etc/systemd/system/docker.service.d"
DOCKER_DROP_IN_FILE = f"{DOCKER_DROP_IN_DIR}/setup.conf"


class ProvisioningState(str, Enum):
    """Provisioning stages, ordered from most to least remediation needed."""

    RESTART_SYSTEM = "RestartSystem"
    INSTALL_DISTRO = "InstallDistro"
    CONFIGURE_DISTRO = "ConfigureDistro"
    GOOD = "Good"

    @property
    def rank(self) -> int:
        return list(ProvisioningState).index(self)


@dataclass
class RuntimeStatus:
    """Outcome of the three container runtime probes."""

    installed: bool
    running: bool
    tcp_configured: bool

    @property
    def ready(self) -> bool:
        return self.installed and self.running and self.tcp_configured

    def failed_probes(self) -> List[str]:
        return [
            name
            for name, ok in (
                ("installed", self.installed),
                ("running", self.running),
                ("tcp_configured", self.tcp_configured),
            )
            if not ok
        ]


class WSLStateDetector:
    """Read-only probes over the WSL environment."""

    def __init__(
        self,
        command_runner: CommandRunnerProtocol,
        distro_name: str = DISTRO_NAME,
        docker_tcp_host: str = DOCKER_TCP_HOST,
        docker_tcp_port: int = DOCKER_TCP_PORT,
    ) -> None:
        self.command_runner = command_runner
        self.distro_name = distro_name
        self.docker_tcp_endpoint = f"{docker_tcp_host}:{docker_tcp_port}"

    async def get_wsl_state(self) -> ProvisioningState:
        """Return the earliest provisioning stage that is not yet satisfied."""
        if await self.check_wsl_needs_restart():
            state = ProvisioningState.RESTART_SYSTEM
        elif not await self.check_distro_present(self.distro_name):
            state = ProvisioningState.INSTALL_DISTRO
        elif not await self.check_config_done(self.distro_name):
            state = ProvisioningState.CONFIGURE_DISTRO
        else:
            state = ProvisioningState.GOOD

        logger.info(f"Current WSL state: {state.value}")
        return state

    async def get_wsl_status(self) -> Optional[str]:
        """Get the cleaned output of `wsl.exe --status`, None when it could not run."""
        result = await self.command_runner.run(["wsl.exe", "--status"])
        if result.error:
            logger.warning(f"WSL status query failed: {result.error}")
            return None
        # wsl.exe reports some problems on stderr with a nonzero exit code
        return strip_nulls(result.stdout + "\n" + result.stderr).strip()

    async def check_wsl_needs_restart(self) -> bool:
        """Check whether WSL is waiting on the Virtual Machine Platform feature."""
        status = await self.get_wsl_status()
        if status is None:
            return False
        return any(statement in status for statement in NEEDS_ENABLEMENT_STATEMENTS)

    async def check_wsl(self) -> bool:
        """Check that WSL is installed and reports no enablement errors."""
        try:
            status = await self.get_wsl_status()
            if status is None:
                return False

            if any(statement in status for statement in NEEDS_ENABLEMENT_STATEMENTS):
                return False

            lowered = status.lower()
            if "error" in lowered or "not found" in lowered:
                return False

            return True
        except Exception as e:
            logger.error(f"Error checking WSL: {e}")
            return False

    async def check_distro_present(self, distro_name: str) -> bool:
        """Check if a distribution is installed under WSL."""
        result = await self.command_runner.run(["wsl", "--list", "--quiet"])

        if not result.success:
            logger.debug(
                f"Error checking for distros: {result.error or result.stderr.strip()}"
            )
            return False

        if result.stderr.strip():
            logger.debug(f"Distro listing wrote to stderr: {result.stderr.strip()}")
            return False

        present = distro_name in clean_lines(result.stdout)
        logger.debug(f"Distro {distro_name} present: {present}")
        return present

    async def check_user_exists(self, distro_name: str, username: str) -> bool:
        """Check if a user exists inside the distribution."""
        result = await self.command_runner.run(
            ["id", "-u", username], target=WSLTarget(distro_name)
        )
        exists = result.success and not result.stderr.strip()
        logger.debug(f"User {username} exists in {distro_name}: {exists}")
        return exists

    async def check_docker_installed(self, distro_name: str) -> bool:
        """Check if the docker binary is on the PATH inside the distribution."""
        result = await self.command_runner.run(
            "which docker", target=WSLTarget(distro_name)
        )
        installed = result.success and not result.stderr.strip() and result.has_output
        logger.debug(f"Docker installed in {distro_name}: {installed}")
        return installed

    async def check_docker_service_running(self, distro_name: str) -> bool:
        """Check if the docker systemd unit is active."""
        result = await self.command_runner.run(
            "systemctl is-active --quiet docker", target=WSLTarget(distro_name)
        )
        logger.debug(f"Docker service running in {distro_name}: {result.success}")
        return result.success

    async def check_docker_tcp_config(self, distro_name: str) -> bool:
        """
        Check that docker listens on its TCP endpoint.

        Both the systemd drop-in must name the endpoint and the endpoint must
        answer with a docker version payload.
        """
        config_check = (
            f"test -f {DOCKER_DROP_IN_FILE} && "
            f"grep -q 'tcp://{self.docker_tcp_endpoint}' {DOCKER_DROP_IN_FILE}"
        )
        result = await self.command_runner.run(
            config_check, target=WSLTarget(distro_name)
        )
        if not result.success:
            logger.debug("Docker TCP configuration file not found or has incorrect content")
            return False

        result = await self.command_runner.run(
            f"curl -s http://{self.docker_tcp_endpoint}/version",
            target=WSLTarget(distro_name),
        )
        if not result.success or not result.has_output:
            logger.debug("Docker TCP configuration exists but connection test failed")
            return False

        if "Version" in result.stdout or "ApiVersion" in result.stdout:
            return True

        logger.debug("Docker TCP endpoint responded without a docker version payload")
        return False

    async def get_runtime_status(self, distro_name: str) -> RuntimeStatus:
        """Run all three runtime probes without short-circuiting."""
        status = RuntimeStatus(
            installed=await self.check_docker_installed(distro_name),
            running=await self.check_docker_service_running(distro_name),
            tcp_configured=await self.check_docker_tcp_config(distro_name),
        )
        logger.info(
            f"Docker installed: {status.installed}, running: {status.running}, "
            f"configured: {status.tcp_configured}"
        )
        return status

    async def check_config_done(self, distro_name: str) -> bool:
        """Check whether everything needed to run containers in the distro is in place."""
        try:
            if not await self.check_distro_present(distro_name):
                logger.info("Distro does not exist")
                return False

            if not await self.check_docker_installed(distro_name):
                logger.info("Docker is not installed")
                return False

            if not await self.check_docker_service_running(distro_name):
                logger.info("Docker service is not running")
                return False

            if not await self.check_docker_tcp_config(distro_name):
                logger.info("Docker TCP configuration is not set up")
                return False

            logger.info("All WSL configurations are complete")
            return True
        except Exception as e:
            logger.error(f"Error checking WSL config: {e}")
            return False
