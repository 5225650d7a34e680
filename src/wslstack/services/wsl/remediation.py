"""
Remediation strategies for bringing the container runtime into shape.

Strategies form an escalation chain: a cheap targeted pass that only fixes
what the probes report as broken, and a coarse pass that reruns the full
setup script. Each strategy can be applied on its own.
"""

import logging
from dataclasses import dataclass, field
from importlib import resources
from typing import List, Optional, Protocol

from wslstack.config import (
    DOCKER_TCP_HOST,
    DOCKER_TCP_PORT,
    SETUP_SCRIPT_TIMEOUT,
    WSL_PASSWORD,
    WSL_USER,
)
from wslstack.exceptions import SetupScriptError
from wslstack.protocols.command_protocols import (
    CommandResult,
    CommandRunnerProtocol,
    WSLTarget,
)
from wslstack.services.wsl.wsl_state_detector import (
    DOCKER_DROP_IN_DIR,
    DOCKER_DROP_IN_FILE,
    RuntimeStatus,
    WSLStateDetector,
)

logger = logging.getLogger(__name__)

SETUP_SCRIPT_DIR = "~/wslSetupScript"
SETUP_SCRIPT_PATH = f"{SETUP_SCRIPT_DIR}/dockerSetup.sh"

INSTALL_DOCKER_COMMANDS = [
    "apt-get update",
    "DEBIAN_FRONTEND=noninteractive apt-get install -y apt-transport-https "
    "ca-certificates curl software-properties-common gnupg lsb-release",
    "curl -fsSL https://download.docker.com/linux/ubuntu/gpg | "
    "gpg --dearmor --yes -o /usr/share/keyrings/docker-archive-keyring.gpg",
    'echo "deb [arch=$(dpkg --print-architecture) '
    "signed-by=/usr/share/keyrings/docker-archive-keyring.gpg] "
    'https://download.docker.com/linux/ubuntu $(lsb_release -cs) stable" '
    "> /etc/apt/sources.list.d/docker.list",
    "apt-get update",
    "DEBIAN_FRONTEND=noninteractive apt-get install -y docker-ce docker-ce-cli containerd.io",
]

START_DOCKER_COMMANDS = [
    "systemctl enable docker",
    "systemctl start docker",
    "systemctl status docker --no-pager",
]


def docker_drop_in(host: str = DOCKER_TCP_HOST, port: int = DOCKER_TCP_PORT) -> str:
    """systemd drop-in that makes dockerd listen on a local TCP socket as well."""
    return (
        "[Service]\n"
        "ExecStart=\n"
        f"ExecStart=/usr/bin/dockerd -H fd:// -H tcp://{host}:{port}\n"
    )


def load_setup_script() -> str:
    """Read the bundled docker setup script."""
    return (
        resources.files("wslstack.scripts")
        .joinpath("docker_setup.sh")
        .read_text(encoding="utf-8")
    )


@dataclass
class RemediationOutcome:
    """What a remediation strategy did and where it left the runtime."""

    strategy: str
    status: RuntimeStatus
    steps: List[CommandResult] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.status.ready

    @property
    def failed_steps(self) -> List[CommandResult]:
        return [step for step in self.steps if not step.success]


class RemediationStrategy(Protocol):
    """One rung of the remediation chain."""

    name: str

    async def apply(self, distro_name: str) -> RemediationOutcome:
        """Apply the remediation and report the re-probed runtime status."""
        ...


class TargetedRemediation:
    """Fix only the runtime probes that currently fail."""

    name = "targeted"

    def __init__(
        self,
        command_runner: CommandRunnerProtocol,
        detector: WSLStateDetector,
        docker_tcp_host: str = DOCKER_TCP_HOST,
        docker_tcp_port: int = DOCKER_TCP_PORT,
    ) -> None:
        self.command_runner = command_runner
        self.detector = detector
        self.docker_tcp_host = docker_tcp_host
        self.docker_tcp_port = docker_tcp_port

    async def apply(self, distro_name: str) -> RemediationOutcome:
        steps: List[CommandResult] = []

        if not await self.detector.check_docker_installed(distro_name):
            logger.info("Docker not installed, installing Docker...")
            steps.extend(await self.install_docker(distro_name))
        else:
            logger.info("Docker is already installed")

        if not await self.detector.check_docker_service_running(distro_name):
            logger.info("Docker service not running, starting Docker service...")
            steps.extend(await self.start_docker_service(distro_name))
        else:
            logger.info("Docker service is already running")

        if not await self.detector.check_docker_tcp_config(distro_name):
            logger.info("Docker TCP configuration missing, configuring Docker...")
            steps.extend(await self.configure_docker_tcp(distro_name))
        else:
            logger.info("Docker TCP configuration is already set up")

        status = await self.detector.get_runtime_status(distro_name)
        outcome = RemediationOutcome(strategy=self.name, status=status, steps=steps)
        if outcome.failed_steps:
            logger.warning(
                f"{len(outcome.failed_steps)}/{len(steps)} targeted remediation steps failed"
            )
        return outcome

    async def install_docker(self, distro_name: str) -> List[CommandResult]:
        """Install the docker engine packages from the upstream apt repository."""
        return await self.command_runner.run_sequence(
            INSTALL_DOCKER_COMMANDS,
            target=WSLTarget(distro_name, "root"),
            continue_on_failure=True,
        )

    async def start_docker_service(self, distro_name: str) -> List[CommandResult]:
        """Enable and start the docker systemd unit."""
        return await self.command_runner.run_sequence(
            START_DOCKER_COMMANDS,
            target=WSLTarget(distro_name, "root"),
            continue_on_failure=True,
        )

    async def configure_docker_tcp(self, distro_name: str) -> List[CommandResult]:
        """Write the TCP listener drop-in and restart docker."""
        target = WSLTarget(distro_name, "root")
        steps = [
            await self.command_runner.run(
                f"mkdir -p {DOCKER_DROP_IN_DIR}", target=target
            ),
            await self.command_runner.run(
                f"tee {DOCKER_DROP_IN_FILE} > /dev/null",
                target=target,
                input_data=docker_drop_in(self.docker_tcp_host, self.docker_tcp_port),
            ),
        ]
        for step in steps:
            if not step.success:
                logger.warning(
                    f"Docker TCP drop-in step failed: {step.error or step.stderr.strip()}"
                )

        steps.extend(
            await self.command_runner.run_sequence(
                [
                    "systemctl daemon-reexec",
                    "systemctl daemon-reload",
                    "systemctl restart docker",
                ],
                target=target,
                continue_on_failure=True,
            )
        )
        return steps


class SetupScriptRemediation:
    """Copy the full setup script into the distro and run it with sudo."""

    name = "setup_script"

    def __init__(
        self,
        command_runner: CommandRunnerProtocol,
        detector: WSLStateDetector,
        username: str = WSL_USER,
        password: str = WSL_PASSWORD,
        script: Optional[str] = None,
        timeout: float = SETUP_SCRIPT_TIMEOUT,
    ) -> None:
        self.command_runner = command_runner
        self.detector = detector
        self.username = username
        self.password = password
        self._script = script
        self.timeout = timeout

    @property
    def script(self) -> str:
        if self._script is None:
            self._script = load_setup_script()
        return self._script

    async def apply(self, distro_name: str) -> RemediationOutcome:
        """
        Run the setup script as the configured user.

        Raises:
            ExecutionError: A copy or execution step exited nonzero
            SetupScriptError: The script ran but the runtime is still not ready
        """
        target = WSLTarget(distro_name, self.username)
        steps: List[CommandResult] = []

        logger.info("Copying setup script to distro...")
        steps.append(
            await self.command_runner.run_checked(
                f"mkdir -p {SETUP_SCRIPT_DIR}", target=target
            )
        )
        steps.append(
            await self.command_runner.run_checked(
                f"cat > {SETUP_SCRIPT_PATH}", target=target, input_data=self.script
            )
        )
        steps.append(
            await self.command_runner.run_checked(
                f"chmod +x {SETUP_SCRIPT_PATH}", target=target
            )
        )

        logger.info(f"Executing setup script with sudo as {self.username} user...")
        steps.append(
            await self.command_runner.run_checked(
                f"sudo -S {SETUP_SCRIPT_PATH}",
                target=target,
                input_data=self.password + "\n",
                timeout=self.timeout,
            )
        )

        logger.info("Validating setup completion...")
        status = await self.detector.get_runtime_status(distro_name)
        if not status.ready:
            failed = status.failed_probes()
            logger.error(f"Setup script completed but validation failed: {failed}")
            raise SetupScriptError(
                f"Setup script validation failed: {', '.join(failed)}",
                failed_probes=failed,
            )

        logger.info("Setup script executed and validated successfully")
        return RemediationOutcome(strategy=self.name, status=status, steps=steps)
