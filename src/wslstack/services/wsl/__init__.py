"""
WSL services package for Windows Subsystem for Linux provisioning.

This package provides services for detecting how far a machine has been
provisioned, installing the target distribution, and configuring the
container runtime inside it.
"""

from .distro_installer import DistroInstaller
from .distro_users import DistroUserService
from .host_setup_service import HostSetupService
from .remediation import (
    RemediationOutcome,
    SetupScriptRemediation,
    TargetedRemediation,
)
from .runtime_configurator import RuntimeConfigurator
from .wsl_state_detector import ProvisioningState, RuntimeStatus, WSLStateDetector

__all__ = [
    "DistroInstaller",
    "DistroUserService",
    "HostSetupService",
    "ProvisioningState",
    "RemediationOutcome",
    "RuntimeConfigurator",
    "RuntimeStatus",
    "SetupScriptRemediation",
    "TargetedRemediation",
    "WSLStateDetector",
]
