"""
Exceptions raised by the provisioning services.

Probes never raise; only fatal setup failures surface through these types.
"""

from typing import List, Optional, Sequence


class ProvisioningError(Exception):
    """Base class for provisioning failures."""


class ExecutionError(ProvisioningError):
    """A fail-fast command exited with a nonzero code."""

    def __init__(
        self,
        command: Sequence[str],
        return_code: int,
        stdout: str = "",
        stderr: str = "",
        error: Optional[str] = None,
    ) -> None:
        self.command = list(command)
        self.return_code = return_code
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        detail = error or stderr.strip() or stdout.strip() or "no output"
        super().__init__(f"Command failed with code {return_code}: {detail}")


class SetupScriptError(ProvisioningError):
    """The setup script ran but the runtime is still not configured."""

    def __init__(self, message: str, failed_probes: Optional[List[str]] = None) -> None:
        self.failed_probes = failed_probes or []
        super().__init__(message)


class DistroInstallTimeoutError(ProvisioningError):
    """The distribution never appeared within the allowed wait."""

    def __init__(self, distro_name: str, waited: float) -> None:
        self.distro_name = distro_name
        self.waited = waited
        super().__init__(
            f"Distribution {distro_name} was not detected after {waited:.0f} seconds"
        )


class RuntimeUnavailableError(ProvisioningError):
    """The container runtime could not be reached over socket or TCP."""

    REMEDIATION_HINT = (
        "Docker is not running or not accessible. "
        "Please install Docker Desktop and ensure it is running."
    )

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.REMEDIATION_HINT)
