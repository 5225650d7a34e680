"""WSL environment provisioning and backing-service orchestration."""

__version__ = "0.1.0"
