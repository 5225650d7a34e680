"""
Command Execution package for host and WSL command execution.
"""

from .command_gateway import BackgroundProcess, CommandGateway

__all__ = [
    "BackgroundProcess",
    "CommandGateway",
]
