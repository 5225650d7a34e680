"""
User management inside a WSL distribution.
"""

import logging

from wslstack.protocols.command_protocols import (
    CommandResult,
    CommandRunnerProtocol,
    WSLTarget,
)

logger = logging.getLogger(__name__)


class DistroUserService:
    """Creates OS users inside a distribution and sets their passwords."""

    def __init__(self, command_runner: CommandRunnerProtocol) -> None:
        self.command_runner = command_runner

    async def add_user(
        self, username: str, distro_name: str, sudo_access: bool = True
    ) -> CommandResult:
        """Add a user with a home directory and bash as login shell."""
        command = ["useradd", "-m", "-s", "/bin/bash"]
        if sudo_access:
            command.extend(["-G", "sudo"])
        command.append(username)

        result = await self.command_runner.run(
            command, target=WSLTarget(distro_name, "root")
        )
        if result.success:
            logger.info(f"User {username} added to {distro_name}")
        else:
            logger.warning(
                f"Adding user {username} to {distro_name} failed: "
                f"{result.error or result.stderr.strip()}"
            )
        return result

    async def change_password(
        self, username: str, password: str, distro_name: str
    ) -> CommandResult:
        """Set a user's password through chpasswd; credentials go over stdin."""
        result = await self.command_runner.run(
            "chpasswd",
            target=WSLTarget(distro_name, "root"),
            input_data=f"{username}:{password}\n",
        )
        if result.success:
            logger.info(f"Password changed for {username}")
        else:
            logger.warning(
                f"Changing password for {username} failed: "
                f"{result.error or result.stderr.strip()}"
            )
        return result

    async def add_new_user(
        self, username: str, password: str, distro_name: str, sudo_access: bool = True
    ) -> bool:
        """Add a user and set its password. Returns True if both steps succeeded."""
        added = await self.add_user(username, distro_name, sudo_access)
        changed = await self.change_password(username, password, distro_name)
        return added.success and changed.success
