"""
Protocol interfaces for command execution services.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Union

Command = Union[str, Sequence[str]]


@dataclass(frozen=True)
class WSLTarget:
    """Routes a command into a WSL distribution, optionally as a specific user."""

    distribution: str
    user: Optional[str] = None


@dataclass
class CommandResult:
    """Result of a command execution."""

    command: List[str]
    return_code: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    error: Optional[str] = None
    success: bool = field(init=False)

    def __post_init__(self) -> None:
        self.success = self.return_code == 0

    @property
    def has_output(self) -> bool:
        return bool(self.stdout.strip())


class BackgroundProcessProtocol(Protocol):
    """A detached process that can be cancelled while it runs."""

    @property
    def running(self) -> bool: ...

    def cancel(self) -> bool:
        """Kill the process if it is still running. Returns True if it was killed."""
        ...

    async def wait(self) -> int:
        """Wait for the process to exit and return its exit code."""
        ...


class CommandRunnerProtocol(Protocol):
    """Protocol for command execution services."""

    async def run(
        self,
        command: Command,
        target: Optional[WSLTarget] = None,
        capture_output: bool = True,
        input_data: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Execute a command; nonzero exit codes are returned, not raised."""
        ...

    async def run_checked(
        self,
        command: Command,
        target: Optional[WSLTarget] = None,
        capture_output: bool = True,
        input_data: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Execute a command and raise ExecutionError on a nonzero exit code."""
        ...

    async def run_sequence(
        self,
        commands: Sequence[Command],
        target: Optional[WSLTarget] = None,
        continue_on_failure: bool = False,
        timeout: Optional[float] = None,
    ) -> List[CommandResult]:
        """Execute commands one after another and return every result."""
        ...

    async def start_background(
        self, command: Command, target: Optional[WSLTarget] = None
    ) -> BackgroundProcessProtocol:
        """Start a cancellable detached process."""
        ...
