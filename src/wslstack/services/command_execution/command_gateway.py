"""
Command gateway for running host and WSL commands.

Every external interaction of the provisioning services goes through this
gateway. Each call spawns exactly one OS process and resolves with a
CommandResult, optionally routed into a WSL distribution.
"""

import asyncio
import logging
import shlex
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from wslstack.config import COMMAND_TIMEOUT
from wslstack.exceptions import ExecutionError
from wslstack.protocols.command_protocols import Command, CommandResult, WSLTarget
from wslstack.utils.output_text import decode_output

logger = logging.getLogger(__name__)

# Keep console windows from flashing up on Windows hosts
CREATE_NO_WINDOW = getattr(subprocess, "CREATE_NO_WINDOW", 0)


class BackgroundProcess:
    """A detached process started by the gateway that can be cancelled."""

    def __init__(self, process: "subprocess.Popen[bytes]", command: List[str]) -> None:
        self._process = process
        self.command = command

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def running(self) -> bool:
        return self._process.poll() is None

    def cancel(self) -> bool:
        """
        Kill the process if it is still running.

        Returns:
            True if the process was killed, False if it had already exited
        """
        if self._process.poll() is not None:
            logger.debug(f"Process {self.pid} already exited, nothing to cancel")
            return False

        logger.info(f"Cancelling background process {self.pid}: {self.command[:3]}")
        self._process.kill()
        return True

    async def wait(self) -> int:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._process.wait)


class CommandGateway:
    """Executes commands on the host or inside a WSL distribution."""

    def __init__(
        self,
        timeout: float = COMMAND_TIMEOUT,
        wsl_executable: str = "wsl",
        max_workers: int = 4,
    ):
        """
        Initialize the command gateway.

        Args:
            timeout: Default timeout for commands in seconds
            wsl_executable: Executable used to route commands into WSL
            max_workers: Number of commands that may block a worker thread at once
        """
        self.default_timeout = timeout
        self.wsl_executable = wsl_executable
        # One pool for the gateway lifetime, never joined by run()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="command-gateway"
        )

    def build_command(
        self, command: Command, target: Optional[WSLTarget] = None
    ) -> List[str]:
        """
        Build the argv for a command.

        Host commands given as strings are split shell-style. WSL commands are
        handed to bash as a single script argument so pipes and redirections
        keep working inside the distribution.
        """
        if target is None:
            if isinstance(command, str):
                return shlex.split(command)
            return list(command)

        if isinstance(command, str):
            script = command
        else:
            script = shlex.join(command)

        wsl_cmd = [self.wsl_executable, "-d", target.distribution]
        if target.user:
            wsl_cmd.extend(["-u", target.user])
        wsl_cmd.extend(["--exec", "bash", "-c", script])
        return wsl_cmd

    async def run(
        self,
        command: Command,
        target: Optional[WSLTarget] = None,
        capture_output: bool = True,
        input_data: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """
        Execute a command and resolve with its result.

        A nonzero exit code is reported through the result, never raised.

        Args:
            command: Command to execute (string or argv list)
            target: WSL distribution and user to run in (None for the host)
            capture_output: Whether stdout/stderr are collected
            input_data: Data to send to the command's stdin, never logged
            timeout: Command timeout in seconds

        Returns:
            CommandResult with execution details
        """
        start_time = time.time()
        argv = self.build_command(command, target)
        actual_timeout = timeout or self.default_timeout

        logger.debug(
            f"Executing command: {' '.join(argv[:5])}... (timeout: {actual_timeout}s)"
        )

        try:
            loop = asyncio.get_event_loop()

            def run_subprocess() -> "subprocess.CompletedProcess[bytes]":
                output = subprocess.PIPE if capture_output else subprocess.DEVNULL
                return subprocess.run(
                    argv,
                    stdout=output,
                    stderr=output,
                    input=input_data.encode() if input_data is not None else None,
                    stdin=None if input_data is not None else subprocess.DEVNULL,
                    timeout=actual_timeout,
                    creationflags=CREATE_NO_WINDOW,
                )

            # Run the blocking subprocess call off the event loop; asyncio
            # subprocesses are not available on every Windows event loop
            try:
                process_result = await loop.run_in_executor(
                    self._executor, run_subprocess
                )
            except subprocess.TimeoutExpired:
                duration = time.time() - start_time
                logger.warning(
                    f"Command timed out after {actual_timeout}s: {' '.join(argv[:5])}"
                )
                return CommandResult(
                    command=argv,
                    return_code=-1,
                    duration=duration,
                    error=f"Command timed out after {actual_timeout} seconds",
                )

            stdout_str = decode_output(process_result.stdout or b"")
            stderr_str = decode_output(process_result.stderr or b"")
            duration = time.time() - start_time

            result = CommandResult(
                command=argv,
                return_code=process_result.returncode,
                stdout=stdout_str,
                stderr=stderr_str,
                duration=duration,
            )

            if result.success:
                logger.debug(f"Command completed successfully in {duration:.2f}s")
            else:
                logger.debug(
                    f"Command exited with code {result.return_code} in {duration:.2f}s: {stderr_str.strip()}"
                )

            return result

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"Command execution failed: {str(e)}"
            logger.error(f"{error_msg} (Command: {' '.join(argv[:5])})")

            return CommandResult(
                command=argv,
                return_code=-1,
                duration=duration,
                error=error_msg,
            )

    async def run_checked(
        self,
        command: Command,
        target: Optional[WSLTarget] = None,
        capture_output: bool = True,
        input_data: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Execute a command and raise ExecutionError unless it exits with 0."""
        result = await self.run(
            command,
            target=target,
            capture_output=capture_output,
            input_data=input_data,
            timeout=timeout,
        )
        if not result.success:
            raise ExecutionError(
                result.command,
                result.return_code,
                stdout=result.stdout,
                stderr=result.stderr,
                error=result.error,
            )
        return result

    async def run_sequence(
        self,
        commands: Sequence[Command],
        target: Optional[WSLTarget] = None,
        continue_on_failure: bool = False,
        timeout: Optional[float] = None,
    ) -> List[CommandResult]:
        """
        Execute a list of commands sequentially, one process each.

        Args:
            commands: Commands to execute in order
            target: WSL distribution and user to run in (None for the host)
            continue_on_failure: Keep going after a failed step
            timeout: Per-command timeout in seconds

        Returns:
            Results for every step that ran
        """
        results: List[CommandResult] = []

        for i, command in enumerate(commands):
            result = await self.run(command, target=target, timeout=timeout)
            results.append(result)

            if not result.success:
                logger.warning(
                    f"Step {i + 1}/{len(commands)} failed with code {result.return_code}: "
                    f"{result.error or result.stderr.strip()}"
                )
                if not continue_on_failure:
                    logger.warning(
                        f"Stopping sequence, {len(commands) - i - 1} steps not run"
                    )
                    break

        return results

    async def start_background(
        self, command: Command, target: Optional[WSLTarget] = None
    ) -> BackgroundProcess:
        """Start a detached process whose output is discarded."""
        argv = self.build_command(command, target)
        logger.debug(f"Starting background process: {' '.join(argv[:5])}")

        process = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            creationflags=CREATE_NO_WINDOW,
        )
        logger.info(f"Background process started with PID: {process.pid}")
        return BackgroundProcess(process, argv)
