"""
KdeConnector module for running the kde CLI.
Provides functionality to invoke kde commands through subprocess, either as
one-shot commands whose output is parsed, as streamed tasks, or in a terminal.
"""

import os
import shlex
import shutil
import asyncio
import logging
import subprocess
from typing import Optional, Dict, Any, List, Callable

from .commands import shell_join
from .output import KdeCommandError

logger = logging.getLogger(__name__)


class KdeConnector:
    """
    KdeConnector runs kde commands in the workspace directory using subprocess.
    """

    def __init__(
        self,
        binary: str = "kde",
        workspace: Optional[str] = None,
        shell: Optional[str] = None,
        terminal: Optional[str] = None
    ):
        """
        Initialize a new KdeConnector instance.

        Args:
            binary: Name or path of the kde executable
            workspace: Directory commands run in. If None, uses the current directory
            shell: Shell for chained commands. If None, uses $SHELL or /bin/bash
            terminal: Terminal emulator prefix for long-running commands
        """
        self.binary = binary
        self.workspace = workspace or os.getcwd()
        self.shell = shell or os.environ.get("SHELL") or "/bin/bash"
        self.terminal = terminal
        self.connected = False

    def connect(self) -> bool:
        """
        Verify that the kde binary can be found and the workspace exists.

        Returns:
            bool: True if kde commands can be run, False otherwise
        """
        if not os.path.isdir(self.workspace):
            logger.error(f"Workspace directory does not exist: {self.workspace}")
            return False

        if shutil.which(self.binary) is None:
            logger.error(f"kde binary not found: {self.binary}")
            return False

        self.connected = True
        logger.info(f"Using {self.binary} in {self.workspace}")
        return True

    def run_command(self, args: List[str]) -> Dict[str, Any]:
        """
        Run a kde command.

        Args:
            args: kde arguments, or a full argv starting with the binary

        Returns:
            Dict containing command output and status
        """
        if not args or args[0] != self.binary:
            args = [self.binary] + list(args)
        return self._execute_command(args)

    def exec_command(self, args: List[str]) -> str:
        """
        Run a kde command and return its output.

        Args:
            args: kde arguments, or a full argv starting with the binary

        Returns:
            str: Stripped standard output

        Raises:
            KdeCommandError: If the command failed; the message is its stderr
        """
        result = self.run_command(args)
        if not result["success"]:
            raise KdeCommandError(
                result["error"],
                command=result["command"],
                returncode=result["returncode"]
            )
        return result["output"]

    def _execute_command(self, cmd: List[str]) -> Dict[str, Any]:
        """
        Execute a command using subprocess.

        Args:
            cmd: Command to execute as list of strings

        Returns:
            Dict containing:
                success: bool indicating command success
                output: stripped stdout if successful
                error: stripped stderr (or a failure description) if the command failed
                returncode: command return code
                command: the command as a shell string
        """
        command = shell_join(cmd)
        logger.info("")
        logger.info(f"$ {command}")
        logger.info(f"cwd: {self.workspace}")

        result = {
            "success": False,
            "output": "",
            "error": "",
            "returncode": -1,
            "command": command
        }

        try:
            process = subprocess.run(
                cmd,
                cwd=self.workspace,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                universal_newlines=True,
                check=False
            )
        except OSError as e:
            result["error"] = f"Command failed: {command}: {e}"
            logger.error(f"[error] {result['error']}")
            return result

        result["returncode"] = process.returncode

        if process.returncode == 0:
            result["success"] = True
            result["output"] = (process.stdout or "").strip()
            if result["output"]:
                logger.info(result["output"])
        else:
            stderr = (process.stderr or "").strip()
            result["error"] = stderr or f"Command failed with exit code {process.returncode}: {command}"
            logger.error(f"[error] {result['error']}")

        return result

    async def run_task(self, command: str, on_line: Optional[Callable[[str], None]] = None) -> int:
        """
        Run a shell command to completion, streaming its output.

        Args:
            command: Shell command string (may chain several kde calls)
            on_line: Called with each line of combined stdout/stderr

        Returns:
            int: Exit code of the command
        """
        logger.info("")
        logger.info(f"[task] {command}")

        try:
            process = await asyncio.create_subprocess_exec(
                self.shell, "-c", command,
                cwd=self.workspace,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT
            )
        except OSError as e:
            raise KdeCommandError(f"Cannot start task: {e}", command=command) from e

        while True:
            line = await process.stdout.readline()
            if not line:
                break
            text = line.decode(errors="replace").rstrip("\r\n")
            if on_line is not None:
                on_line(text)

        exit_code = await process.wait()
        logger.info(f"[task] exit code {exit_code}")
        return exit_code

    def terminal_argv(self, command: str) -> List[str]:
        """Build the argv that runs command in a login shell."""
        argv = [self.shell, "-lc", command]
        if self.terminal:
            argv = shlex.split(self.terminal) + argv
        return argv

    def launch_terminal(self, command: str, title: str = "KDE") -> subprocess.Popen:
        """
        Start a long-running command in a new terminal emulator window.

        Args:
            command: Shell command string
            title: Window title, used for logging

        Returns:
            subprocess.Popen: The detached terminal process
        """
        if not self.terminal:
            raise KdeCommandError("No terminal emulator configured", command=command)

        argv = self.terminal_argv(command)
        logger.info("")
        logger.info(f"[terminal:new] {title}")
        logger.info(f"[terminal:cmd] {command}")

        try:
            return subprocess.Popen(
                argv,
                cwd=self.workspace,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True
            )
        except OSError as e:
            raise KdeCommandError(f"Cannot start terminal: {e}", command=command) from e

    def run_foreground(self, command: str, title: str = "KDE") -> int:
        """
        Run a long-running command attached to the current terminal.

        Returns:
            int: Exit code of the command
        """
        logger.info("")
        logger.info(f"[terminal:foreground] {title}")
        logger.info(f"[terminal:cmd] {command}")

        try:
            process = subprocess.run([self.shell, "-lc", command], cwd=self.workspace, check=False)
        except OSError as e:
            raise KdeCommandError(f"Cannot run command: {e}", command=command) from e

        return process.returncode
