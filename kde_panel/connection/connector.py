"""
Connector module for kde development environments.
Provides a unified interface for querying environments, projects and pods
through the kde CLI.
"""

import logging
import threading
from typing import Optional, Dict, List

from .kde import KdeConnector
from .commands import KdeCommands
from .output import KdeCommandError, parse_lines, parse_status

logger = logging.getLogger(__name__)


class EnvironmentConnector:
    """
    EnvironmentConnector queries kde for environments, projects and pods
    and parses the results.
    """

    def __init__(
        self,
        binary: str = "kde",
        workspace: Optional[str] = None,
        shell: Optional[str] = None,
        terminal: Optional[str] = None
    ):
        """
        Initialize a new EnvironmentConnector instance.

        Args:
            binary: Name or path of the kde executable
            workspace: Directory kde commands run in
            shell: Shell for chained commands
            terminal: Terminal emulator prefix for long-running commands
        """
        self.kde = KdeConnector(
            binary=binary,
            workspace=workspace,
            shell=shell,
            terminal=terminal
        )
        self.commands = KdeCommands(binary)
        self.connected = False
        # kde use switches global state, so use + list must not interleave
        self._use_lock = threading.RLock()

    @classmethod
    def from_config(cls, config) -> "EnvironmentConnector":
        return cls(
            binary=config.binary,
            workspace=config.workspace,
            shell=config.shell,
            terminal=config.terminal
        )

    @property
    def workspace(self) -> str:
        return self.kde.workspace

    def connect(self) -> bool:
        """
        Check that kde can be run.

        Returns:
            bool: True if kde is available, False otherwise
        """
        self.connected = self.kde.connect()
        if not self.connected:
            logger.error("kde CLI is not available")
        return self.connected

    def list_environments(self) -> List[str]:
        """Get environment names from `kde ls`"""
        self._ensure_connected()
        return parse_lines(self.kde.exec_command(self.commands.ls()))

    def environment_status(self) -> Dict[str, str]:
        """Get a mapping of environment name to status from `kde status json`"""
        self._ensure_connected()
        status = parse_status(self.kde.exec_command(self.commands.status()))
        logger.info(f"[status] {status}")
        return status

    def use(self, env_name: str) -> None:
        """Make env_name the current environment"""
        self._ensure_connected()
        with self._use_lock:
            self.kde.exec_command(self.commands.use(env_name))

    def list_projects(self, env_name: Optional[str] = None) -> List[str]:
        """
        Get project names of an environment.

        Args:
            env_name: Switch to this environment first. If None, uses the current one
        """
        with self._use_lock:
            if env_name:
                self.use(env_name)
            self._ensure_connected()
            return parse_lines(self.kde.exec_command(self.commands.project_ls()))

    def list_pods(self, project_name: str, env_name: Optional[str] = None) -> List[str]:
        """
        Get pod names of a project.

        Args:
            project_name: Project whose pods are listed
            env_name: Switch to this environment first. If None, uses the current one
        """
        with self._use_lock:
            if env_name:
                self.use(env_name)
            self._ensure_connected()
            return parse_lines(self.kde.exec_command(self.commands.project_pods(project_name)))

    def _ensure_connected(self):
        """Ensure the kde binary has been found"""
        if not self.connected:
            self.connected = self.connect()
            if not self.connected:
                raise KdeCommandError(f"kde CLI not found: {self.kde.binary}")
