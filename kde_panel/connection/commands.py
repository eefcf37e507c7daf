"""
Command construction for the kde CLI.
Builds argv lists for single kde invocations and shell strings for chained ones.
"""

import re
import shlex
from typing import List, Optional, Sequence

COMPLETED_MESSAGE = "Please enter any key to continue..."

ENV_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\-_]+$")
DIGITS_PATTERN = re.compile(r"[0-9]+")

# (value, label) pairs offered when adding an environment
ENV_TYPES = [
    ("kind", "kind (Kubernetes in local Docker)"),
    ("k3d", "k3d (lightweight K3s on Docker)"),
    ("k8s", "k8s (connect an existing cluster)"),
]

EXEC_TARGETS = ("develop", "deploy")
PROJECT_OPERATIONS = ("deploy", "undeploy", "redeploy")
ENV_TOOLS = ("k9s", "headlamp", "expose")


def validate_env_name(value: Optional[str]) -> Optional[str]:
    """Return an error message for an invalid environment name, else None."""
    if not value or not ENV_NAME_PATTERN.match(value):
        return "Environment names may only contain letters, digits, '-' and '_'"
    return None


def validate_positive_int(value: Optional[str], what: str = "Value") -> Optional[str]:
    """Return an error message unless value is a positive integer, else None."""
    if not value or not DIGITS_PATTERN.fullmatch(value.strip()) or int(value) <= 0:
        return f"{what} must be a positive integer"
    return None


def shell_join(argv: Sequence[str]) -> str:
    """Join an argv list into a shell-safe command string."""
    return " ".join(shlex.quote(str(arg)) for arg in argv)


def chain(*commands: Sequence[str], completion: bool = False) -> str:
    """
    Chain commands with `&&` so each runs only if the previous one succeeded.

    Args:
        *commands: argv lists
        completion: Append an echo of COMPLETED_MESSAGE as the last step

    Returns:
        str: Shell command string
    """
    parts = [shell_join(cmd) for cmd in commands]
    if completion:
        parts.append(f'echo "{COMPLETED_MESSAGE}"')
    return " && ".join(parts)


class KdeCommands:
    """
    Builds argv lists for kde subcommands.
    """

    def __init__(self, binary: str = "kde"):
        self.binary = binary

    def _cmd(self, *args) -> List[str]:
        return [self.binary] + [str(arg) for arg in args]

    # Environments
    def ls(self) -> List[str]:
        return self._cmd("ls")

    def status(self) -> List[str]:
        return self._cmd("status", "json")

    def init(self) -> List[str]:
        return self._cmd("init")

    def use(self, env_name: str) -> List[str]:
        return self._cmd("use", env_name)

    def create(self, env_name: str, env_type: Optional[str] = None,
               kubeconfig: Optional[str] = None) -> List[str]:
        cmd = self._cmd("create", env_name)
        if env_type:
            cmd.append(env_type)
        if kubeconfig:
            cmd.append(kubeconfig)
        return cmd

    def stop(self, env_name: str) -> List[str]:
        return self._cmd("stop", env_name)

    def tool(self, name: str) -> List[str]:
        """kde k9s, kde headlamp or kde expose."""
        if name not in ENV_TOOLS:
            raise ValueError(f"Unknown environment tool: {name}")
        return self._cmd(name)

    # Projects
    def project_ls(self) -> List[str]:
        return self._cmd("project", "ls")

    def project_pods(self, project_name: str) -> List[str]:
        return self._cmd("project", "pod", project_name)

    def project_create(self, project_name: str) -> List[str]:
        return self._cmd("project", "create", project_name)

    def project_operation(self, operation: str, project_name: str) -> List[str]:
        if operation not in PROJECT_OPERATIONS:
            raise ValueError(f"Unknown project operation: {operation}")
        return self._cmd("project", operation, project_name)

    def project_exec(self, project_name: str, target: str) -> List[str]:
        if target not in EXEC_TARGETS:
            raise ValueError(f"Unknown exec target: {target}")
        return self._cmd("project", "exec", project_name, target)

    def telepresence_replace(self, project_name: str) -> List[str]:
        return self._cmd("telepresence", "replace", project_name)

    # Pods
    def tail(self, project_name: str, pod_name: str, lines) -> List[str]:
        return self._cmd("project", "tail", project_name, pod_name, lines)

    def pod_exec(self, project_name: str, pod_name: str) -> List[str]:
        return self._cmd("project", "pod-exec", project_name, pod_name)

    def expose_pod(self, project_name: str, pod_name: str, target_port, local_port) -> List[str]:
        return self._cmd("expose", project_name, "pod", pod_name, target_port, local_port)
