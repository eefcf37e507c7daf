"""
Action manager for the kde panel.
Maps user actions on tree items to kde command lines and runs them either as
awaited tasks or in a terminal.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Any, List, Optional

from kde_panel.connection.connector import EnvironmentConnector
from kde_panel.connection.commands import (
    ENV_TYPES,
    ENV_TOOLS,
    EXEC_TARGETS,
    PROJECT_OPERATIONS,
    chain,
    validate_env_name,
    validate_positive_int,
)
from kde_panel.connection.output import KdeError
from kde_panel.tree.models import EnvironmentItem, ProjectItem, PodItem

logger = logging.getLogger(__name__)

TASK = "task"
TERMINAL = "terminal"

# What to refresh after a successful task
REFRESH_ALL = "all"
REFRESH_ITEM = "item"


@dataclass(frozen=True)
class ActionRequest:
    """
    A resolved user action: the shell command and how to run it.
    """
    name: str
    command: str
    title: str
    mode: str = TASK
    refresh: Optional[str] = None
    item: Any = None
    success_message: Optional[str] = None

    def failure_message(self, exit_code: int) -> str:
        return f"Task {self.name} failed with exit code {exit_code}"


class ActionManager:
    """
    ActionManager builds ActionRequests for every panel action and runs them.
    """

    def __init__(self, connector: EnvironmentConnector):
        """
        Initialize a new ActionManager instance.

        Args:
            connector: EnvironmentConnector providing kde commands and execution
        """
        self.connector = connector
        self.commands = connector.commands

    # Environment actions

    def create_env(self, item: EnvironmentItem) -> ActionRequest:
        """Create an environment that is already listed."""
        logger.info(f"[invoke] kde.createEnv {item.env_name}")
        return ActionRequest(
            name="create env",
            command=chain(self.commands.create(item.env_name), completion=True),
            title="KDE",
            refresh=REFRESH_ALL
        )

    def add_env(self, env_name: str, env_type: str, kubeconfig: Optional[str] = None) -> ActionRequest:
        """
        Initialise kde and create a new environment of the given type.

        Raises:
            ValueError: If the name, type or kubeconfig is invalid
        """
        error = validate_env_name(env_name)
        if error:
            raise ValueError(error)
        if env_type not in [value for value, _ in ENV_TYPES]:
            raise ValueError(f"Unknown environment type: {env_type}")
        if env_type == "k8s" and not kubeconfig:
            raise ValueError("A kubeconfig file is required for k8s environments")

        logger.info(f"[addEnvironmentFlow] {env_name} {env_type} {kubeconfig or ''}".rstrip())
        create = self.commands.create(
            env_name,
            env_type,
            kubeconfig if env_type == "k8s" else None
        )
        return ActionRequest(
            name="create env",
            command=chain(self.commands.init(), create, completion=True),
            title=f"KDE: create env {env_name}",
            refresh=REFRESH_ALL,
            success_message=f"Created environment: {env_name} ({env_type})"
        )

    def stop_env(self, item: EnvironmentItem) -> ActionRequest:
        logger.info(f"[invoke] kde.stopEnv {item.env_name}")
        return ActionRequest(
            name="stop env",
            command=chain(
                self.commands.use(item.env_name),
                self.commands.stop(item.env_name),
                completion=True
            ),
            title="KDE",
            refresh=REFRESH_ALL
        )

    def env_tool(self, env_name: str, tool: str) -> ActionRequest:
        """k9s, headlamp or expose for a whole environment, in a terminal."""
        if tool not in ENV_TOOLS:
            raise ValueError(f"Unknown environment tool: {tool}")
        logger.info(f"[invoke] kde.{tool} {env_name}")
        title = "port forward" if tool == "expose" else tool
        return ActionRequest(
            name=tool,
            command=chain(self.commands.use(env_name), self.commands.tool(tool)),
            title=f"KDE: {title} ({env_name})",
            mode=TERMINAL
        )

    def k9s(self, env_name: str) -> ActionRequest:
        return self.env_tool(env_name, "k9s")

    def headlamp(self, env_name: str) -> ActionRequest:
        return self.env_tool(env_name, "headlamp")

    def expose(self, env_name: str) -> ActionRequest:
        return self.env_tool(env_name, "expose")

    # Project actions

    def create_project(self, item: EnvironmentItem, project_name: str) -> ActionRequest:
        if not project_name or not project_name.strip():
            raise ValueError("Project name must not be empty")
        project_name = project_name.strip()
        logger.info(f"[createProjectFlow] {item.env_name} {project_name}")
        return ActionRequest(
            name="create project",
            command=chain(
                self.commands.use(item.env_name),
                self.commands.project_create(project_name),
                completion=True
            ),
            title="KDE",
            refresh=REFRESH_ITEM,
            item=item
        )

    def project_operation(self, item: ProjectItem, operation: str) -> ActionRequest:
        """deploy, undeploy or redeploy a project."""
        if operation not in PROJECT_OPERATIONS:
            raise ValueError(f"Unknown project operation: {operation}")
        return ActionRequest(
            name=operation,
            command=chain(
                self.commands.use(item.env_name),
                self.commands.project_operation(operation, item.project_name),
                completion=True
            ),
            title=f"KDE: {operation} ({item.project_name})",
            refresh=REFRESH_ITEM,
            item=item
        )

    def deploy(self, item: ProjectItem) -> ActionRequest:
        return self.project_operation(item, "deploy")

    def undeploy(self, item: ProjectItem) -> ActionRequest:
        return self.project_operation(item, "undeploy")

    def redeploy(self, item: ProjectItem) -> ActionRequest:
        return self.project_operation(item, "redeploy")

    def exec_env(self, item: ProjectItem, target: str) -> ActionRequest:
        if target not in EXEC_TARGETS:
            raise ValueError(f"Unknown exec target: {target}")
        return ActionRequest(
            name=f"exec {target} env",
            command=chain(
                self.commands.use(item.env_name),
                self.commands.project_exec(item.project_name, target)
            ),
            title=f"KDE: exec {target} env ({item.project_name})",
            mode=TERMINAL
        )

    def exec_develop_env(self, item: ProjectItem) -> ActionRequest:
        return self.exec_env(item, "develop")

    def exec_deploy_env(self, item: ProjectItem) -> ActionRequest:
        return self.exec_env(item, "deploy")

    def telepresence_replace(self, item: ProjectItem) -> ActionRequest:
        return ActionRequest(
            name="telepresence replace",
            command=chain(
                self.commands.use(item.env_name),
                self.commands.telepresence_replace(item.project_name)
            ),
            title=f"KDE: telepresence replace ({item.project_name})",
            mode=TERMINAL
        )

    # Pod actions

    def pod_logs(self, item: PodItem, lines: str) -> ActionRequest:
        error = validate_positive_int(lines, "Line count")
        if error:
            raise ValueError(error)
        return ActionRequest(
            name="logs",
            command=chain(
                self.commands.use(item.env_name),
                self.commands.tail(item.project_name, item.pod_name, int(lines))
            ),
            title=f"KDE: logs {item.pod_name}",
            mode=TERMINAL
        )

    def pod_port_forward(self, item: PodItem, local_port: str, target_port: str) -> ActionRequest:
        for value, what in ((local_port, "Local port"), (target_port, "Target port")):
            error = validate_positive_int(value, what)
            if error:
                raise ValueError(error)
        return ActionRequest(
            name="pod port-forward",
            command=chain(
                self.commands.use(item.env_name),
                self.commands.expose_pod(
                    item.project_name, item.pod_name, int(target_port), int(local_port)
                )
            ),
            title=f"KDE: pod port-forward {int(local_port)} ({item.project_name}/{item.pod_name})",
            mode=TERMINAL
        )

    def pod_exec(self, item: PodItem) -> ActionRequest:
        return ActionRequest(
            name="pod exec",
            command=chain(
                self.commands.use(item.env_name),
                self.commands.pod_exec(item.project_name, item.pod_name)
            ),
            title=f"KDE: exec {item.pod_name}",
            mode=TERMINAL
        )

    # Helpers

    def environment_choices(self) -> List[str]:
        """Environment names for pickers; raises KdeError when kde ls fails."""
        return self.connector.list_environments()

    @staticmethod
    def resolve_env_name(item: Any = None, selection: Any = None) -> Optional[str]:
        """Environment of the invoked item, else of the selected item."""
        for candidate in (item, selection):
            env_name = getattr(candidate, "env_name", None)
            if env_name:
                return env_name
        return None

    async def run(self, request: ActionRequest,
                  on_line: Optional[Callable[[str], None]] = None) -> Dict[str, Any]:
        """
        Run a task request to completion.

        Args:
            request: ActionRequest with mode TASK
            on_line: Called with each output line

        Returns:
            Dict containing success, exit_code and message
        """
        if request.mode != TASK:
            raise ValueError(f"{request.name} runs in a terminal, not as a task")

        result = {
            "success": False,
            "exit_code": -1,
            "message": ""
        }

        try:
            exit_code = await self.connector.kde.run_task(request.command, on_line)
        except KdeError as e:
            result["message"] = str(e)
            logger.error(f"[task] {request.name}: {e}")
            return result

        result["exit_code"] = exit_code
        if exit_code == 0:
            result["success"] = True
            result["message"] = request.success_message or f"{request.title}: done"
        else:
            result["message"] = request.failure_message(exit_code)
            logger.error(result["message"])

        return result

    def launch(self, request: ActionRequest):
        """Open a terminal request in the configured terminal emulator."""
        if request.mode != TERMINAL:
            raise ValueError(f"{request.name} is a task, not a terminal command")
        return self.connector.kde.launch_terminal(request.command, request.title)

    def run_foreground(self, request: ActionRequest) -> int:
        """Run a terminal request attached to the current terminal."""
        if request.mode != TERMINAL:
            raise ValueError(f"{request.name} is a task, not a terminal command")
        return self.connector.kde.run_foreground(request.command, request.title)
