"""
Tree provider module for the environment tree.
Rebuilds environment, project and pod records from kde output on demand.
"""

import logging
from typing import Callable, Dict, Any, List, Optional, Union

from kde_panel.connection.connector import EnvironmentConnector
from kde_panel.connection.output import KdeError
from kde_panel.tree.models import EnvironmentItem, ProjectItem, PodItem, UNREADY

logger = logging.getLogger(__name__)

TreeItem = Union[EnvironmentItem, ProjectItem, PodItem]


class TreeProvider:
    """
    TreeProvider answers "what are the children of this node" by asking kde.
    Nothing is cached; every call reflects the current kde output.
    """

    def __init__(self, connector: EnvironmentConnector,
                 on_error: Optional[Callable[[str], None]] = None):
        """
        Initialize a new TreeProvider instance.

        Args:
            connector: EnvironmentConnector used to query kde
            on_error: Called with a user-facing message when projects or pods
                cannot be loaded
        """
        self.connector = connector
        self.on_error = on_error

    def get_children(self, element: Optional[TreeItem] = None) -> List[TreeItem]:
        """
        Get the children of a tree node.

        Args:
            element: None for the root, or an item returned by an earlier call

        Returns:
            List of child items; empty when loading failed
        """
        if element is None:
            return self._environments()
        if isinstance(element, EnvironmentItem):
            return self._projects(element)
        if isinstance(element, ProjectItem):
            return self._pods(element)
        return []

    def _environments(self) -> List[EnvironmentItem]:
        try:
            status = self.connector.environment_status()
            names = self.connector.list_environments()
        except KdeError as e:
            logger.error(f"[getChildren] cannot load environments: {e}")
            return []

        logger.info(f"[getChildren] {names}")
        return [EnvironmentItem(name, status.get(name) or UNREADY) for name in names]

    def _projects(self, element: EnvironmentItem) -> List[ProjectItem]:
        logger.info(f"[getChildren] {element.env_name} --use")
        try:
            names = self.connector.list_projects(element.env_name)
        except KdeError as e:
            self._report(f"Cannot load projects ({element.env_name}): {e}")
            return []
        return [ProjectItem(element.env_name, name) for name in names]

    def _pods(self, element: ProjectItem) -> List[PodItem]:
        logger.info(f"[getChildren] {element.env_name}/{element.project_name}")
        try:
            names = self.connector.list_pods(element.project_name, element.env_name)
        except KdeError as e:
            self._report(f"Cannot load pods ({element.project_name}): {e}")
            return []
        return [PodItem(element.env_name, element.project_name, name) for name in names]

    def _report(self, message: str):
        logger.error(message)
        if self.on_error is not None:
            self.on_error(message)

    def snapshot(self, depth: int = 3) -> List[Dict[str, Any]]:
        """
        Walk the tree and return it as nested dicts.

        Args:
            depth: 1 for environments only, 2 adds projects, 3 adds pods

        Returns:
            List of environment dicts
        """
        result = []
        for env in self.get_children():
            env_info = {"environment": env.name, "status": env.status}
            if depth > 1:
                env_info["projects"] = []
                for project in self.get_children(env):
                    project_info = {"project": project.name}
                    if depth > 2:
                        project_info["pods"] = [pod.name for pod in self.get_children(project)]
                    env_info["projects"].append(project_info)
            result.append(env_info)
        return result
