"""
Textual application for the kde panel.
Shows the environment -> project -> pod tree, refreshes it on a timer and
dispatches kde commands for the actions bound to each kind of node.
"""

import os
import asyncio
import logging
from typing import Optional, Set, Tuple

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Log, TabbedContent, TabPane, Tree
from textual.widgets.tree import TreeNode

from kde_panel.actions.manager import ActionManager, ActionRequest, TASK, REFRESH_ALL, REFRESH_ITEM
from kde_panel.config import PanelConfig
from kde_panel.connection.commands import ENV_TYPES, validate_env_name, validate_positive_int
from kde_panel.connection.connector import EnvironmentConnector
from kde_panel.connection.output import KdeError
from kde_panel.tree.models import EnvironmentItem, ProjectItem, PodItem, status_marker
from kde_panel.tree.provider import TreeProvider
from kde_panel.ui.output import OutputQueueHandler
from kde_panel.ui.screens import PickScreen, PromptScreen

logger = logging.getLogger(__name__)


def item_label(item) -> Text:
    """Tree label for an item; environments get a status marker."""
    if isinstance(item, EnvironmentItem):
        marker = status_marker(item.status)
        if marker:
            symbol, style = marker
            return Text.assemble((symbol, style), " ", item.label)
    return Text(item.label)


class KdePanelApp(App):
    """Panel for kde development environments."""

    TITLE = "KDE environments"

    CSS = """
    #environments {
        width: 40%;
        border-right: solid $accent;
    }
    TabbedContent {
        width: 60%;
    }
    """

    BINDINGS = [
        Binding("r", "refresh", "Refresh"),
        Binding("a", "add_env", "Add env"),
        Binding("c", "create_env", "Create env"),
        Binding("s", "stop_env", "Stop env"),
        Binding("n", "create_project", "New project"),
        Binding("d", "deploy", "Deploy"),
        Binding("u", "undeploy", "Undeploy", show=False),
        Binding("D", "redeploy", "Redeploy", show=False),
        Binding("e", "exec", "Exec"),
        Binding("E", "exec_deploy_env", "Exec deploy env", show=False),
        Binding("t", "telepresence", "Telepresence", show=False),
        Binding("l", "logs", "Logs"),
        Binding("p", "port_forward", "Port forward"),
        Binding("k", "k9s", "K9s"),
        Binding("h", "headlamp", "Headlamp", show=False),
        Binding("x", "expose", "Expose", show=False),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, config: Optional[PanelConfig] = None,
                 connector: Optional[EnvironmentConnector] = None):
        super().__init__()
        self.panel_config = config or PanelConfig()
        self.connector = connector or EnvironmentConnector.from_config(self.panel_config)
        self.provider = TreeProvider(self.connector, on_error=self._show_error)
        self.action_manager = ActionManager(self.connector)
        self.output_handler = OutputQueueHandler()
        self._loaded: Set[Tuple[str, ...]] = set()
        self._refreshing = False
        # bumped on every full rebuild; loads from an older tree are dropped
        self._generation = 0

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal():
            tree = Tree("KDE", id="environments")
            tree.show_root = False
            tree.root.expand()
            yield tree
            with TabbedContent(initial="tasks"):
                with TabPane("Tasks", id="tasks"):
                    yield Log(id="task-log")
                with TabPane("Output", id="output"):
                    yield Log(id="output-log")
        yield Footer()

    def on_mount(self) -> None:
        logging.getLogger("kde_panel").addHandler(self.output_handler)
        logger.info("k8s-dev-environments activated")
        self.set_interval(0.25, self._drain_output)
        if self.panel_config.refresh_interval > 0:
            self.set_interval(self.panel_config.refresh_interval, self._schedule_refresh)
        self._schedule_refresh()

    def on_unmount(self) -> None:
        logging.getLogger("kde_panel").removeHandler(self.output_handler)

    # Tree

    @property
    def env_tree(self) -> Tree:
        return self.query_one("#environments", Tree)

    @property
    def selected_item(self):
        node = self.env_tree.cursor_node
        return node.data if node is not None else None

    def _show_error(self, message: str) -> None:
        self.notify(message, severity="error")

    def _drain_output(self) -> None:
        lines = self.output_handler.drain()
        if lines:
            self.query_one("#output-log", Log).write_lines(lines)

    def _schedule_refresh(self) -> None:
        self.run_worker(self.refresh_tree(), group="refresh")

    def _expanded_keys(self) -> Set[Tuple[str, ...]]:
        keys = set()
        stack = list(self.env_tree.root.children)
        while stack:
            node = stack.pop()
            if node.data is not None and node.is_expanded:
                keys.add(node.data.key)
            stack.extend(node.children)
        return keys

    def _find_node(self, key: Tuple[str, ...]) -> Optional[TreeNode]:
        stack = list(self.env_tree.root.children)
        while stack:
            node = stack.pop()
            if node.data is not None and node.data.key == key:
                return node
            stack.extend(node.children)
        return None

    def _add_node(self, parent: TreeNode, item) -> TreeNode:
        if item.collapsible:
            return parent.add(item_label(item), data=item, allow_expand=True)
        return parent.add_leaf(item_label(item), data=item)

    async def refresh_tree(self, item=None) -> None:
        """
        Rebuild the tree from kde output.

        With an item, only that node's children are reloaded. Without one the
        whole tree is rebuilt and previously expanded nodes are expanded again.
        A full refresh is skipped while another one is running.
        """
        if item is not None:
            node = self._find_node(item.key)
            if node is not None:
                await self.load_children(node)
            return

        if self._refreshing:
            return
        self._refreshing = True
        try:
            expanded = self._expanded_keys()
            envs = await asyncio.to_thread(self.provider.get_children, None)
            tree = self.env_tree
            cursor_line = tree.cursor_line
            tree.clear()
            self._loaded.clear()
            self._generation += 1
            for env in envs:
                node = self._add_node(tree.root, env)
                if env.key in expanded:
                    await self.load_children(node, expanded)
            if cursor_line >= 0:
                tree.cursor_line = cursor_line
        finally:
            self._refreshing = False

    async def load_children(self, node: TreeNode, expanded: Optional[Set[Tuple[str, ...]]] = None) -> None:
        """
        Replace a node's children with fresh ones from kde.

        Args:
            node: Environment or project node
            expanded: Keys of nodes to expand (and load) again after a full refresh
        """
        item = node.data
        generation = self._generation
        children = await asyncio.to_thread(self.provider.get_children, item)
        if generation != self._generation:
            logger.debug(f"[load] dropping stale children of {item.key}")
            return
        node.remove_children()
        self._loaded.add(item.key)
        for child in children:
            self._add_node(node, child)

        if expanded is None:
            return
        node.expand()
        for child_node in list(node.children):
            child = child_node.data
            if child.collapsible and child.key in expanded:
                await self.load_children(child_node, expanded)

    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        item = event.node.data
        if item is None or item.key in self._loaded:
            return
        self.run_worker(self.load_children(event.node), group="load")

    # Dispatch

    async def run_request(self, request: ActionRequest):
        """Run a task and refresh afterwards, or open a terminal command."""
        if request.mode != TASK:
            self.open_terminal(request)
            return None

        self.query_one(TabbedContent).active = "tasks"
        task_log = self.query_one("#task-log", Log)
        task_log.write_line("")
        task_log.write_line(f"> {request.title}")
        task_log.write_line(f"$ {request.command}")

        result = await self.action_manager.run(request, on_line=task_log.write_line)
        if not result["success"]:
            self._show_error(result["message"])
            return result

        if request.success_message:
            self.notify(request.success_message)
        if request.refresh == REFRESH_ALL:
            await self.refresh_tree()
        elif request.refresh == REFRESH_ITEM:
            await self.refresh_tree(request.item)
        return result

    def open_terminal(self, request: ActionRequest) -> None:
        try:
            if self.connector.kde.terminal:
                self.action_manager.launch(request)
                self.notify(f"Started {request.title}")
                return
            with self.suspend():
                self.action_manager.run_foreground(request)
        except SuspendNotSupported:
            self._show_error("This terminal cannot suspend the panel; configure --terminal instead")
        except KdeError as e:
            self._show_error(str(e))

    def workspace_path(self, value: str) -> str:
        """Absolute path of value, relative paths taken from the kde workspace."""
        return os.path.abspath(os.path.join(self.connector.workspace, os.path.expanduser(value)))

    def _require_file(self, value: str) -> Optional[str]:
        if not os.path.isfile(self.workspace_path(value)):
            return f"File not found: {value}"
        return None

    def _selected(self, cls, what: str):
        item = self.selected_item
        if not isinstance(item, cls):
            self.notify(f"Select {what} first", severity="warning")
            return None
        return item

    # Actions

    def action_refresh(self) -> None:
        self._schedule_refresh()

    @work(group="actions")
    async def action_add_env(self) -> None:
        env_name = await self.push_screen_wait(PromptScreen(
            "Name of the environment to create",
            placeholder="e.g. dev, staging, prod",
            validate=validate_env_name
        ))
        if not env_name:
            return
        env_type = await self.push_screen_wait(PickScreen("Environment type", ENV_TYPES))
        if not env_type:
            return
        kubeconfig = None
        if env_type == "k8s":
            kubeconfig = await self.push_screen_wait(PromptScreen(
                "Path of the kubeconfig file",
                placeholder="~/.kube/config",
                validate=self._require_file
            ))
            if not kubeconfig:
                return
            kubeconfig = self.workspace_path(kubeconfig)
        try:
            request = self.action_manager.add_env(env_name, env_type, kubeconfig)
        except ValueError as e:
            self._show_error(f"Cannot create environment: {e}")
            return
        await self.run_request(request)

    @work(group="actions")
    async def action_create_env(self) -> None:
        item = self._selected(EnvironmentItem, "an environment")
        if item:
            await self.run_request(self.action_manager.create_env(item))

    @work(group="actions")
    async def action_stop_env(self) -> None:
        item = self._selected(EnvironmentItem, "an environment")
        if item:
            await self.run_request(self.action_manager.stop_env(item))

    @work(group="actions")
    async def action_create_project(self) -> None:
        item = self._selected(EnvironmentItem, "an environment")
        if not item:
            return
        project_name = await self.push_screen_wait(PromptScreen(
            "Name of the project to create",
            placeholder="e.g. my-project"
        ))
        if not project_name:
            return
        await self.run_request(self.action_manager.create_project(item, project_name))

    @work(group="actions")
    async def action_deploy(self) -> None:
        item = self._selected(ProjectItem, "a project")
        if item:
            await self.run_request(self.action_manager.deploy(item))

    @work(group="actions")
    async def action_undeploy(self) -> None:
        item = self._selected(ProjectItem, "a project")
        if item:
            await self.run_request(self.action_manager.undeploy(item))

    @work(group="actions")
    async def action_redeploy(self) -> None:
        item = self._selected(ProjectItem, "a project")
        if item:
            await self.run_request(self.action_manager.redeploy(item))

    def action_exec(self) -> None:
        # develop env for projects, a shell for pods
        item = self.selected_item
        if isinstance(item, PodItem):
            self.open_terminal(self.action_manager.pod_exec(item))
        elif isinstance(item, ProjectItem):
            self.open_terminal(self.action_manager.exec_develop_env(item))
        else:
            self.notify("Select a project or pod first", severity="warning")

    def action_exec_deploy_env(self) -> None:
        item = self._selected(ProjectItem, "a project")
        if item:
            self.open_terminal(self.action_manager.exec_deploy_env(item))

    def action_telepresence(self) -> None:
        item = self._selected(ProjectItem, "a project")
        if item:
            self.open_terminal(self.action_manager.telepresence_replace(item))

    @work(group="actions")
    async def action_logs(self) -> None:
        item = self._selected(PodItem, "a pod")
        if not item:
            return
        lines = await self.push_screen_wait(PromptScreen(
            "Number of log lines to show",
            placeholder="e.g. 100",
            validate=lambda value: validate_positive_int(value, "Line count")
        ))
        if not lines:
            return
        self.open_terminal(self.action_manager.pod_logs(item, lines))

    @work(group="actions")
    async def action_port_forward(self) -> None:
        item = self._selected(PodItem, "a pod")
        if not item:
            return
        local_port = await self.push_screen_wait(PromptScreen(
            "Local port to forward",
            placeholder="e.g. 8080",
            validate=lambda value: validate_positive_int(value, "Local port")
        ))
        if not local_port:
            return
        target_port = await self.push_screen_wait(PromptScreen(
            "Target port in the pod",
            placeholder="e.g. 8080",
            validate=lambda value: validate_positive_int(value, "Target port")
        ))
        if not target_port:
            return
        self.open_terminal(self.action_manager.pod_port_forward(item, local_port, target_port))

    async def _env_tool(self, tool: str, label: str) -> None:
        env_name = self.action_manager.resolve_env_name(self.selected_item)
        if not env_name:
            try:
                envs = await asyncio.to_thread(self.action_manager.environment_choices)
            except KdeError as e:
                self._show_error(f"Cannot read environment list: {e}")
                return
            env_name = await self.push_screen_wait(
                PickScreen(f"Environment to open {label} for", envs)
            )
        if not env_name:
            return
        self.notify(f"Starting {label}: {env_name}")
        self.open_terminal(self.action_manager.env_tool(env_name, tool))

    @work(group="actions")
    async def action_k9s(self) -> None:
        await self._env_tool("k9s", "K9s")

    @work(group="actions")
    async def action_headlamp(self) -> None:
        await self._env_tool("headlamp", "Headlamp")

    @work(group="actions")
    async def action_expose(self) -> None:
        await self._env_tool("expose", "Port Forward")
