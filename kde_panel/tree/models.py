"""
Display records for the environment tree.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

RUNNING = "RUNNING"
UNREADY = "UNREADY"
ERROR = "error"

# status -> (marker, rich style)
STATUS_MARKERS = {
    RUNNING: ("●", "green"),
    UNREADY: ("○", "dim"),
    ERROR: ("●", "red"),
}


def status_marker(status: Optional[str]) -> Optional[Tuple[str, str]]:
    """Marker and style for an environment status, None for unknown statuses."""
    return STATUS_MARKERS.get(status)


@dataclass(frozen=True)
class EnvironmentItem:
    name: str
    status: str = UNREADY

    context_value = "environment"
    collapsible = True

    @property
    def env_name(self) -> str:
        return self.name

    @property
    def label(self) -> str:
        return self.name

    @property
    def key(self) -> Tuple[str, ...]:
        return (self.context_value, self.name)


@dataclass(frozen=True)
class ProjectItem:
    env_name: str
    name: str

    context_value = "project"
    collapsible = True

    @property
    def project_name(self) -> str:
        return self.name

    @property
    def label(self) -> str:
        return self.name

    @property
    def key(self) -> Tuple[str, ...]:
        return (self.context_value, self.env_name, self.name)


@dataclass(frozen=True)
class PodItem:
    env_name: str
    project_name: str
    name: str

    context_value = "pod"
    collapsible = False

    @property
    def pod_name(self) -> str:
        return self.name

    @property
    def label(self) -> str:
        return self.name

    @property
    def key(self) -> Tuple[str, ...]:
        return (self.context_value, self.env_name, self.project_name, self.name)
