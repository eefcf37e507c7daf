"""
Test configuration and fixtures for kde-panel tests.
"""
import pytest

from kde_panel.connection.connector import EnvironmentConnector

KUBECONFIG = """\
apiVersion: v1
kind: Config
clusters:
- cluster:
    server: https://dummy-server:6443
  name: dummy-cluster
contexts:
- context:
    cluster: dummy-cluster
    user: dummy-user
  name: dummy-context
current-context: dummy-context
users:
- name: dummy-user
  user:
    token: dummy-token
"""

@pytest.fixture
def workspace(tmp_path):
    """Workspace directory kde commands run in."""
    return str(tmp_path)

@pytest.fixture
def dummy_kubeconfig(tmp_path):
    """Kubeconfig for k8s environments, stored in the workspace as kubeconfig.yaml."""
    path = tmp_path / "kubeconfig.yaml"
    path.write_text(KUBECONFIG)
    return str(path)

@pytest.fixture
def connector(workspace):
    """EnvironmentConnector that never looks for a real kde binary."""
    connector = EnvironmentConnector(binary="kde", workspace=workspace, shell="/bin/sh")
    connector.connected = True
    return connector
