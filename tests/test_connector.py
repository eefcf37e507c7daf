"""
Test cases for KdeConnector and EnvironmentConnector
"""
import asyncio
import threading
import time
import pytest
from unittest.mock import Mock, patch
from kde_panel.connection.kde import KdeConnector
from kde_panel.connection.output import KdeCommandError, KdeOutputError


def completed(stdout="", stderr="", returncode=0):
    return Mock(stdout=stdout, stderr=stderr, returncode=returncode)


class TestKdeConnector:
    @pytest.fixture(autouse=True)
    def setup(self, workspace):
        self.workspace = workspace
        self.kde = KdeConnector(binary="kde", workspace=workspace, shell="/bin/sh")

    @patch('kde_panel.connection.kde.subprocess.run')
    def test_run_command_in_workspace(self, mock_run):
        """Test kde is prefixed and the command runs in the workspace"""
        mock_run.return_value = completed(stdout="dev\nprod\n")
        result = self.kde.run_command(["ls"])
        assert result["success"]
        assert result["output"] == "dev\nprod"
        assert result["command"] == "kde ls"
        args, kwargs = mock_run.call_args
        assert args[0] == ["kde", "ls"]
        assert kwargs["cwd"] == self.workspace

    @patch('kde_panel.connection.kde.subprocess.run')
    def test_exec_command_returns_stripped_output(self, mock_run):
        """Test exec_command returns trimmed stdout"""
        mock_run.return_value = completed(stdout="  shop\n")
        assert self.kde.exec_command(["kde", "project", "ls"]) == "shop"
        assert mock_run.call_args[0][0] == ["kde", "project", "ls"]

    @patch('kde_panel.connection.kde.subprocess.run')
    def test_exec_command_raises_stderr(self, mock_run):
        """Test stderr is surfaced verbatim on failure"""
        mock_run.return_value = completed(stderr="environment dev not found\n", returncode=2)
        with pytest.raises(KdeCommandError) as excinfo:
            self.kde.exec_command(["use", "dev"])
        assert str(excinfo.value) == "environment dev not found"
        assert excinfo.value.returncode == 2
        assert excinfo.value.command == "kde use dev"

    @patch('kde_panel.connection.kde.subprocess.run')
    def test_exec_command_without_stderr(self, mock_run):
        """Test a generic message is used when stderr is empty"""
        mock_run.return_value = completed(returncode=1)
        with pytest.raises(KdeCommandError) as excinfo:
            self.kde.exec_command(["ls"])
        assert "exit code 1" in str(excinfo.value)

    @patch('kde_panel.connection.kde.subprocess.run')
    def test_missing_binary(self, mock_run):
        """Test a spawn failure becomes a failed result"""
        mock_run.side_effect = FileNotFoundError("No such file or directory: 'kde'")
        result = self.kde.run_command(["ls"])
        assert not result["success"]
        assert "No such file" in result["error"]

    @patch('kde_panel.connection.kde.shutil.which')
    def test_connect(self, mock_which):
        """Test connect checks the binary and workspace"""
        mock_which.return_value = "/usr/local/bin/kde"
        assert self.kde.connect()
        mock_which.return_value = None
        assert not KdeConnector(workspace=self.workspace).connect()
        assert not KdeConnector(workspace="/does/not/exist").connect()

    def test_run_task_streams_output(self):
        """Test a task streams lines and returns its exit code"""
        lines = []
        exit_code = asyncio.run(self.kde.run_task("echo one; echo two", lines.append))
        assert exit_code == 0
        assert lines == ["one", "two"]

    def test_run_task_exit_code(self):
        """Test a failing task reports its exit code"""
        assert asyncio.run(self.kde.run_task("exit 3")) == 3

    def test_terminal_argv(self):
        """Test terminal commands run in a login shell inside the emulator"""
        assert self.kde.terminal_argv("kde k9s") == ["/bin/sh", "-lc", "kde k9s"]
        self.kde.terminal = "gnome-terminal --"
        assert self.kde.terminal_argv("kde k9s") == ["gnome-terminal", "--", "/bin/sh", "-lc", "kde k9s"]

    @patch('kde_panel.connection.kde.subprocess.Popen')
    def test_launch_terminal(self, mock_popen):
        """Test a terminal is spawned detached in the workspace"""
        self.kde.terminal = "xterm -e"
        self.kde.launch_terminal("kde use dev && kde k9s", "KDE: k9s (dev)")
        args, kwargs = mock_popen.call_args
        assert args[0] == ["xterm", "-e", "/bin/sh", "-lc", "kde use dev && kde k9s"]
        assert kwargs["cwd"] == self.workspace
        assert kwargs["start_new_session"]

    def test_launch_terminal_requires_emulator(self):
        """Test launching without a configured emulator fails"""
        with pytest.raises(KdeCommandError):
            self.kde.launch_terminal("kde k9s")

    @patch('kde_panel.connection.kde.subprocess.run')
    def test_run_foreground(self, mock_run):
        """Test foreground commands return the exit code"""
        mock_run.return_value = completed(returncode=130)
        assert self.kde.run_foreground("kde project tail shop web 10") == 130
        assert mock_run.call_args[0][0] == ["/bin/sh", "-lc", "kde project tail shop web 10"]


class TestEnvironmentConnector:
    @pytest.fixture(autouse=True)
    def setup(self, connector):
        self.connector = connector

    def test_list_environments(self):
        """Test kde ls output becomes a list of names"""
        with patch.object(self.connector.kde, 'exec_command', return_value="dev\n\nprod") as mock_exec:
            assert self.connector.list_environments() == ["dev", "prod"]
            mock_exec.assert_called_once_with(["kde", "ls"])

    def test_environment_status(self):
        """Test kde status json output becomes a mapping"""
        output = '[{"environment": "dev", "status": "RUNNING"}]'
        with patch.object(self.connector.kde, 'exec_command', return_value=output) as mock_exec:
            assert self.connector.environment_status() == {"dev": "RUNNING"}
            mock_exec.assert_called_once_with(["kde", "status", "json"])

    def test_environment_status_invalid(self):
        """Test malformed status output raises"""
        with patch.object(self.connector.kde, 'exec_command', return_value="oops"):
            with pytest.raises(KdeOutputError):
                self.connector.environment_status()

    def test_list_projects_switches_environment(self):
        """Test kde use runs before kde project ls"""
        with patch.object(self.connector.kde, 'exec_command', side_effect=["", "shop\ncart"]) as mock_exec:
            assert self.connector.list_projects("dev") == ["shop", "cart"]
            assert [c.args[0] for c in mock_exec.call_args_list] == [
                ["kde", "use", "dev"],
                ["kde", "project", "ls"],
            ]

    def test_list_pods_switches_environment(self):
        """Test kde use runs before kde project pod"""
        with patch.object(self.connector.kde, 'exec_command', side_effect=["", "web-0\nweb-1\n"]) as mock_exec:
            assert self.connector.list_pods("shop", "dev") == ["web-0", "web-1"]
            assert mock_exec.call_args_list[1].args[0] == ["kde", "project", "pod", "shop"]

    def test_use_failure_stops_listing(self):
        """Test a failing kde use is raised without listing projects"""
        error = KdeCommandError("no such environment")
        with patch.object(self.connector.kde, 'exec_command', side_effect=error) as mock_exec:
            with pytest.raises(KdeCommandError):
                self.connector.list_projects("dev")
            assert mock_exec.call_count == 1

    @patch('kde_panel.connection.kde.shutil.which', return_value=None)
    def test_not_connected(self, mock_which):
        """Test commands fail when kde cannot be found"""
        self.connector.connected = False
        with pytest.raises(KdeCommandError):
            self.connector.list_environments()

    def test_concurrent_listings_keep_their_environment(self):
        """Test kde use and the listing are not interleaved across threads"""
        current = {}

        def fake_kde(argv):
            if argv[1] == "use":
                current["env"] = argv[2]
                time.sleep(0.05)
                return ""
            time.sleep(0.05)
            return f"proj-{current['env']}"

        results = {}
        start = threading.Barrier(2)

        def load(env_name):
            start.wait()
            results[env_name] = self.connector.list_projects(env_name)

        with patch.object(self.connector.kde, 'exec_command', side_effect=fake_kde):
            threads = [threading.Thread(target=load, args=(env,)) for env in ("a", "b")]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=5)

        assert results == {"a": ["proj-a"], "b": ["proj-b"]}
