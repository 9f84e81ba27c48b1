from unittest.mock import patch

from localsite.cli.main import cli
from localsite.models.status import ProjectRef
from localsite.services.exceptions import DockerServiceError


class TestStartCommand:
    """Smoke tests for start command."""

    def test_start_current_directory(self, cli_runner, cli_runtime, make_project, monkeypatch):
        """Test starting the project in the current directory."""
        monkeypatch.chdir(make_project())

        result = cli_runner.invoke(cli, ['start'])

        assert result.exit_code == 0
        assert "Successfully started sample" in result.output
        assert "https://sample.localsite.test" in result.output
        assert "Direct web access: http://127.0.0.1:" in result.output

    def test_start_by_name(self, cli_runner, cli_runtime, make_project, reconciler):
        """Test restarting a stopped project from anywhere by its name."""
        reconciler.start(make_project())
        reconciler.stop(ProjectRef(name="sample"))

        result = cli_runner.invoke(cli, ['start', 'sample'])

        assert result.exit_code == 0
        assert "Successfully started sample" in result.output

    def test_start_without_config(self, cli_runner, cli_runtime, temp_project_dir, monkeypatch):
        """Test that an unconfigured directory is an error."""
        monkeypatch.chdir(temp_project_dir)

        result = cli_runner.invoke(cli, ['start'])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert cli_runtime.containers == {}

    def test_start_docker_not_running(self, cli_runner, make_project, monkeypatch):
        """Test start when Docker is not running."""
        monkeypatch.chdir(make_project())

        with patch('localsite.cli.helpers.DockerService',
                   side_effect=DockerServiceError("Docker daemon is not running")):
            result = cli_runner.invoke(cli, ['start'])

        assert result.exit_code == 1
        assert "Error: Docker daemon is not running" in result.output

    def test_start_hook_failure(self, cli_runner, cli_runtime, make_project, monkeypatch):
        """Test that a failing hook fails the command and keeps the containers."""
        monkeypatch.chdir(make_project(hooks={"post-start": [{"exec-host": "exit 5"}]}))

        result = cli_runner.invoke(cli, ['start'])

        assert result.exit_code == 1
        assert "left in place for diagnosis" in result.output
        assert "exit code 5" in result.output
        assert len(cli_runtime.containers) == 3
