"""Tests for the lifecycle reconciler."""

import shutil

import pytest

from localsite.core.constants import LABEL_SITE_NAME, ROUTER_PROJECT_NAME
from localsite.core.exceptions import (
    ConfigError,
    ConfigMissingError,
    DirMissingError,
    HookExecutionError,
    NameCollisionError,
    ProjectNotFoundError,
)
from localsite.models.status import ProjectRef, SiteState
from localsite.models.topology import ExecResult
from localsite.services.exceptions import ServiceNotRunningError


def project_containers(fake_runtime, name):
    return [c for c in fake_runtime.containers.values() if c['labels'].get(LABEL_SITE_NAME) == name]


class TestStart:
    """Test cases for Reconciler.start."""

    def test_start_end_to_end(self, reconciler, make_project, fake_runtime):
        """Test start, stop and cleanup of a wordpress project."""
        approot = make_project(name="sample", app_type="wordpress")

        status = reconciler.start(approot)
        assert status.name == "sample"
        assert status.type == "wordpress"
        assert status.state == SiteState.RUNNING
        assert status.url == "https://sample.localsite.test"

        reconciler.stop(ProjectRef(name="sample"))
        assert reconciler.describe(ProjectRef(approot=str(approot))).state == SiteState.STOPPED

        reconciler.cleanup(ProjectRef(name="sample"))
        assert [s.name for s in reconciler.list()] == []
        assert fake_runtime.containers == {}

    def test_start_is_idempotent(self, reconciler, make_project, fake_runtime):
        """Test that a second start creates nothing new and reports the same status."""
        approot = make_project()

        first = reconciler.start(approot)
        created = fake_runtime.created
        second = reconciler.start(approot)

        assert fake_runtime.created == created
        assert len(project_containers(fake_runtime, "sample")) == 3
        assert first.to_dict() == second.to_dict()
        assert fake_runtime.restarts == []

    def test_start_missing_directory(self, reconciler, tmp_path, fake_runtime):
        """Test that start fails before touching containers when the directory is gone."""
        with pytest.raises(DirMissingError):
            reconciler.start(tmp_path / "nowhere")
        assert fake_runtime.containers == {}

    def test_start_missing_config(self, reconciler, temp_project_dir, fake_runtime):
        """Test that start fails when the directory has no configuration."""
        with pytest.raises(ConfigMissingError):
            reconciler.start(temp_project_dir)
        assert fake_runtime.containers == {}

    def test_start_rejects_invalid_hostname(self, reconciler, make_project, fake_runtime):
        """Test that an invalid project name fails validation before any container exists."""
        approot = make_project(name="my site", dirname="mysite")

        with pytest.raises(ConfigError) as exc_info:
            reconciler.start(approot)

        assert exc_info.value.field == "name"
        assert fake_runtime.containers == {}

    def test_start_name_collision(self, reconciler, make_project, fake_runtime):
        """Test that a running name at another approot blocks the start."""
        first = make_project(name="shared", dirname="first")
        second = make_project(name="shared", dirname="second")
        reconciler.start(first)

        with pytest.raises(NameCollisionError) as exc_info:
            reconciler.start(second)

        assert str(first) in str(exc_info.value)
        assert all(c['labels']['com.localsite.approot'] == str(first)
                   for c in project_containers(fake_runtime, "shared"))

    def test_start_same_project_is_not_a_collision(self, reconciler, make_project):
        """Test that restarting a project at its own approot succeeds."""
        approot = make_project(name="shared")
        reconciler.start(approot)

        assert reconciler.start(approot).running

    def test_start_after_other_instance_stopped(self, reconciler, make_project):
        """Test that a stopped project with the same name does not block the start."""
        first = make_project(name="shared", dirname="first")
        second = make_project(name="shared", dirname="second")
        reconciler.start(first)
        reconciler.stop(ProjectRef(name="shared"), remove=True)

        assert reconciler.start(second).approot == str(second)

    def test_start_generates_settings(self, reconciler, make_project):
        """Test that wordpress settings files are generated on start."""
        approot = make_project(app_type="wordpress")

        reconciler.start(approot)

        assert (approot / "wp-config.php").exists()
        assert "sample.localsite.test" in (approot / "wp-config-localsite.php").read_text()

    def test_start_router_port_conflict_is_a_warning(self, reconciler, make_project, fake_runtime):
        """Test that a busy router port does not fail the project start."""
        fake_runtime.busy_ports.add(80)
        approot = make_project()

        status = reconciler.start(approot)

        assert status.running
        assert any("port 80" in w for w in status.warnings)
        assert not fake_runtime.find_by_labels({LABEL_SITE_NAME: ROUTER_PROJECT_NAME})


class TestHooks:
    """Test cases for hook execution during start."""

    def test_post_start_hooks_run_in_order(self, reconciler, make_project, fake_runtime):
        """Test that an exec task completes before the next host task begins."""
        approot = make_project(hooks={"post-start": [{"exec": "echo 1"}, {"exec-host": "touch marker"}]})
        seen = []
        original_exec = fake_runtime.exec

        def recording_exec(*args, **kwargs):
            seen.append((approot / "marker").exists())
            return original_exec(*args, **kwargs)

        fake_runtime.exec = recording_exec
        reconciler.start(approot)

        assert seen == [False]
        assert (approot / "marker").exists()

    def test_failing_hook_aborts_phase(self, reconciler, make_project, fake_runtime):
        """Test that a failing task stops later tasks and leaves containers in place."""
        approot = make_project(hooks={"post-start": [{"exec": "false"}, {"exec-host": "touch marker"}]})
        fake_runtime.exec_results["false"] = ExecResult(exit_code=1)

        with pytest.raises(HookExecutionError) as exc_info:
            reconciler.start(approot)

        assert exc_info.value.phase == "post-start"
        assert exc_info.value.index == 0
        assert not (approot / "marker").exists()
        assert len(project_containers(fake_runtime, "sample")) == 3

    def test_pre_start_exec_runs_in_started_container(self, reconciler, make_project, fake_runtime):
        """Test that pre-start tasks run once the containers are up, before post-start."""
        approot = make_project(hooks={
            "pre-start": [{"exec": "echo pre"}],
            "post-start": [{"exec": "echo post"}],
        })

        reconciler.start(approot)

        assert [call for call in fake_runtime.exec_calls if call[2].startswith("echo")] == [
            ("sample", "web", "echo pre"),
            ("sample", "web", "echo post"),
        ]

    def test_failing_pre_start_task_skips_post_start(self, reconciler, make_project, fake_runtime):
        """Test that a failing pre-start host task aborts the start."""
        approot = make_project(hooks={
            "pre-start": [{"exec-host": "exit 3"}],
            "post-start": [{"exec-host": "touch marker"}],
        })

        with pytest.raises(HookExecutionError, match="exit code 3"):
            reconciler.start(approot)
        assert not (approot / "marker").exists()
        assert len(project_containers(fake_runtime, "sample")) == 3


class TestStopAndCleanup:
    """Test cases for stop, cleanup and directory loss."""

    def test_stop_keeps_containers(self, reconciler, make_project, fake_runtime):
        """Test that a plain stop halts containers without removing them."""
        reconciler.start(make_project())

        reconciler.stop(ProjectRef(name="sample"))

        containers = project_containers(fake_runtime, "sample")
        assert len(containers) == 3
        assert all(c['state'] == 'exited' for c in containers)

    def test_stop_remove_data_removes_global_dir(self, reconciler, make_project, fake_runtime, global_dir):
        """Test that remove_data also removes the per-project global directory."""
        reconciler.start(make_project())
        assert global_dir.project_dir("sample").exists()

        reconciler.stop(ProjectRef(name="sample"), remove_data=True)

        assert project_containers(fake_runtime, "sample") == []
        assert not global_dir.project_dir("sample").exists()

    def test_stop_unknown_project(self, reconciler):
        """Test that stopping an unknown name raises ProjectNotFoundError."""
        with pytest.raises(ProjectNotFoundError):
            reconciler.stop(ProjectRef(name="ghost"))

    def test_survives_directory_loss(self, reconciler, make_project, fake_runtime):
        """Test describe, stop and cleanup after the project directory was deleted."""
        approot = make_project()
        reconciler.start(approot)
        shutil.rmtree(approot)

        status = reconciler.describe(ProjectRef(name="sample"))
        assert status.state == SiteState.DIR_MISSING
        assert status.approot == str(approot)

        reconciler.stop(ProjectRef(name="sample"))
        reconciler.cleanup(ProjectRef(name="sample"))
        assert project_containers(fake_runtime, "sample") == []

    @pytest.mark.parametrize("name", ["..", ".", "localsite-router", "a/b", ""])
    def test_cleanup_rejects_unsafe_names(self, reconciler, global_dir, name):
        """Test that cleanup refuses names that do not identify a project directory."""
        outside = global_dir.root.parent / "keep.txt"
        outside.write_text("keep")
        global_dir.router_dir()

        with pytest.raises((ConfigError, ProjectNotFoundError)):
            reconciler.cleanup(ProjectRef(name=name))

        assert outside.read_text() == "keep"
        assert global_dir.config_file.parent.is_dir()
        assert global_dir.router_dir().is_dir()

    def test_stop_remove_data_rejects_unsafe_name(self, reconciler, fake_runtime, global_dir):
        """Test that stop validates the name before looking anything up."""
        with pytest.raises(ConfigError):
            reconciler.stop(ProjectRef(name=".."), remove_data=True)
        assert global_dir.root.is_dir()

    def test_project_named_router_keeps_router_config(self, reconciler, make_project, global_dir, router_config):
        """Test that a project called router has its own data directory."""
        reconciler.start(make_project(name="other"))
        reconciler.start(make_project(name="router"))
        extra = global_dir.router_dir() / "extra.yaml"
        extra.write_text("http: {}\n")

        reconciler.cleanup(ProjectRef(name="router"))

        assert extra.exists()
        assert "other" in router_config()
        assert global_dir.project_dir("other").is_dir()

    def test_last_stop_removes_router(self, reconciler, make_project, fake_runtime):
        """Test that the router goes away with the last running project."""
        reconciler.start(make_project())
        assert fake_runtime.find_by_labels({LABEL_SITE_NAME: ROUTER_PROJECT_NAME})

        reconciler.stop(ProjectRef(name="sample"))

        assert not fake_runtime.find_by_labels({LABEL_SITE_NAME: ROUTER_PROJECT_NAME})


class TestListAndExec:
    """Test cases for listing and commands run in containers."""

    def test_list_with_corrupted_config(self, reconciler, make_project):
        """Test that one unreadable project becomes a degraded entry."""
        roots = [make_project(name=name) for name in ("alpha", "beta", "gamma")]
        for approot in roots:
            reconciler.start(approot)
        (roots[1] / ".localsite" / "config.yaml").write_text("name: [unclosed\n")

        statuses = reconciler.list()

        assert [s.name for s in statuses] == ["alpha", "beta", "gamma"]
        assert [s.degraded for s in statuses] == [False, True, False]
        assert statuses[1].error
        assert statuses[1].approot == str(roots[1])
        assert statuses[0].state == SiteState.RUNNING

    def test_exec_requires_running_service(self, reconciler, make_project):
        """Test that exec fails distinguishably when the service is stopped."""
        reconciler.start(make_project())
        reconciler.stop(ProjectRef(name="sample"))

        with pytest.raises(ServiceNotRunningError):
            reconciler.exec(ProjectRef(name="sample"), "ls")

    def test_exec_runs_in_web(self, reconciler, make_project, fake_runtime):
        """Test that exec targets the web service by default."""
        reconciler.start(make_project())
        fake_runtime.exec_results["ls"] = ExecResult(exit_code=0, stdout="index.php\n")

        result = reconciler.exec(ProjectRef(name="sample"), "ls")

        assert result.stdout == "index.php\n"
        assert fake_runtime.exec_calls[-1] == ("sample", "web", "ls")

    def test_import_db_requires_running_project(self, reconciler, make_project, tmp_path):
        """Test that import-db refuses to run against a stopped project."""
        approot = make_project()
        dump = tmp_path / "dump.sql"
        dump.write_text("CREATE TABLE t (id int);")

        with pytest.raises(ServiceNotRunningError):
            reconciler.import_db(ProjectRef(approot=str(approot)), str(dump))

    def test_import_db_runs_hooks_and_mysql(self, reconciler, make_project, fake_runtime, tmp_path):
        """Test that import-db wraps the mysql import in its hooks."""
        approot = make_project(hooks={"post-import-db": [{"exec": "drush cr"}]})
        reconciler.start(approot)
        dump = tmp_path / "dump.sql"
        dump.write_text("CREATE TABLE t (id int);")

        imported = reconciler.import_db(ProjectRef(approot=str(approot)), str(dump))

        assert imported == ["db.sql"]
        commands = [call[2] for call in fake_runtime.exec_calls]
        assert any("/db/import/db.sql" in c for c in commands)
        assert commands[-1] == "drush cr"
