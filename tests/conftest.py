import itertools
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from localsite.core.app_types import AppTypeRegistry
from localsite.core.constants import GLOBAL_DIR_ENV, LABEL_CONFIG_HASH
from localsite.core.reconciler import Reconciler
from localsite.core.router import RouterManager
from localsite.core.topology import project_labels
from localsite.models.config import HookTask, ProjectConfig
from localsite.models.topology import ExecResult, RuntimeContainerState
from localsite.services.exceptions import ContainerNotFoundError, ServiceNotRunningError
from localsite.utils.config_manager import ConfigManager
from localsite.utils.global_dir import GlobalDir


class FakeRuntime:
    """In-memory runtime adapter that behaves like DockerService."""

    def __init__(self):
        self.containers = {}
        self.exec_calls = []
        self.exec_results = {}
        self.restarts = []
        self.waited = []
        self.busy_ports = set()
        self.log_data = [b"log line\n"]
        self.created = 0
        self._ports = itertools.count(32768)

    @staticmethod
    def _matches(labels, wanted):
        return all(labels.get(key) == value for key, value in wanted.items())

    def find_by_labels(self, labels):
        return [
            RuntimeContainerState(
                id=c['id'],
                name=name,
                labels=dict(c['labels']),
                state=c['state'],
                ports=tuple(sorted(c['ports'].items())),
            )
            for name, c in sorted(self.containers.items())
            if self._matches(c['labels'], labels)
        ]

    def start(self, descriptor):
        for spec in descriptor.services:
            existing = self.containers.get(spec.container_name)
            if existing and existing['labels'].get(LABEL_CONFIG_HASH) == spec.labels.get(LABEL_CONFIG_HASH):
                existing['state'] = 'running'
                continue
            self.created += 1
            ports = {port: host or next(self._ports) for port, host in spec.ports.items()}
            self.containers[spec.container_name] = {
                'id': f"container{self.created}",
                'labels': dict(spec.labels),
                'state': 'running',
                'ports': ports,
            }

    def _project(self, site_name):
        return [name for name, c in self.containers.items()
                if self._matches(c['labels'], project_labels(site_name))]

    def halt(self, site_name):
        stopped = 0
        for name in self._project(site_name):
            if self.containers[name]['state'] == 'running':
                self.containers[name]['state'] = 'exited'
                stopped += 1
        return stopped

    def stop(self, site_name, remove_data=False):
        names = self._project(site_name)
        for name in names:
            del self.containers[name]
        return len(names)

    def exec(self, site_name, service, command, interactive=False, workdir=None):
        self.exec_calls.append((site_name, service, command))
        states = self.find_by_labels(project_labels(site_name, service))
        if not states or not states[0].running:
            raise ServiceNotRunningError(f"the {service} service is not running", project=site_name)
        return self.exec_results.get(command, ExecResult(exit_code=0))

    def logs(self, site_name, service, follow=False, tail="all"):
        if not self.find_by_labels(project_labels(site_name, service)):
            raise ContainerNotFoundError(f"no {service} container exists", project=site_name)
        return iter(self.log_data)

    def restart(self, site_name, service):
        self.restarts.append((site_name, service))

    def wait_for_healthy(self, site_name, timeout):
        self.waited.append(site_name)

    def port_in_use(self, port):
        return port in self.busy_ports


@pytest.fixture(autouse=True)
def isolated_global_dir(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.localsite."""
    home = tmp_path / "global"
    monkeypatch.setenv(GLOBAL_DIR_ENV, str(home))
    return home


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def fake_runtime():
    return FakeRuntime()


@pytest.fixture
def global_dir(isolated_global_dir):
    return GlobalDir(isolated_global_dir)


@pytest.fixture
def registry():
    return AppTypeRegistry.default()


@pytest.fixture
def config_manager(registry, global_dir):
    return ConfigManager(registry, global_dir)


@pytest.fixture
def router(fake_runtime, global_dir):
    return RouterManager(fake_runtime, global_dir)


@pytest.fixture
def reconciler(registry, fake_runtime, router, config_manager):
    return Reconciler(registry, fake_runtime, router, config_manager)


@pytest.fixture
def make_project(tmp_path, config_manager):
    """Factory that writes a project directory with a saved configuration."""

    def _make(name="sample", app_type="wordpress", docroot="", hooks=None, dirname=None):
        approot = tmp_path / "projects" / (dirname or name)
        (approot / docroot).mkdir(parents=True, exist_ok=True)
        config = ProjectConfig(
            name=name,
            type=app_type,
            docroot=docroot,
            hooks={phase: [HookTask(**task) for task in tasks] for phase, tasks in (hooks or {}).items()},
            approot=str(approot),
        )
        config_manager.save(config)
        return approot

    return _make


@pytest.fixture
def temp_project_dir(tmp_path):
    """Creates a temporary project directory without configuration."""
    project_path = tmp_path / "unconfigured"
    project_path.mkdir()
    return project_path


@pytest.fixture
def router_config(global_dir):
    """Returns a reader for the applied router configuration."""

    def _read():
        path = global_dir.router_dir() / "dynamic.yaml"
        return path.read_text() if path.exists() else ""

    return _read


@pytest.fixture
def cli_runtime(fake_runtime):
    """Makes every CLI command run against the in-memory runtime."""
    with patch('localsite.cli.helpers.DockerService', return_value=fake_runtime):
        yield fake_runtime
