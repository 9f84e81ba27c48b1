"""Runs the hook tasks configured for lifecycle phases."""

import logging
import subprocess

import click

from ..models.config import ProjectConfig
from ..services.exceptions import DockerServiceError
from .constants import HOOK_PHASES, WEB_ROOT, WEB_SERVICE
from .exceptions import HookExecutionError

logger = logging.getLogger(__name__)


class HookRunner:
    """Executes a phase's tasks in order, stopping at the first failure."""

    def __init__(self, runtime, config: ProjectConfig):
        self.runtime = runtime
        self.config = config

    def run(self, phase: str) -> int:
        """Run every task configured for a phase.

        Exec tasks run in the web container; exec-host tasks run in a
        shell on the host with the project root as working directory.

        Returns:
            Number of tasks run

        Raises:
            HookExecutionError: On the first failing task; later tasks are skipped
        """
        if phase not in HOOK_PHASES:
            raise ValueError(f"unknown hook phase {phase}")

        tasks = self.config.hook_tasks(phase)
        if tasks:
            logger.debug("Running %d %s hook task(s) for %s", len(tasks), phase, self.config.name)
        for index, task in enumerate(tasks):
            if task.on_host:
                self._run_host(phase, index, task.command)
            else:
                self._run_exec(phase, index, task.command)
        return len(tasks)

    def _run_exec(self, phase: str, index: int, command: str) -> None:
        click.echo(f"--- Running exec command: {command} ---")
        try:
            result = self.runtime.exec(self.config.name, WEB_SERVICE, command, workdir=WEB_ROOT)
        except DockerServiceError as e:
            raise HookExecutionError(phase, index, command, str(e)) from e
        if result.stdout:
            click.echo(result.stdout.rstrip("\n"))
        if result.stderr:
            click.echo(result.stderr.rstrip("\n"), err=True)
        if not result.ok:
            raise HookExecutionError(phase, index, command, f"exit code {result.exit_code}")

    def _run_host(self, phase: str, index: int, command: str) -> None:
        click.echo(f"--- Running host command: {command} ---")
        try:
            result = subprocess.run(command, shell=True, cwd=self.config.approot)
        except OSError as e:
            raise HookExecutionError(phase, index, command, str(e)) from e
        if result.returncode != 0:
            raise HookExecutionError(phase, index, command, f"exit code {result.returncode}")
