"""Vagrant invocation for devvm: host-side commands and remote shell strings."""

from __future__ import annotations

import os
import shlex
import subprocess
from pathlib import Path
from typing import Dict, List

from devvm.models import EnvConfig
from devvm.utils import log


class VagrantExecutor:
    """Run ``vagrant`` from the environment root and shell strings inside the VM."""

    def __init__(self, cfg: EnvConfig, root: Path) -> None:
        self.cfg = cfg
        self.root = root

    def _env(self) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(self.cfg.delegated_env())
        return env

    def call(self, cmd: List[str]) -> int:
        log("DEBUG", f"Running: {shlex.join(cmd)}")
        return subprocess.call(cmd, cwd=self.root, env=self._env())

    def vagrant(self, *args: str) -> int:
        return self.call(["vagrant", *args])

    def format_remote(self, command: str) -> str:
        return f"cd {shlex.quote(self.cfg.remote_dir)} && {command}"

    def remote(self, command: str, tty: bool = False) -> int:
        """Run one shell string inside the VM, starting in the remote directory."""
        cmd = ["vagrant", "ssh", "-c", self.format_remote(command)]
        if tty:
            cmd += ["--", "-t"]
        return self.call(cmd)
