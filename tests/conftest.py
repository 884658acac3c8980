"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Union

import pytest

from devvm.models import EnvConfig, KnownBugPatch, Repository


class FakeExecutor:
    """Records every delegated command instead of running it."""

    def __init__(
        self,
        cfg: EnvConfig,
        root: Path,
        remote_rc: Union[int, Sequence[int]] = 0,
        vagrant_rc: int = 0,
        call_rc: int = 0,
    ) -> None:
        self.cfg = cfg
        self.root = root
        self.calls: List[tuple] = []
        self._remote_rc = list(remote_rc) if isinstance(remote_rc, (list, tuple)) else None
        self._remote_default = remote_rc if isinstance(remote_rc, int) else 0
        self.vagrant_rc = vagrant_rc
        self.call_rc = call_rc

    def call(self, cmd: List[str]) -> int:
        self.calls.append(("call", list(cmd)))
        if self.call_rc == 0 and cmd[:2] == ["git", "clone"]:
            (self.root / cmd[3]).mkdir()
        return self.call_rc

    def vagrant(self, *args: str) -> int:
        self.calls.append(("vagrant", list(args)))
        return self.vagrant_rc

    def remote(self, command: str, tty: bool = False) -> int:
        self.calls.append(("remote", command))
        if self._remote_rc:
            return self._remote_rc.pop(0)
        return self._remote_default

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.calls]


@pytest.fixture
def env_config() -> EnvConfig:
    """Return an EnvConfig with four repositories and no patches."""
    return EnvConfig(
        provider="virtualbox",
        arch="x86_64",
        remote_dir="/vagrant/platform",
        compose_repository="platform",
        service_host="localhost",
        log_tail=100,
        repositories=(
            Repository("platform", "https://example.com/platform.git"),
            Repository("api", "https://example.com/api.git"),
            Repository("web", "https://example.com/web.git"),
            Repository("worker", "https://example.com/worker.git"),
        ),
        universal_plugins=("vagrant-hostmanager",),
        provider_plugins={"virtualbox": ("vagrant-vbguest",), "parallels": ("vagrant-parallels",)},
    )


@pytest.fixture
def known_bug_patch(tmp_path) -> KnownBugPatch:
    return KnownBugPatch(
        path=tmp_path / "meta.rb",
        faulty_sha256="0" * 64,
        url="https://example.com/meta.rb",
        fixed_sha256="1" * 64,
        description="test patch",
    )


@pytest.fixture
def executor_factory():
    """Factory for dispatch(); the last executor built is kept on ``.last``."""

    class _Factory:
        last: Optional[FakeExecutor] = None

        def __init__(self) -> None:
            self.options = {}

        def __call__(self, cfg, root):
            self.last = FakeExecutor(cfg, root, **self.options)
            return self.last

    return _Factory()


@pytest.fixture
def environment_root(tmp_path) -> Path:
    """A directory holding the marker file."""
    root = tmp_path / "env"
    root.mkdir()
    (root / ".devvm").touch()
    return root


_DEVVM_ENV_VARS = ["VAGRANT_DEFAULT_PROVIDER", "DEVVM_ARCH", "DEVVM_CONFIG", "SERVICE_HOST"]


@pytest.fixture
def clean_env(monkeypatch):
    """Clear every environment variable devvm reads."""
    for key in _DEVVM_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
