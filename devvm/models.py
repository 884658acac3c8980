"""Data models for devvm."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, NamedTuple, Tuple

from devvm.constants import ARCH_ENV, PROVIDER_ENV


class Repository(NamedTuple):
    name: str
    url: str


@dataclass(frozen=True)
class KnownBugPatch:
    path: Path
    faulty_sha256: str
    url: str
    fixed_sha256: str
    description: str = ""


@dataclass(frozen=True)
class EnvConfig:
    provider: str
    arch: str
    remote_dir: str
    compose_repository: str
    service_host: str
    log_tail: int
    repositories: Tuple[Repository, ...]
    universal_plugins: Tuple[str, ...] = ()
    provider_plugins: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    patches: Tuple[KnownBugPatch, ...] = ()

    def plugins(self) -> List[str]:
        """Plugins for the selected provider first, then the universal ones."""
        return list(self.provider_plugins.get(self.provider, ())) + list(self.universal_plugins)

    def delegated_env(self) -> Dict[str, str]:
        """Variables exported to every delegated command."""
        return {
            PROVIDER_ENV: self.provider,
            ARCH_ENV: self.arch,
        }
