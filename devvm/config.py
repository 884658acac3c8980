"""Configuration loading and environment variable parsing for devvm."""

from __future__ import annotations

import platform
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from devvm.constants import (
    ARCH_ENV,
    ARM64_MACHINES,
    CONFIG_ENV,
    DEFAULT_CONFIG_PATH,
    HEX_SHA256_LEN,
    PARALLELS_SYSTEM,
    PROVIDER_ENV,
    PROVIDER_PARALLELS,
    PROVIDER_VIRTUALBOX,
    SUPPORTED_PROVIDERS,
)
from devvm.exceptions import PreconditionError
from devvm.models import EnvConfig, KnownBugPatch, Repository
from devvm.utils import get_env, log

REQUIRED_REPOSITORY_COUNT = 4


def determine_provider(system: str, machine: str, override: Optional[str] = None) -> str:
    """Pick the Vagrant provider for this host.

    Parallels is selected only on Apple Silicon macOS hosts; every other
    combination gets VirtualBox. A non-empty ``override`` always wins.
    """
    if override is not None and override.strip():
        provider = override.strip().lower()
        if provider not in SUPPORTED_PROVIDERS:
            supported = ", ".join(SUPPORTED_PROVIDERS)
            raise PreconditionError(f"Unsupported {PROVIDER_ENV} '{override}'. Supported: {supported}")
        return provider
    if system == PARALLELS_SYSTEM and machine.lower() in ARM64_MACHINES:
        return PROVIDER_PARALLELS
    return PROVIDER_VIRTUALBOX


def detect_arch() -> str:
    override = (get_env(ARCH_ENV) or "").strip()
    if override:
        return override
    return platform.machine()


def _require(data: Dict[str, Any], key: str, kind: type, source: Path) -> Any:
    if key not in data:
        raise PreconditionError(f"{source}: missing required key '{key}'")
    value = data[key]
    if not isinstance(value, kind):
        raise PreconditionError(f"{source}: '{key}' must be a {kind.__name__}")
    return value


def _parse_patch(entry: Any, index: int, source: Path) -> KnownBugPatch:
    if not isinstance(entry, dict):
        raise PreconditionError(f"{source}: patches[{index}] is not a mapping")
    values = {}
    for key in ("path", "faulty_sha256", "url", "fixed_sha256"):
        value = entry.get(key)
        if not isinstance(value, str) or not value.strip():
            raise PreconditionError(f"{source}: patches[{index}] missing required field '{key}'")
        values[key] = value.strip()
    for key in ("faulty_sha256", "fixed_sha256"):
        digest = values[key].lower()
        if len(digest) != HEX_SHA256_LEN or any(c not in "0123456789abcdef" for c in digest):
            raise PreconditionError(f"{source}: patches[{index}].{key} is not a SHA-256 hex digest")
        values[key] = digest
    return KnownBugPatch(
        path=Path(values["path"]),
        faulty_sha256=values["faulty_sha256"],
        url=values["url"],
        fixed_sha256=values["fixed_sha256"],
        description=str(entry.get("description", "")),
    )


def load_environment_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load and validate the environment layout file.

    Returns a dict of ``EnvConfig`` keyword arguments, minus the values that
    depend on the host (provider, arch, root).
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise PreconditionError(f"Environment config missing: {config_path}")
    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as exc:
        raise PreconditionError(f"{config_path} contains invalid YAML: {exc}")
    if not isinstance(data, dict):
        raise PreconditionError(f"{config_path}: top level must be a mapping")

    remote_dir = _require(data, "remote_dir", str, config_path).rstrip("/") or "/"
    compose_repository = _require(data, "compose_repository", str, config_path)
    service_host = str(data.get("service_host", "localhost"))
    log_tail = data.get("log_tail", 100)
    if not isinstance(log_tail, int) or log_tail < 0:
        raise PreconditionError(f"{config_path}: 'log_tail' must be a non-negative integer")

    raw_repos = _require(data, "repositories", dict, config_path)
    repositories: Tuple[Repository, ...] = tuple(Repository(str(name), str(url)) for name, url in raw_repos.items())
    if len(repositories) != REQUIRED_REPOSITORY_COUNT:
        raise PreconditionError(
            f"{config_path}: expected {REQUIRED_REPOSITORY_COUNT} repositories, found {len(repositories)}"
        )
    if compose_repository not in raw_repos:
        raise PreconditionError(f"{config_path}: compose_repository '{compose_repository}' is not a listed repository")

    plugins = data.get("plugins") or {}
    if not isinstance(plugins, dict):
        raise PreconditionError(f"{config_path}: 'plugins' must be a mapping")
    universal_plugins = tuple(plugins.get("universal") or ())
    provider_plugins = {
        provider: tuple(plugins.get(provider) or ()) for provider in SUPPORTED_PROVIDERS
    }

    raw_patches = data.get("patches") or []
    if not isinstance(raw_patches, list):
        raise PreconditionError(f"{config_path}: 'patches' must be a list")
    patches = tuple(_parse_patch(entry, idx, config_path) for idx, entry in enumerate(raw_patches))

    return {
        "remote_dir": remote_dir,
        "compose_repository": compose_repository,
        "service_host": service_host,
        "log_tail": log_tail,
        "repositories": repositories,
        "universal_plugins": universal_plugins,
        "provider_plugins": provider_plugins,
        "patches": patches,
    }


def parse_env() -> EnvConfig:
    config_override = (get_env(CONFIG_ENV) or "").strip()
    config_path = Path(config_override).expanduser() if config_override else None
    layout = load_environment_config(config_path)

    arch = detect_arch()
    provider = determine_provider(platform.system(), arch, get_env(PROVIDER_ENV))
    log("DEBUG", f"Provider: {provider} | Arch: {arch}")

    return EnvConfig(provider=provider, arch=arch, **layout)
