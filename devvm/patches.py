"""In-place fixes for known-broken files shipped by third-party tools."""

from __future__ import annotations

import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import requests

from devvm.constants import PATCH_DOWNLOAD_TIMEOUT, USER_AGENT
from devvm.exceptions import DelegatedCommandError
from devvm.models import KnownBugPatch
from devvm.utils import log, run, sha256_bytes, sha256_file

Runner = Callable[[List[str]], object]


def _privileged(cmd: List[str]) -> List[str]:
    return ["sudo", *cmd]


class Patcher:
    """Replace a known-faulty file with a verified download.

    ``session`` and ``runner`` are injectable so the network and the
    privileged filesystem commands can be swapped out.
    """

    def __init__(self, session: Optional[requests.Session] = None, runner: Optional[Runner] = None) -> None:
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.runner: Runner = runner or run

    def needs_patch(self, patch: KnownBugPatch) -> bool:
        if not patch.path.is_file():
            return False
        try:
            return sha256_file(patch.path) == patch.faulty_sha256
        except OSError as exc:
            log("DEBUG", f"Cannot read {patch.path}: {exc}")
            return False

    def fetch(self, patch: KnownBugPatch) -> Optional[bytes]:
        try:
            response = self.session.get(patch.url, timeout=PATCH_DOWNLOAD_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as exc:
            log("WARN", f"Could not download fix for {patch.path.name}: {exc}")
            return None
        return response.content

    def apply(self, patch: KnownBugPatch) -> bool:
        """Return True when the faulty file was replaced."""
        if not self.needs_patch(patch):
            return False

        label = patch.description or str(patch.path)
        log("INFO", f"Known bug detected: {label}")
        payload = self.fetch(patch)
        if payload is None:
            return False
        if sha256_bytes(payload) != patch.fixed_sha256:
            log("DEBUG", f"Replacement for {patch.path} failed verification; leaving it as is")
            return False

        with tempfile.NamedTemporaryFile(prefix="devvm-patch-", delete=False) as tmp:
            tmp.write(payload)
            tmp_path = Path(tmp.name)
        staged = patch.path.with_name(patch.path.name + ".new")
        backup = patch.path.with_name(patch.path.name + ".orig")
        log("INFO", f"Replacing {patch.path} (backup: {backup}); sudo may ask for your password")
        try:
            self.runner(_privileged(["cp", "-p", str(patch.path), str(backup)]))
            self.runner(_privileged(["cp", str(tmp_path), str(staged)]))
            self.runner(_privileged(["mv", "-f", str(staged), str(patch.path)]))
        except subprocess.CalledProcessError as exc:
            raise DelegatedCommandError(f"Failed to replace {patch.path}: {exc}", exc.returncode) from exc
        finally:
            tmp_path.unlink(missing_ok=True)
        log("SUCCESS", f"Patched {patch.path}")
        return True


def apply_known_bug_patches(patches: Iterable[KnownBugPatch], patcher: Optional[Patcher] = None) -> int:
    """Apply every configured patch that matches; return how many were applied."""
    patches = list(patches)
    if not patches:
        return 0
    patcher = patcher or Patcher()
    return sum(1 for patch in patches if patcher.apply(patch))
