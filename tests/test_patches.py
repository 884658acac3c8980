"""Tests for devvm.patches module."""

from __future__ import annotations

import hashlib
import subprocess
from dataclasses import replace
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from devvm.exceptions import DelegatedCommandError
from devvm.patches import Patcher, apply_known_bug_patches

FAULTY = b"# broken driver table\n"
FIXED = b"# fixed driver table\n"


def _sha(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class FakeResponse:
    def __init__(self, content: bytes, status: int = 200) -> None:
        self.content = content
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")


class FakeSession:
    def __init__(self, response=None, error=None) -> None:
        self.headers = {}
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def faulty_patch(known_bug_patch):
    known_bug_patch.path.write_bytes(FAULTY)
    return replace(known_bug_patch, faulty_sha256=_sha(FAULTY), fixed_sha256=_sha(FIXED))


class TestNeedsPatch:
    def test_missing_file(self, known_bug_patch):
        assert Patcher(session=FakeSession()).needs_patch(known_bug_patch) is False

    def test_other_version(self, faulty_patch):
        faulty_patch.path.write_bytes(b"something else")
        assert Patcher(session=FakeSession()).needs_patch(faulty_patch) is False

    def test_faulty_version(self, faulty_patch):
        assert Patcher(session=FakeSession()).needs_patch(faulty_patch) is True


class TestApply:
    def test_not_needed_does_not_download(self, known_bug_patch):
        session = FakeSession(FakeResponse(FIXED))
        runner = MagicMock()
        assert Patcher(session=session, runner=runner).apply(known_bug_patch) is False
        assert session.urls == []
        runner.assert_not_called()

    def test_verified_download_replaces_with_backup(self, faulty_patch):
        session = FakeSession(FakeResponse(FIXED))
        runner = MagicMock()
        assert Patcher(session=session, runner=runner).apply(faulty_patch) is True
        assert session.urls == [faulty_patch.url]

        commands = [call.args[0] for call in runner.call_args_list]
        assert len(commands) == 3
        assert all(cmd[0] == "sudo" for cmd in commands)
        target = str(faulty_patch.path)
        assert commands[0] == ["sudo", "cp", "-p", target, target + ".orig"]
        assert commands[1][:2] == ["sudo", "cp"]
        assert commands[1][3] == target + ".new"
        assert commands[2] == ["sudo", "mv", "-f", target + ".new", target]

    def test_staged_temp_file_is_removed(self, faulty_patch):
        staged = []
        runner = MagicMock(side_effect=lambda cmd: staged.append(cmd))
        Patcher(session=FakeSession(FakeResponse(FIXED)), runner=runner).apply(faulty_patch)
        tmp_source = staged[1][2]
        assert not Path(tmp_source).exists()

    def test_hash_mismatch_is_silent_skip(self, faulty_patch, capsys):
        session = FakeSession(FakeResponse(b"tampered or newer upstream file"))
        runner = MagicMock()
        assert Patcher(session=session, runner=runner).apply(faulty_patch) is False
        runner.assert_not_called()
        assert faulty_patch.path.read_bytes() == FAULTY
        assert not faulty_patch.path.with_name("meta.rb.orig").exists()
        out = capsys.readouterr().out
        assert "[ERROR]" not in out
        assert "[WARN]" not in out

    def test_network_error_warns_and_skips(self, faulty_patch, capsys):
        session = FakeSession(error=requests.ConnectionError("offline"))
        runner = MagicMock()
        assert Patcher(session=session, runner=runner).apply(faulty_patch) is False
        runner.assert_not_called()
        assert "[WARN]" in capsys.readouterr().out

    def test_http_error_skips(self, faulty_patch):
        session = FakeSession(FakeResponse(b"", status=404))
        runner = MagicMock()
        assert Patcher(session=session, runner=runner).apply(faulty_patch) is False
        runner.assert_not_called()

    def test_privileged_failure_raises(self, faulty_patch):
        runner = MagicMock(side_effect=subprocess.CalledProcessError(1, ["sudo"]))
        with pytest.raises(DelegatedCommandError, match="Failed to replace") as exc:
            Patcher(session=FakeSession(FakeResponse(FIXED)), runner=runner).apply(faulty_patch)
        assert exc.value.exit_code == 1


class TestApplyKnownBugPatches:
    def test_no_patches_builds_no_session(self):
        assert apply_known_bug_patches([], patcher=None) == 0

    def test_counts_applied(self, faulty_patch, known_bug_patch):
        patcher = MagicMock()
        patcher.apply.side_effect = [True, False]
        assert apply_known_bug_patches([faulty_patch, known_bug_patch], patcher=patcher) == 1
        assert patcher.apply.call_count == 2

    def test_mismatch_does_not_stop_the_process(self, faulty_patch):
        patcher = Patcher(session=FakeSession(FakeResponse(b"wrong")), runner=MagicMock())
        assert apply_known_bug_patches([faulty_patch], patcher=patcher) == 0
        assert faulty_patch.path.read_bytes() == FAULTY
