"""
Shared fixtures: every test runs with its own HOME and working directory
"""
import os
import sys
import subprocess
from types import SimpleNamespace

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hook_notify.config import DEFAULTS
from hook_notify.events import HookEvent


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """Isolated home/cwd with no notify settings in the environment"""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.delenv("CLAUDE_PROJECT_DIR", raising=False)
    for key in list(DEFAULTS) + [event.config_key for event in HookEvent]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(work)

    return SimpleNamespace(root=tmp_path, home=home, work=work)


@pytest.fixture
def fake_curl(monkeypatch):
    """Replace subprocess.run; responses are (returncode, body[, http_status]) popped per call"""
    calls = []
    responses = []

    def _run(cmd, **kwargs):
        calls.append(cmd)
        response = responses.pop(0) if responses else (0, '{"code": 200, "message": "success"}')
        returncode, body = response[0], response[1]
        status = response[2] if len(response) > 2 else 200
        stdout = body if isinstance(body, bytes) else body.encode("utf-8")
        if not returncode:
            stdout += f"\n{status}".encode("utf-8")
        stderr = b"curl: (7) Failed to connect" if returncode else b""
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)

    monkeypatch.setattr(subprocess, "run", _run)
    return SimpleNamespace(calls=calls, responses=responses)


def write_config(path, lines):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
