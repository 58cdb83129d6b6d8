import os

import pytest

from fakes import RecordingTransport


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    # Keep the developer's environment and config files out of Settings
    for name in list(os.environ):
        if name.startswith("PUSHNOTE_") or name == "GL_REPO":
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PUSHNOTE_CONFIG_DIR", str(tmp_path / "config"))


@pytest.fixture
def transport():
    return RecordingTransport()
