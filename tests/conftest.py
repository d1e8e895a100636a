from pathlib import Path

import pytest

from unitmaker.cli.lib.config import Scope, Settings
from unitmaker.cli.lib.systemd import Systemctl

"""
pytest will auto-import these fixtures into other tests
so stuff defined here can be used without an explicit import
"""


ISOLATED_ENV = [
    "UNITMAKER_CONFIG", "UNITMAKER_TEMPLATES_DIR", "UNITMAKER_EDITOR",
    "UNITMAKER_LOG_DIR", "VISUAL", "EDITOR",
]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch) -> Path:
    """Point HOME / XDG_CONFIG_HOME into tmp_path so nothing real is touched."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    for k in ISOLATED_ENV:
        monkeypatch.delenv(k, raising=False)
    return home


@pytest.fixture
def unit_dir(tmp_path) -> Path:
    return tmp_path / "units"


@pytest.fixture
def templates_dir(tmp_path) -> Path:
    d = tmp_path / "templates"
    d.mkdir()
    return d


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def systemctl():
    """A user-scope Systemctl that records command lines instead of running them."""
    calls: list[list[str]] = []
    sc = Systemctl(Scope.USER, runner=calls.append)
    sc.calls = calls
    return sc


@pytest.fixture
def answers():
    """Build a confirm callable that replays scripted y/n answers."""
    def _make(*replies: bool):
        queue = list(replies)
        prompts: list[str] = []

        def confirm(prompt: str) -> bool:
            prompts.append(prompt)
            return queue.pop(0)

        confirm.prompts = prompts
        return confirm

    return _make


@pytest.fixture
def shown():
    """A diff sink that records (unit, diff) instead of printing."""
    seen: list = []

    def show(unit, diff) -> None:
        seen.append((unit, diff))

    show.seen = seen
    return show
