from pathlib import Path

import pytest

from unitmaker.cli.lib.config import (
    BUNDLED_TEMPLATES_DIR,
    DEFAULT_DESCRIPTION,
    Scope,
    build_request,
    config_path,
    load_settings,
    normalize_name,
    parse_settings,
)
from unitmaker.cli.lib.errors import ValidationError
from unitmaker.cli.lib.timer import FREQUENCY, Schedule


@pytest.mark.parametrize("raw, expected", [
    ("Backup Home", "backup_home"),
    ("  Nightly   Sync ", "nightly___sync"),
    ("Backup  Home", "backup__home"),
    ("tab\tsep", "tab_sep"),
    ("already_ok", "already_ok"),
    ("getty@tty1", "getty@tty1"),
])
def test_normalize_name(raw, expected):
    assert normalize_name(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", None, "a/b", ".hidden", "semi;colon"])
def test_normalize_name_rejects(raw):
    with pytest.raises(ValidationError):
        normalize_name(raw)


def test_build_request_defaults():
    req = build_request(name="Backup Home", command="tar -czf /tmp/b.tar.gz /home/user")
    assert req.name == "backup_home"
    assert req.description == DEFAULT_DESCRIPTION
    assert req.scope is Scope.USER
    assert req.schedule is None
    assert req.template_name == "default"
    assert not req.timer_decision().create_timer


def test_build_request_with_frequency():
    req = build_request(name="x", command="true", frequency="1d", enable=True)
    assert req.schedule == Schedule(FREQUENCY, "1d")
    assert req.timer_decision().create_timer


def test_command_required():
    with pytest.raises(ValidationError, match="command"):
        build_request(name="x", command="  ")


def test_multiline_values_rejected():
    with pytest.raises(ValidationError):
        build_request(name="x", command="echo a\necho b")
    with pytest.raises(ValidationError):
        build_request(name="x", command="true", description="two\nlines")
    with pytest.raises(ValidationError):
        build_request(name="x", command="true", calendar="daily\nOnBootSec=1")


def test_both_schedules_rejected():
    with pytest.raises(ValidationError):
        build_request(name="x", command="true", frequency="1d", calendar="daily")


def test_enable_without_timer_rejected():
    with pytest.raises(ValidationError, match="--enable"):
        build_request(name="x", command="true", enable=True)
    with pytest.raises(ValidationError):
        build_request(name="x", command="true", template="boot",
                      enable=True, no_timer=True)


def test_enable_with_boot_template_accepted():
    req = build_request(name="x", command="true", template="boot", enable=True)
    assert req.timer_decision().create_timer


def test_no_timer_conflicts_with_schedule():
    with pytest.raises(ValidationError, match="--no-timer"):
        build_request(name="x", command="true", frequency="1d", no_timer=True)


def test_config_path_prefers_explicit(tmp_path):
    assert config_path({"UNITMAKER_CONFIG": str(tmp_path / "c.toml")}) == tmp_path / "c.toml"
    assert config_path({"XDG_CONFIG_HOME": str(tmp_path)}) == (
        tmp_path / "unitmaker" / "config.toml")


def test_parse_settings_env_beats_file(tmp_path):
    data = {"unitmaker": {
        "templates_dir": "/from/file",
        "template": "boot",
        "scope": "system",
        "edit": True,
        "editor": "vim",
    }}
    s = parse_settings(data=data, env={"UNITMAKER_TEMPLATES_DIR": str(tmp_path)})
    assert s.templates_dir == tmp_path
    assert s.template == "boot"
    assert s.scope is Scope.SYSTEM
    assert s.edit is True
    assert s.editor == "vim"


def test_parse_settings_bad_scope():
    with pytest.raises(ValidationError, match="scope"):
        parse_settings(data={"unitmaker": {"scope": "global"}}, env={})


def test_load_settings_without_file_uses_bundled_templates(isolated_home):
    s = load_settings()
    assert s.templates_dir == BUNDLED_TEMPLATES_DIR
    assert s.log_dir is None


def test_load_settings_reads_toml(isolated_home):
    cfg = isolated_home / ".config" / "unitmaker" / "config.toml"
    cfg.parent.mkdir(parents=True)
    cfg.write_text('[unitmaker]\ndescription = "Managed by ops"\nlog_dir = "~/logs"\n')
    s = load_settings()
    assert s.description == "Managed by ops"
    assert s.log_dir == Path(str(isolated_home)) / "logs"


def test_load_settings_malformed_toml(isolated_home, monkeypatch, tmp_path):
    bad = tmp_path / "bad.toml"
    bad.write_text("[unitmaker\n")
    monkeypatch.setenv("UNITMAKER_CONFIG", str(bad))
    with pytest.raises(ValidationError, match="TOML"):
        load_settings()
