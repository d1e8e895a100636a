import logging

import pytest

import unitmaker.__main__ as cli
from unitmaker.cli.lib.config import Scope, Settings


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def captured_make(monkeypatch):
    """Replace the run orchestration so main() can be driven without side effects."""
    calls = []

    def fake_make(request, *, settings, edit):
        calls.append((request, settings, edit))

    monkeypatch.setattr("unitmaker.cli.make.make", fake_make)
    return calls


def test_make_builds_request(captured_make):
    cli.main(["make", "--name", "Backup Home", "--command", "echo hi",
              "--frequency", "1d", "--enable"])
    (request, settings, edit), = captured_make
    assert request.name == "backup_home"
    assert request.scope is Scope.USER
    assert request.enable
    assert edit is False


def test_system_flag(captured_make):
    cli.main(["make", "--system", "--name", "x", "--command", "true"])
    assert captured_make[0][0].scope is Scope.SYSTEM


def test_validation_error_exits_1(captured_make, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["make", "--name", "x", "--command", "true",
                  "--enable", "--no-timer"])
    assert exc.value.code == 1
    assert "[error] validate:" in capsys.readouterr().err
    assert captured_make == []


def test_missing_name_exits_1(captured_make, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["make", "--command", "true"])
    assert exc.value.code == 1
    assert "--name" in capsys.readouterr().err


def test_conflicting_schedule_is_a_usage_error(captured_make):
    with pytest.raises(SystemExit) as exc:
        cli.main(["make", "--name", "x", "--command", "true",
                  "--frequency", "1d", "--calendar", "daily"])
    assert exc.value.code == 2


def test_config_defaults_feed_the_parser():
    ap = cli.build_parser(Settings(template="boot", scope=Scope.SYSTEM, edit=True))
    args = ap.parse_args(["make", "--name", "x", "--command", "y"])
    assert args.template == "boot"
    assert args.scope is Scope.SYSTEM
    assert args.edit is True
    args = ap.parse_args(["make", "--user", "--no-edit", "--name", "x", "--command", "y"])
    assert args.scope is Scope.USER
    assert args.edit is False


def test_templates_command(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["templates"])
    assert exc.value.code == 0
    out = capsys.readouterr().out
    assert "boot-simple" in out
    assert "[[FREQUENCY]]/[[CALENDAR]]" in out


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert cli.__version__ in capsys.readouterr().out


def test_setup_logging_writes_file(tmp_path):
    cli.setup_logging(tmp_path / "logs", verbose=True)
    assert logging.getLogger().level == logging.DEBUG
    assert len(list((tmp_path / "logs").glob("unitmaker_*.log"))) == 1


@pytest.fixture
def broken_config(monkeypatch, tmp_path):
    bad = tmp_path / "bad.toml"
    bad.write_text("[unitmaker\n")
    monkeypatch.setenv("UNITMAKER_CONFIG", str(bad))
    return bad


@pytest.mark.parametrize("argv", [["--version"], ["--help"], ["make", "--help"]])
def test_help_and_version_ignore_broken_config(broken_config, capsys, argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    assert exc.value.code == 0
    assert "[error]" not in capsys.readouterr().err


def test_broken_config_fails_real_commands(broken_config, captured_make, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["make", "--name", "x", "--command", "true"])
    assert exc.value.code == 1
    assert "[error] validate: failed to parse TOML" in capsys.readouterr().err
    assert captured_make == []
