from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional
try:
    import tomllib  # py3.11+
except ModuleNotFoundError:  # py3.10 and earlier
    import tomli as tomllib

from unitmaker.cli.lib.errors import ValidationError
from unitmaker.cli.lib.render import escape_value
from unitmaker.cli.lib.timer import (
    Schedule,
    TimerDecision,
    derive_timer,
    schedule_from_args,
)


DEFAULT_TEMPLATE = "default"
DEFAULT_DESCRIPTION = "Systemd service created by unitmaker"
BUNDLED_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "systemd"

_UNIT_NAME_RE = re.compile(r"^[A-Za-z0-9:_.@\\-]+$")


class Scope(str, Enum):
    USER = "user"
    SYSTEM = "system"


@dataclass(frozen=True)
class Settings:
    templates_dir: Path = BUNDLED_TEMPLATES_DIR
    template: str = DEFAULT_TEMPLATE
    description: str = DEFAULT_DESCRIPTION
    scope: Scope = Scope.USER
    editor: Optional[str] = None
    edit: bool = False
    log_dir: Optional[Path] = None


@dataclass(frozen=True)
class UnitRequest:
    name: str
    command: str
    description: str
    scope: Scope
    schedule: Optional[Schedule]
    template_name: str = DEFAULT_TEMPLATE
    start: bool = False
    enable: bool = False
    no_timer: bool = False

    def timer_decision(self) -> TimerDecision:
        return derive_timer(
            self.schedule, self.template_name, suppress=self.no_timer)


def load_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text())
    except Exception as e:
        raise ValidationError(f"failed to parse TOML at {path}: {e}") from e


def config_path(env: Mapping[str, str]) -> Path:
    explicit = env.get("UNITMAKER_CONFIG")
    if explicit:
        return Path(explicit).expanduser()
    base = env.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "unitmaker" / "config.toml"


def parse_settings(
    *,
    data: dict[str, Any],
    env: Mapping[str, str],
) -> Settings:
    """
    Merge the [unitmaker] table of the config file with UNITMAKER_* env vars.
    Env wins over the file; CLI flags are applied later by the caller.
    """
    cfg = data.get("unitmaker", {})
    if not isinstance(cfg, dict):
        raise ValidationError("[unitmaker] in config must be a table")

    templates_dir = env.get("UNITMAKER_TEMPLATES_DIR") or cfg.get("templates_dir")
    log_dir = env.get("UNITMAKER_LOG_DIR") or cfg.get("log_dir")
    editor = env.get("UNITMAKER_EDITOR") or cfg.get("editor")

    scope = cfg.get("scope", Scope.USER.value)
    try:
        scope = Scope(scope)
    except ValueError:
        raise ValidationError(
            f"unknown scope '{scope}' in config (expected user or system)")

    return Settings(
        templates_dir=Path(templates_dir).expanduser() if templates_dir
        else BUNDLED_TEMPLATES_DIR,
        template=cfg.get("template", DEFAULT_TEMPLATE),
        description=cfg.get("description", DEFAULT_DESCRIPTION),
        scope=scope,
        editor=editor or None,
        edit=bool(cfg.get("edit", False)),
        log_dir=Path(log_dir).expanduser() if log_dir else None,
    )


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    path = config_path(env)
    data = load_toml(path) if path.exists() else {}
    return parse_settings(data=data, env=env)


def normalize_name(name: str) -> str:
    """
    "Backup Home" -> "backup_home"; each inner whitespace character becomes
    one underscore. Must end up a valid unit basename.
    """
    norm = re.sub(r"\s", "_", (name or "").strip()).lower()
    if not norm:
        raise ValidationError("unit name is required (--name)")
    if "/" in norm:
        raise ValidationError(f"unit name must not contain '/': {name!r}")
    if norm.startswith("."):
        raise ValidationError(f"unit name must not start with '.': {name!r}")
    if not _UNIT_NAME_RE.match(norm):
        raise ValidationError(f"invalid characters in unit name: {name!r}")
    return norm


def build_request(
    *,
    name: str,
    command: str,
    description: Optional[str] = None,
    scope: Scope = Scope.USER,
    frequency: Optional[str] = None,
    calendar: Optional[str] = None,
    template: str = DEFAULT_TEMPLATE,
    start: bool = False,
    enable: bool = False,
    no_timer: bool = False,
) -> UnitRequest:
    """
    Validate raw inputs into an immutable UnitRequest. Nothing on disk is
    touched here, so every ValidationError aborts before any write.
    """
    unit_name = normalize_name(name)

    if not command or not command.strip():
        raise ValidationError("command is required (--command)")
    command = escape_value(command, field="command")

    if description is None:
        description = DEFAULT_DESCRIPTION
    description = escape_value(description, field="description")

    template = (template or DEFAULT_TEMPLATE).strip()
    if not template or "/" in template:
        raise ValidationError(f"invalid template name: {template!r}")

    schedule = schedule_from_args(frequency, calendar)
    if schedule is not None:
        escape_value(schedule.value, field=schedule.kind)
        if no_timer:
            raise ValidationError(
                f"--no-timer conflicts with --{schedule.kind}")

    req = UnitRequest(
        name=unit_name,
        command=command,
        description=description,
        scope=Scope(scope),
        schedule=schedule,
        template_name=template,
        start=start,
        enable=enable,
        no_timer=no_timer,
    )

    if enable and not req.timer_decision().create_timer:
        raise ValidationError(
            "--enable needs a timer; give --frequency/--calendar or a boot "
            "template and drop --no-timer")

    return req
