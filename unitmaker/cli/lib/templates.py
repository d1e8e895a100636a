from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from unitmaker.cli.lib.errors import TemplateNotFound
from unitmaker.cli.lib.render import load_template


# Used when a templates directory carries no default.service of its own.
DEFAULT_SERVICE_TEMPLATE = """\
[Unit]
Description=[[DESCRIPTION]]

[Service]
Type=oneshot
ExecStart=[[COMMAND]]

[Install]
WantedBy=default.target
"""

DEFAULT_TIMER_TEMPLATE = """\
[Unit]
Description=Timer for [[DESCRIPTION]]

[Timer]
[[TIMER_SPEC]]
Unit=[[UNIT_NAME]].service

[Install]
WantedBy=timers.target
"""


@dataclass(frozen=True)
class TemplatePair:
    name: str
    service: str
    timer: Optional[str]


def template_paths(templates_dir: Path, name: str) -> dict[str, Path]:
    return {
        "service": templates_dir / f"{name}.service",
        "timer": templates_dir / f"{name}.timer",
    }


def resolve(templates_dir: Path, name: str) -> TemplatePair:
    """
    Read <name>.service and, if present, <name>.timer. Only the service half
    is mandatory.
    """
    paths = template_paths(templates_dir, name)
    if not paths["service"].is_file():
        if name == "default":
            return TemplatePair(
                name, DEFAULT_SERVICE_TEMPLATE, DEFAULT_TIMER_TEMPLATE)
        raise TemplateNotFound(
            f"no service template '{name}' in {templates_dir} "
            f"(expected {paths['service'].name})")

    timer = None
    if paths["timer"].is_file():
        timer = load_template(paths["timer"])
    return TemplatePair(name, load_template(paths["service"]), timer)


def available_templates(templates_dir: Path) -> list[TemplatePair]:
    names = set()
    if templates_dir.is_dir():
        names = {p.stem for p in templates_dir.glob("*.service") if p.is_file()}
    names.add("default")
    return [resolve(templates_dir, n) for n in sorted(names)]
