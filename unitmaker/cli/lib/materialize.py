from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from unitmaker.cli.lib.config import UnitRequest
from unitmaker.cli.lib.errors import RenderError
from unitmaker.cli.lib.render import (
    CALENDAR,
    COMMAND,
    DESCRIPTION,
    FREQUENCY,
    TIMER_SPEC,
    UNIT_NAME,
    drop_lines_with,
    escape_value,
    has_token,
    render_unit,
)
from unitmaker.cli.lib.templates import TemplatePair, resolve
from unitmaker.cli.lib import timer as timers


# Timer body for template sets that only ship a service template.
SYNTHESIZED_TIMER = """\
[Unit]
Description=Timer for [[UNIT_NAME]].service
Requires=[[UNIT_NAME]].service

[Timer]
[[TIMER_SPEC]]
# Available activation directives:
#   OnBootSec=5min                      time after boot
#   OnActiveSec=1h                      time after this timer starts
#   OnUnitActiveSec=1d                  time after the service last started
#   OnUnitInactiveSec=1d                time after the service last finished
#   OnCalendar=Mon..Fri *-*-* 08:00:00  calendar expression
#   Persistent=true                     run missed OnCalendar events at boot
#   RandomizedDelaySec=5min             spread activations
Unit=[[UNIT_NAME]].service

[Install]
WantedBy=timers.target
"""


@dataclass(frozen=True)
class MaterializedUnit:
    kind: str  # "service" or "timer"
    path: Path
    content: str

    @property
    def filename(self) -> str:
        return self.path.name


def common_bindings(request: UnitRequest) -> dict[str, str]:
    return {
        DESCRIPTION: escape_value(request.description, field="description"),
        COMMAND: escape_value(request.command, field="command"),
        UNIT_NAME: request.name,
    }


def _activation_bindings(
    template: str,
    activation: timers.Activation,
    *,
    template_name: str,
) -> tuple[str, dict[str, str]]:
    """
    Pick the placeholder that carries the activation for this template's
    authoring style. Returns the (possibly trimmed) template and the extra
    bindings to render it with.
    """
    if activation.kind == timers.TEMPLATE_DEFAULT:
        return template, {}

    if has_token(template, TIMER_SPEC):
        return template, {TIMER_SPEC: timers.directives_for(activation)}

    if activation.kind == timers.FREQUENCY:
        own, other = FREQUENCY, CALENDAR
    else:
        own, other = CALENDAR, FREQUENCY

    if not has_token(template, own):
        raise RenderError(
            f"timer template '{template_name}' has neither [[{TIMER_SPEC}]] "
            f"nor [[{own}]] for a {activation.kind} schedule")

    logging.debug("Using [[%s]] placeholder in %s.timer", own, template_name)
    return drop_lines_with(template, other), {own: activation.value}


def render_timer(
    pair: TemplatePair,
    request: UnitRequest,
    activation: timers.Activation,
) -> str:
    bindings = common_bindings(request)
    what = f"{request.name}.timer"

    if pair.timer is None:
        logging.info(
            "Template '%s' has no timer half; synthesizing a timer", pair.name)
        bindings[TIMER_SPEC] = timers.directives_for(activation)
        return render_unit(SYNTHESIZED_TIMER, bindings, what=what)

    template, extra = _activation_bindings(
        pair.timer, activation, template_name=pair.name)
    bindings.update(extra)
    return render_unit(template, bindings, what=what)


def materialize(
    request: UnitRequest,
    *,
    templates_dir: Path,
    unit_dir: Path,
) -> tuple[MaterializedUnit, Optional[MaterializedUnit]]:
    pair = resolve(templates_dir, request.template_name)

    service_text = render_unit(
        pair.service, common_bindings(request), what=f"{request.name}.service")
    service = MaterializedUnit(
        "service", unit_dir / f"{request.name}.service", service_text)

    decision = request.timer_decision()
    if not decision.create_timer:
        return service, None

    if decision.activation.kind == timers.TEMPLATE_DEFAULT:
        logging.info("Boot template detected: timer will be created automatically")

    timer_text = render_timer(pair, request, decision.activation)
    timer_unit = MaterializedUnit(
        "timer", unit_dir / f"{request.name}.timer", timer_text)
    return service, timer_unit
