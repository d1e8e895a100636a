from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from unitmaker.cli.lib.config import Settings, UnitRequest
from unitmaker.cli.lib.editor import edit_units, pick_editor
from unitmaker.cli.lib.materialize import MaterializedUnit, materialize
from unitmaker.cli.lib.reconcile import (
    InstallDecision,
    console_confirm,
    print_diff,
    reconcile,
)
from unitmaker.cli.lib import systemd
from unitmaker.cli.lib.timer import describe


@dataclass
class MakeResult:
    service: MaterializedUnit
    timer: Optional[MaterializedUnit]
    decisions: list[InstallDecision] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)
    reloaded: bool = False


def log_summary(request: UnitRequest, target: Path) -> None:
    logging.info("=== Configuration Summary ===")
    logging.info("Installation mode: %s", request.scope.value)
    logging.info("Unit name: %s", request.name)
    logging.info("Command: %s", request.command)
    logging.info("Description: %s", request.description)
    logging.info("Timer: %s", describe(request.timer_decision()))
    logging.info("Template: %s", request.template_name)
    logging.info("Start after creation: %s", "yes" if request.start else "no")
    logging.info("Enable after creation: %s", "yes" if request.enable else "no")
    logging.info("Units will be installed to %s", target)


def make(
    request: UnitRequest,
    *,
    settings: Settings,
    unit_dir: Optional[Path] = None,
    systemctl: Optional[systemd.Systemctl] = None,
    confirm: Callable[[str], bool] = console_confirm,
    show: Callable[[MaterializedUnit, str], None] = print_diff,
    edit: bool = False,
    editor_runner: Optional[Callable[[list[str]], int]] = None,
) -> MakeResult:
    """
    Render the units for `request`, optionally let the user edit them, then
    write every unit the reconciler allows, reload once and start/enable.
    """
    target = unit_dir or systemd.unit_dir(request.scope)
    log_summary(request, target)

    service, timer = materialize(
        request, templates_dir=settings.templates_dir, unit_dir=target)
    units = [service] if timer is None else [service, timer]

    if edit:
        units = edit_units(
            units,
            editor=pick_editor(settings.editor),
            runner=editor_runner,
        )
        service = units[0]
        timer = units[1] if len(units) > 1 else None

    result = MakeResult(service=service, timer=timer)

    for unit in units:
        decision = reconcile(unit, confirm=confirm, show=show)
        result.decisions.append(decision)
        if not decision.write:
            print(f"[skip] kept existing {unit.path}")
            continue
        systemd.install(unit.path, unit.content, request.scope)
        result.written.append(unit.path)
        print(f"[ok] wrote {unit.path}")

    if systemctl is None:
        systemctl = systemd.Systemctl(request.scope)

    if result.written:
        systemctl.daemon_reload()
        result.reloaded = True
    else:
        logging.info("No unit files written; skipping daemon-reload")

    service_unit = f"{request.name}.service"
    timer_unit = f"{request.name}.timer"

    if request.start:
        logging.info("Starting service: %s", service_unit)
        systemctl.start(service_unit)

    print("Systemd unit created successfully:")
    print(f"  Service: {service.path}")
    if timer is not None:
        print(f"  Timer: {timer.path}")

    if timer is not None and request.enable:
        logging.info("Enabling and starting timer: %s", timer_unit)
        systemctl.enable_now(timer_unit)
        print("Timer enabled and started. You can check its status with:")
        print(f"  {systemctl.hint('status', timer_unit)}")
    elif timer is not None:
        print("Timer created but not enabled. To enable and start the timer, run:")
        print(f"  {systemctl.hint('enable', '--now', timer_unit)}")

    print("[done] unit files installed")
    return result
