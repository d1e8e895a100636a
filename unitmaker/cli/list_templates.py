from __future__ import annotations

from pathlib import Path

from unitmaker.cli.lib.render import FREQUENCY, CALENDAR, TIMER_SPEC, has_token
from unitmaker.cli.lib.templates import available_templates
from unitmaker.cli.lib.timer import is_boot_template


def timer_style(timer: str | None) -> str:
    if timer is None:
        return "none (synthesized when a timer is needed)"
    if has_token(timer, TIMER_SPEC):
        return "[[TIMER_SPEC]]"
    if has_token(timer, FREQUENCY) or has_token(timer, CALENDAR):
        return "[[FREQUENCY]]/[[CALENDAR]]"
    return "static"


def list_templates(templates_dir: Path) -> int:
    pairs = available_templates(templates_dir)

    print(f"Templates in {templates_dir}:")
    for pair in pairs:
        print(pair.name)
        print(f"  timer: {timer_style(pair.timer)}")
        if is_boot_template(pair.name):
            print("  boot: creates a timer even without a schedule")
        print()

    return 0
