from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from unitmaker.cli.lib.errors import ValidationError

FREQUENCY = "frequency"
CALENDAR = "calendar"
TEMPLATE_DEFAULT = "template-default"

# Injected only into synthesized timers of boot templates.
BOOT_DELAY = "5min"
BOOT_INTERVAL = "1d"


@dataclass(frozen=True)
class Schedule:
    kind: str  # FREQUENCY or CALENDAR
    value: str


@dataclass(frozen=True)
class Activation:
    kind: str  # FREQUENCY, CALENDAR or TEMPLATE_DEFAULT
    value: Optional[str] = None


@dataclass(frozen=True)
class TimerDecision:
    create_timer: bool
    activation: Optional[Activation] = None


def schedule_from_args(
    frequency: Optional[str],
    calendar: Optional[str],
) -> Optional[Schedule]:
    """
    Fold the two mutually exclusive schedule flags into one Schedule.
    """
    if frequency is not None and calendar is not None:
        raise ValidationError(
            "use either a frequency or a calendar schedule, not both")
    if frequency is not None:
        if not frequency.strip():
            raise ValidationError("frequency must not be empty")
        return Schedule(FREQUENCY, frequency.strip())
    if calendar is not None:
        if not calendar.strip():
            raise ValidationError("calendar must not be empty")
        return Schedule(CALENDAR, calendar.strip())
    return None


def is_boot_template(template_name: str) -> bool:
    return "boot" in template_name


def derive_timer(
    schedule: Optional[Schedule],
    template_name: str,
    *,
    suppress: bool = False,
) -> TimerDecision:
    """
    First match wins:
      - timer suppressed            -> no timer
      - explicit schedule           -> timer with that activation
      - template name has "boot"    -> timer, template decides activation
      - otherwise                   -> no timer
    """
    if suppress:
        return TimerDecision(create_timer=False)
    if schedule is not None:
        return TimerDecision(True, Activation(schedule.kind, schedule.value))
    if is_boot_template(template_name):
        return TimerDecision(True, Activation(TEMPLATE_DEFAULT))
    return TimerDecision(create_timer=False)


def directives_for(activation: Activation) -> str:
    """
    [Timer] lines for an activation, as substituted for [[TIMER_SPEC]].
    """
    if activation.kind == FREQUENCY:
        return (f"OnActiveSec={activation.value}\n"
                f"OnUnitActiveSec={activation.value}")
    if activation.kind == CALENDAR:
        return f"OnCalendar={activation.value}"
    if activation.kind == TEMPLATE_DEFAULT:
        return (f"OnBootSec={BOOT_DELAY}\n"
                f"OnUnitActiveSec={BOOT_INTERVAL}")
    raise ValueError(f"unknown activation kind: {activation.kind}")


def describe(decision: TimerDecision) -> str:
    if not decision.create_timer:
        return "not creating timer"
    a = decision.activation
    if a.kind == FREQUENCY:
        return f"every {a.value}"
    if a.kind == CALENDAR:
        return f"on calendar '{a.value}'"
    return "boot template default"
