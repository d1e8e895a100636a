from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from unitmaker.cli.lib.errors import InstallError, PermissionDenied
from unitmaker.cli.lib.materialize import MaterializedUnit

WRITE = "write"
SKIP = "skip"

# per destination file:
#   pending -> (no existing file) -> write
#   pending -> diffed -> confirmed -> write
#                     -> declined  -> skip
PENDING = "pending"
CONFIRMED = "confirmed"
DECLINED = "declined"


@dataclass(frozen=True)
class InstallDecision:
    unit: MaterializedUnit
    action: str  # WRITE or SKIP
    state: str
    diff: Optional[str] = None

    @property
    def write(self) -> bool:
        return self.action == WRITE


def read_existing(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except PermissionError as e:
        raise PermissionDenied(f"cannot read existing {path}: {e}") from e
    except OSError as e:
        raise InstallError(f"cannot read existing {path}: {e}") from e


def unit_diff(old: str, new: str, path: Path) -> str:
    return "".join(difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        fromfile=f"{path} (installed)",
        tofile=f"{path} (new)",
    ))


def console_confirm(prompt: str) -> bool:
    try:
        reply = input(prompt)
    except EOFError:
        return False
    return reply.strip().lower() in ("y", "yes")


def print_diff(unit: MaterializedUnit, diff: str) -> None:
    print(f"Warning: {unit.kind} file already exists at {unit.path}")
    print("Showing diff between existing and new file:")
    print("-" * 40)
    print(diff or "(no differences)", end="" if diff.endswith("\n") else "\n")
    print("-" * 40)


def reconcile(
    unit: MaterializedUnit,
    *,
    read: Callable[[Path], Optional[str]] = read_existing,
    confirm: Callable[[str], bool] = console_confirm,
    show: Callable[[MaterializedUnit, str], None] = print_diff,
) -> InstallDecision:
    """
    Decide whether `unit` may be written to its destination.

    An existing file always goes through diff + confirm, even when its
    content is identical to the new one.
    """
    existing = read(unit.path)
    if existing is None:
        return InstallDecision(unit, WRITE, PENDING)

    diff = unit_diff(existing, unit.content, unit.path)
    show(unit, diff)

    if confirm("Do you want to overwrite the existing file? (y/n) "):
        logging.info("Proceeding with overwrite of %s", unit.path)
        return InstallDecision(unit, WRITE, CONFIRMED, diff)

    logging.info("Skipping overwrite of %s", unit.path)
    return InstallDecision(unit, SKIP, DECLINED, diff)
