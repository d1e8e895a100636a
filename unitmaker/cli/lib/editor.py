from __future__ import annotations

import dataclasses
import logging
import os
import shlex
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from unitmaker.cli.lib.errors import EditError, RenderError
from unitmaker.cli.lib.materialize import MaterializedUnit
from unitmaker.cli.lib.render import write_text

# Editors that open several files as tabs with -p.
_TABBED = {"vim", "nvim", "vi"}


def pick_editor(
    configured: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> list[str]:
    """
    configured > $VISUAL > $EDITOR > nvim (if installed) > nano
    """
    env = os.environ if env is None else env
    cmd = configured or env.get("VISUAL") or env.get("EDITOR")
    if not cmd:
        cmd = "nvim" if shutil.which("nvim") else "nano"
        logging.debug("No EDITOR set; falling back to %s", cmd)
    argv = shlex.split(cmd)
    if not argv:
        raise EditError(f"empty editor command: {cmd!r}")
    if Path(argv[0]).name in _TABBED and "-p" not in argv:
        argv.append("-p")
    return argv


def edit_units(
    units: Sequence[MaterializedUnit],
    *,
    editor: list[str],
    runner: Optional[Callable[[list[str]], int]] = None,
) -> list[MaterializedUnit]:
    """
    Open the rendered units in one editor session and return them with the
    edited content. The scratch copies are removed whatever happens.
    """
    if runner is None:
        def runner(cmd: list[str]) -> int:
            return subprocess.run(cmd).returncode

    with tempfile.TemporaryDirectory(prefix="unitmaker-") as tmp:
        scratch = [Path(tmp) / u.filename for u in units]
        for u, p in zip(units, scratch):
            write_text(p, u.content)

        logging.info("Opening %s with %s; save and exit to continue.",
                     ", ".join(u.filename for u in units), editor[0])
        try:
            rc = runner(editor + [str(p) for p in scratch])
        except FileNotFoundError as e:
            raise EditError(f"editor not found: {editor[0]}") from e
        if rc != 0:
            raise EditError(f"{editor[0]} exited with status {rc}")

        edited = []
        for u, p in zip(units, scratch):
            content = p.read_text(encoding="utf-8") if p.exists() else ""
            if not content.strip():
                raise RenderError(f"{u.filename} is empty after editing")
            edited.append(dataclasses.replace(u, content=content))

    return edited
