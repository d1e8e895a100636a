from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Mapping, Optional

from unitmaker.cli.lib.config import Scope
from unitmaker.cli.lib.errors import (
    InstallError,
    PermissionDenied,
    SystemctlError,
    SystemdNotAvailable,
)
from unitmaker.cli.lib.render import write_text


def systemctl_cmd(scope: Scope) -> list[str]:
    cmd = ["systemctl"]
    if scope is Scope.USER:
        cmd.append("--user")
    return cmd


def run(cmd: list[str]) -> None:
    if not shutil.which(cmd[0]):
        raise SystemdNotAvailable(
            f"{cmd[0]} not found; systemd does not appear to be available")
    print("+", shlex.join(cmd))
    try:
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        raise SystemctlError(
            f"'{shlex.join(cmd)}' exited with status {e.returncode}") from e


class Systemctl:
    """
    The few service-manager operations a run needs, bound to one scope.
    """

    def __init__(
        self,
        scope: Scope,
        runner: Optional[Callable[[list[str]], None]] = None,
    ) -> None:
        self.scope = scope
        self.base = systemctl_cmd(scope)
        self.runner = runner or run

    def daemon_reload(self) -> None:
        self.runner(self.base + ["daemon-reload"])

    def start(self, unit: str) -> None:
        self.runner(self.base + ["start", unit])

    def enable_now(self, unit: str) -> None:
        self.runner(self.base + ["enable", "--now", unit])

    def hint(self, *args: str) -> str:
        return shlex.join(self.base + list(args))


def unit_dir(scope: Scope, env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Where unit files get installed.
    - system: /etc/systemd/system
    - user:   $XDG_CONFIG_HOME/systemd/user (~/.config/systemd/user)
    """
    if scope is Scope.SYSTEM:
        return Path("/etc/systemd/system")
    env = os.environ if env is None else env
    base = env.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "systemd" / "user"


def require_root_for_system_units(scope: Scope) -> None:
    if scope is Scope.SYSTEM and os.geteuid() != 0:
        raise PermissionDenied(
            "system units go to /etc/systemd/system and require root. "
            "Re-run with sudo, or use --user for ~/.config/systemd/user.")


def install(path: Path, content: str, scope: Scope) -> None:
    require_root_for_system_units(scope)
    try:
        write_text(path, content)
    except PermissionError as e:
        raise PermissionDenied(
            f"Permission denied writing to {path.parent}. "
            f"Use --user to install to ~/.config/systemd/user, "
            f"or run with sudo for system-wide install. ({e})") from e
    except OSError as e:
        raise InstallError(f"failed to write {path}: {e}") from e
    logging.info("Wrote %s", path)
