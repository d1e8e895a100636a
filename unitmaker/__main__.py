from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from unitmaker.cli.lib.config import Scope, Settings, build_request, load_settings
from unitmaker.cli.lib.errors import UnitMakerError

__version__ = "1.1.0"

EXAMPLES = """\
examples:
  python -m unitmaker make --user --name backup_home \\
      --command "tar -czf /tmp/backup.tar.gz /home/user" \\
      --description "Daily home backup" --frequency 1d

  python -m unitmaker make --user --name workday_reminder \\
      --command "notify-send 'Time to work!'" \\
      --description "Workday reminder" --calendar "Mon..Fri *-*-* 08:00:00"
"""


def die(msg: str) -> None:
    print(f"[error] {msg}", file=sys.stderr)
    raise SystemExit(1)


def setup_logging(log_dir: Optional[Path], verbose: bool = False) -> None:
    """
    Console always; plus logs/unitmaker_YYYYmmdd_HHMMSS.log when a log dir
    is configured.
    """
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / f"unitmaker_{datetime.now():%Y%m%d_%H%M%S}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="python -m unitmaker",
        description="Create systemd service and timer units from a command.",
    )
    ap.add_argument("--version", "-V", action="version",
                    version=f"unitmaker {__version__}")
    ap.add_argument("-v", "--verbose", action="store_true",
                    help="Debug logging")
    sub = ap.add_subparsers(dest="cmd", required=True)

    # make
    ap_make = sub.add_parser(
        "make",
        help="Render, review and install a service (and optional timer)",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    scope = ap_make.add_mutually_exclusive_group()
    scope.add_argument("--user", dest="scope", action="store_const",
                       const=Scope.USER,
                       help="Install for the current user (~/.config/systemd/user)")
    scope.add_argument("--system", dest="scope", action="store_const",
                       const=Scope.SYSTEM,
                       help="Install system-wide (/etc/systemd/system, requires root)")
    ap_make.set_defaults(scope=settings.scope)

    ap_make.add_argument("--name", help="Name for the systemd unit")
    ap_make.add_argument("--command", help="Command to run in the service")
    ap_make.add_argument(
        "--description", default=settings.description,
        help="Description of the service (default: %(default)r)")

    schedule = ap_make.add_mutually_exclusive_group()
    schedule.add_argument("--frequency",
                          help='Timer interval, e.g. "1h" or "1d"')
    schedule.add_argument("--calendar",
                          help='Timer calendar spec, e.g. "Mon..Fri *-*-* 08:00:00"')

    ap_make.add_argument(
        "--template", default=settings.template,
        help="Template name from the templates dir (default: %(default)s)")
    ap_make.add_argument("--start", action="store_true",
                         help="Start the service after creation")
    ap_make.add_argument("--enable", action="store_true",
                         help="Enable and start the timer after creation")
    ap_make.add_argument("--no-timer", action="store_true",
                         help="Never create a timer, even for boot templates")
    ap_make.add_argument("--edit", dest="edit", action="store_true",
                         help="Open the generated units in an editor before installing")
    ap_make.add_argument("--no-edit", dest="edit", action="store_false",
                         help="Install without opening an editor")
    ap_make.set_defaults(edit=settings.edit)

    # templates
    sub.add_parser("templates", help="List available templates")

    return ap


def main(argv: Optional[Sequence[str]] = None) -> None:
    load_dotenv()

    # --help/--version must still work with a broken config file
    config_error: Optional[UnitMakerError] = None
    try:
        settings = load_settings()
    except UnitMakerError as e:
        config_error, settings = e, Settings()

    args = build_parser(settings).parse_args(argv)
    if config_error is not None:
        die(f"{config_error.stage}: {config_error}")
    setup_logging(settings.log_dir, verbose=args.verbose)

    try:
        if args.cmd == "templates":
            from unitmaker.cli.list_templates import list_templates

            raise SystemExit(list_templates(settings.templates_dir))

        elif args.cmd == "make":
            from unitmaker.cli.make import make

            request = build_request(
                name=args.name,
                command=args.command,
                description=args.description,
                scope=args.scope,
                frequency=args.frequency,
                calendar=args.calendar,
                template=args.template,
                start=args.start,
                enable=args.enable,
                no_timer=args.no_timer,
            )
            make(request, settings=settings, edit=args.edit)
            return

        else:
            die(f"unknown command: {args.cmd}")

    except UnitMakerError as e:
        die(f"{e.stage}: {e}")
    except KeyboardInterrupt:
        logging.warning("Interrupted by user (Ctrl+C).")
        raise SystemExit(130)


if __name__ == "__main__":
    main()
