# main.py
import argparse
import asyncio
import os
import sys
from pathlib import Path

from host.errors import HostError
from provision.flows import FlowKind, HostServices, build_steps
from provision.orchestrator import BatchLog, Failed, Orchestrator, StepLog
from logger import log


def _print_event(event) -> None:
    if isinstance(event, StepLog):
        print(event.text)
    elif isinstance(event, BatchLog):
        print("\n".join(event.lines))
    elif isinstance(event, Failed):
        print(f"ERROR: {event.reason}", file=sys.stderr)


def run_config_only(workdir: Path) -> int:
    """Regenerate the configuration files from the ones already on disk."""
    services = HostServices.for_workdir(workdir)
    try:
        config = services.files.load()
    except HostError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    if config is None:
        print(f"ERROR: no existing configuration found in {workdir}", file=sys.stderr)
        return 1
    log.info("Regenerating configuration in %s", workdir)
    steps = build_steps(FlowKind.CONFIG_ONLY, services)
    report = asyncio.run(Orchestrator(emit=_print_event).run(steps, config))
    return 0 if report.succeeded else 1


def main(argv=None):
    parser = argparse.ArgumentParser(prog="pangolin-install", description="Pangolin installer")
    parser.add_argument(
        "--workdir", type=Path, default=Path.cwd(),
        help="directory holding config/ and docker-compose.yml (default: current directory)",
    )
    parser.add_argument(
        "--config-only", action="store_true",
        help="rewrite configuration files from the existing install and exit",
    )
    args = parser.parse_args(argv)

    if args.config_only:
        sys.exit(run_config_only(args.workdir))

    if os.geteuid() != 0:
        print("ERROR: This installer must be run as root.", file=sys.stderr)
        sys.exit(1)

    from app import PangolinInstaller
    from host.network import port_warnings
    PangolinInstaller(workdir=args.workdir, port_warnings=port_warnings()).run()
    sys.exit(0)


if __name__ == "__main__":
    main()
