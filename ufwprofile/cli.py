"""
Command line interface.

    ufwprofile render MyApp --title "My App" --description "Demo" --port 80 --port 81:82/tcp
    ufwprofile apply MyApp --title ... --port 443/tcp [--deny] [--sudo] [--escalate]
    ufwprofile check
"""
import argparse
import logging
import os
import sys
import traceback
from typing import List, Optional, Sequence

from ufwprofile import __version__
from ufwprofile.core.config import BACKTRACE_ENV_VAR, Settings, settings as default_settings
from ufwprofile.core.exceptions import (
    ApplyError,
    EscalationError,
    ProfileValidationError,
    ProfileWriteError,
)
from ufwprofile.core.logging_config import setup_logging
from ufwprofile.services.ufw_service import UfwService, create_profile
from ufwprofile.utils.profile_builder import Profile, parse_port_spec
from ufwprofile.utils.rootcheck import PrivilegeContext, RunningAs, backtrace_value

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ufwprofile",
        description="Generate UFW application profiles and allow or deny them with ufw.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--applications-dir", help="Override APPLICATIONS_DIR")
    parser.add_argument("--ufw", dest="ufw_binary", help="Override UFW_BINARY")
    parser.add_argument(
        "--strict-ranges",
        action="store_true",
        default=None,
        help="Only accept <low>:<high> port ranges",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def add_profile_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("name", help="Application name (whitespace is removed)")
        p.add_argument("--title", default="", help="Profile title")
        p.add_argument("--description", default="", help="Profile description")
        p.add_argument(
            "-p",
            "--port",
            dest="ports",
            action="append",
            default=[],
            metavar="PORT[/PROTO]",
            help="Port or range, optionally with /tcp or /udp. Repeatable.",
        )

    render = sub.add_parser("render", help="Print the profile text")
    add_profile_args(render)

    write = sub.add_parser("write", help="Write the profile to the applications directory")
    add_profile_args(write)

    apply = sub.add_parser("apply", help="Write the profile and allow or deny it with ufw")
    add_profile_args(apply)
    apply.add_argument("--deny", action="store_true", help="Deny instead of allow")
    apply.add_argument("--sudo", action="store_true", help="Always invoke ufw through sudo")
    apply.add_argument(
        "--escalate",
        action="store_true",
        help="Re-run this command through sudo when not running as root",
    )

    sub.add_parser("check", help="Report privilege state and write permission")
    return parser


def _settings_from_args(args: argparse.Namespace, base: Settings) -> Settings:
    update = {}
    if args.applications_dir:
        update["APPLICATIONS_DIR"] = args.applications_dir
    if args.ufw_binary:
        update["UFW_BINARY"] = args.ufw_binary
    if args.strict_ranges:
        update["STRICT_PORT_RANGES"] = True
    return base.model_copy(update=update) if update else base


def _profile_from_args(args: argparse.Namespace, settings: Settings) -> Profile:
    return create_profile(
        args.name,
        args.title,
        args.description,
        [parse_port_spec(spec) for spec in args.ports],
        settings=settings,
    )


def _report_failure(message: str) -> None:
    print(f"error: {message}", file=sys.stderr)
    trace = backtrace_value(os.environ.get(BACKTRACE_ENV_VAR))
    if trace is not None:
        traceback.print_exc(chain=trace == "full")


def _cmd_check(service: UfwService) -> int:
    running_as = service.context.check()
    writable = service.check_write_permission()
    print(f"running as: {running_as.value}")
    print(f"applications dir: {service.applications_dir}")
    print(f"writable: {'yes' if writable else 'no'}")
    return EXIT_OK if writable else EXIT_FAILURE


def _cmd_apply(args: argparse.Namespace, service: UfwService, profile: Profile) -> int:
    if args.escalate:
        context = service.context
        if context.check() is RunningAs.USER:
            # The re-executed child does the work; relay its outcome
            ok = context.with_env(service.settings.ESCALATION_ENV_PREFIXES)
            return EXIT_OK if ok else EXIT_FAILURE
        context.escalate_if_needed()

    if args.sudo:
        output = service.apply_with_sudo(profile, allow=not args.deny)
    else:
        output = service.apply(profile, allow=not args.deny)
    print(output, end="" if output.endswith("\n") else "\n")
    return EXIT_OK


def main(
    argv: Optional[Sequence[str]] = None,
    settings: Optional[Settings] = None,
    context: Optional[PrivilegeContext] = None,
    runner=None,
) -> int:
    """
    Run the command line interface.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])
        settings: Base settings (defaults to the global settings)
        context: Privilege context handed to the service
        runner: subprocess.run compatible callable handed to the service

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    setup_logging("DEBUG" if args.verbose else None, stream=sys.stderr)
    settings = _settings_from_args(args, settings or default_settings)

    service_kwargs = {"settings": settings, "context": context}
    if runner is not None:
        service_kwargs["runner"] = runner
    service = UfwService(**service_kwargs)

    if args.command == "check":
        return _cmd_check(service)

    try:
        profile = _profile_from_args(args, settings)
        if args.command == "render":
            print(profile.serialize(), end="")
            return EXIT_OK
        if args.command == "write":
            path = service.write(profile)
            print(path)
            return EXIT_OK
        return _cmd_apply(args, service, profile)
    except ProfileValidationError as e:
        _report_failure(str(e))
        return EXIT_USAGE
    except (ProfileWriteError, ApplyError, EscalationError) as e:
        _report_failure(str(e))
        return EXIT_FAILURE


def run(argv: Optional[List[str]] = None) -> None:
    """Console script entry point."""
    sys.exit(main(argv))


if __name__ == "__main__":
    run()
