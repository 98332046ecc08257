"""Command line entry point for the temple session scheduler.

Signs in once (cached credential, browser only when the portal rejects it),
then lists existing appointments, open endowment sessions, or the public
temple directory.

Run with: temple-schedule appointments
Schedule: temple-schedule schedule --temple logan --days 14
Month:    temple-schedule schedule --temple 5 --month --format html
Debug:    temple-schedule schedule --temple logan --headed
Temples:  temple-schedule temples --format histogram --status operating
Logout:   temple-schedule logout

Exit codes:
  0 = success (text/JSON on stdout, or grid file written)
  1 = error (message on stderr)
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from src.portal.appointments import AppointmentReader
from src.portal.config import PortalConfig, get_config
from src.portal.credential_store import CredentialStore
from src.portal.directory import TempleDirectory, find_temple
from src.portal.errors import PortalError
from src.portal.logging import get_logger, setup_logging
from src.portal.models import FetchRange, TempleStatus
from src.portal.pages.login import SessionAcquirer
from src.portal.render import format_days, render_schedule, render_temples
from src.portal.schedule import ScheduleFetcher
from src.portal.transport import PortalClient

load_dotenv()

log = get_logger(__name__)

DEFAULT_DAYS = 45


def _positive_int(value: str) -> int:
    try:
        days = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a whole number: {value!r}")
    if days < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {days}")
    return days


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        prog="temple-schedule",
        description="Check temple endowment sessions and your existing appointments.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Launch browser in headed mode (visible window) if a login is needed.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("appointments", help="List your existing appointments.")

    schedule = commands.add_parser("schedule", help="List or export endowment sessions.")
    schedule.add_argument(
        "--temple",
        required=True,
        help="Temple org id or part of its name (e.g. 'logan').",
    )
    range_group = schedule.add_mutually_exclusive_group()
    range_group.add_argument(
        "--days",
        type=_positive_int,
        default=DEFAULT_DAYS,
        help=f"Number of days to fetch starting today (default: {DEFAULT_DAYS}).",
    )
    range_group.add_argument(
        "--month",
        action="store_true",
        help="Fetch every remaining day of the current month instead of --days.",
    )
    schedule.add_argument(
        "--format",
        choices=["text", "html", "xlsx"],
        default="text",
        help="text prints to stdout; html/xlsx write a seat grid file.",
    )
    schedule.add_argument(
        "--output",
        type=str,
        default=None,
        help="Grid file path for html/xlsx (default: data/schedule-<temple>).",
    )

    temples = commands.add_parser("temples", help="Show the public temple directory.")
    temples.add_argument(
        "--format",
        choices=["table", "json", "histogram"],
        default="table",
    )
    temples.add_argument(
        "--status",
        choices=[s.value.lower() for s in TempleStatus],
        default=None,
        help="Only temples with this status.",
    )

    commands.add_parser("logout", help="Delete the cached credential.")
    return parser.parse_args(argv)


def _credential_store(config: PortalConfig, client: PortalClient) -> CredentialStore:
    return CredentialStore(config, client, SessionAcquirer(config))


def cmd_appointments(config: PortalConfig, client: PortalClient) -> None:
    credential = _credential_store(config, client).load_or_acquire()
    appointments = AppointmentReader(client, config).fetch(credential)
    print("Existing appointments:")
    for appointment in appointments:
        print(appointment)


def cmd_schedule(
    config: PortalConfig, client: PortalClient, args: argparse.Namespace
) -> None:
    temples = TempleDirectory(client, config.temple_list_url).fetch()
    temple = find_temple(temples, args.temple)
    fetch_range = FetchRange.this_month() if args.month else FetchRange.number_of_days(args.days)

    credential = _credential_store(config, client).load_or_acquire()
    days = ScheduleFetcher(client, config).fetch(credential, fetch_range, temple.temple_org_id)

    if args.format == "text":
        print(f"Sessions at {temple.name}:")
        print(format_days(days))
        return

    slug = temple.temple_name_id or str(temple.temple_org_id)
    output = Path(args.output or f"data/schedule-{slug}")
    written = render_schedule(days, temple, args.format, output)
    print(str(written))


def cmd_temples(
    config: PortalConfig, client: PortalClient, args: argparse.Namespace
) -> None:
    status = TempleStatus(args.status.upper()) if args.status else None
    temples = TempleDirectory(client, config.temple_list_url).fetch(status)
    print(render_temples(temples, args.format))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = get_config()
    if args.headed:
        config = config.model_copy(update={"headless": False})
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    client = PortalClient(config)
    try:
        if args.command == "appointments":
            cmd_appointments(config, client)
        elif args.command == "schedule":
            cmd_schedule(config, client, args)
        elif args.command == "temples":
            cmd_temples(config, client, args)
        elif args.command == "logout":
            _credential_store(config, client).clear()
    except PortalError as e:
        log.error("command_failed", command=args.command, error_type=type(e).__name__)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
