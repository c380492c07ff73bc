"""
Command line entry point.

Usage:
    generate-mirror-map -i hosts.txt [-b 4] [-d postgres] [-o ~/movemirrors.cfg]

Environment Variables:
    MIRRORMAP_BLOCK_SIZE: default block group size (default: 4)
    MIRRORMAP_DATABASE: database to read the catalog from (default: postgres)
    MIRRORMAP_DATABASE_URL: full SQLAlchemy URL, overrides the database name
    MIRRORMAP_OUTPUT: default output file (default: ~/movemirrors.cfg)
    MIRRORMAP_REQUIRED_USER: OS user the tool must run as (default: gpadmin)
"""

import argparse
import getpass
import sys
from typing import List, Optional

from shared.logging_config import setup_logging
from mirrormap.config import (
    DATABASE_URL,
    DEFAULT_BLOCK_SIZE,
    DEFAULT_DATABASE,
    DEFAULT_OUTPUT_PATH,
    LOG_LEVEL,
    REQUIRED_OS_USER,
    SYSTEM_FILESPACE,
)
from mirrormap.database import build_database_url
from mirrormap.errors import MirrorMapError, PreconditionError, RunInterrupted
from mirrormap.service import RunRequest, generate_mirror_map

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="generate-mirror-map",
        description=(
            "Create a gpmovemirrors input file that migrates a cluster from group or "
            "spread mirroring to block mirroring."
        ),
    )
    parser.add_argument("-i", "--input", required=True, dest="host_file",
                        help="File containing host names, listed in grouping order")
    parser.add_argument("-b", "--block-size", type=int, default=DEFAULT_BLOCK_SIZE,
                        help=f"Number of hosts within a block group (default: {DEFAULT_BLOCK_SIZE})")
    parser.add_argument("-d", "--database", default=DEFAULT_DATABASE,
                        help=f"Database to read the catalog from (default: {DEFAULT_DATABASE})")
    parser.add_argument("--database-url", default=DATABASE_URL or None,
                        help="Full SQLAlchemy database URL, overrides --database")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT_PATH,
                        help=f"Output file name (default: {DEFAULT_OUTPUT_PATH})")
    parser.add_argument("--system-filespace", default=SYSTEM_FILESPACE,
                        help=f"Name of the system filespace (default: {SYSTEM_FILESPACE})")
    parser.add_argument("--system-location-only", action="store_true",
                        help="Describe current mirrors by their system filespace location only")
    parser.add_argument("--required-user", default=REQUIRED_OS_USER,
                        help="Refuse to run unless invoked as this OS user; empty disables the check")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Logging level (default: INFO)")
    return parser


def require_os_user(required_user: str) -> None:
    if not required_user:
        return
    current = getpass.getuser()
    if current != required_user:
        raise PreconditionError(f"This script must be run as {required_user} (running as {current}).")


def _report(exc: MirrorMapError) -> None:
    print(f"\nERROR: {exc}", file=sys.stderr)
    if exc.detail:
        print(f"\n{exc.detail}", file=sys.stderr)
    print("\nExiting...\n", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("mirrormap", level=args.log_level, stream=sys.stderr)

    try:
        require_os_user(args.required_user)
        database_url = args.database_url or build_database_url(args.database)
        request = RunRequest(
            host_file=args.host_file,
            database_url=database_url,
            output_path=args.output,
            block_size=args.block_size,
            system_filespace=args.system_filespace,
            system_location_only=args.system_location_only,
        )
        print("Generating gpmovemirrors configuration file, this may take a few moments, please be patient...")
        plan_path = generate_mirror_map(request, handle_signals=True)
    except (KeyboardInterrupt, RunInterrupted):
        print(f"\nERROR: User canceled '{build_parser().prog}'.  Exiting...\n", file=sys.stderr)
        return EXIT_INTERRUPTED
    except MirrorMapError as exc:
        _report(exc)
        return EXIT_FAILURE
    except ValueError as exc:
        print(f"\nERROR: {exc}\n", file=sys.stderr)
        return EXIT_FAILURE

    print(f"Configuration file '{plan_path}' has been created.")
    print("Please check the file before proceeding with gpmovemirrors.")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
