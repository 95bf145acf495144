#!/usr/bin/env python3
"""
Active Directory lookup command.

Finds users and groups by partial, wildcard-capable identifiers and prints
the results as a table. Search roots for user and group searches are kept
in a local configuration file managed with the 'config' subcommand;
connection settings come from ADLOOKUP_* environment variables (or .env).

Examples:
    ad-lookup user -i jdoe*
    ad-lookup user --first-name Jan* --last-name Do?
    ad-lookup user --group "Research Lab*" --attributes physicalDeliveryOfficeName
    ad-lookup group -u jdoe --recursive
    ad-lookup config set --user-search-root "OU=People,DC=example,DC=com"
    ad-lookup config get User
    ad-lookup config test
"""

import argparse
import functools
import logging
import os
import sys
from typing import List, Optional

import pandas as pd
from dotenv import load_dotenv
from ldap3.core.exceptions import LDAPException

from adlookup import ADLookupConfig, ADLookupFacade, ConfigStore, LDAPAdapter
from adlookup.exceptions import ADLookupError
from adlookup.query.query_builder import DEFAULT_MAX_RESULTS, MAX_MAX_RESULTS, MIN_MAX_RESULTS

USER_COLUMNS = [
    "account_name",
    "full_name",
    "job_title",
    "department",
    "mail",
    "telephone",
    "manager_name",
    "account_expires",
]
GROUP_COLUMNS = ["name", "short_info", "distinguished_name"]


def handle_keyboard_interrupt(exit_message="Lookup interrupted by user"):
    """Decorator to handle KeyboardInterrupt and exit gracefully."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                logging.info(f"\n{exit_message}")
                sys.exit(0)
        return wrapper
    return decorator


def max_results_type(value: str) -> int:
    number = int(value)
    if not MIN_MAX_RESULTS <= number <= MAX_MAX_RESULTS:
        raise argparse.ArgumentTypeError(
            f"must be between {MIN_MAX_RESULTS} and {MAX_MAX_RESULTS}"
        )
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Look up Active Directory users and groups.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log", nargs="?", const="ad_lookup.log",
                        help="Also log to a file. Optionally specify a file path (defaults to ad_lookup.log)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    user_parser = subparsers.add_parser("user", help="Search users")
    user_mode = user_parser.add_mutually_exclusive_group()
    user_mode.add_argument("-i", "--identifier", help="Logon name or employee ID (defaults to you)")
    user_mode.add_argument("--name", dest="full_name", help="Full name, at least 4 characters")
    user_mode.add_argument("--mail", help="Mail address, at least 2 characters")
    user_mode.add_argument("--group", dest="group_name", help="List the (nested) members of matching groups")
    user_parser.add_argument("--first-name", help="First name, at least 2 characters")
    user_parser.add_argument("--last-name", help="Last name, at least 2 characters")
    user_parser.add_argument("--max-results", type=max_results_type, default=DEFAULT_MAX_RESULTS,
                             help=f"Maximum number of results ({MIN_MAX_RESULTS}-{MAX_MAX_RESULTS}, default {DEFAULT_MAX_RESULTS})")
    user_parser.add_argument("--attributes", nargs="+", default=[], help="Additional attributes to show")

    group_parser = subparsers.add_parser("group", help="Search groups")
    group_mode = group_parser.add_mutually_exclusive_group()
    group_mode.add_argument("-u", "--user", dest="identifier", help="Groups of this logon name or employee ID (defaults to you)")
    group_mode.add_argument("--name", help="Group name, at least 2 characters")
    group_mode.add_argument("--mail", help="Group mail address, at least 2 characters")
    group_parser.add_argument("--recursive", action="store_true", help="Follow user memberships up to the top-level groups")
    group_parser.add_argument("--max-results", type=max_results_type, default=DEFAULT_MAX_RESULTS,
                              help=f"Maximum number of results ({MIN_MAX_RESULTS}-{MAX_MAX_RESULTS}, default {DEFAULT_MAX_RESULTS})")
    group_parser.add_argument("--attributes", nargs="+", default=[], help="Additional attributes to show")

    config_parser = subparsers.add_parser("config", help="Show or change search roots")
    config_subparsers = config_parser.add_subparsers(dest="config_command", required=True)
    config_set = config_subparsers.add_parser("set", help="Set search roots")
    config_set.add_argument("--user-search-root", help="Base DN for user searches")
    config_set.add_argument("--group-search-root", help="Base DN for group searches")
    config_get = config_subparsers.add_parser("get", help="Show a search root")
    config_get.add_argument("key", choices=["User", "Group"])
    config_subparsers.add_parser("test", help="Show connection settings and test the directory bind")

    return parser


def configure_logging(verbose: bool, log_path: Optional[str]) -> None:
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def records_to_frame(records, columns: List[str], extra_attributes: List[str]) -> pd.DataFrame:
    rows = [record.to_dict() for record in records]
    frame = pd.DataFrame(rows)
    wanted = [column for column in columns + extra_attributes if column in frame.columns]
    return frame[wanted] if wanted else frame


def print_records(records, columns: List[str], extra_attributes: List[str]) -> None:
    if not records:
        return
    frame = records_to_frame(records, columns, extra_attributes)
    print(frame.to_string(index=False))
    print(f"\n{len(records)} result(s)")


def check_connection() -> int:
    adapter = LDAPAdapter(ADLookupConfig.get_ldap_config())
    for key, value in adapter.get_connection_info().items():
        print(f"{key}: {value}")
    return 0 if adapter.test_connection() else 1


def run(args: argparse.Namespace) -> int:
    if args.command == "config" and args.config_command == "test":
        return check_connection()

    if args.command == "config":
        store = ConfigStore()
        if args.config_command == "set":
            store.set_search_roots(args.user_search_root, args.group_search_root)
        else:
            value = store.get_search_root(args.key)
            if value is None:
                logging.warning(f"No {args.key} search root configured")
            else:
                print(value)
        return 0

    adapter = LDAPAdapter(ADLookupConfig.get_ldap_config())
    facade = ADLookupFacade(adapter)

    if args.command == "user":
        users = facade.get_users(
            identifier=args.identifier,
            full_name=args.full_name,
            first_name=args.first_name,
            last_name=args.last_name,
            mail=args.mail,
            group_name=args.group_name,
            max_results=args.max_results,
            extra_attributes=args.attributes,
        )
        print_records(users, USER_COLUMNS, args.attributes)
    else:
        groups = facade.get_groups(
            identifier=args.identifier,
            name=args.name,
            mail=args.mail,
            recursive=args.recursive,
            max_results=args.max_results,
            extra_attributes=args.attributes,
        )
        print_records(groups, GROUP_COLUMNS, args.attributes)
    return 0


@handle_keyboard_interrupt()
def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the ad-lookup command."""
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.log)

    try:
        sys.exit(run(args))
    except ADLookupError as e:
        logging.error(f"❌ {e}")
        sys.exit(2)
    except (LDAPException, ValueError) as e:
        logging.error(f"❌ Lookup failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
