#!/usr/bin/env python3
#
# gpoadmx - GPO registry.pol to ADMX import planner
#
# Copyright (C) 2025 BaseALT Ltd.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
"""
gpo-admx-import - Plan the ADMX templates a GPO needs in a configuration

Included plan items are written to stdout as JSON lines for the API
client that appends them to the destination configuration. With
--whatif the full report is printed instead and nothing is handed off.
"""

import argparse
import gettext
import json
import logging
import logging.handlers
import os
import sys

from .config import (
    DEFAULT_LANGUAGE,
    DEFAULT_POLICY_DEFINITIONS_PATH,
    DEFAULT_SYSVOL_PATH,
    GETTEXT_DOMAIN,
    LOCALE_DIR,
    LOGGER_NAME,
    PROBLEMATIC_ADMX,
    ImportOptions,
    get_policy_path,
)
from .errors import GpoAdmxError
from .importer import GpoAdmxImporter

_ = gettext.translation(GETTEXT_DOMAIN, LOCALE_DIR, fallback=True).gettext

logger = logging.getLogger(LOGGER_NAME)

SYSLOG_ADDRESS = '/dev/log'


def setup_logging(verbose=False, use_syslog=True):
    """Log to syslog/journald, or to stderr when /dev/log is unavailable"""
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    # SysLogHandler does not fail on a missing socket, only on emit
    if use_syslog and os.path.exists(SYSLOG_ADDRESS):
        handler = logging.handlers.SysLogHandler(address=SYSLOG_ADDRESS)
        handler.setFormatter(logging.Formatter('gpoadmx[%(process)d]: %(levelname)s: %(message)s'))
    else:
        # stdout carries the JSON hand-off
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

    logger.addHandler(handler)
    return handler


def build_parser():
    parser = argparse.ArgumentParser(
        prog="gpo-admx-import",
        description=_("Match GPO registry.pol settings against ADMX templates "
                      "and plan their import"),
    )
    parser.add_argument("gpo_path", nargs="?",
                        help=_("GPO directory containing Machine/ and User/ registry.pol"))
    parser.add_argument("--sysvol", default=DEFAULT_SYSVOL_PATH,
                        help=_("Sysvol root used with --domain and --guid"))
    parser.add_argument("--domain", help=_("Domain name of the GPO"))
    parser.add_argument("--guid", help=_("GPO GUID"))
    parser.add_argument("--policy-definitions-path", default=DEFAULT_POLICY_DEFINITIONS_PATH,
                        help=_("PolicyDefinitions store with *.admx files"))
    parser.add_argument("--language", default=DEFAULT_LANGUAGE,
                        help=_("ADML language folder"))
    parser.add_argument("--skip-problematic-admx", action="store_true",
                        help=_("Leave known-problematic ADMX files out of the import"))
    parser.add_argument("--skip-list", action="append", default=[],
                        help=_("Extra comma separated ADMX file names to treat as problematic; "
                               "implies --skip-problematic-admx"))
    parser.add_argument("--existing-sequence", type=int, action="append", default=[],
                        help=_("Sequence number already present in the configuration"))
    parser.add_argument("--whatif", action="store_true",
                        help=_("Only print the plan, hand nothing off"))
    parser.add_argument("--workers", type=int, default=1,
                        help=_("Threads used to scan ADMX files"))
    parser.add_argument("--no-syslog", action="store_true",
                        help=_("Log to stderr instead of syslog"))
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def resolve_gpo_path(args):
    if args.gpo_path:
        return args.gpo_path
    if args.domain and args.guid:
        return get_policy_path(args.sysvol, args.domain, args.guid)
    return None


def options_from_args(args):
    skip_list = set(PROBLEMATIC_ADMX)
    for value in args.skip_list:
        skip_list.update(name.strip() for name in value.split(",") if name.strip())
    return ImportOptions(
        policy_definitions_path=args.policy_definitions_path,
        language=args.language,
        skip_problematic=args.skip_problematic_admx or bool(args.skip_list),
        skip_list=frozenset(skip_list),
        what_if=args.whatif,
        max_workers=args.workers,
    )


def emit_item(item):
    print(json.dumps(item.to_dict(), ensure_ascii=False), flush=True)


def print_summary(report):
    print(_("\nImport planning completed:"), file=sys.stderr)
    for label, value in report.counts().items():
        print(f"  - {_(label)}: {value}", file=sys.stderr)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, use_syslog=not args.no_syslog)

    gpo_path = resolve_gpo_path(args)
    if gpo_path is None:
        print(_("Error: give a GPO path or --domain and --guid"), file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    importer = GpoAdmxImporter(options_from_args(args))
    try:
        report = importer.run(gpo_path, args.existing_sequence, sink=emit_item)
    except GpoAdmxError as e:
        print(_("Error: {}").format(e), file=sys.stderr)
        return 1

    if args.whatif:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))

    print_summary(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
