#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Aurora Launcher
Command line entry point: collect a student's records and print them as JSON.
"""

import argparse
import sys

from aurora.core import config
from aurora.core.credentials import load_local_credentials, save_local_credentials
from aurora.core.error_handler import setup_global_exception_handler
from aurora.core.errors import AuroraError, LoginError
from aurora.core.logger import setup_logging
from aurora.core.orchestrator import fetch_records
from aurora.core.selection import parse_kinds
from aurora.data.storage import dumps_results, save_results

logger = setup_logging()


def build_parser():
    parser = argparse.ArgumentParser(
        prog='aurora',
        description='Collect student records through the campus VPN gateway'
    )
    parser.add_argument('--id', dest='student_id', help='Student login id')
    parser.add_argument('--password', help='Login password')
    parser.add_argument('--semester', dest='semester_id', help='Registrar semester id')
    parser.add_argument('--kinds', default='all',
                        help='Comma separated record kinds, e.g. gpa,exam,card (default: all)')
    parser.add_argument('--output', help='Write results to this JSON file instead of stdout')
    parser.add_argument('--remember', action='store_true',
                        help='Save the credentials locally for later runs')
    return parser


def resolve_credentials(args):
    """Command line first, then environment, then the local credential store."""
    stored = load_local_credentials() or {}
    student_id = args.student_id or config.API_KEYS['student_id'] or stored.get('student_id', '')
    password = args.password or config.API_KEYS['password'] or stored.get('password', '')
    semester_id = args.semester_id or config.API_KEYS['semester_id'] or stored.get('semester_id', '')
    return student_id, password, semester_id


def main(argv=None):
    setup_global_exception_handler()
    args = build_parser().parse_args(argv)

    try:
        kinds = parse_kinds(args.kinds.split(','))
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    student_id, password, semester_id = resolve_credentials(args)
    if not student_id or not password:
        print("❌ No credentials: pass --id/--password or set AURORA_ID/AURORA_PASSWORD", file=sys.stderr)
        return 1

    try:
        results = fetch_records(student_id, password, semester_id, kinds)
    except LoginError as e:
        logger.error(f"Login failed: {e.subsystem}")
        print(f"❌ {e}", file=sys.stderr)
        return 2
    except AuroraError as e:
        logger.error(f"Collection failed: {e}")
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if args.remember:
        save_local_credentials(student_id, password, semester_id)

    if args.output:
        path = save_results(results, args.output)
        print(f"💾 Records saved to {path}")
    else:
        print(dumps_results(results))
    return 0


if __name__ == "__main__":
    sys.exit(main())
