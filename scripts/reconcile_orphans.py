#!/usr/bin/env python3
"""
Find listings that never got a QA assessment and repair them.

Meant for cron / scheduled runs against a running backend:
  uvicorn listing_qa.main:app (from backend dir)

Usage:
  python scripts/reconcile_orphans.py
  python scripts/reconcile_orphans.py --dry-run
  python scripts/reconcile_orphans.py --base http://localhost:8001

Exit codes:
  0  no orphans left
  1  orphans remain (always the case for --dry-run when any were found)
  2  backend unreachable or returned an error

Safe to run at any frequency: sellers submitting at the same time are not
affected, an assessment is never created twice.
"""

import argparse
import json
import os
import sys
import urllib.error
import urllib.request

# Default: backend on port 8001 (Docker or local)
BASE_URL = os.environ.get("API_BASE", "http://localhost:8001").rstrip("/")

EXIT_CLEAN = 0
EXIT_ORPHANS_REMAIN = 1
EXIT_BACKEND_ERROR = 2


class BackendError(Exception):
    pass


def call(base: str, method: str, path: str) -> dict:
    req = urllib.request.Request(f"{base}{path}", method=method, headers={"X-Actor": "reconcile-job"})
    try:
        with urllib.request.urlopen(req, timeout=60) as resp:
            return json.loads(resp.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        raise BackendError(f"{method} {path} -> HTTP {e.code}: {e.read().decode('utf-8', 'replace')}") from e
    except urllib.error.URLError as e:
        raise BackendError(f"backend not reachable at {base}: {e.reason}") from e


def print_orphans(orphans: dict, label: str) -> None:
    print(f"{label}: {orphans['count']}")
    for listing_id in orphans["listing_ids"]:
        print(f"  - {listing_id}")


def run(base: str, dry_run: bool) -> int:
    orphans = call(base, "GET", "/admin/orphans")
    print_orphans(orphans, "Orphan listings")
    if not orphans["count"]:
        return EXIT_CLEAN
    if dry_run:
        print("Dry run: nothing repaired.")
        return EXIT_ORPHANS_REMAIN

    report = call(base, "POST", "/admin/reconcile")
    print(
        "Reconciled: checked={checked} created={created} bypassed={bypassed} "
        "already_assessed={already_assessed}".format(**report)
    )

    # listings created while the job ran are picked up next time
    remaining = call(base, "GET", "/admin/orphans")
    if remaining["count"]:
        print_orphans(remaining, "Still orphaned")
        return EXIT_ORPHANS_REMAIN
    return EXIT_CLEAN


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--base", default=BASE_URL, help="Backend base URL")
    parser.add_argument("--dry-run", action="store_true", help="Only list orphan listings")
    args = parser.parse_args(argv)

    try:
        return run(args.base.rstrip("/"), args.dry_run)
    except BackendError as e:
        print(f"reconcile failed: {e}", file=sys.stderr)
        return EXIT_BACKEND_ERROR


if __name__ == "__main__":
    sys.exit(main())
