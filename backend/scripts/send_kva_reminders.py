#!/usr/bin/env python
"""Queue KVA reminder notifications for estimates about to expire.

Usage:
    python backend/scripts/send_kva_reminders.py             # queue reminders
    python backend/scripts/send_kva_reminders.py --dry-run   # report only, no DB changes
Meant to run from cron once a day.
"""
from __future__ import annotations
import os, sys, argparse, json

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from repairtrack import create_app  # type: ignore
from repairtrack.services.kva_reminders import run_kva_reminders


def main(argv=None):
    parser = argparse.ArgumentParser(description='Queue KVA reminder notifications')
    parser.add_argument('--dry-run', action='store_true', help='Roll back instead of committing')
    args = parser.parse_args(argv)
    app = create_app()
    with app.app_context():
        run = run_kva_reminders(dry_run=args.dry_run)
    print(json.dumps(run.as_dict(), indent=2))
    return 1 if run.errors else 0


if __name__ == '__main__':
    sys.exit(main())
