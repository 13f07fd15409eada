#!/usr/bin/env python3
"""
progress_report.py - Show (or reset) a learner's stored progress.

Reads settings from the environment / .env (see stemtutor.config).

Usage:
  python scripts/progress_report.py
  python scripts/progress_report.py --learner alice --json
  python scripts/progress_report.py --reset
"""

import argparse
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from stemtutor.config import Settings, open_classroom

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Report learner progress",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--learner",
        default=None,
        help="Learner ID (default: STEMTUTOR_LEARNER or 'default')"
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding progress.db"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the summary as JSON"
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete all stored progress for the learner"
    )

    args = parser.parse_args()

    settings = Settings.from_env()
    if args.learner:
        settings.learner_id = args.learner
    if args.data_dir:
        settings.data_dir = args.data_dir
    settings.configure_logging()

    classroom = open_classroom(settings)

    if args.reset:
        classroom.store.reset()
        logger.info(f"Progress reset for learner {settings.learner_id}")
        return

    summary = classroom.resolver.progress_summary()
    sync = classroom.store.get_sync_status()
    summary["pending_sync"] = sync.pending_changes
    summary["onboarded"] = classroom.store.is_onboarding_complete()

    if args.json:
        print(json.dumps(summary, indent=2, ensure_ascii=False))
        return

    print(f"Learner: {settings.learner_id}")
    print(f"XP: {summary['xp']}  Streak: {summary['streak']} day(s)  Last active: {summary['last_active_date']}")
    print(f"Lessons completed: {summary['lessons_completed']}  Quizzes taken: {summary['quizzes_taken']}")
    if not summary["subjects"]:
        print("No subjects selected yet.")
    for subject in summary["subjects"]:
        print(f"\n{subject['name']} ({subject['progress']}%)")
        for unit in subject["units"]:
            print(f"  [{unit['status']:>9}] {unit['name']}: {unit['completed']}/{unit['total']}")


if __name__ == "__main__":
    main()
