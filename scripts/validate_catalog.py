#!/usr/bin/env python3
"""
validate_catalog.py - Check a content catalog before shipping it.

Loads the YAML catalog, validates every model, checks referential
integrity, and reports catalog statistics.

Usage:
  python scripts/validate_catalog.py
  python scripts/validate_catalog.py --catalog data/catalog.yaml --stats-output catalog_stats.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import yaml
from pydantic import ValidationError

from stemtutor.classroom import ContentGraph, CatalogError
from stemtutor.utils import DEFAULT_CATALOG_PATH

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Validate a STEM Tutor content catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=DEFAULT_CATALOG_PATH,
        help="Path to catalog YAML"
    )
    parser.add_argument(
        "--stats-output",
        type=Path,
        default=None,
        help="Write catalog stats JSON to this path"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Report declared unit/lesson counts that differ from the catalog"
    )

    args = parser.parse_args()
    if args.verbose:
        logging.getLogger("stemtutor").setLevel(logging.DEBUG)

    logger.info(f"Loading catalog: {args.catalog}")
    try:
        graph = ContentGraph.from_file(args.catalog)
    except FileNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    except (yaml.YAMLError, ValidationError, CatalogError) as e:
        logger.error(f"Catalog is invalid: {e}")
        sys.exit(1)

    stats = graph.get_stats()
    for key, value in stats.items():
        logger.info(f"  {key}: {value}")

    for subject in graph.get_subjects():
        units = graph.units_for_subject(subject.id)
        lessons = graph.lessons_for_subject(subject.id)
        logger.info(f"  {subject.id}: {len(units)} units, {len(lessons)} lessons")
        if not lessons:
            logger.warning(f"  Subject {subject.id} has no lessons yet")

    if args.stats_output:
        with open(args.stats_output, "w", encoding="utf-8") as f:
            json.dump(stats, f, indent=2)
        logger.info(f"Stats written to {args.stats_output}")

    logger.info("Catalog OK")


if __name__ == "__main__":
    main()
