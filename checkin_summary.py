"""checkin_summary.py

Print an insights report for an exported list of check-ins and,
optionally, write insights.json and word_cloud.csv next to it.

Usage: python checkin_summary.py checkins.json --locale pl --output checkin_analytics
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from analytics import (
    build_check_in_insights,
    build_word_cloud,
    print_insights_report,
    save_insights_files,
)
from checkin_store import load_records

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point; exits with status 1 if the export cannot be read."""
    parser = argparse.ArgumentParser(description="Summarize wellbeing check-ins")
    parser.add_argument("json_file", nargs="?", default="checkins.json",
                        help="Path to a JSON array of check-ins (default: checkins.json)")
    parser.add_argument("--locale", "-l", default="en",
                        help="Locale for stopwords and day labels (default: en)")
    parser.add_argument("--output", "-o",
                        help="Directory to write insights.json and word_cloud.csv to")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        check_ins = load_records(args.json_file)
    except FileNotFoundError:
        logger.error("File not found: %s", args.json_file)
        sys.exit(1)
    except (json.JSONDecodeError, ValueError) as e:
        logger.error("Could not read %s: %s", args.json_file, e)
        sys.exit(1)

    insights = build_check_in_insights(check_ins, args.locale)
    cloud = build_word_cloud(check_ins, args.locale)
    print_insights_report(insights, cloud)

    if args.output:
        save_insights_files(insights, cloud, args.output)
        logger.info("Analytics written to %s", args.output)


if __name__ == "__main__":
    main()
