"""Render the last-week rating chart for an exported list of daily ratings.

Usage: python checkin_viz.py ratings.json --locale en --output checkin_analytics/week.png
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from analytics import build_last_week_series
from checkin_dates import parse_timestamp
from checkin_store import load_records

logger = logging.getLogger(__name__)


def week_frame(points: list[dict]) -> pd.DataFrame:
    """Turn rating points into a frame; days without data hold NaN."""
    df = pd.DataFrame(points, columns=["day_key", "day_label", "value"])
    df["value"] = pd.to_numeric(df["value"], errors="coerce")
    return df


def plot_week_series(points: list[dict], output_path: str, title: str = "Ratings from the last 7 days") -> str:
    """Draw the 7-day rating series and save it as an image.

    NaN values break the line, so a day without ratings shows up as a
    gap rather than a drop to zero.

    Args:
        points: Output of ``build_last_week_series``.
        output_path: Image path; parent directories are created.
        title: Chart title.

    Returns:
        The path the chart was written to.
    """
    df = week_frame(points)
    sns.set_theme(style="whitegrid")

    fig, ax = plt.subplots(figsize=(10, 5))
    x = list(range(len(df)))
    ax.plot(x, df["value"], color="#1f6d8a", linewidth=2, marker="o", markersize=6)
    for i, value in zip(x, df["value"]):
        if pd.notna(value):
            ax.annotate(f"{value:.1f}", (i, value), textcoords="offset points",
                        xytext=(0, 8), ha="center", fontsize=10, color="#123b4c")

    ax.set_ylim(0.5, 10.5)
    ax.set_yticks([1, 4, 7, 10])
    ax.set_xticks(x)
    ax.set_xticklabels(df["day_label"], fontsize=10)
    ax.set_title(title, fontsize=14, pad=20)
    if df["value"].isna().all():
        ax.text(0.5, 0.5, "No ratings from the last week.", transform=ax.transAxes,
                ha="center", va="center", fontsize=12, color="#666666")

    fig.tight_layout()
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return output_path


def main(argv: list[str] | None = None) -> None:
    """CLI entry point; exits with status 1 if the export cannot be read."""
    parser = argparse.ArgumentParser(description="Plot the last week of daily ratings")
    parser.add_argument("json_file", nargs="?", default="ratings.json",
                        help="Path to a JSON array of ratings (default: ratings.json)")
    parser.add_argument("--locale", "-l", default="en", help="Locale for day labels")
    parser.add_argument("--output", "-o", default="checkin_analytics/week.png",
                        help="Output image path")
    parser.add_argument("--now", help="Reference day as an ISO timestamp (default: now)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        ratings = load_records(args.json_file)
    except FileNotFoundError:
        logger.error("File not found: %s", args.json_file)
        sys.exit(1)
    except (json.JSONDecodeError, ValueError) as e:
        logger.error("Could not read %s: %s", args.json_file, e)
        sys.exit(1)

    now = parse_timestamp(args.now) if args.now else None
    if args.now and now is None:
        parser.error(f"Invalid --now timestamp: {args.now}")
    points = build_last_week_series(ratings, args.locale, now)
    path = plot_week_series(points, args.output)
    logger.info("Chart saved to %s", path)


if __name__ == "__main__":
    main()
