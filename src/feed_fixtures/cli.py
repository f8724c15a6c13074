"""
Command line entry points.

    feed-fixtures                 Regenerate every fixture + expectations.json
    feed-fixtures-delta --file X  Write a delta feed for one fixture
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import load_config
from .delta import generate_delta
from .errors import FixtureError
from .generator import FixtureGenerator


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments for the batch generator."""
    parser = argparse.ArgumentParser(
        description="Regenerate affiliate feed fixtures with known defect counts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Regenerate everything in the default feed directory
  feed-fixtures

  # Use another directory
  feed-fixtures --feed-dir /tmp/feeds

  # Extra header aliases / default row counts from YAML
  feed-fixtures --config fixtures.yaml
""",
    )
    parser.add_argument(
        "--feed-dir",
        type=Path,
        help="Directory holding the feed CSVs (default: $FEED_FIXTURES_DIR or context/examples/test_affiliate_feeds)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML config overriding defaults",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Regenerate all fixtures.

    Returns:
        0 on success, 1 on any generation error
    """
    args = parse_args(argv)
    try:
        config = load_config(args.config)
        if args.feed_dir is not None:
            config.feed_dir = args.feed_dir
        FixtureGenerator(config, quiet=args.quiet).generate_all()
    except FixtureError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def parse_delta_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments for the delta generator."""
    parser = argparse.ArgumentParser(
        description="Generate a delta affiliate feed from an existing fixture.",
    )
    parser.add_argument("--file", required=True, help="Fixture file name inside the feed directory")
    parser.add_argument("--seed", type=int, default=1, help="Random seed (default: 1)")
    parser.add_argument("--feed-dir", type=Path, help="Directory holding the feed CSVs")
    parser.add_argument("--config", type=Path, help="YAML config overriding defaults")
    return parser.parse_args(argv)


def delta_main(argv: list[str] | None = None) -> int:
    """
    Write <stem>.delta.csv and <stem>.delta.json for one fixture.

    Returns:
        0 on success, 1 on error
    """
    args = parse_delta_args(argv)
    try:
        config = load_config(args.config)
        feed_dir = args.feed_dir if args.feed_dir is not None else config.feed_dir
        summary = generate_delta(feed_dir / args.file, seed=args.seed, alias_table=config.alias_table())
    except FixtureError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Wrote {feed_dir / summary.delta_file}")
    print(
        f"  {summary.price_drops} price drops, {summary.price_increases} price increases,"
        f" {summary.back_in_stock} back in stock, {summary.out_of_stock} out of stock"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
