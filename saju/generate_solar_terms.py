"""
Offline generator for the solar term table.

Writes a JSON file usable through SAJU_SOLAR_TERMS_PATH:

    {"1899": [{"term": "小寒", "iso": "1899-01-05T...Z"}, ...], ...}

Usage:
    python -m saju.generate_solar_terms --output solar_terms.json [--start 1899] [--end 2100] [--verify]
"""

import argparse
import logging
import sys
from pathlib import Path

from saju import settings
from saju.solar_terms import SolarTermEntry, build_dataset, compare_with_ephemeris, dump_dataset

LOG = logging.getLogger(__name__)

# Deviation from Swiss Ephemeris above which a year is reported as suspicious
VERIFY_THRESHOLD_SECONDS = 3600.0


def verify_dataset(dataset: dict[int, tuple[SolarTermEntry, ...]]) -> float:
    """Log the deviation from Swiss Ephemeris for each year; return the worst one."""
    worst = 0.0
    for year, entries in sorted(dataset.items()):
        deviation = compare_with_ephemeris(year, entries)
        worst = max(worst, deviation)
        if deviation > VERIFY_THRESHOLD_SECONDS:
            LOG.warning("%d deviates from Swiss Ephemeris by %.0f s", year, deviation)
        else:
            LOG.info("%d max deviation %.0f s", year, deviation)
    return worst


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate the solar term table.")
    parser.add_argument("--start", type=int, default=settings.SOLAR_TERM_YEAR_START)
    parser.add_argument("--end", type=int, default=settings.SOLAR_TERM_YEAR_END)
    parser.add_argument("--output", type=Path, default=Path("solar_terms.json"))
    parser.add_argument("--verify", action="store_true",
                        help="Compare every year against Swiss Ephemeris")
    args = parser.parse_args(argv)

    settings.configure_logging()

    if args.start > args.end:
        print("--start must not be after --end", file=sys.stderr)
        return 1

    dataset = build_dataset(args.start, args.end)
    dump_dataset(dataset, args.output)
    LOG.info("Wrote solar terms for %d-%d to %s", args.start, args.end, args.output)
    print(f"Wrote solar terms to {args.output}")

    if args.verify:
        worst = verify_dataset(dataset)
        print(f"Largest deviation from Swiss Ephemeris: {worst:.0f} s")

    return 0


if __name__ == "__main__":
    sys.exit(main())
