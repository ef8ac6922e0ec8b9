"""
CLI wrapper for compute_four_pillars().

Usage:
    python -m saju.run --birth-date YYYY-MM-DD [--birth-time HH:MM] \
        [--gender male|female] [--timezone ZONE] [--today YYYY-MM-DD] [--chart-only]
"""

import argparse
import json
import sys
from datetime import date

from saju import settings
from saju.create_chart import compute_four_pillars
from saju.errors import SajuError
from saju.generate_context import generate_reading_context
from saju.texts import GENDER_LABELS


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Compute a four pillars chart.")
    parser.add_argument("--birth-date", required=True, dest="birth_date")
    parser.add_argument("--birth-time", dest="birth_time", default=None)
    parser.add_argument("--gender", default="male", choices=sorted(GENDER_LABELS))
    parser.add_argument("--timezone", default=None)
    parser.add_argument("--today", default=None, help="Reference date for the daily fortune")
    parser.add_argument("--chart-only", action="store_true", dest="chart_only",
                        help="Print only pillars, summary and meta")

    args = parser.parse_args(argv)
    settings.configure_logging()

    try:
        reference = date.fromisoformat(args.today) if args.today else None
    except ValueError:
        print(f"Invalid --today: {args.today}", file=sys.stderr)
        return 1

    try:
        result = compute_four_pillars(
            birth_date=args.birth_date,
            birth_time=args.birth_time,
            gender=args.gender,
            tz=args.timezone,
        )
        payload = result.to_dict() if args.chart_only else generate_reading_context(result, reference)
    except SajuError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
