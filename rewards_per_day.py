#!/usr/bin/env python3
"""
Sum an exported rewards CSV (Rewards_*.csv / Hotspot_*.csv) per UTC day.

Usage: python rewards_per_day.py <rewards.csv> [output.csv]
"""

import os
import sys

from helium_hosts.summary import daily_totals_csv


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("Usage: python rewards_per_day.py <rewards.csv> [output.csv]")
        return 1

    input_file = argv[0]
    output_file = argv[1] if len(argv) > 1 else "rewards_per_day.csv"

    if not os.path.exists(input_file):
        print(f"✗ File not found: {input_file}", file=sys.stderr)
        return 1

    if os.path.exists(output_file):
        os.remove(output_file)
        print(f"Existing file '{output_file}' has been deleted.")

    totals = daily_totals_csv(input_file, output_file)
    print(f"✓ {len(totals)} days saved to '{output_file}'")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
