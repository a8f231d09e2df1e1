#!/usr/bin/env python3
"""
Export cities with Helium hotspots to CSV.

Output: Cities_<run>.csv
"""

import argparse
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List

import requests

from helium_hosts.api import HeliumAPIError, HeliumClient
from helium_hosts.config import DEFAULT_API_URL, RUN_STAMP_FORMAT
from helium_hosts.output import append_csv

MAX_PAGES = 20
SLEEP_BETWEEN_PAGES = 0.2

CITY_COLUMNS = ["CityId", "Hotspots", "Country", "State", "City", "LongCountry", "LongState", "LongCity"]


def city_row(city: Dict[str, Any]) -> List[Any]:
    return [
        city.get("city_id", ""),
        city.get("hotspot_count", ""),
        city.get("short_country", ""),
        city.get("short_state", ""),
        city.get("short_city", ""),
        city.get("long_country", ""),
        city.get("long_state", ""),
        city.get("long_city", ""),
    ]


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Export Helium cities to CSV.")
    ap.add_argument("--max-pages", type=int, default=MAX_PAGES, help=f"default: {MAX_PAGES}")
    ap.add_argument("--api", default=DEFAULT_API_URL)
    args = ap.parse_args(argv)

    out_csv = f"Cities_{datetime.now(timezone.utc).strftime(RUN_STAMP_FORMAT)}.csv"
    print(f"Exporting cities to: {out_csv}")

    client = HeliumClient(args.api, sleep_between_pages=SLEEP_BETWEEN_PAGES)
    rows = []
    try:
        for page in client.city_pages(max_pages=args.max_pages):
            rows.extend(city_row(c) for c in page)
            print(f"Results {len(rows)}")
    except (HeliumAPIError, requests.RequestException) as e:
        print(f"✗ Exporting cities: {e}", file=sys.stderr)
    finally:
        append_csv(out_csv, CITY_COLUMNS, rows)

    print(f"✓ Saved {len(rows)} cities to {out_csv}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
