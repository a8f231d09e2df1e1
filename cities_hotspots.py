#!/usr/bin/env python3
"""
Export the hotspots of one or more cities, with their 1, 7 and 30 day
reward totals.

City ids come from cities.py (base64 of the lower-cased city/state/country).

Output: Cities_Hotspots_<run>.csv
"""

import argparse
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List

import requests

from helium_hosts.api import HeliumAPIError, HeliumClient
from helium_hosts.config import DEFAULT_API_URL, RUN_STAMP_FORMAT
from helium_hosts.output import append_csv

MAX_HOTSPOTS = 3000
MAX_HOTSPOTS_PAGES_PER_CITY = 200
SLEEP_BETWEEN_PAGES = 0.2

REWARD_WINDOWS = ("-1 day", "-7 day", "-30 day")

HOTSPOT_COLUMNS = [
    "Name", "Rewards1", "Rewards7", "Rewards30", "Online", "Height", "Gps", "Block",
    "LastPocChallenge", "LastChangeBlock", "RewardScale", "Location", "Lat", "Lng",
    "Country", "State", "City", "Street", "Gain", "Elevation", "TimeStampAdded",
    "Address", "Owner",
]


def hotspot_row(hotspot: Dict[str, Any], rewards: List[Any]) -> List[Any]:
    status = hotspot.get("status") or {}
    geo = hotspot.get("geocode") or {}
    return [
        hotspot.get("name", ""),
        *rewards,
        status.get("online", ""),
        status.get("height", ""),
        status.get("gps", ""),
        hotspot.get("block", ""),
        hotspot.get("last_poc_challenge", ""),
        hotspot.get("last_change_block", ""),
        hotspot.get("reward_scale", ""),
        hotspot.get("location", ""),
        hotspot.get("lat", ""),
        hotspot.get("lng", ""),
        geo.get("short_country", ""),
        geo.get("short_state", ""),
        geo.get("short_city", ""),
        geo.get("short_street", ""),
        hotspot.get("gain", ""),
        hotspot.get("elevation", ""),
        hotspot.get("timestamp_added", ""),
        hotspot.get("address", ""),
        hotspot.get("owner", ""),
    ]


def reward_totals(client, address: str) -> List[Any]:
    totals = []
    for window in REWARD_WINDOWS:
        data = client.hotspot_rewards_sum(address, window)
        totals.append(data.get("total", ""))
    return totals


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Export hotspots for Helium city ids.")
    ap.add_argument("city_ids", nargs="+", help="City ids")
    ap.add_argument("--max-hotspots", type=int, default=MAX_HOTSPOTS)
    ap.add_argument("--max-pages", type=int, default=MAX_HOTSPOTS_PAGES_PER_CITY, help="Hotspot pages per city")
    ap.add_argument("--api", default=DEFAULT_API_URL)
    args = ap.parse_args(argv)

    out_csv = f"Cities_Hotspots_{datetime.now(timezone.utc).strftime(RUN_STAMP_FORMAT)}.csv"
    print(f"Exporting hotspots to: {out_csv}")

    client = HeliumClient(args.api, sleep_between_pages=SLEEP_BETWEEN_PAGES)
    rows = []
    try:
        for city_id in args.city_ids:
            print(f"cityId: {city_id}")
            for page in client.city_hotspot_pages(city_id, max_pages=args.max_pages):
                for hotspot in page:
                    if len(rows) >= args.max_hotspots:
                        break
                    rows.append(hotspot_row(hotspot, reward_totals(client, hotspot["address"])))
                print(f"Hotspots {len(rows)}")
                if len(rows) >= args.max_hotspots:
                    print(f"⚠ Reached configurable limit (MAX_HOTSPOTS): {args.max_hotspots}")
                    break
            if len(rows) >= args.max_hotspots:
                break
    except (HeliumAPIError, requests.RequestException) as e:
        print(f"✗ Exporting hotspots: {e}", file=sys.stderr)
    finally:
        append_csv(out_csv, HOTSPOT_COLUMNS, rows)

    print(f"✓ Saved {len(rows)} hotspots to {out_csv}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
