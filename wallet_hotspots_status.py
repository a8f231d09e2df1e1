#!/usr/bin/env python3
"""
Append status information for the hotspots owned by a wallet.

Output: Hotspots_<wallet>_Status.csv, one row per hotspot per run. The header
is written only when the file does not exist yet, so repeated runs build a
history.
"""

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import requests

from helium_hosts.api import HeliumAPIError, HeliumClient
from helium_hosts.config import DEFAULT_API_URL
from helium_hosts.output import append_csv

MAX_HOTSPOTS = 25

STATUS_COLUMNS = [
    "Date (UTC)",
    "Time (UTC)",
    "Name",
    "Online",
    "Height",
    "Block",
    "LastPocChallenge",
    "LastChangeBlock",
    "BlockAdded",
    "RewardScale",
    "Gain",
    "Elevation",
    "Address",
]


def status_row(hotspot: Dict[str, Any], now: datetime) -> List[Any]:
    status = hotspot.get("status") or {}
    return [
        now.date().isoformat(),
        now.time().isoformat(timespec="milliseconds"),
        hotspot.get("name", ""),
        status.get("online", ""),
        status.get("height", ""),
        hotspot.get("block", ""),
        hotspot.get("last_poc_challenge", ""),
        hotspot.get("last_change_block", ""),
        hotspot.get("block_added", ""),
        hotspot.get("reward_scale", ""),
        hotspot.get("gain", ""),
        hotspot.get("elevation", ""),
        hotspot.get("address", ""),
    ]


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Append hotspot status rows for a wallet.")
    ap.add_argument("wallet", help="Owner wallet address")
    ap.add_argument("--max-hotspots", type=int, default=MAX_HOTSPOTS)
    ap.add_argument("--api", default=DEFAULT_API_URL)
    args = ap.parse_args(argv)

    client = HeliumClient(args.api)
    out_csv = Path(f"Hotspots_{args.wallet}_Status.csv")
    print(f"Exporting hotspot status information to: {out_csv}")

    try:
        if client.account(args.wallet) is None:
            print(f"✗ Account not found: {args.wallet}", file=sys.stderr)
            return 1
        hotspots = client.account_hotspots(args.wallet)
    except (HeliumAPIError, requests.RequestException) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    if len(hotspots) > args.max_hotspots:
        print(f"⚠ Reached configurable limit (MAX_HOTSPOTS): {args.max_hotspots}")

    now = datetime.now(timezone.utc)
    rows = [status_row(h, now) for h in hotspots[: args.max_hotspots]]
    append_csv(out_csv, STATUS_COLUMNS, rows, write_header=not out_csv.exists())

    print(f"✓ Exported {len(rows)} rows.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
