#!/usr/bin/env python3
"""
Export Helium oracle USD prices at block heights to CSV.

Starts at the current oracle price and walks back one price change at a
time: the price in effect at (change height - 1) gives the previous change.

Output: oracle_prices_<run>.csv  (Block Height, Price)
"""

import argparse
import sys
from datetime import datetime, timezone
from typing import Iterator, Tuple

import requests

from helium_hosts.api import HeliumAPIError, HeliumClient
from helium_hosts.config import DEFAULT_API_URL, RUN_STAMP_FORMAT
from helium_hosts.currency import HNT_DECIMAL_PLACES, from_bones
from helium_hosts.output import append_csv

MAX_QUERIES = 8760  # 24 price changes a day for a year
LOWEST_BLOCK_INDEX = 1  # genesis

PRICE_COLUMNS = ["Block Height", "Price"]


def walk_prices(client, lowest_block: int = LOWEST_BLOCK_INDEX, max_queries: int = MAX_QUERIES) -> Iterator[Tuple[int, str]]:
    """Yield (height, price) from the current price back to the lowest block."""
    current = client.current_oracle_price()
    height = int(current["block"])
    price = current["price"]
    queries = 0

    while True:
        yield height, f"{from_bones(price):.{HNT_DECIMAL_PLACES}f}"

        if height <= 1:
            return
        if height <= lowest_block:
            print(f"⚠ Reached configurable limit (LOWEST_BLOCK_INDEX): {lowest_block}")
            return
        if queries >= max_queries:
            print(f"⚠ Reached configurable limit (MAX_QUERIES): {max_queries}")
            return

        previous = client.oracle_price_at_block(height - 1)
        queries += 1
        height = int(previous["block"])
        price = previous["price"]


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Export Helium oracle prices to CSV.")
    ap.add_argument("--lowest-block", type=int, default=LOWEST_BLOCK_INDEX)
    ap.add_argument("--max-queries", type=int, default=MAX_QUERIES)
    ap.add_argument("--api", default=DEFAULT_API_URL)
    args = ap.parse_args(argv)

    out_csv = f"oracle_prices_{datetime.now(timezone.utc).strftime(RUN_STAMP_FORMAT)}.csv"
    print(f"Output file: {out_csv}")

    client = HeliumClient(args.api)
    rows = []
    status = 0
    try:
        for height, price in walk_prices(client, args.lowest_block, args.max_queries):
            rows.append([height, price])
            print(f"{height}: {price}")
    except (HeliumAPIError, requests.RequestException) as e:
        print(f"✗ Exporting oracle prices: {e}", file=sys.stderr)
        status = 1
    finally:
        append_csv(out_csv, PRICE_COLUMNS, rows)

    print(f"✓ Saved {len(rows)} prices to {out_csv}")
    return status


if __name__ == "__main__":
    raise SystemExit(main())
