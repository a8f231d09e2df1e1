#!/usr/bin/env python3
"""
Export Helium reward transactions for all hotspots owned by a wallet.

One CSV per hotspot: Hotspot_<name>_<address>_<run>.csv
Columns: Date, Received Quantity, Received Currency, Reward Type, Block, Hash

Search stops at EARLIEST_DATE, LOWEST_BLOCK_INDEX or MAX_TRANSACTIONS_PAGES,
whichever comes first. No host earnings or payments; see
wallet_hotspots_rewards_payments_report.py for those.
"""

import argparse
import sys
from datetime import datetime, timezone

import requests

from helium_hosts.api import HeliumAPIError, HeliumClient
from helium_hosts.config import DEFAULT_API_URL, RUN_STAMP_FORMAT, ConfigError, iso_utc, parse_iso8601_utc
from helium_hosts.output import REWARDS_CSV_COLUMNS, append_csv, sanitize
from helium_hosts.report import reward_row
from helium_hosts.rewards import reward_pages

MAX_HOTSPOTS = 10
MAX_TRANSACTIONS_PAGES = 20
TRANSACTIONS_PAGE_SIZE = 500
LOWEST_BLOCK_INDEX = 468000
EARLIEST_DATE = "2020-08-01T00:00:00Z"


def collect_rewards(client, address: str, earliest: datetime, lowest_block: int, max_pages: int, page_size: int):
    """Return (rows, reason) for one hotspot, newest first."""
    rows = []
    pages = 0
    for page in reward_pages(client, address, page_size):
        pages += 1
        for detail in page.malformed:
            print(f"  ⚠ Skipped unreadable reward transaction {detail}")
        for tx in page.transactions:
            if tx.time < earliest:
                return rows, f"reached earliest date {iso_utc(earliest)}"
            if tx.height < lowest_block:
                return rows, f"reached lowest block {lowest_block}"
            for reward in tx.rewards:
                if reward.amount is None:
                    print(f"  ⚠ Undefined reward amount: {reward.transaction_hash} ({reward.reward_type})")
                elif not reward.currency:
                    print(f"  ⚠ Undefined reward amount type: {reward.transaction_hash} ({reward.reward_type})")
                rows.append(reward_row(reward))
        if pages >= max_pages:
            return rows, f"reached max transaction pages {max_pages}"
        if not page.has_more:
            break
    return rows, ""


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Export reward transactions for a wallet's hotspots.")
    ap.add_argument("wallet", help="Owner wallet address")
    ap.add_argument("--earliest", default=EARLIEST_DATE, help=f"Earliest transaction date, ISO 8601 (default: {EARLIEST_DATE})")
    ap.add_argument("--lowest-block", type=int, default=LOWEST_BLOCK_INDEX)
    ap.add_argument("--max-hotspots", type=int, default=MAX_HOTSPOTS)
    ap.add_argument("--max-pages", type=int, default=MAX_TRANSACTIONS_PAGES)
    ap.add_argument("--page-size", type=int, default=TRANSACTIONS_PAGE_SIZE)
    ap.add_argument("--api", default=DEFAULT_API_URL)
    args = ap.parse_args(argv)

    try:
        earliest = parse_iso8601_utc(args.earliest)
    except ConfigError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    run_stamp = datetime.now(timezone.utc).strftime(RUN_STAMP_FORMAT)
    client = HeliumClient(args.api)

    try:
        if client.account(args.wallet) is None:
            print(f"✗ Account not found: {args.wallet}", file=sys.stderr)
            return 1
        hotspots = client.account_hotspots(args.wallet)
    except (HeliumAPIError, requests.RequestException) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    for hotspot in hotspots[: args.max_hotspots]:
        name = hotspot.get("name") or hotspot["address"]
        out_csv = f"Hotspot_{sanitize(name)}_{hotspot['address']}_{run_stamp}.csv"
        print(f"Exporting transactions to: {out_csv}")
        try:
            rows, reason = collect_rewards(
                client, hotspot["address"], earliest, args.lowest_block, args.max_pages, args.page_size
            )
        except (HeliumAPIError, requests.RequestException, ValueError) as e:
            print(f"  ✗ Exporting transactions for {name}: {e}", file=sys.stderr)
            continue
        if reason:
            print(f"  ⚠ Reached configurable limit: {reason}")
        append_csv(out_csv, REWARDS_CSV_COLUMNS, rows)
        print(f"  ✓ {len(rows)} rewards")

    if len(hotspots) > args.max_hotspots:
        print(f"⚠ Reached configurable limit (MAX_HOTSPOTS): {args.max_hotspots}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
