#!/usr/bin/env python3
# -----------------------------------------------------------------------------
# Helium Wallet Hotspots Rewards & Host Payments Report
# -----------------------------------------------------------------------------
# Exports every reward transaction over a report period to per-hotspot CSV
# files, for all hotspots owned by a wallet, and builds host earnings and
# payment files from a hosts JSON file:
#
#   Rewards_<hotspot>_<address>_<run>.csv         per-hotspot rewards
#   Payments_<start>-<end>_<run>.json             helium-wallet-rs multi-payment
#   PaymentsMerged_<start>-<end>_<run>.json       only if a wallet is paid twice
#   DeferredPayments_<start>-<end>_<run>.json     below minimum / no valid wallet
#   DeferredPaymentsMerged_<start>-<end>_<run>.json
#   Earnings_<start>-<end>_<run>.csv              host earnings report
#   HotspotsHostsData_<start>-<end>_<run>.json    hosts file with run totals
#
# Hosts file: a JSON array of objects
#
#   {
#     "name": "cheesy-bamboo-gorilla",
#     "address": "112SZBhwV8Dp3QFgYYWN7hvz2xs5VjcimpVfzEZ1SWEnZFBEdnih",
#     "grossShare": "0.78",      # share of gross kept before the host split
#     "netShare": "0.25",        # host share of what is left
#     "hostName": "Alice",
#     "hostWallet": "<51 character wallet>",
#     "fromDatetimeISO": "2019-01-01T00:00:00.000Z",   # optional
#     "toDatetimeISO": "2099-01-01T00:00:00.000Z"      # optional
#   }
#
# A hotspot may have several entries, one per hosting period. Hotspots with
# no matching entry get a default entry (zero shares) in the hosts output.
#
# Dates are ISO 8601; use UTC, transaction times are UTC.
# -----------------------------------------------------------------------------

import argparse
import json
import sys
from datetime import datetime, timezone

import requests

from helium_hosts.api import HeliumAPIError, HeliumClient
from helium_hosts.config import (
    DEFAULT_API_URL,
    LOWEST_BLOCK_INDEX,
    MAX_HOTSPOTS,
    MAX_TRANSACTIONS_PAGES,
    PAYMENT_MINIMUM_AMOUNT,
    TRANSACTIONS_PAGE_SIZE,
    ConfigError,
    ReportSettings,
    iso_utc,
)
from helium_hosts.diagnostics import Diagnostics, console_printer
from helium_hosts.registry import OwnershipRegistry
from helium_hosts.report import HostReport

SLEEP_BETWEEN_PAGES = 0.0  # set >0 if the API rate-limits


def load_hosts(path: str):
    if not path:
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read hosts file {path}: {e}") from None
    if not isinstance(data, list):
        raise ConfigError(f"Hosts file {path} must contain a JSON array")
    return data


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Export Helium hotspot rewards and host payments for a wallet.")
    ap.add_argument("wallet", help="Owner wallet address")
    ap.add_argument("--start", required=True, help="Report start, ISO 8601, e.g. 2021-10-01T00:00:00Z or 20211001T000000Z (included)")
    ap.add_argument("--end", required=True, help="Report end, ISO 8601 (excluded)")
    ap.add_argument("--hosts", default="", help="Hosts JSON file")
    ap.add_argument("--memo", default="", help="Payment memo, up to 8 bytes (default: report end date)")
    ap.add_argument("--minimum", default=PAYMENT_MINIMUM_AMOUNT, help=f"Minimum payment in HNT (default: {PAYMENT_MINIMUM_AMOUNT})")
    ap.add_argument("--lowest-block", type=int, default=LOWEST_BLOCK_INDEX, help=f"Lowest block to search (default: {LOWEST_BLOCK_INDEX})")
    ap.add_argument("--max-hotspots", type=int, default=MAX_HOTSPOTS, help=f"default: {MAX_HOTSPOTS}")
    ap.add_argument("--max-pages", type=int, default=MAX_TRANSACTIONS_PAGES, help=f"Transaction pages per hotspot (default: {MAX_TRANSACTIONS_PAGES})")
    ap.add_argument("--page-size", type=int, default=TRANSACTIONS_PAGE_SIZE, help=f"default: {TRANSACTIONS_PAGE_SIZE}")
    ap.add_argument("--api", default=DEFAULT_API_URL, help=f"API base URL (default: {DEFAULT_API_URL})")
    ap.add_argument("--out", default=".", help="Output directory")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v medium, -vv verbose")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    run_start = datetime.now(timezone.utc)

    try:
        memo = args.memo
        if not memo:
            memo = args.end[:10].replace("-", "")
        settings = ReportSettings.build(
            wallet=args.wallet,
            report_start=args.start,
            report_end=args.end,
            memo=memo,
            payment_minimum=args.minimum,
            lowest_block=args.lowest_block,
            max_hotspots=args.max_hotspots,
            max_pages=args.max_pages,
            page_size=args.page_size,
            run_start=run_start,
            out_dir=args.out,
        )
        registry = OwnershipRegistry.from_config(load_hosts(args.hosts), run_start)
    except ConfigError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    client = HeliumClient(args.api, sleep_between_pages=SLEEP_BETWEEN_PAGES)
    diagnostics = Diagnostics(console_printer(args.verbose))

    print(f"Hotspots owned by:   {settings.wallet}")
    print(f"Report from:         {iso_utc(settings.report_start)}")
    print(f"Report to:           {iso_utc(settings.report_end)}")
    print(f"Payment minimum:     {settings.payment_minimum} HNT")
    print(f"Hotspot hosts:       {len(registry)}")
    print(f"Earliest block:      {settings.lowest_block}")
    print(f"Max hotspots:        {settings.max_hotspots}")
    print(f"Max transactions:    {settings.max_pages * settings.page_size}")
    print(f"API:                 {client.base_url}")
    print("-" * 80)

    report = HostReport(client, settings, registry, diagnostics)
    print(f"Payment memo:        {memo} ({report.memo})")

    try:
        result = report.run()
    except (HeliumAPIError, requests.RequestException) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    if result is None:
        return 1

    print("-" * 80)
    print(f"Hotspots:            {result.hotspots}")
    print(f"Payments:            {len(result.payments)}")
    if len(result.merged_payments) != len(result.payments):
        print(f"Merged payments:     {len(result.merged_payments)}")
    print(f"Deferred payments:   {len(result.deferred_payments)}")
    if len(result.merged_deferred_payments) != len(result.deferred_payments):
        print(f"Merged deferred:     {len(result.merged_deferred_payments)}")
    print(f"Warnings:            {len(diagnostics.warnings)}")
    print(f"Errors:              {len(diagnostics.errors)}")
    for path in result.files:
        print(f"✓ {path}")

    elapsed = datetime.now(timezone.utc) - run_start
    print(f"\nDone in {int(elapsed.total_seconds() // 60)}m {int(elapsed.total_seconds() % 60)}s")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        print("\n\nAborted by user.")
        sys.exit(130)
