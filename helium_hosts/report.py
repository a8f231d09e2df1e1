"""
Wallet hotspots rewards and host payments report.

For every hotspot owned by a wallet:
  1. page through its reward transactions, newest first
  2. write them to a per-hotspot rewards CSV
  3. credit rewards inside the report window to the hotspot's host entries
  4. split each entry's earnings into a payable or deferred payment

Then write the payments JSON files (merged variants only when a wallet
receives more than one payment), the host earnings CSV and a snapshot of the
host data, including any default entries created along the way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .api import HeliumAPIError
from .config import EXPLORER_URL, ReportSettings, iso_utc
from .currency import format_hnt
from .diagnostics import INFO_LOW, INFO_MEDIUM, INFO_VERBOSE, Diagnostics
from .output import (
    EARNINGS_CSV_COLUMNS,
    REWARDS_CSV_COLUMNS,
    append_csv,
    append_json,
    report_file_name,
    rewards_file_name,
)
from .payments import PaymentRecord, allocate, encode_memo, merge_payments
from .registry import OwnershipEntry, OwnershipRegistry
from .rewards import HotspotScan, RewardAccumulator, RewardRecord, reward_pages


def hotspot_url(address: str) -> str:
    return f"{EXPLORER_URL}/hotspots/{address}"


def account_url(address: Optional[str]) -> str:
    return f"{EXPLORER_URL}/accounts/{address or ''}"


def reward_row(reward: RewardRecord) -> List[Any]:
    return [
        iso_utc(reward.time),
        format_hnt(reward.amount) if reward.amount is not None else "",
        reward.currency or "",
        reward.reward_type,
        reward.block_height,
        reward.transaction_hash,
    ]


def earnings_row(entry: OwnershipEntry, settings: ReportSettings, hotspot_name: str, hotspot_address: str) -> List[Any]:
    return [
        iso_utc(settings.report_start),
        iso_utc(settings.report_end),
        hotspot_name,
        hotspot_url(hotspot_address),
        entry.host_name,
        entry.host_wallet or "",
        account_url(entry.host_wallet),
        str(entry.gross_share),
        str(entry.net_share),
        format_hnt(entry.gross_earnings),
        entry.net_earnings or format_hnt(0),
        entry.host_earnings or format_hnt(0),
    ]


@dataclass
class ReportResult:
    hotspots: int = 0
    payments: List[PaymentRecord] = field(default_factory=list)
    merged_payments: List[PaymentRecord] = field(default_factory=list)
    deferred_payments: List[PaymentRecord] = field(default_factory=list)
    merged_deferred_payments: List[PaymentRecord] = field(default_factory=list)
    earnings_rows: List[List[Any]] = field(default_factory=list)
    scans: List[HotspotScan] = field(default_factory=list)
    files: List[Path] = field(default_factory=list)


class HostReport:
    def __init__(
        self,
        client,
        settings: ReportSettings,
        registry: OwnershipRegistry,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.client = client
        self.settings = settings
        self.registry = registry
        self.diagnostics = diagnostics or Diagnostics()
        self.accumulator = RewardAccumulator(
            registry,
            settings.report_start,
            settings.report_end,
            settings.lowest_block,
            settings.max_pages,
            settings.run_start,
            self.diagnostics,
        )
        self.memo, used, truncated = encode_memo(settings.memo)
        if truncated:
            self.diagnostics.warn(
                "memo-truncated", "", f"Payment memo ({settings.memo}) is longer than 8 bytes; truncated to: {used}"
            )
        self.result = ReportResult()

    def check_registry(self) -> None:
        for first, second in self.registry.find_overlaps():
            self.diagnostics.warn(
                "overlapping-entries",
                first.name,
                f"Host entries for {first.host_name} ({iso_utc(first.valid_from)} - {iso_utc(first.valid_to)}) and "
                f"{second.host_name} ({iso_utc(second.valid_from)} - {iso_utc(second.valid_to)}) overlap; "
                "rewards in the overlap go to the first",
            )

    def _out(self, name: str) -> Path:
        return self.settings.out_dir / name

    def _report_path(self, prefix: str, ext: str) -> Path:
        return self._out(report_file_name(prefix, self.settings.period_stamp, self.settings.run_stamp, ext))

    # ---------------- Per hotspot ----------------

    def scan_hotspot(self, name: str, address: str) -> HotspotScan:
        scan = HotspotScan(name=name, address=address)
        self.diagnostics.info("hotspot", name, f"Requesting reward transactions ({address})", INFO_LOW)
        try:
            for page in reward_pages(self.client, address, self.settings.page_size):
                self.diagnostics.info(
                    "page",
                    name,
                    f"Processing reward transactions (page {scan.pages + 1}): {len(page.transactions)}",
                    INFO_MEDIUM,
                )
                if not self.accumulator.consume_page(page, scan):
                    break
        except (HeliumAPIError, requests.RequestException) as e:
            scan.error = str(e)
            self.diagnostics.error("fetch-failed", name, f"Retrieving transactions failed: {e}")
            if isinstance(e, HeliumAPIError) and e.overloaded:
                self.diagnostics.info(
                    "endpoint-overloaded",
                    name,
                    f"The API endpoint ({getattr(self.client, 'base_url', '')}) may be overloaded. "
                    "Try again off-peak or use a different endpoint.",
                    INFO_LOW,
                )
        except (KeyError, TypeError, ValueError) as e:
            scan.error = str(e)
            self.diagnostics.error("malformed-response", name, f"Unreadable transactions response: {type(e).__name__}: {e}")

        if scan.transactions:
            self.diagnostics.info("hotspot", name, f"Reward transactions processed: {scan.transactions}", INFO_LOW)
        return scan

    def allocate_hotspot(self, name: str, address: str) -> None:
        for entry in self.registry.entries_for(address):
            if entry.name != name:
                self.diagnostics.warn(
                    "name-mismatch", name, f"Host entry name {entry.name} does not match the hotspot name"
                )
            allocation = allocate(entry, self.settings.payment_minimum, self.memo, self.diagnostics)
            if allocation.payment is not None:
                if allocation.deferred:
                    self.result.deferred_payments.append(allocation.payment)
                else:
                    self.result.payments.append(allocation.payment)
                self.diagnostics.info(
                    "payment",
                    name,
                    f"{'Deferred payment' if allocation.deferred else 'Payment'}: {allocation.payment.to_dict()}",
                    INFO_VERBOSE,
                )
            self.result.earnings_rows.append(earnings_row(entry, self.settings, name, address))

    def process_hotspot(self, hotspot: Dict[str, Any]) -> HotspotScan:
        address = hotspot["address"]
        name = hotspot.get("name") or address

        scan = self.scan_hotspot(name, address)
        self.result.scans.append(scan)

        path = self._out(rewards_file_name(name, address, self.settings.run_stamp))
        self.result.files.append(append_csv(path, REWARDS_CSV_COLUMNS, [reward_row(r) for r in scan.rows]))

        # partial earnings of a failed scan are kept
        self.allocate_hotspot(name, address)
        return scan

    # ---------------- Whole run ----------------

    def write_outputs(self) -> None:
        r = self.result

        r.files.append(append_json(self._report_path("Payments", "json"), [p.to_dict() for p in r.payments]))
        r.merged_payments = merge_payments(r.payments, self.diagnostics)
        if len(r.merged_payments) != len(r.payments):
            r.files.append(
                append_json(self._report_path("PaymentsMerged", "json"), [p.to_dict() for p in r.merged_payments])
            )

        r.files.append(
            append_json(self._report_path("DeferredPayments", "json"), [p.to_dict() for p in r.deferred_payments])
        )
        r.merged_deferred_payments = merge_payments(r.deferred_payments, self.diagnostics)
        if len(r.merged_deferred_payments) != len(r.deferred_payments):
            r.files.append(
                append_json(
                    self._report_path("DeferredPaymentsMerged", "json"),
                    [p.to_dict() for p in r.merged_deferred_payments],
                )
            )

        r.files.append(append_csv(self._report_path("Earnings", "csv"), EARNINGS_CSV_COLUMNS, r.earnings_rows))
        r.files.append(append_json(self._report_path("HotspotsHostsData", "json"), self.registry.to_config()))

    def run(self) -> Optional[ReportResult]:
        self.check_registry()

        wallet = self.settings.wallet
        if self.client.account(wallet) is None:
            self.diagnostics.warn("wallet-not-found", "", f"Helium wallet not found: {wallet}")
            return None

        for hotspot in self.client.account_hotspots(wallet):
            if not isinstance(hotspot, dict) or not hotspot.get("address"):
                self.diagnostics.warn("malformed-response", "", f"Skipped hotspot without an address: {hotspot!r:.100}")
                continue
            self.process_hotspot(hotspot)
            self.result.hotspots += 1
            if self.result.hotspots >= self.settings.max_hotspots:
                self.diagnostics.info(
                    "search-limit", "", f"Reached max hotspots: {self.settings.max_hotspots}", INFO_MEDIUM
                )
                break

        self.write_outputs()
        return self.result
