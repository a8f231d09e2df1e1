"""
Hotspot ownership registry.

Each entry says which host is owed a share of a hotspot's earnings during
[valid_from, valid_to). A hotspot may have several entries, one per hosting
period. The registry lives for exactly one report run.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .currency import format_hnt
from .config import (
    PAST_DATE,
    ConfigError,
    future_date,
    iso_utc,
    parse_iso8601_utc,
    parse_share,
)

WALLET_ADDRESS_LENGTH = 51
UNKNOWN = "unknown"


def is_valid_wallet(wallet: Optional[str]) -> bool:
    # Length only. A malformed 51 character string still passes.
    return isinstance(wallet, str) and len(wallet) == WALLET_ADDRESS_LENGTH


@dataclass
class OwnershipEntry:
    name: str
    hotspot_address: str
    host_name: str
    host_wallet: Optional[str]
    gross_share: Decimal
    net_share: Decimal
    valid_from: datetime
    valid_to: datetime
    gross_earnings: Decimal = Decimal("0")
    net_earnings: Optional[str] = None
    host_earnings: Optional[str] = None
    host_wallet_validated: Optional[bool] = None
    auto_created: bool = False

    def covers(self, when: datetime) -> bool:
        return self.valid_from <= when < self.valid_to

    def overlaps(self, other: "OwnershipEntry") -> bool:
        return self.valid_from < other.valid_to and other.valid_from < self.valid_to

    def add_earnings(self, amount: Decimal) -> None:
        self.gross_earnings += amount

    def to_config(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "address": self.hotspot_address,
            "grossShare": str(self.gross_share),
            "netShare": str(self.net_share),
            "hostName": self.host_name,
            "hostWallet": self.host_wallet,
            "fromDatetimeISO": iso_utc(self.valid_from),
            "toDatetimeISO": iso_utc(self.valid_to),
            "grossEarnings": format_hnt(self.gross_earnings),
        }
        if self.net_earnings is not None:
            out["netEarnings"] = self.net_earnings
        if self.host_earnings is not None:
            out["hostEarnings"] = self.host_earnings
        if self.host_wallet_validated is not None:
            out["hostWalletValidated"] = self.host_wallet_validated
        return out


def entry_from_config(data: Dict[str, Any], run_start: datetime) -> OwnershipEntry:
    """Build an entry from one hotspotsHostsData object."""
    if not isinstance(data, dict):
        raise ConfigError(f"Host entry must be an object: {data!r}")
    address = data.get("address")
    if not address:
        raise ConfigError(f"Host entry has no hotspot address: {data!r}")
    name = data.get("name") or address

    from_iso = data.get("fromDatetimeISO")
    to_iso = data.get("toDatetimeISO")
    valid_from = parse_iso8601_utc(from_iso) if from_iso else PAST_DATE
    valid_to = parse_iso8601_utc(to_iso) if to_iso else future_date(run_start)

    return OwnershipEntry(
        name=name,
        hotspot_address=address,
        host_name=data.get("hostName") or UNKNOWN,
        host_wallet=data.get("hostWallet"),
        gross_share=parse_share(data.get("grossShare", 0), f"grossShare for {name}"),
        net_share=parse_share(data.get("netShare", 0), f"netShare for {name}"),
        valid_from=valid_from,
        valid_to=valid_to,
    )


def default_entry(name: str, address: str, run_start: datetime) -> OwnershipEntry:
    """Full-time, zero-share entry for a hotspot nobody configured."""
    return OwnershipEntry(
        name=name,
        hotspot_address=address,
        host_name=UNKNOWN,
        host_wallet=UNKNOWN,
        gross_share=Decimal("0"),
        net_share=Decimal("0"),
        valid_from=PAST_DATE,
        valid_to=future_date(run_start),
        auto_created=True,
    )


class OwnershipRegistry:
    def __init__(self, entries: Iterable[OwnershipEntry] = ()):
        self._entries: List[OwnershipEntry] = []
        self._by_address: Dict[str, List[OwnershipEntry]] = {}
        for entry in entries:
            self.add_entry(entry)

    @classmethod
    def from_config(cls, records: Iterable[Dict[str, Any]], run_start: datetime) -> "OwnershipRegistry":
        return cls(entry_from_config(r, run_start) for r in records)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    @property
    def entries(self) -> List[OwnershipEntry]:
        return list(self._entries)

    def add_entry(self, entry: OwnershipEntry) -> OwnershipEntry:
        self._entries.append(entry)
        self._by_address.setdefault(entry.hotspot_address, []).append(entry)
        return entry

    def entries_for(self, hotspot_address: str) -> List[OwnershipEntry]:
        return list(self._by_address.get(hotspot_address, ()))

    def find_matching_entries(self, hotspot_address: str, when: datetime) -> List[OwnershipEntry]:
        return [e for e in self._by_address.get(hotspot_address, ()) if e.covers(when)]

    def find_overlaps(self) -> List[Tuple[OwnershipEntry, OwnershipEntry]]:
        overlaps = []
        for entries in self._by_address.values():
            for i, first in enumerate(entries):
                for second in entries[i + 1:]:
                    if first.overlaps(second):
                        overlaps.append((first, second))
        return overlaps

    def to_config(self) -> List[Dict[str, Any]]:
        return [e.to_config() for e in self._entries]
