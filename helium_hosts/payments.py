"""
Host payment allocation and merging.

Payment records use the helium-wallet-rs multi-payment JSON shape:
    [{"address": "<wallet>", "amount": "1.23456789", "memo": "<base64>"}, ...]
"""

from __future__ import annotations

import base64
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .currency import HNT_QUANTUM, format_hnt, round_hnt
from .diagnostics import INFO_MEDIUM, Diagnostics
from .registry import OwnershipEntry, is_valid_wallet

# helium-wallet-rs memos are u64
MEMO_MAX_BYTES = 8


@dataclass
class PaymentRecord:
    address: str
    amount: str
    memo: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class Allocation:
    entry: OwnershipEntry
    net_earnings: Decimal
    host_earnings: Decimal
    payment: Optional[PaymentRecord] = None
    deferred: bool = False


def encode_memo(memo: str) -> Tuple[str, str, bool]:
    """Return (base64 memo, memo actually used, truncated?).

    The memo is cut to 8 UTF-8 bytes without splitting a character.
    """
    raw = (memo or "").encode("utf-8")
    truncated = len(raw) > MEMO_MAX_BYTES
    used = raw[:MEMO_MAX_BYTES].decode("utf-8", errors="ignore")
    return base64.b64encode(used.encode("utf-8")).decode("ascii"), used, truncated


def deferred_placeholder(entry: OwnershipEntry) -> str:
    return f"{entry.name} hosted by {entry.host_name}"


def allocate(
    entry: OwnershipEntry,
    payment_minimum: Decimal,
    memo: str,
    diagnostics: Optional[Diagnostics] = None,
) -> Allocation:
    """Split an entry's gross earnings and build its payment, if any.

    `memo` is the already encoded (base64) memo. The entry's net/host earnings
    and wallet check are written back onto it for the host data snapshot.
    """
    diagnostics = diagnostics or Diagnostics()

    wallet_ok = is_valid_wallet(entry.host_wallet)
    entry.host_wallet_validated = wallet_ok

    net = entry.gross_earnings * entry.gross_share
    host = round_hnt(net * entry.net_share)
    entry.net_earnings = format_hnt(net)
    entry.host_earnings = format_hnt(host)

    allocation = Allocation(entry=entry, net_earnings=net, host_earnings=host)
    if host < HNT_QUANTUM:
        return allocation

    if not wallet_ok:
        if entry.host_wallet is None:
            detail = f"No host wallet address for {entry.name} (hosted by {entry.host_name})"
        else:
            detail = (
                f"Invalid host wallet address ({entry.host_wallet}) for {entry.name} "
                f"(hosted by {entry.host_name}); it must be 51 characters long"
            )
        diagnostics.warn("invalid-wallet", entry.name, detail + ". Payment deferred.")
    if host < payment_minimum:
        diagnostics.warn(
            "below-minimum",
            entry.name,
            f"Host earnings ({format_hnt(host)} HNT) are below the payment minimum ({payment_minimum} HNT). Payment deferred.",
        )

    if wallet_ok and host >= payment_minimum:
        allocation.payment = PaymentRecord(entry.host_wallet, format_hnt(host), memo)
    else:
        address = entry.host_wallet if wallet_ok else deferred_placeholder(entry)
        allocation.payment = PaymentRecord(address, format_hnt(host), memo)
        allocation.deferred = True
    return allocation


def merge_payments(
    records: Iterable[PaymentRecord], diagnostics: Optional[Diagnostics] = None
) -> List[PaymentRecord]:
    """Combine payments to the same address into one, in first-seen order."""
    groups: Dict[str, List[PaymentRecord]] = {}
    for record in records:
        groups.setdefault(record.address, []).append(record)

    merged = []
    for address, group in groups.items():
        if len(group) == 1:
            merged.append(group[0])
            continue
        total = sum((Decimal(p.amount) for p in group), Decimal("0"))
        if diagnostics is not None:
            diagnostics.info(
                "merged-payments",
                "",
                f"Merged {len(group)} payments to {address}: {format_hnt(total)}",
                INFO_MEDIUM,
            )
        merged.append(PaymentRecord(address, format_hnt(total), group[0].memo))
    return merged
