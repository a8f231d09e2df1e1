"""
Reward accumulation.

Reward transactions for one hotspot arrive page by page, newest first. Every
reward becomes a row of the hotspot's rewards CSV; rewards inside the report
window are also added to the matching ownership entry's gross earnings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterator, List, Optional

from .config import from_epoch_seconds, iso_utc
from .currency import format_hnt, from_bones
from .diagnostics import INFO_MEDIUM, INFO_VERBOSE, Diagnostics
from .registry import OwnershipEntry, OwnershipRegistry, default_entry

REWARD_TRANSACTION_TYPES = ("rewards_v1", "rewards_v2")
HNT_TICKER = "HNT"


@dataclass
class RewardRecord:
    time: datetime
    block_height: int
    amount: Optional[Decimal]
    currency: Optional[str]
    reward_type: str
    transaction_hash: str


@dataclass
class RewardTransaction:
    hash: str
    height: int
    time: datetime
    rewards: List[RewardRecord] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any], hotspot_address: Optional[str] = None) -> "RewardTransaction":
        """Build from a rewards_v1/rewards_v2 activity item.

        Rewards credited to a different gateway are dropped; rewards with no
        gateway (securities, consensus on older blocks) are kept.
        """
        when = from_epoch_seconds(int(data["time"]))
        height = int(data.get("height") or 0)
        tx_hash = data.get("hash", "")
        rewards = []
        for reward in data.get("rewards") or []:
            gateway = reward.get("gateway")
            if hotspot_address and gateway and gateway != hotspot_address:
                continue
            amount, currency = parse_reward_amount(reward.get("amount"))
            rewards.append(
                RewardRecord(
                    time=when,
                    block_height=height,
                    amount=amount,
                    currency=currency,
                    reward_type=reward.get("type", ""),
                    transaction_hash=tx_hash,
                )
            )
        return cls(hash=tx_hash, height=height, time=when, rewards=rewards)


@dataclass
class TransactionPage:
    transactions: List[RewardTransaction]
    has_more: bool
    # items that could not be parsed, as "<hash>: <error>"
    malformed: List[str] = field(default_factory=list)


def page_from_api(payload: Dict[str, Any], hotspot_address: str) -> TransactionPage:
    """Parse one activity response. Unparsable items are listed, not raised."""
    if not isinstance(payload, dict):
        raise ValueError(f"Activity page is not an object: {payload!r:.100}")
    transactions = []
    malformed = []
    for item in payload.get("data") or []:
        if not isinstance(item, dict):
            malformed.append(f"?: not an object ({item!r:.100})")
            continue
        if item.get("type") not in REWARD_TRANSACTION_TYPES:
            continue
        try:
            transactions.append(RewardTransaction.from_api(item, hotspot_address))
        except (AttributeError, KeyError, TypeError, ValueError, OverflowError) as e:
            malformed.append(f"{item.get('hash') or '?'}: {type(e).__name__}: {e}")
    return TransactionPage(transactions, has_more=bool(payload.get("cursor")), malformed=malformed)


def reward_pages(client, hotspot_address: str, page_size: int, max_pages: Optional[int] = None) -> Iterator[TransactionPage]:
    """Reward transactions for a hotspot, newest first, one page at a time."""
    for payload in client.activity_pages(hotspot_address, REWARD_TRANSACTION_TYPES, page_size, max_pages):
        yield page_from_api(payload, hotspot_address)


def parse_reward_amount(raw: Any):
    """Return (amount, ticker) from an API reward amount.

    The v1 API gives integer bones. Balance objects as serialised by the JS
    client ({"bigBalance": "...", "type": {"ticker": "HNT"}}) are accepted too.
    """
    if raw is None or raw == "":
        return None, None
    if isinstance(raw, bool):
        return None, None
    if isinstance(raw, int):
        return from_bones(raw), HNT_TICKER
    if isinstance(raw, dict):
        ticker = (raw.get("type") or {}).get("ticker")
        if raw.get("bigBalance") is not None:
            value = raw["bigBalance"]
        elif raw.get("integerBalance") is not None:
            return from_bones(raw["integerBalance"]), ticker
        else:
            value = raw.get("floatBalance")
        try:
            return (Decimal(str(value)) if value is not None else None), ticker
        except InvalidOperation:
            return None, ticker
    try:
        return Decimal(str(raw)), HNT_TICKER
    except InvalidOperation:
        return None, None


@dataclass
class HotspotScan:
    """Progress of one hotspot's pagination loop."""

    name: str
    address: str
    pages: int = 0
    transactions: int = 0
    stopped: bool = False
    stop_reason: str = ""
    error: Optional[str] = None
    rows: List[RewardRecord] = field(default_factory=list)

    def stop(self, reason: str) -> None:
        self.stopped = True
        self.stop_reason = reason


class RewardAccumulator:
    def __init__(
        self,
        registry: OwnershipRegistry,
        report_start: datetime,
        report_end: datetime,
        lowest_block: int,
        max_pages: int,
        run_start: datetime,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.registry = registry
        self.report_start = report_start
        self.report_end = report_end
        self.lowest_block = lowest_block
        self.max_pages = max_pages
        self.run_start = run_start
        self.diagnostics = diagnostics or Diagnostics()

    def in_window(self, when: datetime) -> bool:
        return self.report_start <= when < self.report_end

    def attribute(
        self, hotspot_address: str, reward: RewardRecord, hotspot_name: Optional[str] = None
    ) -> Optional[OwnershipEntry]:
        """Add one reward to the entry owning the hotspot at the reward's time.

        Returns the entry credited, or None when the reward was skipped.
        """
        name = hotspot_name or hotspot_address
        when = iso_utc(reward.time)

        if reward.amount is None:
            self.diagnostics.warn(
                "missing-amount", name, f"Undefined reward amount ({reward.reward_type}, {when}, {reward.transaction_hash})"
            )
            return None
        if not reward.currency:
            self.diagnostics.warn(
                "missing-currency", name, f"Undefined reward amount type ({reward.amount}, {when}, {reward.transaction_hash})"
            )
            return None
        if not self.in_window(reward.time):
            return None

        matches = self.registry.find_matching_entries(hotspot_address, reward.time)
        if not matches:
            entry = default_entry(name, hotspot_address, self.run_start)
            entry.add_earnings(reward.amount)
            self.registry.add_entry(entry)
            self.diagnostics.warn(
                "unmatched-reward",
                name,
                f"No host entry matched reward {format_hnt(reward.amount)} HNT ({when}); added a default host entry",
            )
            return entry

        entry = matches[0]
        entry.add_earnings(reward.amount)
        self.diagnostics.info(
            "reward-added",
            name,
            f"Added reward {reward.amount} to {entry.host_name}, gross earnings {entry.gross_earnings}",
            INFO_VERBOSE,
        )
        for extra in matches[1:]:
            self.diagnostics.warn(
                "multiple-matches",
                name,
                f"Host entry for {extra.host_name} also matched reward {format_hnt(reward.amount)} HNT ({when}); "
                f"assigned only to {entry.host_name}",
            )
        return entry

    def consume_page(self, page: TransactionPage, scan: HotspotScan) -> bool:
        """Process one page; return True if the next page should be fetched."""
        for detail in page.malformed:
            self.diagnostics.warn("malformed-transaction", scan.name, f"Skipped unreadable reward transaction {detail}")
        for tx in page.transactions:
            if tx.time < self.report_start:
                scan.stop(f"reached report start {iso_utc(self.report_start)}")
                break
            if tx.height < self.lowest_block:
                scan.stop(f"reached lowest block {self.lowest_block}")
                break

            for reward in tx.rewards:
                scan.rows.append(reward)
                self.attribute(scan.address, reward, scan.name)
            scan.transactions += 1

        scan.pages += 1
        if scan.stopped:
            self.diagnostics.info("search-limit", scan.name, f"Stopped: {scan.stop_reason}", INFO_MEDIUM)
            return False
        if scan.pages >= self.max_pages:
            scan.stop(f"reached max transaction pages {self.max_pages}")
            self.diagnostics.info("search-limit", scan.name, f"Stopped: {scan.stop_reason}", INFO_MEDIUM)
            return False
        return page.has_more
