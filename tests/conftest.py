"""
Shared fixtures and builders for the helium_hosts tests.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from helium_hosts.config import parse_iso8601_utc
from helium_hosts.currency import BONES_PER_HNT
from helium_hosts.diagnostics import Diagnostics
from helium_hosts.registry import OwnershipEntry, OwnershipRegistry
from helium_hosts.rewards import RewardAccumulator, RewardRecord, RewardTransaction, TransactionPage

RUN_START = datetime(2021, 11, 13, 12, 0, 0, tzinfo=timezone.utc)
REPORT_START = datetime(2021, 10, 1, tzinfo=timezone.utc)
REPORT_END = datetime(2021, 11, 1, tzinfo=timezone.utc)

HOTSPOT_A = "112SZBhwV8Dp3QFgYYWN7hvz2xs5VjcimpVfzEZ1SWEnZFBEdnih"
HOTSPOT_B = "11TpYdBXWfg88Nm28XBDJeomKTkVjURfUMcaHu6ZDF5sfm8u6Kk"
HOTSPOT_C = "112LkSVMykLfGkEdSoKm1AbLkeTiNo4TdBcwjoBkyzXbACBSjQVv"

WALLET_ALICE = "13shErS29gws7ikVxkb4s13PZ6sQLSY63xRKP8DEBww2qWFhUu5"
WALLET_BOB = "13H9ykhRaWw8AVEMqf7rV6Fn9fnLXxZ6G98JEdsA1gdcJKYqQYW"
OWNER_WALLET = "14b3zTWdeiYueJx6vuyC9UVJBrvx2FX3Y5sGqJTc44yJFCi7JTo"


def at(ts: str) -> datetime:
    return parse_iso8601_utc(ts)


def make_entry(
    address=HOTSPOT_A,
    name="cheesy-bamboo-gorilla",
    host_name="Alice",
    host_wallet=WALLET_ALICE,
    gross_share="0.78",
    net_share="0.25",
    valid_from="2019-01-01T00:00:00Z",
    valid_to="2099-01-01T00:00:00Z",
    gross_earnings="0",
) -> OwnershipEntry:
    return OwnershipEntry(
        name=name,
        hotspot_address=address,
        host_name=host_name,
        host_wallet=host_wallet,
        gross_share=Decimal(gross_share),
        net_share=Decimal(net_share),
        valid_from=at(valid_from),
        valid_to=at(valid_to),
        gross_earnings=Decimal(gross_earnings),
    )


def make_reward(ts: str, amount="1.0", currency="HNT", height=1000000, tx_hash="hash") -> RewardRecord:
    return RewardRecord(
        time=at(ts),
        block_height=height,
        amount=Decimal(amount) if amount is not None else None,
        currency=currency,
        reward_type="poc_witnesses",
        transaction_hash=tx_hash,
    )


def make_tx(ts: str, *amounts, height=1000000, tx_hash=None) -> RewardTransaction:
    tx_hash = tx_hash or f"tx-{ts}"
    return RewardTransaction(
        hash=tx_hash,
        height=height,
        time=at(ts),
        rewards=[make_reward(ts, a, height=height, tx_hash=tx_hash) for a in amounts],
    )


def make_page(*transactions, has_more=True) -> TransactionPage:
    return TransactionPage(list(transactions), has_more)


def to_payload(page: TransactionPage, hotspot_address: str) -> dict:
    """Render a page the way the activity endpoint returns it (amounts in bones)."""
    data = []
    for tx in page.transactions:
        rewards = []
        for r in tx.rewards:
            reward = {"type": r.reward_type, "gateway": hotspot_address}
            if r.amount is not None:
                reward["amount"] = int(r.amount * BONES_PER_HNT)
            rewards.append(reward)
        data.append(
            {
                "type": "rewards_v2",
                "hash": tx.hash,
                "height": tx.height,
                "time": int(tx.time.timestamp()),
                "rewards": rewards,
            }
        )
    payload = {"data": data}
    if page.has_more:
        payload["cursor"] = "next"
    return payload


class FakeClient:
    """Stands in for HeliumClient.

    Pages may be TransactionPage objects, raw payload dicts, or exceptions to
    raise in place of a page.
    """

    base_url = "https://api.example.test/v1"

    def __init__(self, hotspots, pages=None, account_exists=True):
        self.hotspots = hotspots
        self.pages = pages or {}
        self.account_exists = account_exists
        self.requested = []

    def account(self, address):
        return {"address": address} if self.account_exists else None

    def account_hotspots(self, address):
        return list(self.hotspots)

    def activity_pages(self, hotspot_address, filter_types, page_size, max_pages=None):
        self.requested.append(hotspot_address)
        for item in self.pages.get(hotspot_address, []):
            if isinstance(item, Exception):
                raise item
            if isinstance(item, TransactionPage):
                item = to_payload(item, hotspot_address)
            yield item


@pytest.fixture
def diagnostics():
    return Diagnostics()


@pytest.fixture
def registry():
    return OwnershipRegistry([make_entry()])


@pytest.fixture
def accumulator(registry, diagnostics):
    return RewardAccumulator(
        registry,
        REPORT_START,
        REPORT_END,
        lowest_block=468000,
        max_pages=300,
        run_start=RUN_START,
        diagnostics=diagnostics,
    )
