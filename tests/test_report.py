"""
End-to-end report runs against a fake API client.
"""

import csv
import json

import requests

from helium_hosts.api import HeliumAPIError
from helium_hosts.config import ReportSettings
from helium_hosts.diagnostics import Diagnostics
from helium_hosts.registry import OwnershipRegistry
from helium_hosts.report import HostReport

from conftest import (
    HOTSPOT_A,
    HOTSPOT_B,
    HOTSPOT_C,
    OWNER_WALLET,
    RUN_START,
    WALLET_ALICE,
    FakeClient,
    make_entry,
    make_page,
    make_tx,
)

STAMPS = "20211001000000-20211101000000_20211113120000"

HOTSPOTS = [
    {"address": HOTSPOT_A, "name": "cheesy-bamboo-gorilla"},
    {"address": HOTSPOT_B, "name": "cheerful-fern-shrimp"},
    {"address": HOTSPOT_C, "name": "nutty-ultraviolet-blackbird"},
]


def settings_for(tmp_path, **overrides):
    kwargs = dict(
        wallet=OWNER_WALLET,
        report_start="2021-10-01T00:00:00Z",
        report_end="2021-11-01T00:00:00Z",
        memo="20211101",
        run_start=RUN_START,
        out_dir=tmp_path,
    )
    kwargs.update(overrides)
    return ReportSettings.build(**kwargs)


def make_registry():
    return OwnershipRegistry(
        [
            make_entry(),
            make_entry(address=HOTSPOT_B, name="cheerful-fern-shrimp", host_name="Alice again"),
        ]
    )


def default_pages():
    return {
        HOTSPOT_A: [make_page(make_tx("2021-11-02T00:00:00Z", "3"), make_tx("2021-10-20T00:00:00Z", "10"), has_more=False)],
        HOTSPOT_B: [make_page(make_tx("2021-10-15T00:00:00Z", "5"), has_more=False)],
        HOTSPOT_C: [make_page(make_tx("2021-10-10T00:00:00Z", "1"), make_tx("2021-09-01T00:00:00Z", "1"))],
    }


def run_report(tmp_path, client=None, registry=None, diagnostics=None, **overrides):
    client = client or FakeClient(HOTSPOTS, default_pages())
    report = HostReport(client, settings_for(tmp_path, **overrides), registry or make_registry(), diagnostics)
    return report.run(), report


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestFullRun:
    def test_payments_are_written_and_merged(self, tmp_path):
        result, _ = run_report(tmp_path)

        payments = read_json(tmp_path / f"Payments_{STAMPS}.json")
        assert payments == [
            {"address": WALLET_ALICE, "amount": "1.95000000", "memo": "MjAyMTExMDE="},
            {"address": WALLET_ALICE, "amount": "0.97500000", "memo": "MjAyMTExMDE="},
        ]
        merged = read_json(tmp_path / f"PaymentsMerged_{STAMPS}.json")
        assert merged == [{"address": WALLET_ALICE, "amount": "2.92500000", "memo": "MjAyMTExMDE="}]
        assert result.hotspots == 3

    def test_unchanged_lists_have_no_merged_file(self, tmp_path):
        run_report(tmp_path)

        assert read_json(tmp_path / f"DeferredPayments_{STAMPS}.json") == []
        assert not (tmp_path / f"DeferredPaymentsMerged_{STAMPS}.json").exists()

    def test_rewards_csv_lists_every_scanned_reward(self, tmp_path):
        run_report(tmp_path)

        path = tmp_path / f"Rewards_cheesy-bamboo-gorilla_{HOTSPOT_A}_20211113120000.csv"
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))

        assert [r["Received Quantity"] for r in rows] == ["3.00000000", "10.00000000"]
        assert rows[0]["Date"] == "2021-11-02T00:00:00.000Z"
        assert rows[0]["Received Currency"] == "HNT"

    def test_earnings_csv(self, tmp_path):
        run_report(tmp_path)

        with open(tmp_path / f"Earnings_{STAMPS}.csv", newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))

        assert [r["Hotspot Name"] for r in rows] == [h["name"] for h in HOTSPOTS]
        assert rows[0]["Period Gross Earnings"] == "10.00000000"
        assert rows[0]["Period Net Earnings"] == "7.80000000"
        assert rows[0]["Period Host Share"] == "1.95000000"
        assert rows[0]["Hotspot URL"] == f"https://explorer.helium.com/hotspots/{HOTSPOT_A}"
        assert rows[2]["Host Name"] == "unknown"
        assert rows[2]["Period Host Share"] == "0.00000000"

    def test_host_data_snapshot_includes_default_entries(self, tmp_path):
        diagnostics = Diagnostics()
        run_report(tmp_path, diagnostics=diagnostics)

        snapshot = read_json(tmp_path / f"HotspotsHostsData_{STAMPS}.json")

        assert len(snapshot) == 3
        assert snapshot[0]["grossEarnings"] == "10.00000000"
        assert snapshot[0]["hostEarnings"] == "1.95000000"
        assert snapshot[0]["hostWalletValidated"] is True
        assert snapshot[2]["address"] == HOTSPOT_C
        assert snapshot[2]["hostName"] == "unknown"
        assert snapshot[2]["grossEarnings"] == "1.00000000"
        assert snapshot[2]["fromDatetimeISO"] == "1970-01-01T00:00:00.000Z"
        assert snapshot[2]["toDatetimeISO"] == "2121-11-13T12:00:00.000Z"
        assert len(diagnostics.of_kind("unmatched-reward")) == 1

    def test_outputs_are_appended_not_overwritten(self, tmp_path):
        run_report(tmp_path)
        first = (tmp_path / f"Payments_{STAMPS}.json").read_text(encoding="utf-8")

        run_report(tmp_path)
        second = (tmp_path / f"Payments_{STAMPS}.json").read_text(encoding="utf-8")

        assert second == first + first

    def test_max_hotspots(self, tmp_path):
        client = FakeClient(HOTSPOTS, default_pages())

        result, _ = run_report(tmp_path, client=client, max_hotspots=1)

        assert client.requested == [HOTSPOT_A]
        assert result.hotspots == 1

    def test_deferred_payments_are_merged_by_placeholder(self, tmp_path):
        registry = OwnershipRegistry(
            [
                make_entry(host_wallet="ask Alice"),
                make_entry(host_wallet="ask Alice", valid_from="2021-10-15T00:00:00Z"),
            ]
        )
        pages = {
            HOTSPOT_A: [
                make_page(
                    make_tx("2021-10-20T00:00:00Z", "10"),
                    make_tx("2021-10-05T00:00:00Z", "10"),
                    has_more=False,
                )
            ]
        }
        diagnostics = Diagnostics()

        result, _ = run_report(
            tmp_path, client=FakeClient(HOTSPOTS[:1], pages), registry=registry, diagnostics=diagnostics
        )

        assert result.deferred_payments[0].address == "cheesy-bamboo-gorilla hosted by Alice"
        assert [p.amount for p in result.deferred_payments] == ["3.90000000"]
        assert result.payments == []
        assert diagnostics.of_kind("overlapping-entries")
        assert len(diagnostics.of_kind("multiple-matches")) == 1


class TestFailures:
    def test_wallet_not_found_writes_nothing(self, tmp_path):
        diagnostics = Diagnostics()

        result, _ = run_report(
            tmp_path, client=FakeClient(HOTSPOTS, account_exists=False), diagnostics=diagnostics
        )

        assert result is None
        assert list(tmp_path.iterdir()) == []
        assert len(diagnostics.of_kind("wallet-not-found")) == 1

    def test_fetch_failure_keeps_partial_earnings(self, tmp_path):
        pages = {
            HOTSPOT_A: [
                make_page(make_tx("2021-10-20T00:00:00Z", "10")),
                HeliumAPIError("HTTP 503", 503),
            ]
        }
        diagnostics = Diagnostics()

        result, _ = run_report(
            tmp_path, client=FakeClient(HOTSPOTS[:1], pages), diagnostics=diagnostics
        )

        assert result.scans[0].error == "HTTP 503"
        assert [p.amount for p in result.payments] == ["1.95000000"]
        assert len(diagnostics.errors) == 1
        assert diagnostics.of_kind("endpoint-overloaded")

    def test_connection_errors_are_reported(self, tmp_path):
        pages = {HOTSPOT_A: [requests.ConnectionError("refused")]}
        diagnostics = Diagnostics()

        result, _ = run_report(tmp_path, client=FakeClient(HOTSPOTS[:1], pages), diagnostics=diagnostics)

        assert diagnostics.of_kind("fetch-failed")
        assert not diagnostics.of_kind("endpoint-overloaded")
        assert result.payments == []

    def test_unreadable_transaction_is_skipped_and_run_continues(self, tmp_path):
        hotspots = [HOTSPOTS[1], HOTSPOTS[0]]
        pages = {
            HOTSPOT_B: [
                {
                    "data": [
                        {"type": "rewards_v2", "hash": "bad", "height": 1000000, "time": None, "rewards": []},
                        {
                            "type": "rewards_v2",
                            "hash": "good",
                            "height": 1000000,
                            "time": 1634688000,
                            "rewards": [{"type": "poc_witnesses", "gateway": HOTSPOT_B, "amount": 500000000}],
                        },
                    ]
                }
            ],
            HOTSPOT_A: [make_page(make_tx("2021-10-20T00:00:00Z", "10"), has_more=False)],
        }
        diagnostics = Diagnostics()

        result, _ = run_report(tmp_path, client=FakeClient(hotspots, pages), diagnostics=diagnostics)

        assert result.hotspots == 2
        assert [p.amount for p in result.payments] == ["0.97500000", "1.95000000"]
        warnings = diagnostics.of_kind("malformed-transaction")
        assert len(warnings) == 1
        assert "bad" in warnings[0].detail
        assert (tmp_path / f"Payments_{STAMPS}.json").exists()
        assert (tmp_path / f"HotspotsHostsData_{STAMPS}.json").exists()

    def test_unreadable_page_fails_only_that_hotspot(self, tmp_path):
        hotspots = [HOTSPOTS[1], HOTSPOTS[0]]
        pages = {
            HOTSPOT_B: [["not", "a", "page"]],
            HOTSPOT_A: [make_page(make_tx("2021-10-20T00:00:00Z", "10"), has_more=False)],
        }
        diagnostics = Diagnostics()

        result, _ = run_report(tmp_path, client=FakeClient(hotspots, pages), diagnostics=diagnostics)

        assert result.scans[0].error
        assert len(diagnostics.of_kind("malformed-response")) == 1
        assert [p.amount for p in result.payments] == ["1.95000000"]
        assert read_json(tmp_path / f"Payments_{STAMPS}.json") == [
            {"address": WALLET_ALICE, "amount": "1.95000000", "memo": "MjAyMTExMDE="}
        ]

    def test_hotspot_without_address_is_skipped(self, tmp_path):
        diagnostics = Diagnostics()
        client = FakeClient([{"name": "no-address"}] + HOTSPOTS[:1], default_pages())

        result, _ = run_report(tmp_path, client=client, diagnostics=diagnostics)

        assert result.hotspots == 1
        assert client.requested == [HOTSPOT_A]
        assert len(diagnostics.of_kind("malformed-response")) == 1


def test_long_memo_is_truncated_with_warning(tmp_path):
    diagnostics = Diagnostics()

    _, report = run_report(tmp_path, diagnostics=diagnostics, memo="2021110199")

    assert report.memo == "MjAyMTExMDE="
    assert len(diagnostics.of_kind("memo-truncated")) == 1
