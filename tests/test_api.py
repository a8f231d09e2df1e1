"""
Tests for the Helium API client, against a mocked requests session.
"""

from decimal import Decimal
from unittest import mock

import pytest
from urllib3.util.retry import Retry

from helium_hosts.api import RETRY_TOTAL, HeliumAPIError, HeliumClient, make_session
from helium_hosts.rewards import reward_pages

from conftest import HOTSPOT_A, OWNER_WALLET

BASE = "https://api.example.test/v1"


def response(status=200, body=None, text=""):
    r = mock.Mock()
    r.status_code = status
    r.text = text
    if body is None:
        r.json.side_effect = ValueError("no json")
    else:
        r.json.return_value = body
    return r


def client_with(*responses):
    session = mock.Mock()
    session.get.side_effect = list(responses)
    return HeliumClient(BASE, session=session), session


def reward_item(height, amount, tx_type="rewards_v2"):
    return {
        "type": tx_type,
        "hash": f"h{height}",
        "height": height,
        "time": 1633046400 + height,
        "rewards": [{"type": "poc_witnesses", "gateway": HOTSPOT_A, "amount": amount}],
    }


class TestPagination:
    def test_follows_cursor_until_absent(self):
        client, session = client_with(
            response(body={"data": [1, 2], "cursor": "c1"}),
            response(body={"data": [], "cursor": "c2"}),
            response(body={"data": [3]}),
        )

        assert list(client.iter_data("cities", {"search": "x"})) == [1, 2, 3]

        calls = session.get.call_args_list
        assert len(calls) == 3
        assert calls[0].args[0] == f"{BASE}/cities"
        assert calls[0].kwargs["params"] == {"search": "x"}
        assert calls[1].kwargs["params"] == {"cursor": "c1"}
        assert calls[2].kwargs["params"] == {"cursor": "c2"}

    def test_max_pages_limits_requests(self):
        client, session = client_with(
            response(body={"data": [1], "cursor": "c1"}),
            response(body={"data": [2], "cursor": "c2"}),
        )

        assert list(client.iter_data("cities", max_pages=1)) == [1]
        assert session.get.call_count == 1

    def test_reward_pages(self):
        client, session = client_with(
            response(body={"data": [reward_item(500000, 164), {"type": "add_gateway_v1"}], "cursor": "c1"}),
            response(body={"data": [reward_item(499999, 836)]}),
        )

        pages = list(reward_pages(client, HOTSPOT_A, page_size=50))

        assert [p.has_more for p in pages] == [True, False]
        assert len(pages[0].transactions) == 1
        assert pages[0].transactions[0].rewards[0].amount == Decimal("0.00000164")
        assert session.get.call_args_list[0].kwargs["params"] == {
            "filter_types": "rewards_v1,rewards_v2",
            "limit": 50,
        }
        assert session.get.call_args_list[0].args[0] == f"{BASE}/hotspots/{HOTSPOT_A}/activity"

    def test_unreadable_reward_items_are_listed_not_raised(self):
        bad_time = dict(reward_item(500001, 1), hash="no-time", time=None)
        bad_height = dict(reward_item(500002, 1), hash="bad-height", height="tall")
        client, _ = client_with(
            response(body={"data": [bad_time, reward_item(500000, 164), bad_height, "junk"]}),
        )

        (page,) = reward_pages(client, HOTSPOT_A, page_size=50)

        assert [tx.height for tx in page.transactions] == [500000]
        assert len(page.malformed) == 3
        assert page.malformed[0].startswith("no-time: TypeError")
        assert page.malformed[1].startswith("bad-height: ValueError")


class TestErrors:
    def test_http_error_carries_status(self):
        client, _ = client_with(response(status=503, text="Service Unavailable"))

        with pytest.raises(HeliumAPIError) as excinfo:
            client.get("hotspots")

        assert excinfo.value.status == 503
        assert excinfo.value.overloaded

    def test_not_found_is_not_overloaded(self):
        assert not HeliumAPIError("gone", 404).overloaded

    def test_non_json_body(self):
        client, _ = client_with(response(status=200, body=None, text="<html>"))

        with pytest.raises(HeliumAPIError, match="not JSON"):
            client.get("cities")

    def test_missing_account_is_none(self):
        client, _ = client_with(response(status=404, text="Not Found"))

        assert client.account(OWNER_WALLET) is None

    def test_account(self):
        client, _ = client_with(response(body={"data": {"address": OWNER_WALLET, "balance": 1}}))

        assert client.account(OWNER_WALLET)["address"] == OWNER_WALLET

    def test_other_account_errors_propagate(self):
        client, _ = client_with(response(status=500, text="boom"))

        with pytest.raises(HeliumAPIError):
            client.account(OWNER_WALLET)


def test_session_retries_gets():
    session = make_session()
    retry = session.get_adapter("https://api.helium.io/v1").max_retries

    assert isinstance(retry, Retry)
    assert retry.total == RETRY_TOTAL
    assert retry.raise_on_status is False
    assert 503 in retry.status_forcelist
