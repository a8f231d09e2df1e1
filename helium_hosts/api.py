"""
Small client for the Helium blockchain API (v1).

List endpoints are cursor paginated: each response is
    {"data": [...], "cursor": "<opaque>"}
and the next page is requested with ?cursor=<opaque>. Pages may be short or
even empty while a cursor is still returned.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Iterator, List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import DEFAULT_API_URL

REQUEST_TIMEOUT = 30
USER_AGENT = "helium-host-reports/0.1"

# GETs are idempotent, so overload and rate-limit responses are retried
RETRY_TOTAL = 5
RETRY_BACKOFF_FACTOR = 0.6
RETRY_STATUSES = (429, 500, 502, 503, 504)


class HeliumAPIError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status

    @property
    def overloaded(self) -> bool:
        return self.status in (503, 504)


def make_session() -> requests.Session:
    """Session for the Helium API.

    Failed GETs are retried RETRY_TOTAL times with exponential backoff. When the
    retries run out the last response is returned, so HeliumClient.get still
    sees the status and raises HeliumAPIError.
    """
    s = requests.Session()
    retry = Retry(
        total=RETRY_TOTAL,
        backoff_factor=RETRY_BACKOFF_FACTOR,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    s.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})
    return s


class HeliumClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        session: Optional[requests.Session] = None,
        timeout: int = REQUEST_TIMEOUT,
        sleep_between_pages: float = 0.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or make_session()
        self.timeout = timeout
        self.sleep_between_pages = sleep_between_pages

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        r = self.session.get(url, params=params, timeout=self.timeout)
        if r.status_code != 200:
            raise HeliumAPIError(f"HTTP {r.status_code} from {url}: {r.text[:300]}", r.status_code)
        try:
            return r.json()
        except ValueError:
            raise HeliumAPIError(f"Response from {url} is not JSON: {r.text[:300]}", r.status_code) from None

    def iter_pages(
        self, path: str, params: Optional[Dict[str, Any]] = None, max_pages: Optional[int] = None
    ) -> Iterator[Dict[str, Any]]:
        """Yield raw response bodies, following the cursor."""
        params = dict(params or {})
        pages = 0
        while True:
            payload = self.get(path, params)
            pages += 1
            yield payload

            cursor = payload.get("cursor")
            if not cursor or (max_pages is not None and pages >= max_pages):
                return
            params = {"cursor": cursor}
            if self.sleep_between_pages > 0:
                time.sleep(self.sleep_between_pages)

    def iter_data(
        self, path: str, params: Optional[Dict[str, Any]] = None, max_pages: Optional[int] = None
    ) -> Iterator[Dict[str, Any]]:
        for payload in self.iter_pages(path, params, max_pages):
            yield from payload.get("data") or []

    # ---------------- Accounts / hotspots ----------------

    def account(self, address: str) -> Optional[Dict[str, Any]]:
        try:
            data = self.get(f"accounts/{address}").get("data")
        except HeliumAPIError as e:
            if e.status == 404:
                return None
            raise
        return data or None

    def account_hotspots(self, address: str) -> List[Dict[str, Any]]:
        return list(self.iter_data(f"accounts/{address}/hotspots"))

    def activity_pages(
        self,
        hotspot_address: str,
        filter_types: Sequence[str],
        page_size: int,
        max_pages: Optional[int] = None,
    ) -> Iterator[Dict[str, Any]]:
        """Raw activity pages for a hotspot, newest first."""
        params = {"filter_types": ",".join(filter_types), "limit": page_size}
        yield from self.iter_pages(f"hotspots/{hotspot_address}/activity", params, max_pages)

    def hotspot_rewards_sum(self, hotspot_address: str, min_time: str, max_time: Optional[str] = None) -> Dict[str, Any]:
        params = {"min_time": min_time}
        if max_time:
            params["max_time"] = max_time
        return self.get(f"hotspots/{hotspot_address}/rewards/sum", params).get("data") or {}

    # ---------------- Cities ----------------

    def city_pages(self, max_pages: Optional[int] = None) -> Iterator[List[Dict[str, Any]]]:
        for payload in self.iter_pages("cities", max_pages=max_pages):
            yield payload.get("data") or []

    def city_hotspot_pages(self, city_id: str, max_pages: Optional[int] = None) -> Iterator[List[Dict[str, Any]]]:
        for payload in self.iter_pages(f"cities/{city_id}/hotspots", max_pages=max_pages):
            yield payload.get("data") or []

    # ---------------- Oracle ----------------

    def current_oracle_price(self) -> Dict[str, Any]:
        return self.get("oracle/prices/current").get("data") or {}

    def oracle_price_at_block(self, block: int) -> Dict[str, Any]:
        return self.get(f"oracle/prices/{block}").get("data") or {}
