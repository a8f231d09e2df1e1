"""
Append-only output files.

Files are opened in append mode so a second run with the same computed name
adds to the existing file instead of replacing it. Each artifact is written
with a single call.
"""

from __future__ import annotations

import csv
import io
import json
import re
from pathlib import Path
from typing import Any, Iterable, Sequence

REWARDS_CSV_COLUMNS = ["Date", "Received Quantity", "Received Currency", "Reward Type", "Block", "Hash"]

EARNINGS_CSV_COLUMNS = [
    "Period Start Time UTC",
    "Period End Time UTC",
    "Hotspot Name",
    "Hotspot URL",
    "Host Name",
    "Host Wallet",
    "Host Wallet URL",
    "Gross Split",
    "Net Split",
    "Period Gross Earnings",
    "Period Net Earnings",
    "Period Host Share",
]


def sanitize(s: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", s)


def append_text(path: Path, text: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", newline="", encoding="utf-8") as f:
        f.write(text)
    return path


def append_csv(path: Path, header: Sequence[str], rows: Iterable[Sequence[Any]], write_header: bool = True) -> Path:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    if write_header:
        w.writerow(header)
    w.writerows(rows)
    return append_text(path, buf.getvalue())


def append_json(path: Path, payload: Any) -> Path:
    return append_text(path, json.dumps(payload, ensure_ascii=False))


def rewards_file_name(hotspot_name: str, hotspot_address: str, run_stamp: str) -> str:
    return f"Rewards_{sanitize(hotspot_name)}_{sanitize(hotspot_address)}_{run_stamp}.csv"


def report_file_name(prefix: str, period_stamp: str, run_stamp: str, ext: str) -> str:
    return f"{prefix}_{period_stamp}_{run_stamp}.{ext}"
