"""
Google Sheets fetch layer.

High level
----------
Every collection lives on its own tab of one spreadsheet. A tab is fetched
as a CSV export (``/export?format=csv&gid=<tab gid>``) and decoded into flat
string records by `loader.parse_csv_records`.

Key behaviors
-------------
- Only the nine known collection names can be fetched; anything else is a
  ValueError before any request is made.
- Uses small retry/backoff for resilience.
- Any failure after the last retry raises `SheetsFetchError`.

Environment
-----------
MVP_SHEET_ID          : Spreadsheet id to read from.
MVP_SHEETS_BASE_URL   : Optional base URL override (default "https://docs.google.com")
"""

from __future__ import annotations

import logging
import os
import time
from typing import Dict, List, Mapping, Optional

import requests

from .loader import parse_csv_records
from .record_store import COLLECTION_NAMES


class SheetsFetchError(RuntimeError):
    """Raised when a spreadsheet tab cannot be downloaded."""


# ------------------------------------------------------------------------------
# Module configuration
# ------------------------------------------------------------------------------

DEFAULT_SHEET_ID = os.getenv("MVP_SHEET_ID", "1CHs8cP3mDQkwG-XL-B7twFVukRxcB4umn9VX9ZK2VqM")
DEFAULT_BASE_URL = os.getenv("MVP_SHEETS_BASE_URL", "https://docs.google.com").rstrip("/")

# Tab gid per collection
DEFAULT_SHEET_GIDS: Dict[str, str] = {
    "clinicians": "0",
    "measures": "1838421790",
    "mvps": "467952052",
    "benchmarks": "322699637",
    "assignments": "1879320597",
    "selections": "1724246569",
    "performance": "557443576",
    "work": "1972144134",
    "config": "128453598",
}

MAX_ATTEMPTS = 4


def _sleep_backoff(i: int) -> None:
    """
    Sleep using a small exponential backoff.
    Sequence ~ 0.25s, 0.5s, 1s, 2s.
    """
    time.sleep(0.25 * (2**i))


class SheetsClient:
    def __init__(
        self,
        sheet_id: Optional[str] = None,
        gids: Optional[Mapping[str, str]] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.sheet_id = sheet_id or DEFAULT_SHEET_ID
        self.gids = dict(gids or DEFAULT_SHEET_GIDS)
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout

    def export_url(self, name: str) -> str:
        if name not in COLLECTION_NAMES or name not in self.gids:
            raise ValueError(f"Invalid sheet name: {name!r}")
        return (
            f"{self.base_url}/spreadsheets/d/{self.sheet_id}"
            f"/export?format=csv&gid={self.gids[name]}"
        )

    def fetch_csv(self, name: str) -> str:
        """
        GET the CSV export of one tab with simple retry/backoff.

        Retries a few times on network/HTTP problems and raises
        SheetsFetchError if all attempts fail.
        """
        url = self.export_url(name)
        last_exc: Exception | None = None
        for i in range(MAX_ATTEMPTS):
            try:
                resp = requests.get(url, timeout=self.timeout)
                resp.raise_for_status()
                return resp.text
            except requests.RequestException as e:
                last_exc = e
                logging.debug(f"Fetching {name!r} failed (attempt {i + 1}): {e}")
                if i < MAX_ATTEMPTS - 1:
                    _sleep_backoff(i)
        assert last_exc is not None
        raise SheetsFetchError(f"Failed to fetch sheet {name!r}: {last_exc}") from last_exc

    def fetch_collection(self, name: str) -> List[Dict[str, str]]:
        records = parse_csv_records(self.fetch_csv(name))
        logging.info(f"Fetched {len(records)} {name} records")
        return records

    def fetch_all(self) -> Dict[str, List[Dict[str, str]]]:
        return {name: self.fetch_collection(name) for name in COLLECTION_NAMES}
