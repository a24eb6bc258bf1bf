"""
In-memory holder for the nine spreadsheet collections.

Each collection is an ordered list of flat string records, in source order.
Loading always replaces a collection wholesale; there is no merge.
"""

import logging
import typing

from .fields import Record

# The tabs of the planning spreadsheet, in fetch order
COLLECTION_NAMES = (
    "clinicians",
    "measures",
    "mvps",
    "benchmarks",
    "assignments",
    "selections",
    "performance",
    "work",
    "config",
)


class RecordStore:
    def __init__(self):
        self._collections: dict[str, list[dict[str, str]]] = {
            name: [] for name in COLLECTION_NAMES
        }

    def load(self, name: str, records: typing.Iterable[Record]) -> None:
        """Replace the named collection with a copy of `records`."""
        if name not in self._collections:
            raise ValueError(f"Unknown collection: {name!r}")
        self._collections[name] = [dict(record) for record in records]
        logging.debug(f"Loaded {len(self._collections[name])} {name} records")

    def load_all(self, collections: typing.Mapping[str, typing.Iterable[Record]]) -> None:
        """Replace every collection; names missing from `collections` become empty."""
        unknown = sorted(set(collections) - set(COLLECTION_NAMES))
        if unknown:
            raise ValueError(f"Unknown collections: {unknown}")
        for name in COLLECTION_NAMES:
            self.load(name, collections.get(name, ()))

    def get(self, name: str) -> typing.Sequence[Record]:
        if name not in self._collections:
            raise ValueError(f"Unknown collection: {name!r}")
        return self._collections[name]

    def counts(self) -> dict[str, int]:
        return {name: len(records) for name, records in self._collections.items()}


# Minimal columns each collection needs for the planner to use it
KEY_COLUMNS: dict[str, set[str]] = {
    "clinicians": {"clinician_id", "is_active"},
    "measures": {"measure_id", "measure_name"},
    "mvps": {"mvp_id", "mvp_name", "available_measures"},
    "assignments": {"mvp_id", "clinician_id", "is_active"},
    "selections": {"mvp_id", "measure_id"},
}
