"""
Measure selection state per MVP.

Each MVP keeps an ordered list of selected measure ids, capped at the MVP's
required measure count, plus a configuration entry for every selected
measure. The configuration is derived from the measure itself whenever it
is (re-)selected and is dropped when the measure is deselected, so the two
structures always cover the same ids.

Seeded from the ``selections`` collection on load and mutated afterwards
only through `toggle`.
"""

import typing
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum, auto

from stairval.notepad import Notepad

from .fields import Record, text
from .measure import Measure

DEFAULT_COLLECTION_TYPE = "MIPS CQM"
DEFAULT_DIFFICULTY = "Medium"

MeasureLookup = typing.Callable[[str], typing.Optional[Measure]]
CapacityLookup = typing.Callable[[str], int]


class ToggleResult(Enum):
    """Outcome of toggling a measure for an MVP."""
    ADDED = auto()
    REMOVED = auto()
    AT_CAPACITY = auto()

    @property
    def applied(self) -> bool:
        return self is not ToggleResult.AT_CAPACITY


@dataclass(frozen=True)
class MeasureConfig:
    """
    How a selected measure will be reported.

    Attributes:
        collection_type: First listed collection type of the measure.
        difficulty: The measure's implementation difficulty label.
    """
    collection_type: str
    difficulty: str

    @classmethod
    def for_measure(cls, measure: typing.Optional[Measure]) -> "MeasureConfig":
        """Derive a config, falling back to 'MIPS CQM' / 'Medium' for blank or unknown measures."""
        if measure is None:
            return cls(DEFAULT_COLLECTION_TYPE, DEFAULT_DIFFICULTY)
        collection_types = measure.collection_type_list
        return cls(
            collection_type=collection_types[0] if collection_types else DEFAULT_COLLECTION_TYPE,
            difficulty=measure.implementation_difficulty or DEFAULT_DIFFICULTY,
        )


class SelectionIndex:
    def __init__(self):
        self._selected: dict[str, list[str]] = defaultdict(list)
        self._configs: dict[str, dict[str, MeasureConfig]] = defaultdict(dict)

    @classmethod
    def build(
        cls,
        selection_records: typing.Iterable[Record],
        measure_lookup: MeasureLookup,
        capacity_of: CapacityLookup,
        notepad: Notepad,
    ) -> "SelectionIndex":
        """
        Seed the index from selection records.
        Repeated measures and seeds beyond an MVP's capacity are dropped
        with a warning so the loaded state already satisfies the cap.
        """
        index = cls()
        for record in selection_records:
            mvp_id = text(record, "mvp_id")
            measure_id = text(record, "measure_id")
            selected = index._selected[mvp_id]
            if measure_id in selected:
                notepad.add_warning(f"MVP {mvp_id!r}: measure {measure_id!r} selected more than once")
                continue
            if len(selected) >= capacity_of(mvp_id):
                notepad.add_warning(
                    f"MVP {mvp_id!r}: dropping measure {measure_id!r}, "
                    f"already at {len(selected)} selected measures"
                )
                continue
            index._add(mvp_id, measure_id, measure_lookup)
        return index

    def selected_of(self, mvp_id: str) -> list[str]:
        return list(self._selected.get(mvp_id, ()))

    def config_of(self, mvp_id: str, measure_id: str) -> typing.Optional[MeasureConfig]:
        return self._configs.get(mvp_id, {}).get(measure_id)

    def is_selected(self, mvp_id: str, measure_id: str) -> bool:
        return measure_id in self._selected.get(mvp_id, ())

    def toggle(
        self,
        mvp_id: str,
        measure_id: str,
        required_count: int,
        measure_lookup: MeasureLookup,
    ) -> ToggleResult:
        """
        Remove `measure_id` if selected, otherwise add it while below
        `required_count`. At capacity the call changes nothing.
        """
        selected = self._selected[mvp_id]
        if measure_id in selected:
            selected.remove(measure_id)
            del self._configs[mvp_id][measure_id]
            return ToggleResult.REMOVED
        if len(selected) < required_count:
            self._add(mvp_id, measure_id, measure_lookup)
            return ToggleResult.ADDED
        return ToggleResult.AT_CAPACITY

    def _add(self, mvp_id: str, measure_id: str, measure_lookup: MeasureLookup) -> None:
        self._selected[mvp_id].append(measure_id)
        self._configs[mvp_id][measure_id] = MeasureConfig.for_measure(measure_lookup(measure_id))
