"""
Measure domain model.

Defines the Measure dataclass for quality measures an MVP can draw from.
"""

from dataclasses import dataclass

from .fields import Record, split_list, text, to_flag


@dataclass(frozen=True)
class Measure:
    """
    Represents a quality measure.

    Attributes:
        measure_id: Unique identifier (e.g. '001').
        measure_name: Human-readable measure title.
        collection_types: Raw comma-delimited collection types
            (e.g. 'eCQM, MIPS CQM').
        is_activated: True if the measure is already implemented.
        implementation_difficulty: Free-text label (e.g. 'Low', 'High').
    """

    measure_id: str
    measure_name: str
    collection_types: str
    is_activated: bool
    implementation_difficulty: str

    @classmethod
    def from_record(cls, record: Record) -> "Measure":
        return cls(
            measure_id=text(record, "measure_id"),
            measure_name=text(record, "measure_name"),
            collection_types=text(record, "collection_types"),
            is_activated=to_flag(record.get("is_activated")),
            implementation_difficulty=text(record, "implementation_difficulty"),
        )

    @property
    def collection_type_list(self) -> list[str]:
        return split_list(self.collection_types)
