"""
Clinician domain model.

Defines the Clinician class for rows of the ``clinicians`` collection.
"""

from dataclasses import dataclass
from typing import Optional

from .fields import Record, text, to_flag


@dataclass(frozen=True)
class Clinician:
    """
    Represents a single clinician available for MVP assignment.

    Attributes:
        clinician_id: Unique identifier (kept as a string, as loaded).
        first_name: Given name, may be empty.
        last_name: Family name, may be empty.
        full_name: Preferred display name when the sheet provides one.
        specialty: Clinical specialty, or None when blank.
        is_active: True if the 'is_active' column is 'Y'.
        npi: National Provider Identifier.
    """

    clinician_id: str
    first_name: str
    last_name: str
    full_name: str
    specialty: Optional[str]
    is_active: bool
    npi: str

    @classmethod
    def from_record(cls, record: Record) -> "Clinician":
        return cls(
            clinician_id=text(record, "clinician_id"),
            first_name=text(record, "first_name"),
            last_name=text(record, "last_name"),
            full_name=text(record, "full_name"),
            specialty=text(record, "specialty") or None,
            is_active=to_flag(record.get("is_active")),
            npi=text(record, "npi"),
        )

    @property
    def display_name(self) -> str:
        """'full_name' if present, otherwise 'Last, First'."""
        if self.full_name:
            return self.full_name
        return f"{self.last_name}, {self.first_name}"
