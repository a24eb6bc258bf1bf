"""
MVP (MIPS Value Pathway) domain model.

An MVP is the grouping clinicians are assigned to. Each one offers an
ordered set of measures, of which `required_measures` must be selected.
"""

from dataclasses import dataclass, field
from typing import Optional

from .fields import Record, split_list, text, to_count

DEFAULT_REQUIRED_MEASURES = 4


@dataclass(frozen=True)
class Mvp:
    """
    Represents an MVP grouping.

    Attributes:
        mvp_id: Unique identifier.
        mvp_name: Display name; falls back to the id in reports.
        eligible_specialties: Optional free-text specialty filter.
        required_measures: How many measures must be selected (>= 0).
        available_measures: Ordered measure ids parsed from the
            comma-delimited 'available_measures' column.
    """

    mvp_id: str
    mvp_name: str
    eligible_specialties: Optional[str] = None
    required_measures: int = DEFAULT_REQUIRED_MEASURES
    available_measures: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_record(cls, record: Record) -> "Mvp":
        return cls(
            mvp_id=text(record, "mvp_id"),
            mvp_name=text(record, "mvp_name"),
            eligible_specialties=text(record, "eligible_specialties") or None,
            required_measures=to_count(
                record.get("required_measures"), DEFAULT_REQUIRED_MEASURES
            ),
            available_measures=tuple(split_list(record.get("available_measures"))),
        )

    @property
    def title(self) -> str:
        return self.mvp_name or self.mvp_id
