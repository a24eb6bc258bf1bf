"""
Clinician-to-MVP membership index.

Built from the ``assignments`` collection: every record whose 'is_active'
flag is 'Y' appends its clinician id to the list of its MVP. Inactive
records are ignored. The build keeps duplicates exactly as loaded; only
`assign` de-duplicates.
"""

import typing
from collections import defaultdict

from .fields import Record, text, to_flag


class AssignmentIndex:
    def __init__(self):
        self._members: dict[str, list[str]] = defaultdict(list)

    @classmethod
    def build(cls, assignment_records: typing.Iterable[Record]) -> "AssignmentIndex":
        index = cls()
        for record in assignment_records:
            if not to_flag(record.get("is_active")):
                continue
            index._members[text(record, "mvp_id")].append(text(record, "clinician_id"))
        return index

    def members_of(self, mvp_id: str) -> list[str]:
        """Clinician ids assigned to `mvp_id`, in assignment order (copy)."""
        return list(self._members.get(mvp_id, ()))

    def assigned_ids(self) -> set[str]:
        return {clinician_id for members in self._members.values() for clinician_id in members}

    def is_assigned(self, clinician_id: str) -> bool:
        return any(clinician_id in members for members in self._members.values())

    def grouping_of(self, clinician_id: str) -> typing.Optional[str]:
        """First MVP (in index order) whose list contains `clinician_id`."""
        for mvp_id, members in self._members.items():
            if clinician_id in members:
                return mvp_id
        return None

    def assign(self, mvp_id: str, clinician_id: str) -> bool:
        """Append `clinician_id` to `mvp_id` unless already there. Returns True on insert."""
        members = self._members[mvp_id]
        if clinician_id in members:
            return False
        members.append(clinician_id)
        return True

    def active_groupings(self) -> set[str]:
        return {mvp_id for mvp_id, members in self._members.items() if members}

    def total_assigned(self) -> int:
        # an id listed under two MVPs is counted twice
        return sum(len(members) for members in self._members.values())

    def groupings(self) -> list[str]:
        return list(self._members)
