"""
Planning engine: the query/mutation facade over the loaded spreadsheet.

One `PlanningEngine` owns a session's state: the record store, the
clinician-to-MVP assignment index and the per-MVP measure selections.
Loading (or refreshing) replaces all of it, discarding any assignment or
selection made since the previous load. Between loads the indexes change
only through `bulk_assign` and `toggle_measure`.

Queries never raise for ids that are simply absent; mutations raise
`InvalidTargetError` for unknown ids before touching any state.
"""

import datetime
import logging
import typing
from dataclasses import dataclass

from stairval.notepad import Notepad, create_notepad

from .assignment_index import AssignmentIndex
from .clinician import Clinician
from .fields import Record, text
from .measure import Measure
from .mvp import DEFAULT_REQUIRED_MEASURES, Mvp
from .record_store import COLLECTION_NAMES, RecordStore
from .report import ReportSection, render_report
from .selection_index import SelectionIndex, ToggleResult

CollectionFetcher = typing.Callable[[str], typing.Iterable[Record]]

# How many member last names a grouping summary spells out
SUMMARY_PREVIEW_SIZE = 3


class InvalidTargetError(LookupError):
    """Raised when a mutation names an MVP, measure or clinician that was not loaded."""


@dataclass(frozen=True)
class Stats:
    total_active_clinicians: int
    total_assigned: int
    active_grouping_count: int


@dataclass(frozen=True)
class GroupingSummary:
    """Card-sized overview of one MVP."""
    mvp: Mvp
    clinician_count: int
    selected_count: int
    required_count: int
    member_preview: str


class PlanningEngine:
    def __init__(self):
        self.store = RecordStore()
        self.assignments = AssignmentIndex()
        self.selections = SelectionIndex()
        self._clinicians: list[Clinician] = []
        self._clinicians_by_id: dict[str, Clinician] = {}
        self._mvps: list[Mvp] = []
        self._mvps_by_id: dict[str, Mvp] = {}
        self._measures_by_id: dict[str, Measure] = {}

    # -------------------
    # Loading / refreshing
    # -------------------

    def load(self, collections: typing.Mapping[str, typing.Iterable[Record]]) -> Notepad:
        """
        Replace every collection and rebuild both indexes from scratch.
        Returns a notepad of load warnings (dangling references, trimmed seeds).
        """
        notepad = create_notepad("load")
        for name in COLLECTION_NAMES:
            if name not in collections:
                notepad.add_warning(f"Collection {name!r} was not provided; treating it as empty")
        self.store.load_all(collections)

        self._clinicians = []
        self._clinicians_by_id = {}
        for record in self.store.get("clinicians"):
            clinician = Clinician.from_record(record)
            if clinician.clinician_id in self._clinicians_by_id:
                notepad.add_warning(f"Duplicate clinician id {clinician.clinician_id!r}; keeping the first row")
                continue
            self._clinicians.append(clinician)
            self._clinicians_by_id[clinician.clinician_id] = clinician

        self._mvps = [Mvp.from_record(r) for r in self.store.get("mvps")]
        self._mvps_by_id = {}
        for mvp in self._mvps:
            self._mvps_by_id.setdefault(mvp.mvp_id, mvp)

        self._measures_by_id = {}
        for record in self.store.get("measures"):
            measure = Measure.from_record(record)
            self._measures_by_id.setdefault(measure.measure_id, measure)

        self.assignments = AssignmentIndex.build(self.store.get("assignments"))
        self.selections = SelectionIndex.build(
            self.store.get("selections"), self.measure, self.required_count, notepad
        )
        self._note_dangling_references(notepad)

        logging.info(
            f"Loaded {len(self._clinicians)} clinicians, {len(self._mvps)} MVPs "
            f"and {len(self._measures_by_id)} measures"
        )
        return notepad

    def refresh(self, fetch_collection: CollectionFetcher) -> Notepad:
        """
        Fetch all collections, then load them.
        Nothing is replaced unless every fetch succeeds.
        """
        collections = {name: list(fetch_collection(name)) for name in COLLECTION_NAMES}
        return self.load(collections)

    def _note_dangling_references(self, notepad: Notepad) -> None:
        for mvp_id in self.assignments.groupings():
            if mvp_id not in self._mvps_by_id:
                notepad.add_warning(f"Assignments reference unknown MVP {mvp_id!r}")
            for clinician_id in self.assignments.members_of(mvp_id):
                if clinician_id not in self._clinicians_by_id:
                    notepad.add_warning(
                        f"MVP {mvp_id!r}: assignment references unknown clinician {clinician_id!r}"
                    )
        for record in self.store.get("selections"):
            mvp_id = text(record, "mvp_id")
            measure_id = text(record, "measure_id")
            if mvp_id not in self._mvps_by_id:
                notepad.add_warning(f"Selections reference unknown MVP {mvp_id!r}")
            if measure_id not in self._measures_by_id:
                notepad.add_warning(f"MVP {mvp_id!r}: selection references unknown measure {measure_id!r}")

    # -------
    # Lookups
    # -------

    def clinician(self, clinician_id: str) -> typing.Optional[Clinician]:
        return self._clinicians_by_id.get(str(clinician_id))

    def grouping(self, mvp_id: str) -> typing.Optional[Mvp]:
        return self._mvps_by_id.get(mvp_id)

    def measure(self, measure_id: str) -> typing.Optional[Measure]:
        return self._measures_by_id.get(measure_id)

    def clinicians(self) -> list[Clinician]:
        return list(self._clinicians)

    def groupings(self) -> list[Mvp]:
        return list(self._mvps)

    def required_count(self, mvp_id: str) -> int:
        mvp = self.grouping(mvp_id)
        return mvp.required_measures if mvp is not None else DEFAULT_REQUIRED_MEASURES

    # -------
    # Queries
    # -------

    def unassigned_clinicians(self) -> list[Clinician]:
        """Active clinicians not assigned to any MVP, in sheet order."""
        assigned = self.assignments.assigned_ids()
        return [c for c in self._clinicians if c.is_active and c.clinician_id not in assigned]

    def active_groupings(self) -> list[Mvp]:
        """MVPs with at least one assigned clinician, in sheet order."""
        active = self.assignments.active_groupings()
        return [mvp for mvp in self._mvps if mvp.mvp_id in active]

    def members(self, mvp_id: str) -> list[Clinician]:
        """Assigned clinicians of `mvp_id`; ids with no clinician record are skipped."""
        found = (self.clinician(c) for c in self.assignments.members_of(mvp_id))
        return [clinician for clinician in found if clinician is not None]

    def selected_measures(self, mvp_id: str) -> list[Measure]:
        found = (self.measure(m) for m in self.selections.selected_of(mvp_id))
        return [measure for measure in found if measure is not None]

    def available_measures(self, mvp_id: str) -> list[Measure]:
        """The MVP's offered measures that exist in the measures sheet, in offered order."""
        mvp = self.grouping(mvp_id)
        if mvp is None:
            return []
        found = (self.measure(m) for m in mvp.available_measures)
        return [measure for measure in found if measure is not None]

    def can_select(self, mvp_id: str, measure_id: str) -> bool:
        """Whether toggling `measure_id` would change anything right now."""
        if self.selections.is_selected(mvp_id, measure_id):
            return True
        return len(self.selections.selected_of(mvp_id)) < self.required_count(mvp_id)

    def specialty_counts(self) -> list[tuple[str, int]]:
        counts: dict[str, int] = {}
        for clinician in self._clinicians:
            if clinician.specialty:
                counts[clinician.specialty] = counts.get(clinician.specialty, 0) + 1
        return sorted(counts.items())

    @staticmethod
    def filter_clinicians(
        clinicians: typing.Iterable[Clinician],
        specialty: typing.Optional[str] = None,
        search: typing.Optional[str] = None,
    ) -> list[Clinician]:
        """
        Narrow a clinician list the way the picker does:
        - specialty: exact match; None or 'all' keeps everyone
        - search: case-insensitive substring of name, specialty or NPI
        """
        needle = (search or "").strip().lower()
        matches = []
        for clinician in clinicians:
            if specialty not in (None, "all") and (clinician.specialty or "") != specialty:
                continue
            if needle:
                haystack = " ".join(
                    (clinician.display_name, clinician.specialty or "", clinician.npi)
                ).lower()
                if needle not in haystack:
                    continue
            matches.append(clinician)
        return matches

    def grouping_summary(self, mvp_id: str) -> GroupingSummary:
        mvp = self._require_grouping(mvp_id)
        member_ids = self.assignments.members_of(mvp_id)
        names = []
        for clinician_id in member_ids[:SUMMARY_PREVIEW_SIZE]:
            clinician = self.clinician(clinician_id)
            names.append(clinician.last_name if clinician is not None else "Unknown")
        preview = ", ".join(names)
        if len(member_ids) > SUMMARY_PREVIEW_SIZE:
            preview += f" +{len(member_ids) - SUMMARY_PREVIEW_SIZE} more"
        return GroupingSummary(
            mvp=mvp,
            clinician_count=len(member_ids),
            selected_count=len(self.selections.selected_of(mvp_id)),
            required_count=mvp.required_measures,
            member_preview=preview,
        )

    def stats(self) -> Stats:
        return Stats(
            total_active_clinicians=sum(1 for c in self._clinicians if c.is_active),
            total_assigned=self.assignments.total_assigned(),
            active_grouping_count=len(self.assignments.active_groupings()),
        )

    # ---------
    # Mutations
    # ---------

    def bulk_assign(self, mvp_id: str, clinician_ids: typing.Iterable[str]) -> int:
        """
        Assign clinicians to `mvp_id`; returns how many were newly added.

        Ids already in this MVP are not counted again. Ids assigned to a
        different MVP are skipped, so one clinician sits in at most one MVP.
        Unknown MVP ids, and clinician ids that are unknown or inactive, raise
        InvalidTargetError and nothing is assigned.
        """
        self._require_grouping(mvp_id)
        if isinstance(clinician_ids, str):
            raise TypeError("clinician_ids must be a collection of ids, not a single string")
        if isinstance(clinician_ids, (set, frozenset)):
            ids = sorted(str(c) for c in clinician_ids)
        else:
            ids = list(dict.fromkeys(str(c) for c in clinician_ids))
        unknown = [c for c in ids if c not in self._clinicians_by_id]
        if unknown:
            raise InvalidTargetError(f"Unknown clinician ids: {unknown}")
        inactive = [c for c in ids if not self._clinicians_by_id[c].is_active]
        if inactive:
            raise InvalidTargetError(f"Inactive clinician ids: {inactive}")

        conflicts = self.assigned_elsewhere(mvp_id, ids)
        added = 0
        for clinician_id in ids:
            if clinician_id in conflicts:
                logging.warning(
                    f"Clinician {clinician_id!r} is already assigned to MVP {conflicts[clinician_id]!r}; skipping"
                )
                continue
            if self.assignments.assign(mvp_id, clinician_id):
                added += 1
        logging.info(f"Assigned {added} clinicians to MVP {mvp_id!r}")
        return added

    def assigned_elsewhere(self, mvp_id: str, clinician_ids: typing.Iterable[str]) -> dict[str, str]:
        """Map each of `clinician_ids` already in an MVP other than `mvp_id` to that MVP."""
        conflicts = {}
        for clinician_id in clinician_ids:
            current = self.assignments.grouping_of(clinician_id)
            if current is not None and current != mvp_id:
                conflicts[clinician_id] = current
        return conflicts

    def toggle_measure(self, mvp_id: str, measure_id: str) -> ToggleResult:
        """
        Select or deselect `measure_id` for `mvp_id`.
        At the MVP's required count, selecting returns AT_CAPACITY and changes nothing.
        """
        mvp = self._require_grouping(mvp_id)
        if not self.selections.is_selected(mvp_id, measure_id) and self.measure(measure_id) is None:
            raise InvalidTargetError(f"Unknown measure id: {measure_id!r}")
        result = self.selections.toggle(mvp_id, measure_id, mvp.required_measures, self.measure)
        logging.debug(f"Toggle {measure_id!r} on MVP {mvp_id!r}: {result.name}")
        return result

    def _require_grouping(self, mvp_id: str) -> Mvp:
        mvp = self.grouping(mvp_id)
        if mvp is None:
            raise InvalidTargetError(f"Unknown MVP id: {mvp_id!r}")
        return mvp

    # ------
    # Report
    # ------

    def build_report(
        self,
        generated_on: typing.Optional[datetime.date] = None,
        organization: typing.Optional[str] = None,
    ) -> str:
        sections = [
            ReportSection(
                mvp=mvp,
                clinician_count=len(self.assignments.members_of(mvp.mvp_id)),
                measures=self.selected_measures(mvp.mvp_id),
                clinicians=self.members(mvp.mvp_id),
            )
            for mvp in self.active_groupings()
        ]
        return render_report(sections, generated_on or datetime.date.today(), organization)
