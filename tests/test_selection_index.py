import pytest
from stairval.notepad import create_notepad

from mvp_planner.measure import Measure
from mvp_planner.selection_index import MeasureConfig, SelectionIndex, ToggleResult

MEASURES = {
    "M1": Measure("M1", "One", "eCQM, MIPS CQM", True, "Low"),
    "M2": Measure("M2", "Two", "", False, ""),
    "M3": Measure("M3", "Three", "Claims", False, "High"),
}


def lookup(measure_id):
    return MEASURES.get(measure_id)


def test_config_uses_first_collection_type_and_difficulty():
    assert MeasureConfig.for_measure(MEASURES["M1"]) == MeasureConfig("eCQM", "Low")


def test_config_fallbacks_for_blank_or_unknown_measure():
    assert MeasureConfig.for_measure(MEASURES["M2"]) == MeasureConfig("MIPS CQM", "Medium")
    assert MeasureConfig.for_measure(None) == MeasureConfig("MIPS CQM", "Medium")


def test_build_derives_config_from_measure():
    notepad = create_notepad("load")
    index = SelectionIndex.build(
        [{"mvp_id": "G1", "measure_id": "M3", "collection_type": "ignored"}],
        lookup, lambda _: 4, notepad,
    )
    assert index.selected_of("G1") == ["M3"]
    assert index.config_of("G1", "M3") == MeasureConfig("Claims", "High")
    assert not notepad.has_warnings(include_subsections=True)


def test_build_trims_repeats_and_overflow_with_warnings():
    notepad = create_notepad("load")
    index = SelectionIndex.build(
        [
            {"mvp_id": "G1", "measure_id": "M1"},
            {"mvp_id": "G1", "measure_id": "M1"},
            {"mvp_id": "G1", "measure_id": "M2"},
            {"mvp_id": "G1", "measure_id": "M3"},
        ],
        lookup, lambda _: 2, notepad,
    )
    assert index.selected_of("G1") == ["M1", "M2"]
    assert index.config_of("G1", "M3") is None
    assert len(list(notepad.warnings())) == 2


def test_toggle_respects_capacity():
    """required=2: third toggle is a no-op."""
    index = SelectionIndex()
    assert index.toggle("G1", "M1", 2, lookup) is ToggleResult.ADDED
    assert index.toggle("G1", "M2", 2, lookup) is ToggleResult.ADDED
    assert index.toggle("G1", "M3", 2, lookup) is ToggleResult.AT_CAPACITY
    assert index.selected_of("G1") == ["M1", "M2"]
    assert index.config_of("G1", "M3") is None
    assert not ToggleResult.AT_CAPACITY.applied


def test_toggle_twice_restores_membership_with_equal_config():
    index = SelectionIndex()
    index.toggle("G1", "M1", 4, lookup)
    before = index.config_of("G1", "M1")
    assert index.toggle("G1", "M1", 4, lookup) is ToggleResult.REMOVED
    assert index.selected_of("G1") == []
    assert index.config_of("G1", "M1") is None
    index.toggle("G1", "M1", 4, lookup)
    assert index.config_of("G1", "M1") == before


def test_removal_allowed_at_capacity():
    index = SelectionIndex()
    index.toggle("G1", "M1", 1, lookup)
    assert index.toggle("G1", "M1", 1, lookup) is ToggleResult.REMOVED


def test_reselect_recomputes_config_from_current_measure():
    current = dict(MEASURES)
    index = SelectionIndex()
    index.toggle("G1", "M1", 4, current.get)
    index.toggle("G1", "M1", 4, current.get)
    current["M1"] = Measure("M1", "One", "Registry", True, "High")
    index.toggle("G1", "M1", 4, current.get)
    assert index.config_of("G1", "M1") == MeasureConfig("Registry", "High")


@pytest.mark.parametrize("required", [0, 1, 3])
def test_selected_never_exceeds_required(required):
    index = SelectionIndex()
    for measure_id in ["M1", "M2", "M3", "M1", "M2", "M3", "M2"]:
        index.toggle("G1", measure_id, required, lookup)
        selected = index.selected_of("G1")
        assert len(selected) <= required
        assert len(selected) == len(set(selected))
        assert all(index.config_of("G1", m) is not None for m in selected)
