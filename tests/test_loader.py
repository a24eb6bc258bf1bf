import pandas as pd
import pytest

from mvp_planner.loader import (
    load_csv_directory,
    load_workbook_as_collections,
    parse_csv_records,
    write_csv_directory,
)


def test_parse_csv_quoting_and_trimming():
    csv_text = (
        'mvp_id,mvp_name,available_measures\n'
        'G1, "Heart, Vascular","M1, M2"\n'
        'G2,"Say ""hi""",M3\n'
    )
    records = parse_csv_records(csv_text)
    assert records == [
        {"mvp_id": "G1", "mvp_name": "Heart, Vascular", "available_measures": "M1, M2"},
        {"mvp_id": "G2", "mvp_name": 'Say "hi"', "available_measures": "M3"},
    ]


def test_parse_csv_drops_blank_rows_and_keeps_strings():
    csv_text = "clinician_id,npi,is_active\n001,0123,Y\n,,\n\n002,,N\n"
    records = parse_csv_records(csv_text)
    assert [r["clinician_id"] for r in records] == ["001", "002"]
    assert records[0]["npi"] == "0123"
    assert records[1]["npi"] == ""


def test_parse_csv_normalizes_headers():
    records = parse_csv_records("Clinician ID,Full Name (display),Active\n1,Ada,Y\n")
    assert records == [{"clinician_id": "1", "full_name": "Ada", "is_active": "Y"}]


def test_parse_csv_empty_text():
    assert parse_csv_records("") == []
    assert parse_csv_records("  \n") == []


def test_csv_directory_round_trip(tmp_path):
    collections = {
        "clinicians": [{"clinician_id": "1", "is_active": "Y"}],
        "mvps": [{"mvp_id": "G1", "mvp_name": "Group"}],
    }
    write_csv_directory(collections, str(tmp_path / "data"))
    loaded = load_csv_directory(str(tmp_path / "data"))
    assert loaded == collections


@pytest.fixture
def simple_workbook(tmp_path):
    # build a tiny Excel with two collection sheets and one unrelated sheet
    clinicians = pd.DataFrame({
        "clinician_id": [1, 2],
        "last_name": ["Lovelace", "Turing"],
        "is_active": ["Y", None],
    })
    mvps = pd.DataFrame({"mvp_id": ["G1"], "required_measures": [2]})
    path = tmp_path / "plan.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as w:
        clinicians.to_excel(w, sheet_name="Clinicians", index=False)
        mvps.to_excel(w, sheet_name="mvps", index=False)
        mvps.to_excel(w, sheet_name="scratch", index=False)
    return str(path)


def test_workbook_sheets_become_collections(simple_workbook):
    collections = load_workbook_as_collections(simple_workbook)
    assert set(collections) == {"clinicians", "mvps"}
    assert collections["clinicians"][0]["clinician_id"] == "1"
    assert collections["clinicians"][1]["is_active"] == ""
    assert collections["mvps"] == [{"mvp_id": "G1", "required_measures": "2"}]
