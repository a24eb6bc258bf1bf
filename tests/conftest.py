import datetime
import pytest

from mvp_planner.engine import PlanningEngine


@pytest.fixture
def collections() -> dict[str, list[dict[str, str]]]:
    """
    A small planning sheet:
    - four clinicians, one inactive, one without specialty or full_name
    - two MVPs (the second requires only 2 measures)
    - 'M9' is offered by MVP1 but absent from the measures sheet
    """
    return {
        "clinicians": [
            {"clinician_id": "1", "first_name": "Ada", "last_name": "Lovelace", "full_name": "Ada Lovelace",
             "specialty": "Cardiology", "is_active": "Y", "npi": "1111111111"},
            {"clinician_id": "2", "first_name": "Alan", "last_name": "Turing", "full_name": "",
             "specialty": "", "is_active": "Y", "npi": "2222222222"},
            {"clinician_id": "3", "first_name": "Grace", "last_name": "Hopper", "full_name": "Grace Hopper",
             "specialty": "Cardiology", "is_active": "y", "npi": "3333333333"},
            {"clinician_id": "4", "first_name": "Old", "last_name": "Timer", "full_name": "Old Timer",
             "specialty": "Oncology", "is_active": "N", "npi": "4444444444"},
        ],
        "measures": [
            {"measure_id": "M1", "measure_name": "Blood Pressure Control", "collection_types": "eCQM, MIPS CQM",
             "is_activated": "Y", "implementation_difficulty": "Low"},
            {"measure_id": "M2", "measure_name": "Statin Therapy", "collection_types": "",
             "is_activated": "N", "implementation_difficulty": ""},
            {"measure_id": "M3", "measure_name": "Heart Failure Beta Blocker", "collection_types": "Medicare Part B",
             "is_activated": "N", "implementation_difficulty": "High"},
        ],
        "mvps": [
            {"mvp_id": "MVP1", "mvp_name": "Heart Disease", "eligible_specialties": "Cardiology",
             "required_measures": "4", "available_measures": "M1, M2,M3 ,M9"},
            {"mvp_id": "MVP2", "mvp_name": "Primary Care", "eligible_specialties": "",
             "required_measures": "2", "available_measures": "M1,M2,M3"},
        ],
        "benchmarks": [],
        "assignments": [
            {"mvp_id": "MVP1", "clinician_id": "1", "is_active": "Y"},
            {"mvp_id": "MVP1", "clinician_id": "2", "is_active": "N"},
        ],
        "selections": [
            {"mvp_id": "MVP1", "measure_id": "M1", "collection_type": "eCQM", "implementation_status": "Done"},
        ],
        "performance": [],
        "work": [],
        "config": [],
    }


@pytest.fixture
def engine(collections) -> PlanningEngine:
    planning_engine = PlanningEngine()
    planning_engine.load(collections)
    return planning_engine


@pytest.fixture
def report_date() -> datetime.date:
    return datetime.date(2024, 3, 1)
