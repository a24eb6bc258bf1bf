"""
Isolated tests for the Google Sheets client without hitting the network.

requests.get is patched; backoff sleeps are patched out too.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from mvp_planner.sheets import DEFAULT_SHEET_GIDS, SheetsClient, SheetsFetchError

CLINICIANS_CSV = "clinician_id,is_active\n1,Y\n2,N\n"


def ok(text):
    return Mock(status_code=200, text=text, raise_for_status=Mock())


def test_export_url_uses_collection_gid():
    client = SheetsClient(sheet_id="abc", base_url="https://sheets.example/")
    assert client.export_url("measures") == (
        f"https://sheets.example/spreadsheets/d/abc/export?format=csv&gid={DEFAULT_SHEET_GIDS['measures']}"
    )


def test_unknown_sheet_name_rejected_before_request():
    client = SheetsClient(sheet_id="abc")
    with patch("mvp_planner.sheets.requests.get") as get:
        with pytest.raises(ValueError):
            client.fetch_collection("patients")
        get.assert_not_called()


def test_fetch_collection_decodes_csv():
    client = SheetsClient(sheet_id="abc")
    with patch("mvp_planner.sheets.requests.get", return_value=ok(CLINICIANS_CSV)) as get:
        records = client.fetch_collection("clinicians")
    assert records == [{"clinician_id": "1", "is_active": "Y"}, {"clinician_id": "2", "is_active": "N"}]
    assert get.call_args.kwargs["timeout"] == client.timeout


def test_fetch_retries_then_succeeds():
    client = SheetsClient(sheet_id="abc")
    responses = [requests.ConnectionError("boom"), ok(CLINICIANS_CSV)]

    def fake_get(url, *args, **kwargs):
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    with patch("mvp_planner.sheets.requests.get", side_effect=fake_get), \
            patch("mvp_planner.sheets._sleep_backoff") as sleep:
        assert len(client.fetch_collection("clinicians")) == 2
    sleep.assert_called_once_with(0)


def test_fetch_gives_up_after_retries():
    client = SheetsClient(sheet_id="abc")
    failing = Mock(raise_for_status=Mock(side_effect=requests.HTTPError("500")))
    with patch("mvp_planner.sheets.requests.get", return_value=failing) as get, \
            patch("mvp_planner.sheets._sleep_backoff"):
        with pytest.raises(SheetsFetchError):
            client.fetch_csv("clinicians")
    assert get.call_count == 4


def test_fetch_all_returns_every_collection():
    client = SheetsClient(sheet_id="abc")
    with patch("mvp_planner.sheets.requests.get", return_value=ok(CLINICIANS_CSV)):
        collections = client.fetch_all()
    assert set(collections) == set(DEFAULT_SHEET_GIDS)
