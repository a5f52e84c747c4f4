# tests/test_web.py
import pytest

import amort_calc_web.app as web
from amort_calc_web.comparison_store import ComparisonStore

FORM = {
    "principal": "250000",
    "rate": "6.5",
    "term": "360",
    "loan_type": "standard",
    "start_date": "2025-01-01",
    "due_day": "same",
}


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(web, "comparison_store", ComparisonStore(f"sqlite:///{tmp_path / 'web.sqlite3'}"))
    web.app.config["TESTING"] = True
    with web.app.test_client() as client:
        yield client


def _token(client):
    with client.session_transaction() as sess:
        return sess["user_token"]


def test_index_renders_form(client):
    response = client.get("/")
    assert response.status_code == 200
    assert b"Amortization Calculator" in response.data
    assert b'value="250000"' in response.data


def test_run_shows_summary_and_preview(client):
    response = client.post("/", data={**FORM, "action": "run"})
    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "1580.17" in body
    assert "240 more rows truncated" in body
    assert 'id="chart-data"' in body


def test_full_schedule_is_not_truncated(client):
    response = client.post("/", data={**FORM, "show_full_schedule": "1"})
    assert "more rows truncated" not in response.get_data(as_text=True)


def test_invalid_input_is_reported_in_page(client):
    response = client.post("/", data={**FORM, "term": "0"})
    assert response.status_code == 200
    assert "Term must be a positive number of months" in response.get_data(as_text=True)

    response = client.post("/", data={**FORM, "rate": "six"})
    assert response.status_code == 200
    assert 'class="error"' in response.get_data(as_text=True)


def test_note_action(client):
    response = client.post("/", data={**FORM, "action": "note", "case_name": "Pat Doe"})
    body = response.get_data(as_text=True)
    assert "PROMISSORY NOTE" in body
    assert "Pat Doe" in body


def test_add_load_and_clear_comparison(client):
    client.post(
        "/",
        data={**FORM, "loan_type": "recasting", "extra": "400", "action": "add_to_comparison", "scenario_name": "Recast"},
    )
    token = _token(client)
    scenarios = web.comparison_store.list_scenarios(token)
    assert [s["name"] for s in scenarios] == ["Recast"]
    assert scenarios[0]["loan_type"] == "recasting"
    assert scenarios[0]["inputs"]["extra"] == "400"

    page = client.get("/").get_data(as_text=True)
    assert "Recast" in page

    loaded = client.post("/comparison/load", data={"scenario_id": scenarios[0]["id"]})
    assert 'value="400"' in loaded.get_data(as_text=True)

    response = client.post("/comparison/clear")
    assert response.status_code == 302
    assert web.comparison_store.list_scenarios(token) == []


def test_remove_comparison(client):
    client.post("/", data={**FORM, "action": "add_to_comparison"})
    token = _token(client)
    scenario_id = web.comparison_store.list_scenarios(token)[0]["id"]
    client.post("/comparison/remove", data={"scenario_id": scenario_id})
    assert web.comparison_store.list_scenarios(token) == []


def test_scenario_names_cannot_break_out_of_script_block(client):
    name = "</script><script>alert(1)</script>"
    client.post("/", data={**FORM, "action": "add_to_comparison", "scenario_name": name})
    body = client.get("/").get_data(as_text=True)
    assert "<script>alert(1)" not in body
    assert "\\u003c/script\\u003e\\u003cscript\\u003ealert(1)" in body
    assert "&lt;/script&gt;&lt;script&gt;alert(1)" in body


def test_chart_data_is_embedded_as_json(client):
    body = client.post("/", data={**FORM, "action": "run"}).get_data(as_text=True)
    assert '<script id="chart-data" type="application/json">[{' in body
    assert '"year": 1' in body
