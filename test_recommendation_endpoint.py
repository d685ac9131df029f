"""
HTTP tests for the contraception router

Run: pytest test_recommendation_endpoint.py
"""

import pytest
from fastapi.testclient import TestClient

from config import Config
from main import app
from mec_rules_engine import MECRulesEngine


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["version"] == Config.ENGINE_VERSION


def test_list_methods(client):
    response = client.get("/contraception/methods")

    methods = response.json()["methods"]
    assert len(methods) == 15
    assert methods[0] == {"key": "a", "name": "Combined oral contraceptive (COC)"}


def test_mec_evaluate(client):
    response = client.post(
        "/contraception/mec/evaluate",
        json={"answers": {"age": 30}, "session_id": "s-1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["session_id"] == "s-1"
    assert body["engine_version"] == Config.ENGINE_VERSION
    assert {"h", "o"} <= set(body["result"]["avoid"])
    assert len(body["result"]["mecResults"]) == 15


def test_mec_evaluate_empty_body(client):
    response = client.post("/contraception/mec/evaluate", json={})

    assert response.status_code == 200
    assert len(response.json()["result"]["suggested"]) == 15


def test_fab_evaluate_pregnant(client):
    response = client.post("/contraception/fab/evaluate", json={"answers": {"fab-currently-pregnant": "yes"}})

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["notApplicable"] is True
    assert result["sym"] is None


def test_personalize(client):
    response = client.post(
        "/contraception/personalize",
        json={"eligible_methods": ["a", "c", "d", "j"], "answers": {"okayWithIrregularPeriods": False}},
    )

    assert response.status_code == 200
    assert response.json()["result"]["recommended"] == ["a", "j"]


def test_personalize_invalid_filters_returns_400(client):
    response = client.post(
        "/contraception/personalize",
        json={"eligible_methods": ["a"], "answers": {"preferredFrequency": "weekly"}},
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "PERSONALIZATION_INVALID_FILTERS"
    assert detail["details"]["reason"] == "Unknown preferred frequency"


def test_personalize_requires_method_list(client):
    response = client.post("/contraception/personalize", json={"answers": {}})

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["code"] == "VALIDATION_ERROR"
    assert detail["details"]["errors"]


def test_personalize_non_string_method_returns_400(client):
    response = client.post("/contraception/personalize", json={"eligible_methods": [["a"]]})

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "PERSONALIZATION_INVALID_FILTERS"
    assert detail["details"]["reason"] == "Eligible methods must be method keys"


def test_mec_evaluate_number_beyond_float_range(client):
    response = client.post("/contraception/mec/evaluate", json={"answers": {"age": 10**400}})

    assert response.status_code == 200
    assert len(response.json()["result"]["mecResults"]) == 15


def test_unexpected_engine_failure_reports_engine_code(client, monkeypatch):
    def broken_evaluate(answers, rules=None, now=None):
        raise RuntimeError("rule table unavailable")

    monkeypatch.setattr(MECRulesEngine, "evaluate", staticmethod(broken_evaluate))
    response = client.post("/contraception/mec/evaluate", json={"answers": {}})

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["code"] == "ELIGIBILITY_CALCULATION_FAILED"
    assert detail["details"] == {"error": "rule table unavailable"}


def test_calendar_method(client):
    response = client.post(
        "/contraception/calendar-method",
        json={"cycle_lengths": [26, 27, 28, 29, 30, 28], "lmp_date": "2026-03-01"},
    )

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["eligible"] is True
    assert result["fertileWindow"] == {"start": "08/03/2026", "end": "19/03/2026"}


def test_calendar_method_bad_lmp_returns_400(client):
    response = client.post(
        "/contraception/calendar-method",
        json={"cycle_lengths": [28] * 6, "lmp_date": "next tuesday"},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "CALCULATOR_INVALID_INPUT"


def test_standard_days(client):
    response = client.post("/contraception/standard-days", json={"cycle_lengths": [28, 28, None, 28, 28, 28]})

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["eligible"] is False
    assert result["avgCycleLength"] is None


def test_female_sterilization(client):
    response = client.post(
        "/contraception/sterilization/female/evaluate",
        json={"answers": {"fs-history-of-stroke": True, "fs-sti-risk": True}},
    )

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["category"] == "C"
    assert result["reasons"] == ["History of stroke"]
    assert "stiAdvisory" in result


def test_male_sterilization_requires_intent(client):
    response = client.post("/contraception/sterilization/male/evaluate", json={"answers": {}})

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["categoryLabel"] == "Not Eligible"
    assert result["temporaryContraceptionRecommended"] is True


def test_male_sterilization_referral(client):
    response = client.post(
        "/contraception/sterilization/male/evaluate",
        json={"answers": {"ms-desires-permanent-contraception": True, "ms-inguinal-hernia": True}},
    )

    result = response.json()["result"]
    assert result["category"] == "S"
    assert result["referralRequired"] is True
