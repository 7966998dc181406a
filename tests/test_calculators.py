# tests/test_calculators.py

"""
Tests for the area converter and EMI estimator.
"""

import math

import pytest
from fastapi.testclient import TestClient

from services.calculators import (
    convert_area,
    describe_conversion,
    estimate_emi,
    format_indian,
    monthly_payment,
)


def test_square_feet_to_yard():
    assert convert_area(900, "Square Feet", "Square Yard") == 100


def test_acre_to_bigha():
    assert convert_area(1, "Acre", "Bigha (Pucca)") == pytest.approx(1.6)


def test_conversion_is_invertible():
    there = convert_area(3.5, "Hectare", "Ground")
    back = convert_area(there, "Ground", "Hectare")
    assert back == pytest.approx(3.5)


def test_unknown_unit():
    with pytest.raises(ValueError):
        convert_area(1, "Square Feet", "Kanal")


def test_non_finite_amount():
    with pytest.raises(ValueError):
        convert_area(math.inf, "Acre", "Hectare")


def test_format_indian_grouping():
    assert format_indian(1234567.891) == "12,34,567.891"
    assert format_indian(100) == "100"
    assert format_indian(0.333333) == "0.3333"


def test_describe_conversion_summary():
    result = describe_conversion(43560, "Square Feet", "Acre")
    assert result["result"] == 1
    assert result["summary"] == "43,560 Square Feet = 1 Acre"


def test_emi_reference_value():
    result = estimate_emi(5000000, 8.5, 20)
    assert result["emi"] == 43391
    assert result["payments"] == 240
    assert result["total_payment"] == pytest.approx(10413840, abs=300)


def test_zero_rate_spreads_principal():
    assert monthly_payment(120000, 0, 1) == 10000


@pytest.mark.parametrize("principal,rate,years", [
    (-1, 8.5, 20),
    (100000, -1, 20),
    (100000, 8.5, 0),
])
def test_emi_rejects_bad_inputs(principal, rate, years):
    with pytest.raises(ValueError):
        monthly_payment(principal, rate, years)


# ============================================================
# Routes
# ============================================================
def test_area_units_route(client: TestClient):
    units = client.get("/tools/area-units").json()["units"]
    assert "Gaj" in units
    assert "Square Feet" in units


def test_area_conversion_route(client: TestClient):
    response = client.post(
        "/tools/area-conversion",
        json={"amount": 9, "from_unit": "Square Feet", "to_unit": "Gaj"},
    )
    assert response.status_code == 200
    assert response.json()["result"] == 1


def test_area_conversion_route_unknown_unit(client: TestClient):
    response = client.post(
        "/tools/area-conversion",
        json={"amount": 9, "from_unit": "Square Feet", "to_unit": "Marla"},
    )
    assert response.status_code == 400


def test_emi_route_defaults(client: TestClient):
    response = client.post("/tools/emi", json={})
    assert response.status_code == 200
    assert response.json()["emi"] == 43391


def test_survey_pad_per_device(client: TestClient):
    client.post("/tools/notes", json={"note": "North boundary wall cracked"}, headers={"X-Device-Id": "tablet"})
    client.post("/tools/notes", json={"note": "Road width 30 ft"}, headers={"X-Device-Id": "tablet"})
    client.post("/tools/notes", json={"note": "   "}, headers={"X-Device-Id": "tablet"})

    notes = client.get("/tools/notes", headers={"X-Device-Id": "tablet"}).json()["notes"]
    assert notes == ["Road width 30 ft", "North boundary wall cracked"]
    assert client.get("/tools/notes", headers={"X-Device-Id": "phone"}).json()["notes"] == []


def test_survey_pad_without_device_header(app, client: TestClient):
    client.post("/tools/notes", json={"note": "Corner plot, east facing"})
    assert client.get("/tools/notes").json()["notes"] == ["Corner plot, east facing"]

    assert TestClient(app).get("/tools/notes").json()["notes"] == []
