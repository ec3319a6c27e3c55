import pytest

from mortgage_calc_web.app import app

QUERY = "la=300000&ir=6&lp=30&pf=12&sd=2024-01-01&fpd=2024-02-01"


@pytest.fixture
def client():
    app.config.update(TESTING=True, PREVIEW_ROWS=120)
    with app.test_client() as client:
        yield client


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_calculate_from_query_truncates_schedule(client):
    response = client.get(f"/api/calculate?{QUERY}")

    assert response.status_code == 200
    body = response.get_json()
    assert body["summary"]["actual_payment_count"] == 360
    assert body["summary"]["scheduled_payment"] == pytest.approx(1798.65, abs=0.01)
    assert len(body["schedule"]) == 120
    assert body["truncated"] == 240
    assert body["share"].startswith("la=300000")
    assert set(body["chart"]) == {"balance", "balance_without_extra"}


def test_calculate_from_query_full_schedule(client):
    response = client.get(f"/api/calculate?{QUERY}&full=1")

    body = response.get_json()
    assert len(body["schedule"]) == 360
    assert "truncated" not in body


def test_calculate_from_json(client):
    response = client.post(
        "/api/calculate",
        json={
            "la": 300000,
            "ir": 6,
            "lp": 30,
            "sd": "2024-01-01",
            "fpd": "2024-02-01",
            "pv": 400000,
            "ep": [{"t": "lump", "a": 10000, "d": "2024-02-15"}],
        },
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["summary"]["total_extra_paid"] == 10000.0
    assert body["schedule"][1]["lump_sum"] is True
    assert body["schedule"][1]["extra_payment_details"] == ["Lump Sum: +$10000.00"]
    assert "net_worth" in body["schedule"][0]
    assert "net_worth" in body["chart"]


def test_json_conflict_is_409(client):
    response = client.post(
        "/api/calculate",
        json={
            "la": 300000,
            "ir": 6,
            "lp": 30,
            "sd": "2024-01-01",
            "ep": [{"t": "recurring", "a": 200}, {"t": "custom", "ct": 2500}],
        },
    )

    assert response.status_code == 409
    body = response.get_json()
    assert body["code"] == "CONFLICT"
    assert body["message"].startswith("Cannot have both")


def test_json_validation_errors_are_422(client):
    response = client.post("/api/calculate", json={"la": 0, "ir": 6, "lp": 30})

    assert response.status_code == 422
    body = response.get_json()
    assert body["code"] == "VALIDATION_ERROR"
    fields = {error["field"] for error in body["errors"]}
    assert fields == {"loan_amount", "start_date"}


def test_json_body_must_be_object(client):
    response = client.post("/api/calculate", json=[1, 2, 3])

    assert response.status_code == 422
    assert response.get_json()["errors"][0]["field"] == "body"


def test_json_rejects_bad_encoded_extra_payments(client):
    response = client.post("/api/calculate", json={"la": 1000, "ir": 3, "lp": 1, "sd": "2024-01-01", "ep": "%%%"})

    assert response.status_code == 422
    assert response.get_json()["errors"][0]["field"] == "ep"
