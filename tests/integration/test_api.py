"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def payment_body():
    return {
        "amountDue": 250.0,
        "dueDate": "2026-10-25",
        "description": "Office rent",
        "account": "ACC-1",
    }


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "payplanner_overdue_marked_total" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health")
    assert response.headers.get("X-Request-ID")


def test_calc_endpoint(client: TestClient):
    """Test POST /v1/installments/calc"""
    response = client.post(
        "/v1/installments/calc",
        json={"total": 120000, "annualRate": 12, "months": 12, "startDate": "2026-01-15"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["loanAmount"] == 120000.0
    assert data["basePayment"] == 10661.85
    assert data["roundedPayment"] is None
    assert len(data["items"]) == 12
    assert data["items"][0]["date"] == "2026-01-15"
    assert data["items"][-1]["balance"] == 0.0
    assert data["amountToPay"] == data["totalPayments"]



def test_calc_endpoint_negligible_rate(client: TestClient):
    response = client.post(
        "/v1/installments/calc",
        json={"total": 1200, "annualRate": 1e-27, "months": 12, "startDate": "2026-01-15"},
    )

    assert response.status_code == 200
    assert response.json()["basePayment"] == 100.0
    assert response.json()["totalInterest"] == 0.0

def test_calc_endpoint_with_rounding(client: TestClient):
    response = client.post(
        "/v1/installments/calc",
        json={
            "total": 120000,
            "annualRate": 12,
            "months": 12,
            "startDate": "2026-01-15",
            "roundingMode": "roundUp",
            "roundingStep": 1000,
        },
    )

    assert response.status_code == 200
    assert response.json()["roundedPayment"] == 11000.0


@pytest.mark.parametrize("months", [0, 601])
def test_calc_endpoint_rejects_invalid_term(client: TestClient, months: int):
    response = client.post(
        "/v1/installments/calc",
        json={"total": 1000, "annualRate": 5, "months": months, "startDate": "2026-01-15"},
    )
    assert response.status_code == 422


def test_create_payment(client: TestClient, payment_body: dict):
    """Test POST /v1/payments"""
    response = client.post("/v1/payments", json=payment_body, headers={"X-Actor": "alice"})

    assert response.status_code == 201
    data = response.json()
    assert data["paymentId"]
    assert data["status"] == "pending"
    assert data["isPaid"] is False
    assert data["outstanding"] == 250.0
    assert data["plannedDate"] == "2026-10-25"
    assert "alice: Payment created for 250.00 due 25.10.2026." in data["auditNotes"]


def test_create_past_due_payment_is_overdue(client: TestClient, payment_body: dict):
    payment_body["dueDate"] = "2026-10-01"

    response = client.post("/v1/payments", json=payment_body)

    assert response.status_code == 201
    assert response.json()["status"] == "overdue"


def test_create_payment_validation(client: TestClient):
    response = client.post("/v1/payments", json={"amountDue": -1, "dueDate": "2026-10-25"})
    assert response.status_code == 422

    response = client.post("/v1/payments", json={"amountDue": 10})
    assert response.status_code == 422


def test_get_payment(client: TestClient, payment_body: dict):
    """Test GET /v1/payments/{payment_id}"""
    payment_id = client.post("/v1/payments", json=payment_body).json()["paymentId"]

    response = client.get(f"/v1/payments/{payment_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["paymentId"] == payment_id
    assert data["amountDue"] == 250.0
    assert data["description"] == "Office rent"


def test_get_payment_not_found(client: TestClient):
    """Test GET /v1/payments/{payment_id} with unknown ID"""
    fake_uuid = "00000000-0000-0000-0000-000000000000"
    response = client.get(f"/v1/payments/{fake_uuid}")
    assert response.status_code == 404


def test_get_payment_bad_id(client: TestClient):
    response = client.get("/v1/payments/not-a-uuid")
    assert response.status_code == 400


def test_update_payment_partial_then_full(client: TestClient, payment_body: dict):
    """Test PUT /v1/payments/{payment_id}"""
    payment_id = client.post("/v1/payments", json=payment_body).json()["paymentId"]

    partial = client.put(
        f"/v1/payments/{payment_id}",
        json={**payment_body, "paidAmount": 100, "lastPaymentDate": "2026-10-17"},
    )
    assert partial.status_code == 200
    assert partial.json()["status"] == "pending"
    assert partial.json()["outstanding"] == 150.0

    full = client.put(
        f"/v1/payments/{payment_id}",
        json={**payment_body, "paidAmount": 250, "lastPaymentDate": "2026-10-27"},
        headers={"X-Actor": "bob"},
    )
    data = full.json()
    assert full.status_code == 200
    assert data["status"] == "completed"
    assert data["isPaid"] is True
    assert data["paidDate"] == "2026-10-27"
    assert data["dueDate"] == "2026-10-27"
    assert data["rescheduleCount"] == 0
    assert data["auditNotes"].splitlines()[-1].endswith("bob: Payment completed 27.10.2026. 2 days late.")


def test_update_payment_not_found(client: TestClient, payment_body: dict):
    fake_uuid = "00000000-0000-0000-0000-000000000000"
    response = client.put(f"/v1/payments/{fake_uuid}", json=payment_body)
    assert response.status_code == 404


def test_timeline_endpoint(client: TestClient, payment_body: dict):
    """Test GET /v1/payments/{payment_id}/timeline"""
    payment_id = client.post("/v1/payments", json=payment_body).json()["paymentId"]
    client.put(f"/v1/payments/{payment_id}", json={**payment_body, "dueDate": "2026-11-05"})

    response = client.get(f"/v1/payments/{payment_id}/timeline")

    assert response.status_code == 200
    entries = response.json()["entries"]
    assert [e["eventType"] for e in entries] == ["created", "rescheduled"]
    assert entries[1]["previousDate"] == "2026-10-25"
    assert entries[1]["newDate"] == "2026-11-05"


def test_list_payments_by_status(client: TestClient, payment_body: dict):
    """Test GET /v1/payments?status="""
    client.post("/v1/payments", json=payment_body)
    client.post("/v1/payments", json={**payment_body, "dueDate": "2026-09-01"})

    overdue = client.get("/v1/payments?status=overdue")
    everything = client.get("/v1/payments")

    assert overdue.status_code == 200
    assert len(overdue.json()["payments"]) == 1
    assert len(everything.json()["payments"]) == 2
    assert everything.json()["payments"][0]["dueDate"] == "2026-09-01"


def test_request_id_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_request_metrics_use_route_template(client: TestClient, payment_body: dict):
    payment_id = client.post("/v1/payments", json=payment_body).json()["paymentId"]
    client.get(f"/v1/payments/{payment_id}")

    metrics = client.get("/metrics").text

    assert 'endpoint="/v1/payments/{payment_id}"' in metrics
    assert payment_id not in metrics
