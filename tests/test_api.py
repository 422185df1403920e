import pytest
from fastapi.testclient import TestClient

from hostel_ledger import __version__
from hostel_ledger.api.deps import get_ledger_service
from hostel_ledger.main import create_app
from hostel_ledger.services.fees import MonthlyFeeLedgerService

API = "/api/v1/monthly-fees"


@pytest.fixture
def client(db, locks, dispatcher, clock):
    app = create_app(create_tables=False)
    app.dependency_overrides[get_ledger_service] = lambda: MonthlyFeeLedgerService(
        db, locks=locks, dispatcher=dispatcher, clock=clock
    )
    return TestClient(app)


def _generate(client, hostel, period):
    response = client.post(f"{API}/generate", json={"hostel_id": hostel.id, "period": period})
    assert response.status_code == 200
    return response.json()[0]


def _fee(client, student, period):
    response = client.get(API, params={"student_id": student.id, "period": period})
    return response.json()[0]


def test_version_endpoint(client):
    response = client.get("/api/v1/meta/version")
    assert response.status_code == 200
    assert response.json()["version"] == __version__


def test_generate_and_list(client, hostel, student):
    result = _generate(client, hostel, "2025-01")
    assert result["fees_created"] == 1
    assert result["skipped"] is False

    fee = _fee(client, student, "2025-01")
    assert fee["total_due"] == "5000.00"
    assert fee["status"] == "pending"

    assert client.get(f"{API}/periods").json() == ["2025-01"]
    assert client.get(f"{API}/{fee['id']}").json()["id"] == fee["id"]


def test_payment_flow_with_cascade(client, hostel, student):
    _generate(client, hostel, "2025-01")
    january = _fee(client, student, "2025-01")

    response = client.post(
        f"{API}/payments",
        json={
            "student_id": student.id,
            "hostel_id": hostel.id,
            "amount": "3000",
            "payment_date": "2025-01-12",
            "period": "2025-01",
            "payment_mode": "upi",
        },
        headers={"X-Actor-Id": "warden-7"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["fee"]["balance"] == "2000.00"
    assert body["fee"]["status"] == "partially_paid"
    assert body["transaction"]["created_by"] == "warden-7"

    _generate(client, hostel, "2025-02")
    assert _fee(client, student, "2025-02")["carry_forward"] == "2000.00"

    response = client.post(
        f"{API}/payments",
        json={"student_id": student.id, "hostel_id": hostel.id, "amount": "2000", "fee_id": january["id"]},
    )
    assert response.json()["cascade"]["report"]["updated_periods"] == ["2025-02"]
    february = _fee(client, student, "2025-02")
    assert february["carry_forward"] == "0.00"
    assert february["total_due"] == "5000.00"


def test_refund_and_history(client, hostel, student):
    _generate(client, hostel, "2025-01")
    fee = _fee(client, student, "2025-01")
    client.post(f"{API}/payments", json={"student_id": student.id, "hostel_id": hostel.id, "amount": "5000", "fee_id": fee["id"]})

    response = client.post(f"{API}/{fee['id']}/adjustments", json={"amount": "1000", "kind": "refund", "reason": "Early exit"})
    assert response.status_code == 201
    body = response.json()
    assert body["transaction"]["amount"] == "-1000.00"
    assert body["fee"]["paid_amount"] == "4000.00"

    actions = [h["action"] for h in client.get(f"{API}/{fee['id']}/history").json()]
    assert "refund" in actions
    assert len(client.get(f"{API}/{fee['id']}/transactions").json()) == 2


def test_update_and_delete_transaction(client, hostel, student):
    _generate(client, hostel, "2025-01")
    fee = _fee(client, student, "2025-01")
    payment = client.post(
        f"{API}/payments", json={"student_id": student.id, "hostel_id": hostel.id, "amount": "1000", "fee_id": fee["id"]}
    ).json()["transaction"]

    updated = client.patch(f"{API}/transactions/{payment['id']}", json={"amount": "1500"})
    assert updated.json()["fee"]["paid_amount"] == "1500.00"

    deleted = client.delete(f"{API}/transactions/{payment['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["fee"]["status"] == "pending"
    assert client.get(f"{API}/students/{student.id}/transactions").json() == []


def test_error_responses(client, hostel, student):
    _generate(client, hostel, "2025-01")
    fee = _fee(client, student, "2025-01")

    bad_amount = client.post(f"{API}/payments", json={"student_id": student.id, "hostel_id": hostel.id, "amount": "0"})
    assert bad_amount.status_code == 400
    assert bad_amount.json()["detail"]["code"] == "INVALID_AMOUNT"

    locked = client.patch(f"{API}/{fee['id']}", json={"base_rent": "100"})
    assert locked.status_code == 403

    missing = client.get(f"{API}/does-not-exist")
    assert missing.status_code == 404

    bad_period = client.get(API, params={"period": "2025-13"})
    assert bad_period.status_code == 422


def test_diagnostics_endpoints(client, hostel, student):
    _generate(client, hostel, "2025-01")
    _generate(client, hostel, "2025-02")
    fee = _fee(client, student, "2025-01")

    diagnosis = client.get(f"{API}/students/{student.id}/carry-forward", params={"period": "2025-02"}).json()
    assert diagnosis["is_consistent"] is True
    assert diagnosis["expected_carry_forward"] == "5000.00"
    assert diagnosis["discrepancy"] == "0.00"

    assert client.get(f"{API}/{fee['id']}/consistency").json()["is_consistent"] is True

    repair = client.post(f"{API}/periods/2025-02/recalculate-carry-forward", params={"hostel_id": hostel.id}).json()
    assert repair["examined"] == 1
    assert repair["skipped"] == 1

    cascade = client.post(f"{API}/students/{student.id}/cascade", params={"from_period": "2025-01"}).json()
    assert cascade["fees_updated"] == 0

    recalculated = client.post(f"{API}/{fee['id']}/recalculate").json()
    assert recalculated["drift_detected"] is False
