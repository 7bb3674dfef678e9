from datetime import date

import pytest

import debt_calc_web.app as web
from debt_calc.utils import add_months
from debt_calc_web.account_store import AccountStore


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(web, "account_store", AccountStore("sqlite://"))
    web.app.config["TESTING"] = True
    with web.app.test_client() as client:
        yield client


def account_payload(**overrides):
    payload = {
        "name": "Car loan",
        "type": "auto",
        "loan_amount": "1200",
        "monthly_payment": "100",
        "minimum_payment": "50",
        "interest_rate": "0",
        "start_date": add_months(date.today(), -5).isoformat(),
    }
    payload.update(overrides)
    return payload


def test_index_renders_form(client):
    response = client.get("/")
    assert response.status_code == 200
    assert b"<form" in response.data


def test_index_post_shows_results(client):
    response = client.post(
        "/",
        data={"principal": "1200", "rate": "0", "term": "1", "term_unit": "years", "start_date": "2024-01"},
    )
    assert response.status_code == 200
    assert b"Base Payment" in response.data


def test_api_simulate(client):
    response = client.post(
        "/api/simulate",
        json={"principal": 1200, "rate": 0, "term": 12, "term_unit": "months", "start_date": "2024-01",
              "extra_payment1": 100, "extra_payment2": 200},
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data["base_scenario"]["loan_term_months"] == 12
    assert data["simulation1"]["scenario_name"] == "Base + $100 Extra"
    assert len(data["chart_data"]) == 12
    assert data["chart_data"][6]["simulation1_balance"] is None


def test_api_simulate_rejects_invalid_form(client):
    response = client.post(
        "/api/simulate", json={"principal": 0, "rate": 5, "term": 10, "start_date": "2024-01"}
    )
    assert response.status_code == 400
    assert "principal" in response.get_json()["errors"]


def test_api_simulate_requires_rate(client):
    response = client.post("/api/simulate", json={"principal": 1200, "term": 1, "start_date": "2024-01"})
    assert response.status_code == 400
    assert response.get_json()["errors"]["annual_rate"] == "Interest rate is required"


class TestAccountsApi:
    def test_create_and_list(self, client):
        created = client.post("/api/accounts", json=account_payload())
        assert created.status_code == 201
        account = created.get_json()
        assert account["current_balance"] == 700.0

        listing = client.get("/api/accounts").get_json()
        assert [a["id"] for a in listing["accounts"]] == [account["id"]]
        assert listing["summary"]["total_outstanding_debt"] == 700.0
        assert listing["summary"]["number_of_active_accounts"] == 1

    def test_create_rejects_bad_fields(self, client):
        response = client.post("/api/accounts", json=account_payload(loan_amount="", start_date="soon"))
        assert response.status_code == 400
        assert set(response.get_json()["errors"]) == {"loan_amount", "start_date"}

    def test_update_and_delete(self, client):
        account_id = client.post("/api/accounts", json=account_payload()).get_json()["id"]

        updated = client.patch(f"/api/accounts/{account_id}", json={"monthly_payment": 200})
        assert updated.status_code == 200
        assert updated.get_json()["current_balance"] == 200.0

        assert client.delete(f"/api/accounts/{account_id}").status_code == 204
        assert client.get(f"/api/accounts/{account_id}").status_code == 404

    def test_is_active_string_flag(self, client):
        account_id = client.post("/api/accounts", json=account_payload()).get_json()["id"]
        response = client.patch(f"/api/accounts/{account_id}", json={"is_active": "false"})
        assert response.status_code == 200
        assert response.get_json()["is_active"] is False
        assert client.get("/api/accounts").get_json()["accounts"] == []

    def test_malformed_update_bodies(self, client):
        account_id = client.post("/api/accounts", json=account_payload()).get_json()["id"]
        assert client.patch(f"/api/accounts/{account_id}", json=["name", "x"]).status_code == 400
        assert client.patch(f"/api/accounts/{account_id}", json={"is_active": "maybe"}).status_code == 400
        renamed = client.patch(f"/api/accounts/{account_id}", json={"name": 12345})
        assert renamed.status_code == 200
        assert renamed.get_json()["name"] == "12345"

    def test_derived_field_update_rejected(self, client):
        account_id = client.post("/api/accounts", json=account_payload()).get_json()["id"]
        response = client.patch(f"/api/accounts/{account_id}", json={"current_balance": 1})
        assert response.status_code == 400

    def test_accounts_are_private_to_session(self, client):
        account_id = client.post("/api/accounts", json=account_payload()).get_json()["id"]
        with web.app.test_client() as other:
            assert other.get(f"/api/accounts/{account_id}").status_code == 404
            assert other.get("/api/accounts").get_json()["accounts"] == []


class TestEventsApi:
    def test_record_event(self, client):
        account_id = client.post("/api/accounts", json=account_payload()).get_json()["id"]
        response = client.post(
            f"/api/accounts/{account_id}/events",
            json={"event_type": "extra_payment", "event_data": {"amount": 50}, "event_date": date.today().isoformat()},
        )
        assert response.status_code == 201
        event = response.get_json()
        assert event["display_name"] == "Extra Payment"
        assert event["event_data"]["amount"] == 50.0

        events = client.get(f"/api/accounts/{account_id}/events").get_json()
        assert [e["id"] for e in events] == [event["id"]]

    @pytest.mark.parametrize("skip_count", [-3, None, 2.5])
    def test_bad_skip_count_is_rejected(self, client, skip_count):
        account_id = client.post("/api/accounts", json=account_payload()).get_json()["id"]
        response = client.post(
            f"/api/accounts/{account_id}/events",
            json={
                "event_type": "payment_skip",
                "event_data": {"scheduled_payment_amount": 100, "skip_count": skip_count},
                "event_date": date.today().isoformat(),
            },
        )
        assert response.status_code == 400
        assert client.get(f"/api/accounts/{account_id}/events").get_json() == []

    def test_event_requires_date(self, client):
        account_id = client.post("/api/accounts", json=account_payload()).get_json()["id"]
        response = client.post(
            f"/api/accounts/{account_id}/events", json={"event_type": "extra_payment", "event_data": {"amount": 5}}
        )
        assert response.status_code == 400
        assert "event_date" in response.get_json()["errors"]

    def test_event_on_unknown_account(self, client):
        response = client.post(
            "/api/accounts/missing/events",
            json={"event_type": "extra_payment", "event_data": {"amount": 5}, "event_date": "2024-01-01"},
        )
        assert response.status_code == 404


def test_dashboard(client):
    client.post("/api/accounts", json=account_payload())
    client.post("/api/accounts", json=account_payload(name="Card", type="credit_card", interest_rate="24",
                                                       loan_amount="1000", start_date=date.today().isoformat()))
    data = client.get("/api/dashboard?monthly_income=1000").get_json()
    assert data["summary"]["number_of_active_accounts"] == 2
    assert data["monthly_interest_cost"] == 20.0
    assert len(data["high_interest_accounts"]) == 1
    assert {d["type"] for d in data["distribution"]} == {"auto", "credit_card"}
    assert data["debt_to_income_ratio"] == 20.0
    assert len(data["debt_reduction"]) == 121


def test_dashboard_rejects_bad_income(client):
    assert client.get("/api/dashboard?monthly_income=lots").status_code == 400
