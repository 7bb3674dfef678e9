import logging
import os
from datetime import date
from decimal import Decimal
from uuid import uuid4

from flask import Flask, jsonify, render_template, request, session

from debt_calc.data_models import LoanInput
from debt_calc.engine import generate_chart_data, simulate_loan
from debt_calc.events import event_color, event_display_name, event_to_payload
from debt_calc.main import result_to_dict
from debt_calc.portfolio import (
    calculate_debt_summary,
    calculate_debt_to_income_ratio,
    calculate_monthly_interest_cost,
    generate_debt_reduction_data,
    get_high_interest_accounts,
    prepare_debt_distribution,
    prepare_interest_rate_data,
)
from debt_calc.utils import decimal_from_str, parse_date
from debt_calc.validation import ValidationError, validate_loan_form
from debt_calc_web.account_store import AccountNotFound, create_store_from_env

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
account_store = create_store_from_env(os.environ.get("DEBT_CALC_DATABASE_URL"))

SCHEDULE_PREVIEW_ROWS = 120
ACCOUNT_MONEY_FIELDS = ("loan_amount", "monthly_payment", "minimum_payment", "interest_rate", "extra_payment")


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _json_object() -> dict:
    """The request body as a dict; a missing body counts as empty."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError({"body": "Request body must be a JSON object"})
    return payload


def _form_to_loan_input(form) -> LoanInput:
    """Build a ``LoanInput`` from form or JSON fields and validate it."""
    term_unit = str(form.get("term_unit", "years")).lower()
    rate = form.get("rate")
    try:
        loan_input = LoanInput(
            principal=decimal_from_str(form.get("principal", "")),
            annual_rate=decimal_from_str(rate) if rate not in (None, "") else None,
            term=int(form.get("term", 0)),
            term_unit=term_unit,
            start_date=parse_date(str(form.get("start_date", ""))),
            extra_payment1=decimal_from_str(form.get("extra_payment1") or "0"),
            extra_payment2=decimal_from_str(form.get("extra_payment2") or "0"),
        )
    except (TypeError, ValueError) as exc:
        raise ValidationError({"form": str(exc)}) from exc
    errors = validate_loan_form(loan_input)
    if errors:
        raise ValidationError(errors)
    return loan_input


def _payload_to_account_data(payload: dict) -> dict:
    data = {
        "name": str(payload.get("name", "")),
        "account_type": str(payload.get("type", "")),
    }
    errors = {}
    for key in ACCOUNT_MONEY_FIELDS:
        raw = payload.get(key)
        if raw is None or raw == "":
            if key == "extra_payment":
                continue
            errors[key] = f"{key} is required"
            continue
        try:
            data[key] = decimal_from_str(raw)
        except ValueError as exc:
            errors[key] = str(exc)
    try:
        data["start_date"] = parse_date(str(payload.get("start_date", "")))
    except ValueError as exc:
        errors["start_date"] = str(exc)
    if errors:
        raise ValidationError(errors)
    return data


def _money(value: Decimal) -> float:
    return float(value)


def _serialize_account(account) -> dict:
    return {
        "id": account.id,
        "name": account.name,
        "type": account.type,
        "loan_amount": _money(account.loan_amount),
        "current_balance": _money(account.current_balance),
        "monthly_payment": _money(account.monthly_payment),
        "minimum_payment": _money(account.minimum_payment),
        "interest_rate": _money(account.interest_rate),
        "extra_payment": _money(account.extra_payment),
        "start_date": account.start_date.isoformat(),
        "payoff_date": account.payoff_date.isoformat(),
        "is_active": account.is_active,
        "created_at": account.created_at.isoformat() if account.created_at else None,
    }


def _serialize_event(event) -> dict:
    return {
        "id": event.id,
        "debt_account_id": event.account_id,
        "event_type": event.event_type,
        "display_name": event_display_name(event.event_type),
        "color": event_color(event.event_type),
        "event_data": event_to_payload(event.data),
        "event_date": event.event_date.isoformat(),
        "notes": event.notes,
    }


def _serialize_summary(summary) -> dict:
    return {
        "total_outstanding_debt": _money(summary.total_outstanding_debt),
        "total_monthly_payments": _money(summary.total_monthly_payments),
        "number_of_active_accounts": summary.number_of_active_accounts,
        "average_interest_rate": _money(summary.average_interest_rate),
        "total_paid": _money(summary.total_paid),
        "projected_payoff_date": summary.projected_payoff_date.isoformat(),
    }


def _json_rows(rows: list) -> list:
    """Convert ``Decimal``/``date`` values inside chart rows for JSON."""
    def convert(value):
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, list):
            return [convert(v) for v in value]
        if isinstance(value, dict):
            return {k: convert(v) for k, v in value.items()}
        return value

    return [convert(row) for row in rows]


@app.errorhandler(ValidationError)
def handle_validation_error(exc: ValidationError):
    logger.warning("Rejected request to %s: %s", request.path, exc)
    return jsonify({"errors": exc.errors}), 400


@app.errorhandler(AccountNotFound)
def handle_account_not_found(exc: AccountNotFound):
    return jsonify({"error": str(exc)}), 404


@app.route("/", methods=["GET", "POST"])
def index():
    result = None
    schedule = None
    truncated = 0
    error = None

    _ensure_user_token()

    if request.method == "POST":
        try:
            result = simulate_loan(_form_to_loan_input(request.form))
            full_schedule = result.base_scenario.amortization_schedule
            schedule = full_schedule[:SCHEDULE_PREVIEW_ROWS]
            truncated = len(full_schedule) - len(schedule)
        except ValidationError as exc:
            error = "; ".join(exc.errors.values())
        except Exception as exc:
            logger.exception("Simulation failed")
            error = str(exc)

    return render_template(
        "index.html",
        result=result,
        schedule=schedule,
        truncated=truncated,
        error=error,
        form=request.form,
        asset_version=app.config["ASSET_VERSION"],
    )


@app.post("/api/simulate")
def api_simulate():
    payload = _json_object()
    result = simulate_loan(_form_to_loan_input(payload))
    data = result_to_dict(result, include_schedule=bool(payload.get("include_schedule", True)))
    data["chart_data"] = generate_chart_data(result)
    return jsonify(data)


@app.get("/api/accounts")
def list_accounts():
    user_token = _ensure_user_token()
    accounts = account_store.list_accounts(user_token)
    summary = calculate_debt_summary(accounts, date.today())
    return jsonify(
        {
            "accounts": [_serialize_account(a) for a in accounts],
            "summary": _serialize_summary(summary),
        }
    )


@app.post("/api/accounts")
def create_account():
    user_token = _ensure_user_token()
    data = _payload_to_account_data(_json_object())
    account = account_store.create_account(user_token, data, date.today())
    return jsonify(_serialize_account(account)), 201


@app.get("/api/accounts/<account_id>")
def get_account(account_id: str):
    account = account_store.get_account(_ensure_user_token(), account_id)
    if account is None:
        raise AccountNotFound(account_id)
    return jsonify(_serialize_account(account))


@app.patch("/api/accounts/<account_id>")
def update_account(account_id: str):
    updates = _json_object()
    account = account_store.update_account(_ensure_user_token(), account_id, updates, date.today())
    return jsonify(_serialize_account(account))


@app.delete("/api/accounts/<account_id>")
def delete_account(account_id: str):
    account_store.deactivate_account(_ensure_user_token(), account_id)
    return "", 204


@app.get("/api/accounts/<account_id>/events")
def list_events(account_id: str):
    events = account_store.list_events(_ensure_user_token(), account_id)
    return jsonify([_serialize_event(e) for e in events])


@app.post("/api/accounts/<account_id>/events")
def create_event(account_id: str):
    payload = _json_object()
    try:
        event_date = parse_date(str(payload.get("event_date", "")))
    except ValueError:
        raise ValidationError({"event_date": "Event date is required"})
    event = account_store.add_event(
        _ensure_user_token(),
        account_id,
        str(payload.get("event_type", "")),
        payload.get("event_data") or {},
        event_date,
        date.today(),
        notes=str(payload["notes"]) if payload.get("notes") is not None else None,
    )
    return jsonify(_serialize_event(event)), 201


@app.get("/api/dashboard")
def dashboard():
    user_token = _ensure_user_token()
    today = date.today()
    accounts = account_store.list_accounts(user_token)
    data = {
        "summary": _serialize_summary(calculate_debt_summary(accounts, today)),
        "monthly_interest_cost": _money(calculate_monthly_interest_cost(accounts)),
        "high_interest_accounts": [a.id for a in get_high_interest_accounts(accounts)],
        "distribution": _json_rows(prepare_debt_distribution(accounts)),
        "interest_rates": _json_rows(prepare_interest_rate_data(accounts)),
        "debt_reduction": _json_rows(generate_debt_reduction_data(accounts, today)),
    }
    income = request.args.get("monthly_income")
    if income:
        try:
            ratio = calculate_debt_to_income_ratio(accounts, decimal_from_str(income))
        except ValueError as exc:
            raise ValidationError({"monthly_income": str(exc)}) from exc
        data["debt_to_income_ratio"] = _money(ratio)
    return jsonify(data)


if __name__ == "__main__":
    print("Starting debt calculator web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
