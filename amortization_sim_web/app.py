import logging
import os
from datetime import date
from uuid import uuid4

from flask import Flask, abort, jsonify, redirect, render_template, request, session, url_for

from amortization_sim.data_models import RatePeriod
from amortization_sim.engine import normalize_rate
from amortization_sim.errors import InvalidInputError
from amortization_sim.formatter import describe_result, serialize_schedule, serialize_summary
from amortization_sim.simulator import simulate, to_enum
from amortization_sim.utils import decimal_from_str, parse_date
from amortization_sim_web.scenario_store import create_store_from_env

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
app.config["DEBUG"] = os.environ.get("FLASK_DEBUG", "0").lower() in ("1", "true", "yes")
scenario_store = create_store_from_env(os.environ.get("SCENARIO_DATABASE_URL"))

PREVIEW_ROWS = 120


@app.template_filter("money")
def money_filter(value) -> str:
    return f"{value:,.2f}"


DEFAULT_FORM = {
    "principal": "300000",
    "rate": "9.5",
    "rate_period": "ANNUAL",
    "term": "360",
    "system": "SAC",
    "start_date": "",
    "extra_amount": "20000",
    "strategy": "REDUCE_TERM",
}


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _parse_term(value) -> int:
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise InvalidInputError(f"Term must be a whole number of months, got {value!r}") from exc


def _run_simulation(data):
    """Run a simulation from form or JSON fields.

    ``rate`` is a percentage; ``rate_period`` tells whether it is annual or
    monthly. Missing optional fields fall back to no extra payment and today's
    date.
    """
    try:
        rate = decimal_from_str(str(data.get("rate", ""))) / 100
        principal = decimal_from_str(str(data.get("principal", "")))
        extra_raw = str(data.get("extra_amount") or "0")
        extra_amount = decimal_from_str(extra_raw)
        start_raw = str(data.get("start_date") or "").strip()
        start = parse_date(start_raw) if start_raw else date.today()
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc
    period = to_enum(RatePeriod, data.get("rate_period", "ANNUAL"), "rate_period")
    return simulate(
        principal=principal,
        monthly_rate=normalize_rate(rate, period),
        term_months=_parse_term(data.get("term", "")),
        system=data.get("system", "SAC"),
        start_date=start,
        extra_amount=extra_amount,
        strategy=data.get("strategy", "REDUCE_TERM"),
    )


def _handle_save_action(user_token: str, form, result) -> None:
    scenario_name = form.get("scenario_name", "").strip() or "Scenario"
    scenario_store.save_result(user_token, uuid4().hex, scenario_name, result)


def _render_index(user_token, result=None, error=None, form_values=None, show_full_schedule=False, action="run"):
    schedule = None
    narrative = None
    truncated = 0
    if result is not None:
        narrative = describe_result(result)
        schedule = result.schedule
        if not show_full_schedule and len(schedule) > PREVIEW_ROWS:
            truncated = len(schedule) - PREVIEW_ROWS
            schedule = schedule[:PREVIEW_ROWS]

    return render_template(
        "index.html",
        result=result,
        schedule=schedule,
        narrative=narrative,
        truncated=truncated,
        show_full_schedule=show_full_schedule,
        error=error,
        form=form_values or dict(DEFAULT_FORM),
        asset_version=app.config["ASSET_VERSION"],
        saved_scenarios=scenario_store.list_scenarios(user_token),
        last_action=action,
    )


def _form_from_result(result) -> dict:
    params = result.params
    extra = result.extra_payment
    return {
        "principal": str(params.principal),
        "rate": str(params.monthly_rate * 100),
        "rate_period": RatePeriod.MONTHLY.value,
        "term": str(params.term_months),
        "system": params.system.value,
        "start_date": params.start_date.isoformat(),
        "extra_amount": str(extra.amount) if extra else "0",
        "strategy": extra.strategy.value if extra else DEFAULT_FORM["strategy"],
    }


@app.route("/", methods=["GET", "POST"])
def index():
    user_token = _ensure_user_token()
    if request.method == "GET":
        return _render_index(user_token)

    action = request.form.get("action", "run")
    form_values = dict(DEFAULT_FORM)
    form_values.update({key: request.form.get(key, "") for key in DEFAULT_FORM})
    try:
        result = _run_simulation(request.form)
    except InvalidInputError as exc:
        return _render_index(user_token, error=str(exc), form_values=form_values, action=action)
    if action == "save_scenario":
        _handle_save_action(user_token, request.form, result)
    return _render_index(
        user_token,
        result=result,
        form_values=form_values,
        show_full_schedule=request.form.get("show_full_schedule") == "1",
        action=action,
    )


@app.get("/scenarios/<scenario_id>")
def load_scenario(scenario_id):
    user_token = _ensure_user_token()
    result = scenario_store.replay(user_token, scenario_id)
    if result is None:
        abort(404)
    return _render_index(user_token, result=result, form_values=_form_from_result(result), action="load")


@app.post("/api/simulate")
def api_simulate():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Expected a JSON object"}), 400
    try:
        result = _run_simulation(payload)
    except InvalidInputError as exc:
        logger.info("Rejected simulation request: %s", exc)
        return jsonify({"error": str(exc)}), 400
    return jsonify(
        {
            "summary": serialize_summary(result),
            "narrative": describe_result(result),
            "schedule": serialize_schedule(result.schedule),
        }
    )


@app.post("/scenarios/remove")
def remove_scenario():
    scenario_id = request.form.get("scenario_id")
    user_token = session.get("user_token")
    scenario_store.remove_scenario(user_token, scenario_id)
    return redirect(url_for("index"))


@app.post("/scenarios/clear")
def clear_scenarios():
    user_token = session.get("user_token")
    scenario_store.clear_scenarios(user_token)
    return redirect(url_for("index"))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting amortization simulator web app...")
    app.run(host="0.0.0.0", port=8710, debug=app.config["DEBUG"])
