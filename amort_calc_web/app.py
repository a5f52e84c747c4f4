import logging
import os
from uuid import uuid4

import click
from flask import Flask, render_template, request, session, redirect, url_for

from amort_calc.data_models import DUE_DAYS, LOAN_TYPES
from amort_calc.engine import compute_schedule
from amort_calc.formatter import chart_series
from amort_calc.main import build_config_from_options, serialize_schedule
from amort_calc.notes import render_note
from amort_calc_web.comparison_store import create_store_from_env

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
comparison_store = create_store_from_env(os.environ.get("COMPARISON_DATABASE_URL"))

PREVIEW_ROWS = 120

FORM_FIELDS = (
    "case_name",
    "principal",
    "rate",
    "term",
    "loan_type",
    "start_date",
    "extra",
    "balloon_term",
    "interest_only",
    "first_payment_date",
    "due_day",
    "fixed_months",
    "adjustment_months",
    "lifetime_cap",
    "periodic_cap",
    "seed",
)

DEFAULT_INPUTS = {
    "principal": "250000",
    "rate": "6.5",
    "term": "360",
    "loan_type": "standard",
    "due_day": "same",
    "balloon_term": "60",
    "fixed_months": "60",
    "adjustment_months": "12",
    "lifetime_cap": "5",
}


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _optional(form, name, convert):
    value = form.get(name, "").strip()
    return convert(value) if value else None


def _form_inputs(form) -> dict:
    """Raw form values worth keeping, so a saved scenario can be reloaded."""
    return {name: form.get(name, "").strip() for name in FORM_FIELDS if form.get(name, "").strip()}


def _form_to_config(form):
    return build_config_from_options(
        form.get("principal", "").strip(),
        float(form.get("rate", 0.0)),
        int(form.get("term", 0)),
        form.get("loan_type", "standard"),
        form.get("start_date", "").strip(),
        extra=form.get("extra", "").strip() or None,
        balloon_term=_optional(form, "balloon_term", int),
        interest_only=form.get("interest_only") == "1",
        first_payment_date=form.get("first_payment_date", "").strip() or None,
        due_day=form.get("due_day", "same"),
        fixed_months=_optional(form, "fixed_months", int),
        adjustment_months=_optional(form, "adjustment_months", int),
        lifetime_cap=_optional(form, "lifetime_cap", float),
        periodic_cap=_optional(form, "periodic_cap", float),
        seed=_optional(form, "seed", int),
    )


def _summaries_for_view(summary: dict, schedule: list, show_full_schedule: bool):
    if not summary:
        return summary, []
    if show_full_schedule:
        summary.pop("truncated", None)
        return summary, schedule
    preview = schedule[:PREVIEW_ROWS]
    if len(schedule) > PREVIEW_ROWS:
        summary["truncated"] = len(schedule) - len(preview)
    return summary, preview


def _run_analysis(form, show_full_schedule: bool):
    config = _form_to_config(form)
    full_schedule, summary = compute_schedule(config)
    summary_view, schedule_view = _summaries_for_view(dict(summary), full_schedule, show_full_schedule)
    return config, summary, summary_view, schedule_view, full_schedule


def _handle_save_action(user_token: str, form, config, summary: dict, full_schedule: list) -> None:
    scenario_name = form.get("scenario_name", "").strip() or form.get("case_name", "").strip() or "Scenario"
    comparison_store.add_scenario(
        user_token,
        uuid4().hex,
        scenario_name,
        config.loan_type,
        _form_inputs(form),
        summary,
        serialize_schedule(full_schedule),
    )


def _render(inputs: dict, **context):
    user_token = _ensure_user_token()
    comparison_scenarios = comparison_store.list_scenarios(user_token)
    context.setdefault("summary", None)
    context.setdefault("schedule", None)
    context.setdefault("error", None)
    context.setdefault("note_text", None)
    context.setdefault("show_full_schedule", False)
    context.setdefault("chart_data", None)
    # Both payloads are rendered with |tojson so user text cannot close the <script> block.
    return render_template(
        "index.html",
        inputs={**DEFAULT_INPUTS, **inputs},
        loan_types=LOAN_TYPES,
        due_days=list(DUE_DAYS),
        asset_version=app.config["ASSET_VERSION"],
        comparison_scenarios=comparison_scenarios,
        comparison_data=[{"name": s["name"], "summary": s["summary"]} for s in comparison_scenarios],
        **context,
    )


@app.route("/", methods=["GET", "POST"])
def index():
    if request.method == "GET":
        return _render({})

    user_token = _ensure_user_token()
    action = request.form.get("action", "run")
    show_full_schedule = request.form.get("show_full_schedule") == "1"
    inputs = _form_inputs(request.form)
    try:
        config, summary, summary_view, schedule_view, full_schedule = _run_analysis(
            request.form, show_full_schedule
        )
    except (ValueError, click.ClickException) as exc:
        # DomainError is a ValueError; click.BadParameter comes from option parsing.
        logger.warning("Rejected loan input: %s", exc)
        message = exc.format_message() if isinstance(exc, click.ClickException) else str(exc)
        return _render(inputs, error=message)

    if action == "add_to_comparison":
        _handle_save_action(user_token, request.form, config, summary, full_schedule)

    note_text = None
    if action == "note":
        note_text = render_note(config, full_schedule, borrower=request.form.get("case_name") or None)

    return _render(
        inputs,
        summary=summary_view,
        schedule=schedule_view,
        show_full_schedule=show_full_schedule,
        show_rate=config.loan_type == "arm",
        chart_data=chart_series(full_schedule),
        note_text=note_text,
    )


@app.post("/comparison/load")
def load_comparison():
    scenario = comparison_store.get_scenario(session.get("user_token"), request.form.get("scenario_id"))
    if scenario is None:
        return redirect(url_for("index"))
    return _render(scenario["inputs"])


@app.post("/comparison/remove")
def remove_comparison():
    scenario_id = request.form.get("scenario_id")
    user_token = session.get("user_token")
    comparison_store.remove_scenario(user_token, scenario_id)
    return redirect(url_for("index"))


@app.post("/comparison/clear")
def clear_comparisons():
    user_token = session.get("user_token")
    comparison_store.clear_scenarios(user_token)
    return redirect(url_for("index"))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting amortization calculator web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
