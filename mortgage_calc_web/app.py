import logging
import os

from flask import Flask, jsonify, request

from mortgage_calc.engine import calculate_mortgage
from mortgage_calc.errors import ComputationError, ConflictError, ValidationError
from mortgage_calc.formatter import chart_payload, entry_to_dict, summary_to_dict
from mortgage_calc.share import decode_extra_payments, decode_state, encode_state, FIELD_KEYS
from mortgage_calc.validation import build_inputs

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["PREVIEW_ROWS"] = int(os.environ.get("MORTGAGE_CALC_PREVIEW_ROWS", "120"))
logging.basicConfig(level=os.environ.get("MORTGAGE_CALC_LOG_LEVEL", "INFO").upper())


def _json_to_raw(payload: dict) -> dict:
    """Map a JSON body using the share keys (``la``, ``ir``, ...) to raw fields.

    ``ep`` may be a list of compact records or the base64 string used in
    share links.
    """
    raw = {}
    for key, field in FIELD_KEYS.items():
        if key in payload and payload[key] is not None:
            raw[field] = payload[key]
    extra = payload.get("ep")
    if isinstance(extra, str):
        raw["extra_payments"] = decode_extra_payments(extra)
    elif isinstance(extra, list):
        raw["extra_payments"] = [
            {
                "type": record.get("t"),
                "amount": record.get("a"),
                "count": record.get("c"),
                "custom_total": record.get("ct"),
                "date": record.get("d"),
            }
            for record in extra
            if isinstance(record, dict)
        ]
    return raw


def _run_analysis(raw: dict, show_full_schedule: bool) -> dict:
    inputs = build_inputs(raw)
    result = calculate_mortgage(inputs)
    schedule = result.schedule
    body = {
        "summary": summary_to_dict(result.summary),
        "chart": chart_payload(result),
        "share": encode_state(inputs),
    }
    preview_rows = app.config["PREVIEW_ROWS"]
    if not show_full_schedule and len(schedule) > preview_rows:
        body["truncated"] = len(schedule) - preview_rows
        schedule = schedule[:preview_rows]
    body["schedule"] = [entry_to_dict(entry, inputs) for entry in schedule]
    return body


@app.errorhandler(ValidationError)
def handle_validation_error(exc: ValidationError):
    logger.info("Validation error: %s", exc.to_dict())
    return jsonify(exc.to_dict()), 422


@app.errorhandler(ConflictError)
def handle_conflict_error(exc: ConflictError):
    logger.info("Conflict error: %s", exc.message)
    return jsonify(exc.to_dict()), 409


@app.errorhandler(ComputationError)
def handle_computation_error(exc: ComputationError):
    logger.error("Computation error: %s", exc.to_dict())
    return jsonify({"message": "Internal calculation error", "code": exc.error_code}), 500


@app.get("/health")
def health():
    return jsonify({"status": "ok"})


@app.get("/api/calculate")
def calculate_from_query():
    """Calculate from share link parameters, e.g. ``/api/calculate?la=300000&ir=6&...``."""
    raw = decode_state(request.query_string.decode("utf-8"))
    show_full_schedule = request.args.get("full") == "1"
    return jsonify(_run_analysis(raw, show_full_schedule))


@app.post("/api/calculate")
def calculate_from_json():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError(errors=[{"field": "body", "message": "Expected a JSON object", "code": "INVALID_BODY"}])
    try:
        raw = _json_to_raw(payload)
    except ValueError as exc:
        raise ValidationError(errors=[{"field": "ep", "message": str(exc), "code": "INVALID_VALUE"}])
    show_full_schedule = bool(payload.get("full")) or request.args.get("full") == "1"
    return jsonify(_run_analysis(raw, show_full_schedule))


if __name__ == "__main__":
    logger.info("Starting mortgage calculator API...")
    app.run(debug=os.environ.get("FLASK_DEBUG") == "1")
