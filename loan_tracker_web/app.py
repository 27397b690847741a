"""JSON API for the loan tracker.

Routes live under ``/api/loan`` and exchange the camelCase documents produced
by :mod:`loan_tracker.serialization`. Run locally with::

    flask --app loan_tracker_web.app run --port 5000
"""

import logging

from flask import Blueprint, Flask, current_app, jsonify, request

from loan_tracker.config import Config, configure_logging
from loan_tracker.exceptions import LoanTrackerError, PaymentNotFoundError, ValidationError
from loan_tracker.serialization import forecast_to_dict, payment_to_dict, store_to_dict
from loan_tracker.service import LoanTrackerService
from loan_tracker.store import create_repository_from_env

logger = logging.getLogger(__name__)

api = Blueprint("loan", __name__, url_prefix="/api/loan")

SETTINGS_KEYS = {
    "principalAmount": "principal_amount",
    "annualInterestRate": "annual_interest_rate",
    "tenureYears": "tenure_years",
}


def _service() -> LoanTrackerService:
    return current_app.extensions["loan_tracker"]


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _payment_fields(body: dict):
    if not body.get("month"):
        raise ValidationError("Payment month is required")
    if body.get("emiPaid") is None:
        raise ValidationError("emiPaid is required")
    return body["month"], body["emiPaid"], body.get("extraPaid")


def _error(status_code: int, detail):
    return jsonify({"error": True, "status_code": status_code, "detail": detail}), status_code


@api.get("")
def get_store():
    return jsonify(store_to_dict(_service().get_store()))


@api.put("/settings")
def update_settings():
    body = _json_body()
    changes = {field: body[key] for key, field in SETTINGS_KEYS.items() if key in body}
    store = _service().update_settings(**changes)
    return jsonify(store_to_dict(store))


@api.post("/payments")
def add_payment():
    month, emi_paid, extra_paid = _payment_fields(_json_body())
    payment = _service().add_payment(month, emi_paid, extra_paid)
    return jsonify(payment_to_dict(payment)), 201


@api.put("/payments/<old_month>")
def edit_payment(old_month: str):
    month, emi_paid, extra_paid = _payment_fields(_json_body())
    payment = _service().edit_payment(old_month, month, emi_paid, extra_paid)
    return jsonify(payment_to_dict(payment))


@api.delete("/payments/<month>")
def delete_payment(month: str):
    return jsonify(store_to_dict(_service().delete_payment(month)))


@api.get("/forecast")
def forecast():
    return jsonify(forecast_to_dict(_service().forecast()))


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(PaymentNotFoundError)
    def handle_not_found(exc: PaymentNotFoundError):
        return _error(404, exc.message)

    @app.errorhandler(LoanTrackerError)
    def handle_validation(exc: LoanTrackerError):
        return _error(400, exc.message)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        status_code = getattr(exc, "code", None)
        if isinstance(status_code, int) and 400 <= status_code < 500:
            return _error(status_code, getattr(exc, "description", str(exc)))
        logger.exception("Unhandled exception in %s", request.path)
        return _error(500, "An unexpected error occurred. Please try again later.")


def create_app(config: Config = None, repository=None) -> Flask:
    config = config or Config.from_env()
    configure_logging(config.log_level)

    app = Flask(__name__)
    app.json.sort_keys = False
    if repository is None:
        repository = create_repository_from_env(config.database_url, config)
    app.extensions["loan_tracker"] = LoanTrackerService(repository)
    app.register_blueprint(api)
    register_error_handlers(app)
    return app


if __name__ == "__main__":
    print("Starting Loan Tracker API...")
    create_app().run(host="0.0.0.0", port=5000, debug=True)
