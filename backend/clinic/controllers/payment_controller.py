"""
Payment endpoints.

Card details never reach this API: the client confirms the PaymentIntent
with Stripe directly using the returned clientSecret.
"""

from flask import Blueprint, current_app, request
from flask_login import login_required

from clinic.controllers.dependencies import get_payment_gateway, get_storage
from clinic.core.api_utils import get_json_body, json_ok
from clinic.core.auth_decorators import current_actor_id
from clinic.core.limiter_config import READ_LIMIT, WRITE_LIMIT, limiter
from clinic.schemas.resource_schemas import payment_intent_validator
from clinic.services.payment_service import PaymentService

payments_bp = Blueprint("payments", __name__, url_prefix="/api")


def _service() -> PaymentService:
    return PaymentService(
        get_storage(),
        get_payment_gateway(),
        default_currency=current_app.config["PAYMENT_CURRENCY"],
    )


@payments_bp.route("/create-payment-intent", methods=["POST"])
@limiter.limit(WRITE_LIMIT)
@login_required
def create_payment_intent():
    data = payment_intent_validator.validate(get_json_body())
    return json_ok(_service().create_payment_intent(data, current_actor_id()))


@payments_bp.route("/payments", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def list_payments():
    payments = _service().list_payments(
        current_actor_id(),
        client_id=request.args.get("clientId"),
        student_id=request.args.get("studentId"),
        status=request.args.get("status"),
    )
    return json_ok(payments)


@payments_bp.route("/payments/<payment_id>", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def get_payment(payment_id):
    return json_ok(_service().get_payment(payment_id, current_actor_id()))


@payments_bp.route("/payments/<payment_id>/verify-age", methods=["POST"])
@limiter.limit(WRITE_LIMIT)
@login_required
def verify_age(payment_id):
    return json_ok(_service().verify_age(payment_id, current_actor_id()))
