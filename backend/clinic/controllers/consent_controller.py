from flask import Blueprint, request
from flask_login import login_required

from clinic.controllers.dependencies import get_storage
from clinic.core.api_utils import get_json_body, json_ok
from clinic.core.auth_decorators import current_actor_id
from clinic.core.limiter_config import READ_LIMIT, WRITE_LIMIT, limiter
from clinic.schemas.resource_schemas import (
    consent_form_update_validator,
    consent_form_validator,
    consent_signature_validator,
)
from clinic.services.consent_service import ConsentService

consent_forms_bp = Blueprint("consent_forms", __name__, url_prefix="/api/consent-forms")


def _service() -> ConsentService:
    return ConsentService(get_storage())


@consent_forms_bp.route("", methods=["POST"])
@limiter.limit(WRITE_LIMIT)
@login_required
def create_consent_form():
    """Issue a form to one of the actor's clients from a template."""
    data = consent_form_validator.validate(get_json_body())
    return json_ok(_service().create_form(data, current_actor_id()))


@consent_forms_bp.route("", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def list_consent_forms():
    forms = _service().list_forms(
        current_actor_id(),
        client_id=request.args.get("clientId"),
        status=request.args.get("status"),
    )
    return json_ok(forms)


@consent_forms_bp.route("/<form_id>", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def get_consent_form(form_id):
    return json_ok(_service().get_form(form_id, current_actor_id()))


@consent_forms_bp.route("/<form_id>", methods=["PUT"])
@limiter.limit(WRITE_LIMIT)
@login_required
def update_consent_form(form_id):
    changes = consent_form_update_validator.validate(get_json_body(), partial=True)
    return json_ok(_service().update_form(form_id, changes, current_actor_id()))


@consent_forms_bp.route("/<form_id>/sign", methods=["PUT"])
@limiter.limit(WRITE_LIMIT)
@login_required
def sign_consent_form(form_id):
    data = consent_signature_validator.validate(get_json_body())
    form = _service().sign_form(form_id, data["signature_data"], current_actor_id())
    return json_ok(form)


@consent_forms_bp.route("/<form_id>/withdraw", methods=["PUT"])
@limiter.limit(WRITE_LIMIT)
@login_required
def withdraw_consent_form(form_id):
    return json_ok(_service().withdraw_form(form_id, current_actor_id()))


@consent_forms_bp.route("/<form_id>/expire", methods=["PUT"])
@limiter.limit(WRITE_LIMIT)
@login_required
def expire_consent_form(form_id):
    return json_ok(_service().expire_form(form_id, current_actor_id()))
