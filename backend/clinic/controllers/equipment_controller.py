"""
Equipment and maintenance endpoints.

Two blueprints: /api/equipment for the equipment records (with scheduling
nested under an item) and /api/maintenance for the maintenance log.
"""

from flask import Blueprint, current_app, request
from flask_login import login_required

from clinic.controllers.dependencies import get_storage, query_flag
from clinic.core.api_utils import api_response, get_json_body, json_ok, to_json
from clinic.core.limiter_config import READ_LIMIT, WRITE_LIMIT, limiter
from clinic.schemas.resource_schemas import (
    equipment_validator,
    maintenance_completion_validator,
    maintenance_schedule_validator,
)
from clinic.services.derived_status import equipment_annotations
from clinic.services.equipment_service import EquipmentService
from clinic.utils.time_utils import utcnow

equipment_bp = Blueprint("equipment", __name__, url_prefix="/api/equipment")
maintenance_bp = Blueprint("maintenance", __name__, url_prefix="/api/maintenance")


def _annotated(equipment, now):
    due_soon_days = current_app.config["MAINTENANCE_DUE_SOON_DAYS"]
    return {
        **to_json(equipment),
        **to_json(equipment_annotations(equipment, now, due_soon_days)),
    }


@equipment_bp.route("", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def list_equipment():
    """List equipment. Filters: status, location, maintenanceDue."""
    now = utcnow()
    equipment = EquipmentService(get_storage()).list_equipment(
        status=request.args.get("status"),
        location=request.args.get("location"),
        maintenance_due=query_flag("maintenanceDue"),
        now=now,
    )
    return json_ok([_annotated(e, now) for e in equipment])


@equipment_bp.route("", methods=["POST"])
@limiter.limit(WRITE_LIMIT)
@login_required
def create_equipment():
    data = equipment_validator.validate(get_json_body())
    equipment = EquipmentService(get_storage()).create_equipment(data)
    return json_ok(_annotated(equipment, utcnow()))


@equipment_bp.route("/summary", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def equipment_summary():
    return json_ok(EquipmentService(get_storage()).summary())


@equipment_bp.route("/<equipment_id>", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def get_equipment(equipment_id):
    service = EquipmentService(get_storage())
    equipment, history = service.get_equipment_with_history(equipment_id)
    return json_ok(
        {**_annotated(equipment, utcnow()), "maintenanceHistory": to_json(history)}
    )


@equipment_bp.route("/<equipment_id>", methods=["PUT"])
@limiter.limit(WRITE_LIMIT)
@login_required
def update_equipment(equipment_id):
    changes = equipment_validator.validate(get_json_body(), partial=True)
    equipment = EquipmentService(get_storage()).update_equipment(equipment_id, changes)
    return json_ok(_annotated(equipment, utcnow()))


@equipment_bp.route("/<equipment_id>", methods=["DELETE"])
@limiter.limit(WRITE_LIMIT)
@login_required
def delete_equipment(equipment_id):
    EquipmentService(get_storage()).delete_equipment(equipment_id)
    return api_response(True, "Equipment deleted successfully")


@equipment_bp.route("/<equipment_id>/maintenance", methods=["POST"])
@limiter.limit(WRITE_LIMIT)
@login_required
def schedule_maintenance(equipment_id):
    data = maintenance_schedule_validator.validate(get_json_body())
    record = EquipmentService(get_storage()).schedule_maintenance(equipment_id, data)
    return json_ok(record)


@maintenance_bp.route("", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def list_maintenance():
    records = EquipmentService(get_storage()).list_maintenance(
        status=request.args.get("status"),
        equipment_id=request.args.get("equipmentId"),
        maintenance_type=request.args.get("maintenanceType"),
    )
    return json_ok(records)


@maintenance_bp.route("/<maintenance_id>/complete", methods=["PUT"])
@limiter.limit(WRITE_LIMIT)
@login_required
def complete_maintenance(maintenance_id):
    data = maintenance_completion_validator.validate(get_json_body())
    record = EquipmentService(get_storage()).complete_maintenance(
        maintenance_id,
        completed_date=data["completed_date"],
        issues_found=data.get("issues_found"),
        actions_performed=data.get("actions_performed"),
        cost=data.get("cost"),
        next_service_date=data.get("next_service_date"),
        performed_by=data.get("performed_by"),
        parts_replaced=data.get("parts_replaced"),
        attachments=data.get("attachments"),
    )
    return json_ok(record)
