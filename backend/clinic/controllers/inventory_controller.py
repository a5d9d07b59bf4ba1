"""
Inventory controller: items, summary and the stock ledger.

List and detail responses carry read-time fields (stockStatus, isExpired,
daysToExpiry) computed against the request clock.
"""

from flask import Blueprint, request
from flask_login import login_required

from clinic.controllers.dependencies import get_storage, query_flag
from clinic.core.api_utils import api_response, get_json_body, json_ok, to_json
from clinic.core.auth_decorators import current_actor_id
from clinic.core.limiter_config import READ_LIMIT, WRITE_LIMIT, limiter
from clinic.schemas.resource_schemas import (
    inventory_update_validator,
    inventory_validator,
    stock_movement_validator,
)
from clinic.services.derived_status import inventory_annotations
from clinic.services.inventory_service import InventoryService
from clinic.utils.time_utils import utcnow

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _annotated(item, now):
    return {**to_json(item), **to_json(inventory_annotations(item, now))}


@inventory_bp.route("", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def list_inventory():
    """List items. Filters: category, location, lowStock, expired."""
    now = utcnow()
    items = InventoryService(get_storage()).list_items(
        category=request.args.get("category"),
        location=request.args.get("location"),
        low_stock=query_flag("lowStock"),
        expired=query_flag("expired"),
        now=now,
    )
    return json_ok([_annotated(item, now) for item in items])


@inventory_bp.route("", methods=["POST"])
@limiter.limit(WRITE_LIMIT)
@login_required
def create_inventory():
    data = inventory_validator.validate(get_json_body())
    item = InventoryService(get_storage()).create_item(data, actor_id=current_actor_id())
    return json_ok(_annotated(item, utcnow()))


@inventory_bp.route("/summary", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def inventory_summary():
    return json_ok(InventoryService(get_storage()).summary())


@inventory_bp.route("/<item_id>", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def get_inventory(item_id):
    item, history = InventoryService(get_storage()).get_item_with_history(item_id)
    return json_ok({**_annotated(item, utcnow()), "stockHistory": to_json(history)})


@inventory_bp.route("/<item_id>", methods=["PUT"])
@limiter.limit(WRITE_LIMIT)
@login_required
def update_inventory(item_id):
    changes = inventory_update_validator.validate(get_json_body(), partial=True)
    item = InventoryService(get_storage()).update_item(
        item_id, changes, actor_id=current_actor_id()
    )
    return json_ok(_annotated(item, utcnow()))


@inventory_bp.route("/<item_id>", methods=["DELETE"])
@limiter.limit(WRITE_LIMIT)
@login_required
def delete_inventory(item_id):
    InventoryService(get_storage()).delete_item(item_id)
    return api_response(True, "Inventory item deleted successfully")


@inventory_bp.route("/<item_id>/movement", methods=["POST"])
@limiter.limit(WRITE_LIMIT)
@login_required
def record_movement(item_id):
    data = stock_movement_validator.validate(get_json_body())
    movement = InventoryService(get_storage()).record_movement(
        item_id,
        movement_type=data["movement_type"],
        quantity=data["quantity"],
        reason=data.get("reason"),
        reference=data.get("reference"),
        notes=data.get("notes"),
        cost=data.get("cost"),
        actor_id=current_actor_id(),
    )
    return json_ok(movement)


@inventory_bp.route("/<item_id>/movements", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def list_movements(item_id):
    return json_ok(InventoryService(get_storage()).list_movements(item_id))
