from flask import Blueprint, request
from flask_login import login_required

from clinic.controllers.dependencies import get_storage
from clinic.core.api_utils import get_json_body, json_ok
from clinic.core.auth_decorators import current_actor_id
from clinic.core.exceptions import ValidationError
from clinic.core.limiter_config import READ_LIMIT, WRITE_LIMIT, limiter
from clinic.schemas.resource_schemas import (
    purchase_order_item_validator,
    purchase_order_validator,
)
from clinic.services.purchasing_service import PurchasingService

purchase_orders_bp = Blueprint(
    "purchase_orders", __name__, url_prefix="/api/purchase-orders"
)


def _validate_items(raw_items):
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        raise ValidationError("Invalid purchase order data", {"items": "must be a list"})

    items, errors = [], {}
    for index, raw in enumerate(raw_items):
        try:
            items.append(purchase_order_item_validator.validate(raw))
        except ValidationError as e:
            for field_name, reason in e.errors.items():
                errors[f"items[{index}].{field_name}"] = reason
    if errors:
        raise ValidationError("Invalid purchase order data", errors)
    return items


@purchase_orders_bp.route("", methods=["POST"])
@limiter.limit(WRITE_LIMIT)
@login_required
def create_purchase_order():
    """Create an order together with its line items (`items` array)."""
    payload = get_json_body()
    data = purchase_order_validator.validate(payload)
    items = _validate_items(payload.get("items"))
    order = PurchasingService(get_storage()).create_order(
        data, items, actor_id=current_actor_id()
    )
    return json_ok(order)


@purchase_orders_bp.route("", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def list_purchase_orders():
    orders = PurchasingService(get_storage()).list_orders(
        status=request.args.get("status"),
        supplier_id=request.args.get("supplierId"),
    )
    return json_ok(orders)


@purchase_orders_bp.route("/<order_id>", methods=["GET"])
@limiter.limit(READ_LIMIT)
@login_required
def get_purchase_order(order_id):
    return json_ok(PurchasingService(get_storage()).get_order(order_id))


@purchase_orders_bp.route("/<order_id>/receive", methods=["POST"])
@limiter.limit(WRITE_LIMIT)
@login_required
def receive_purchase_order(order_id):
    order = PurchasingService(get_storage()).receive_order(
        order_id, actor_id=current_actor_id()
    )
    return json_ok(order)
