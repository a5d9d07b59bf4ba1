"""
CRUD blueprints for the resources that need no bespoke side effects.

One blueprint per entry of RESOURCE_DEFINITIONS, mounted at /api/<name>.
Treatment and course listings are public (the booking site reads them
before sign-in); everything else needs a bearer token.
"""

from typing import Callable, List

from flask import Blueprint, request
from flask_login import login_required

from clinic.controllers.dependencies import get_storage
from clinic.core.api_utils import api_response, get_json_body, json_ok
from clinic.core.auth_decorators import current_actor_id
from clinic.core.limiter_config import READ_LIMIT, WRITE_LIMIT, limiter
from clinic.services.resource_service import (
    RESOURCE_DEFINITIONS,
    ResourceDefinition,
    ResourceService,
)

PUBLIC_READ_RESOURCES = ("treatments", "courses")


def create_resource_blueprint(name: str, definition: ResourceDefinition) -> Blueprint:
    bp = Blueprint(f"resource_{definition.repository}", __name__, url_prefix=f"/api/{name}")
    public_read = name in PUBLIC_READ_RESOURCES

    def service() -> ResourceService:
        return ResourceService(get_storage(), definition)

    def list_records():
        return json_ok(service().list(current_actor_id(), request.args))

    def get_record(record_id):
        return json_ok(service().get(record_id, current_actor_id()))

    def create_record():
        record = service().create(get_json_body(), current_actor_id())
        return json_ok(record)

    def update_record(record_id):
        return json_ok(service().update(record_id, get_json_body(), current_actor_id()))

    def delete_record(record_id):
        service().delete(record_id, current_actor_id())
        return api_response(True, f"{definition.label} deleted successfully")

    def register(rule: str, view: Callable, methods: List[str], limit: str, public: bool = False):
        # Flask-Limiter keys limits by function name; keep them per resource
        view.__name__ = f"{definition.repository}_{view.__name__}"
        if not public:
            view = login_required(view)
        bp.add_url_rule(rule, view.__name__, limiter.limit(limit)(view), methods=methods)

    register("", list_records, ["GET"], READ_LIMIT, public=public_read)
    register("", create_record, ["POST"], WRITE_LIMIT)
    register("/<record_id>", get_record, ["GET"], READ_LIMIT, public=public_read)
    register("/<record_id>", update_record, ["PUT"], WRITE_LIMIT)
    register("/<record_id>", delete_record, ["DELETE"], WRITE_LIMIT)
    return bp


resource_blueprints = [
    create_resource_blueprint(name, definition)
    for name, definition in RESOURCE_DEFINITIONS.items()
]
