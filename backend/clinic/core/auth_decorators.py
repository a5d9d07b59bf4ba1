"""
Authentication helpers for this application.

The API only verifies bearer tokens; sessions and sign-in live in the
external identity provider. Flask-Login's request loader turns a valid
`Authorization: Bearer <jwt>` header into an AuthenticatedActor, so
controllers use the stock `@login_required` decorator and `current_user`.

Examples:
    @inventory_bp.route("/<item_id>/movement", methods=["POST"])
    @login_required
    def record_movement(item_id):
        actor_id = current_actor_id()
"""

import logging
from dataclasses import dataclass
from typing import Optional

from flask import Flask, Request
from flask_login import LoginManager, current_user

from clinic.core.api_utils import api_response
from clinic.core.security import decode_access_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedActor:
    """Identity of the caller, as asserted by the bearer token."""

    id: str
    email: str
    role: str = "staff"

    # Flask-Login interface
    is_authenticated: bool = True
    is_active: bool = True
    is_anonymous: bool = False

    def get_id(self) -> str:
        return self.id


def actor_from_request(request: Request) -> Optional[AuthenticatedActor]:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None

    payload = decode_access_token(auth_header.split(" ", 1)[1].strip())
    if not payload:
        logger.info(
            "Rejected bearer token",
            extra={"context": {"path": request.path}},
        )
        return None

    actor_id = payload.get("sub")
    email = payload.get("email")
    if not actor_id or not email:
        return None
    return AuthenticatedActor(
        id=str(actor_id), email=email, role=payload.get("role", "staff")
    )


def init_login_manager(app: Flask) -> LoginManager:
    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.request_loader
    def load_actor_from_request(request):
        return actor_from_request(request)

    @login_manager.unauthorized_handler
    def unauthorized():
        return api_response(False, "Authentication required", status_code=401)

    return login_manager


def current_actor_id() -> Optional[str]:
    if current_user and getattr(current_user, "is_authenticated", False):
        return current_user.id
    return None
