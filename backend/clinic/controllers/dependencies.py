"""
Per-request wiring shared by the blueprints.

Storage is opened lazily on first use in a request and closed at teardown;
create_app stores the factories under app.extensions["clinic"].
"""

from typing import Optional

from flask import Flask, current_app, g, request

from clinic.core.interfaces.repository_interface import StorageInterface
from clinic.services.payment_service import PaymentGateway

_TRUTHY = ("true", "1", "yes")


def get_storage() -> StorageInterface:
    if "storage" not in g:
        factory = current_app.extensions["clinic"]["storage_factory"]
        g.storage = factory(current_app)
    return g.storage


def get_payment_gateway() -> PaymentGateway:
    return current_app.extensions["clinic"]["payment_gateway"]


def close_storage(exc: Optional[BaseException] = None) -> None:
    storage = g.pop("storage", None)
    if storage is not None:
        storage.close()


def init_storage(app: Flask, storage_factory, payment_gateway: PaymentGateway) -> None:
    app.extensions["clinic"] = {
        "storage_factory": storage_factory,
        "payment_gateway": payment_gateway,
    }
    app.teardown_appcontext(close_storage)


def query_flag(name: str) -> bool:
    """Boolean query-string parameter (?lowStock=true)."""
    return (request.args.get(name) or "").strip().lower() in _TRUTHY
