import logging
from typing import Any, Callable, Dict, Optional

from flask import Flask

from clinic.controllers.alert_controller import alerts_bp
from clinic.controllers.consent_controller import consent_forms_bp
from clinic.controllers.dashboard_controller import dashboard_bp
from clinic.controllers.dependencies import init_storage
from clinic.controllers.equipment_controller import equipment_bp, maintenance_bp
from clinic.controllers.health_controller import health_bp
from clinic.controllers.inventory_controller import inventory_bp
from clinic.controllers.payment_controller import payments_bp
from clinic.controllers.purchase_order_controller import purchase_orders_bp
from clinic.controllers.resource_controller import resource_blueprints
from clinic.core.api_utils import register_error_handlers
from clinic.core.auth_decorators import init_login_manager
from clinic.core.config import build_app_config, log_config, validate_production_config
from clinic.core.interfaces.repository_interface import StorageInterface
from clinic.core.limiter_config import limiter
from clinic.core.logging_config import setup_logging
from clinic.db.session import SessionLocal, create_tables
from clinic.repositories.sql_repository import SqlStorage
from clinic.services.payment_service import PaymentGateway, StripePaymentGateway

logger = logging.getLogger(__name__)

StorageFactory = Callable[[Flask], StorageInterface]


def sql_storage_factory(app: Flask) -> StorageInterface:
    """One SQLAlchemy session per request, bound to DATABASE_URL."""
    return SqlStorage(SessionLocal(app.config["DATABASE_URL"]))


def create_app(
    overrides: Optional[Dict[str, Any]] = None,
    storage_factory: Optional[StorageFactory] = None,
    payment_gateway: Optional[PaymentGateway] = None,
) -> Flask:
    """
    Application factory.

    Args:
        overrides: Config values that win over the environment (tests)
        storage_factory: Builds the storage for a request; defaults to SqlStorage
        payment_gateway: Defaults to Stripe using STRIPE_SECRET_KEY
    """
    config = build_app_config(overrides)
    validate_production_config(config)
    is_production = config["IS_PRODUCTION"]

    app = Flask(__name__)
    app.config.update(config)

    # Configure structured logging (after app creation so we can register hooks)
    setup_logging(
        app=app,
        log_level=logging.INFO if is_production else logging.DEBUG,
        enable_sql_echo=not is_production,
        log_to_file=config["LOG_TO_FILE"],
        use_json_format=is_production,
    )
    log_config(config)

    if config["SENTRY_DSN"]:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=config["SENTRY_DSN"],
            environment=config["ENV_NAME"],
            release=config["GIT_SHA"],
            integrations=[
                FlaskIntegration(),
                SqlalchemyIntegration(),
            ],
            traces_sample_rate=0.1,
            send_default_pii=False,
        )
        logger.info(
            "Sentry initialized",
            extra={"context": {"environment": config["ENV_NAME"]}},
        )
    else:
        logger.info(
            "Sentry not initialized (SENTRY_DSN not set)",
            extra={"context": {"environment": config["ENV_NAME"]}},
        )

    # MUST be initialized BEFORE limiter to avoid being rate-limited
    if config["METRICS_ENABLED"]:
        from prometheus_flask_exporter import PrometheusMetrics

        metrics = PrometheusMetrics(app)
        try:
            metrics.info(
                "app_info",
                "Application information",
                version=config["GIT_SHA"],
                environment=config["ENV_NAME"],
            )
        except ValueError as e:
            # Metric already registered (create_app called more than once)
            logger.debug(
                "app_info metric already registered",
                extra={"context": {"error": str(e)}},
            )

    limiter.init_app(app)

    if is_production:
        from flask_talisman import Talisman

        Talisman(
            app,
            content_security_policy={"default-src": ["'none'"]},
            force_https=True,
            strict_transport_security=True,
            strict_transport_security_max_age=63072000,
            strict_transport_security_include_subdomains=True,
            frame_options="DENY",
            referrer_policy="no-referrer",
        )

    init_login_manager(app)
    register_error_handlers(app)

    if storage_factory is None:
        create_tables(config["DATABASE_URL"])
        storage_factory = sql_storage_factory
    if payment_gateway is None:
        payment_gateway = StripePaymentGateway(config["STRIPE_SECRET_KEY"])
    init_storage(app, storage_factory, payment_gateway)

    app.register_blueprint(health_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(equipment_bp)
    app.register_blueprint(maintenance_bp)
    app.register_blueprint(alerts_bp)
    app.register_blueprint(purchase_orders_bp)
    app.register_blueprint(consent_forms_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(dashboard_bp)
    for bp in resource_blueprints:
        app.register_blueprint(bp)

    logger.info(
        "Application created",
        extra={
            "context": {
                "environment": config["ENV_NAME"],
                "blueprints": len(app.blueprints),
            }
        },
    )
    return app
