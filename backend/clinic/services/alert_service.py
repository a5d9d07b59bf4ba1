import logging
from typing import List, Optional

from clinic.core.exceptions import NotFoundError
from clinic.core.interfaces.repository_interface import StorageInterface
from clinic.domain.entities import Alert

logger = logging.getLogger(__name__)


class AlertService:
    """Listing and flag changes for alerts. Alerts are never deleted."""

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def list_alerts(
        self,
        alert_type: Optional[str] = None,
        severity: Optional[str] = None,
        unread_only: bool = False,
    ) -> List[Alert]:
        alerts = self.storage.alerts.list_all()
        if alert_type and alert_type != "all":
            alerts = [a for a in alerts if a.alert_type == alert_type]
        if severity and severity != "all":
            alerts = [a for a in alerts if a.severity == severity]
        if unread_only:
            alerts = [a for a in alerts if not a.is_read]
        return alerts

    def mark_read(self, alert_id: str) -> Alert:
        return self._set_flag(alert_id, "is_read")

    def dismiss(self, alert_id: str) -> Alert:
        return self._set_flag(alert_id, "is_dismissed")

    def _set_flag(self, alert_id: str, flag: str) -> Alert:
        alert = self.storage.alerts.update(alert_id, {flag: True})
        if alert is None:
            raise NotFoundError("Alert", alert_id)
        logger.info(
            "Alert updated",
            extra={"context": {"alert_id": alert_id, flag: True}},
        )
        return alert
