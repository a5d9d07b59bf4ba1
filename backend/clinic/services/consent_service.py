"""
Consent form instances.

A form is created from a template and keeps a snapshot of the template's
content. Once signed, its content is frozen; only the status may move on
(to expired or withdrawn).
"""

import logging
from typing import Any, Dict, List, Optional

from clinic.core.exceptions import (
    DomainRuleError,
    InvalidStateTransitionError,
    NotFoundError,
)
from clinic.core.interfaces.repository_interface import StorageInterface
from clinic.domain.entities import ConsentForm
from clinic.services.ownership import is_owned, owned_ids, require_owned
from clinic.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    "pending": ("signed", "withdrawn", "expired"),
    "signed": ("withdrawn", "expired"),
    "withdrawn": (),
    "expired": (),
}



class ConsentService:
    """Consent forms are visible only to the owner of the form's client."""

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def create_form(self, data: Dict[str, Any], actor_id: Optional[str]) -> ConsentForm:
        template = self.storage.consent_templates.get_by_id(data["template_id"])
        if template is None:
            raise NotFoundError("Consent template", data["template_id"])
        require_owned(self.storage, "clients", data["client_id"], actor_id)

        treatment_id = data.get("treatment_id") or template.treatment_id
        if treatment_id and self.storage.treatments.get_by_id(treatment_id) is None:
            raise NotFoundError("Treatment", treatment_id)

        form = self.storage.consent_forms.create(
            {
                "template_id": template.id,
                "client_id": data["client_id"],
                "treatment_id": treatment_id,
                "form_type": template.form_type,
                "content": template.content,
                "status": "pending",
                "signed": False,
            }
        )
        logger.info(
            "Consent form created",
            extra={
                "context": {
                    "consent_form_id": form.id,
                    "template_id": template.id,
                    "client_id": form.client_id,
                    "actor_id": actor_id,
                }
            },
        )
        return form

    def get_form(self, form_id: str, actor_id: Optional[str]) -> ConsentForm:
        form = self.storage.consent_forms.get_by_id(form_id)
        if form is None or not is_owned(self.storage, "clients", form.client_id, actor_id):
            raise NotFoundError("Consent form", form_id)
        return form

    def list_forms(
        self,
        actor_id: Optional[str],
        client_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[ConsentForm]:
        criteria = {}
        if client_id and client_id != "all":
            criteria["client_id"] = client_id
        if status and status != "all":
            criteria["status"] = status
        client_ids = owned_ids(self.storage, "clients", actor_id)
        return [
            form
            for form in self.storage.consent_forms.list_all(**criteria)
            if form.client_id in client_ids
        ]

    def update_form(
        self, form_id: str, changes: Dict[str, Any], actor_id: Optional[str]
    ) -> ConsentForm:
        form = self.get_form(form_id, actor_id)
        if form.status != "pending":
            raise DomainRuleError(
                f"Consent form is {form.status} and can no longer be edited"
            )
        treatment_id = changes.get("treatment_id")
        if treatment_id and self.storage.treatments.get_by_id(treatment_id) is None:
            raise NotFoundError("Treatment", treatment_id)
        return self.storage.consent_forms.update(form_id, changes)

    def sign_form(
        self, form_id: str, signature_data: str, actor_id: Optional[str]
    ) -> ConsentForm:
        """Sign a pending form and mark the client's consent as signed."""
        with self.storage.atomic():
            form = self._transition(
                form_id,
                "signed",
                actor_id,
                {
                    "signed": True,
                    "signed_date": utcnow(),
                    "signature_data": signature_data,
                },
            )
            self.storage.clients.update(form.client_id, {"consent_status": "signed"})
        return form

    def withdraw_form(self, form_id: str, actor_id: Optional[str]) -> ConsentForm:
        return self._transition(form_id, "withdrawn", actor_id)

    def expire_form(self, form_id: str, actor_id: Optional[str]) -> ConsentForm:
        with self.storage.atomic():
            form = self._transition(form_id, "expired", actor_id)
            if form.signed:
                self.storage.clients.update(
                    form.client_id, {"consent_status": "expired"}
                )
        return form

    def _transition(
        self,
        form_id: str,
        target: str,
        actor_id: Optional[str],
        extra: Optional[Dict[str, Any]] = None,
    ) -> ConsentForm:
        form = self.get_form(form_id, actor_id)
        if target not in ALLOWED_TRANSITIONS.get(form.status, ()):
            logger.warning(
                "Consent form transition rejected",
                extra={
                    "context": {
                        "consent_form_id": form_id,
                        "from": form.status,
                        "to": target,
                    }
                },
            )
            raise InvalidStateTransitionError("Consent form", form.status, target)

        form = self.storage.consent_forms.update(
            form_id, {"status": target, **(extra or {})}
        )
        logger.info(
            "Consent form status changed",
            extra={
                "context": {
                    "consent_form_id": form_id,
                    "status": target,
                    "actor_id": actor_id,
                }
            },
        )
        return form
