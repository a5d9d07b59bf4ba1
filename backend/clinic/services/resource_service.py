"""
Generic CRUD service for resources without bespoke side effects.

A ResourceDefinition says which repository holds the records, which rule
table validates input, which fields reference other resources (checked on
write) and whether records are scoped to the actor that created them.
Records that reference a client or student are only visible to, and may
only be attached by, that client's or student's owner.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from clinic.core.exceptions import NotFoundError
from clinic.core.interfaces.repository_interface import (
    ResourceRepositoryInterface,
    StorageInterface,
)
from clinic.core.validation import SchemaValidator, camel_to_snake
from clinic.schemas import resource_schemas as schemas
from clinic.services.ownership import OWNED_REPOSITORIES, is_owned, owned_ids, require_owned

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceDefinition:
    label: str
    repository: str
    validator: SchemaValidator
    # attribute -> (repository, label) of the referenced resource
    references: Mapping[str, Tuple[str, str]] = field(default_factory=dict)
    # records are visible only to the actor stored in this attribute
    owner_field: Optional[str] = None
    # attribute stamped with the actor id on create
    actor_field: Optional[str] = None
    # camelCase query parameters accepted by list()
    list_filters: Tuple[str, ...] = ()


CLIENT_REF = ("clients", "Client")
STUDENT_REF = ("students", "Student")
TREATMENT_REF = ("treatments", "Treatment")
COURSE_REF = ("courses", "Course")

RESOURCE_DEFINITIONS: Dict[str, ResourceDefinition] = {
    "clients": ResourceDefinition(
        "Client",
        "clients",
        schemas.client_validator,
        owner_field="owner_id",
        actor_field="owner_id",
        list_filters=("consentStatus",),
    ),
    "students": ResourceDefinition(
        "Student",
        "students",
        schemas.student_validator,
        owner_field="owner_id",
        actor_field="owner_id",
    ),
    "treatments": ResourceDefinition(
        "Treatment", "treatments", schemas.treatment_validator
    ),
    "courses": ResourceDefinition("Course", "courses", schemas.course_validator),
    "bookings": ResourceDefinition(
        "Booking",
        "bookings",
        schemas.booking_validator,
        references={"client_id": CLIENT_REF, "treatment_id": TREATMENT_REF},
        list_filters=("clientId", "treatmentId", "status"),
    ),
    "enrollments": ResourceDefinition(
        "Enrollment",
        "enrollments",
        schemas.enrollment_validator,
        references={"student_id": STUDENT_REF, "course_id": COURSE_REF},
        list_filters=("studentId", "courseId", "status"),
    ),
    "assessments": ResourceDefinition(
        "Assessment",
        "assessments",
        schemas.assessment_validator,
        references={"student_id": STUDENT_REF, "course_id": COURSE_REF},
        list_filters=("studentId", "courseId", "assessmentType"),
    ),
    "certifications": ResourceDefinition(
        "Certification",
        "certifications",
        schemas.certification_validator,
        references={"student_id": STUDENT_REF, "course_id": COURSE_REF},
        list_filters=("studentId", "courseId", "status"),
    ),
    "communications": ResourceDefinition(
        "Communication",
        "communications",
        schemas.communication_validator,
        actor_field="sender_id",
        list_filters=("recipientId", "type", "status"),
    ),
    "consent-templates": ResourceDefinition(
        "Consent template",
        "consent_templates",
        schemas.consent_template_validator,
        references={"treatment_id": TREATMENT_REF},
        list_filters=("formType", "treatmentId"),
    ),
    "suppliers": ResourceDefinition(
        "Supplier", "suppliers", schemas.supplier_validator
    ),
}


class ResourceService:
    def __init__(self, storage: StorageInterface, definition: ResourceDefinition):
        self.storage = storage
        self.definition = definition

    @property
    def repository(self) -> ResourceRepositoryInterface:
        return getattr(self.storage, self.definition.repository)

    def create(self, payload: Mapping[str, Any], actor_id: Optional[str] = None) -> Any:
        data = self.definition.validator.validate(payload)
        self._check_references(data, actor_id)
        if self.definition.actor_field:
            data[self.definition.actor_field] = actor_id
        record = self.repository.create(data)
        logger.info(
            f"{self.definition.label} created",
            extra={"context": {"id": record.id, "actor_id": actor_id}},
        )
        return record

    def list(
        self, actor_id: Optional[str] = None, filters: Optional[Mapping[str, str]] = None
    ) -> List[Any]:
        criteria: Dict[str, Any] = {}
        for name in self.definition.list_filters:
            value = (filters or {}).get(name)
            if value and value != "all":
                criteria[camel_to_snake(name)] = value
        if self.definition.owner_field:
            criteria[self.definition.owner_field] = actor_id
        records = self.repository.list_all(**criteria)
        for attr, repository in self._owned_references():
            allowed = owned_ids(self.storage, repository, actor_id)
            records = [
                r for r in records if getattr(r, attr) is None or getattr(r, attr) in allowed
            ]
        return records

    def get(self, record_id: str, actor_id: Optional[str] = None) -> Any:
        record = self.repository.get_by_id(record_id)
        if record is None or not self._visible_to(record, actor_id):
            raise NotFoundError(self.definition.label, record_id)
        return record

    def update(
        self,
        record_id: str,
        payload: Mapping[str, Any],
        actor_id: Optional[str] = None,
    ) -> Any:
        self.get(record_id, actor_id)
        changes = self.definition.validator.validate(payload, partial=True)
        self._check_references(changes, actor_id)
        record = self.repository.update(record_id, changes)
        logger.info(
            f"{self.definition.label} updated",
            extra={
                "context": {
                    "id": record_id,
                    "fields": sorted(changes),
                    "actor_id": actor_id,
                }
            },
        )
        return record

    def delete(self, record_id: str, actor_id: Optional[str] = None) -> None:
        self.get(record_id, actor_id)
        self.repository.delete(record_id)
        logger.info(
            f"{self.definition.label} deleted",
            extra={"context": {"id": record_id, "actor_id": actor_id}},
        )

    def _owned_references(self) -> List[Tuple[str, str]]:
        """(attribute, repository) pairs pointing at owner-scoped clients/students."""
        return [
            (attr, repository)
            for attr, (repository, _label) in self.definition.references.items()
            if repository in OWNED_REPOSITORIES
        ]

    def _visible_to(self, record: Any, actor_id: Optional[str]) -> bool:
        owner_field = self.definition.owner_field
        if owner_field and getattr(record, owner_field) != actor_id:
            return False
        return all(
            getattr(record, attr) is None
            or is_owned(self.storage, repository, getattr(record, attr), actor_id)
            for attr, repository in self._owned_references()
        )

    def _check_references(self, data: Mapping[str, Any], actor_id: Optional[str]) -> None:
        for attr, (repository, label) in self.definition.references.items():
            ref_id = data.get(attr)
            if not ref_id:
                continue
            if repository in OWNED_REPOSITORIES:
                require_owned(self.storage, repository, ref_id, actor_id)
            elif getattr(self.storage, repository).get_by_id(ref_id) is None:
                raise NotFoundError(label, ref_id)
