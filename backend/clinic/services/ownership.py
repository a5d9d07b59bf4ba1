"""
Owner scoping for clients and students.

Clients and students belong to the staff member who created them. Records
hanging off them (bookings, enrollments, consent forms, payments, ...) are
visible to, and may only be attached by, that same actor.
"""

from typing import Any, Optional, Set

from clinic.core.exceptions import NotFoundError
from clinic.core.interfaces.repository_interface import StorageInterface

# repository -> label
OWNED_REPOSITORIES = {"clients": "Client", "students": "Student"}


def owned_ids(storage: StorageInterface, repository: str, actor_id: Optional[str]) -> Set[str]:
    return {r.id for r in getattr(storage, repository).list_all(owner_id=actor_id)}


def require_owned(
    storage: StorageInterface, repository: str, record_id: str, actor_id: Optional[str]
) -> Any:
    """Fetch a client/student, raising NotFound when missing or someone else's."""
    record = getattr(storage, repository).get_by_id(record_id)
    if record is None or record.owner_id != actor_id:
        raise NotFoundError(OWNED_REPOSITORIES[repository], record_id)
    return record


def is_owned(
    storage: StorageInterface, repository: str, record_id: Optional[str], actor_id: Optional[str]
) -> bool:
    if not record_id:
        return False
    record = getattr(storage, repository).get_by_id(record_id)
    return record is not None and record.owner_id == actor_id
