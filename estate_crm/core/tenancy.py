"""
core/tenancy.py
---------------
Caller identity and the tenant isolation guard.

Every entity-scoped operation passes through here:
  1. require_company_access()  — caller must belong to a company at all.
  2. ensure_capability()       — role check, before any store I/O.
  3. ensure_tenant_access()    — entity must exist (NotFound) and belong to
                                 the caller's company (Forbidden).

NotFound and Forbidden are kept distinct on purpose; a caller probing
another tenant's ids learns that the id exists. See DESIGN.md.
"""

from dataclasses import dataclass
from typing import Optional, TypeVar, Union

from estate_crm.core.errors import Forbidden, NotFound
from estate_crm.core.roles import Capability, has_permission

EntityT = TypeVar("EntityT")


@dataclass(frozen=True)
class Identity:
    """Verified caller attached to a request."""

    user_id: str
    username: str
    company_alias: str
    company_id: Optional[str]
    role: str


def require_company_access(identity: Identity) -> Identity:
    if not identity.company_id:
        raise Forbidden("Company access not available")
    return identity


def ensure_capability(
    identity: Identity,
    capability: Union[Capability, str],
    message: str = "Insufficient permissions",
) -> None:
    if not has_permission(identity.role, capability):
        raise Forbidden(message)


def ensure_tenant_access(
    identity: Identity,
    entity: Optional[EntityT],
    label: str = "Resource",
    denied_message: str = "Access denied",
) -> EntityT:
    """Return ``entity`` if it exists and is owned by the caller's company."""
    if entity is None:
        raise NotFound(f"{label} not found")
    if getattr(entity, "company_id", None) != identity.company_id:
        raise Forbidden(denied_message)
    return entity
