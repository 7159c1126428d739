"""
core/roles.py
-------------
Role hierarchy and capability table.

Ranking (higher outranks lower):
  admin (4) > Moderator (3) > PowerUser (2) > User (1)

Everything in this module is a pure function over closed enums; role
strings coming from tokens or request bodies are coerced through
``_coerce`` and an unknown label simply has no rank and no capabilities.
"""

from enum import Enum
from typing import Optional, Union

from estate_crm.core.errors import InvalidArgument


class Role(str, Enum):
    admin = "admin"
    moderator = "Moderator"
    power_user = "PowerUser"
    user = "User"


class Capability(str, Enum):
    manage_users = "manage_users"
    manage_properties = "manage_properties"
    view_all_data = "view_all_data"
    change_passwords = "change_passwords"


ROLE_RANK = {
    Role.admin: 4,
    Role.moderator: 3,
    Role.power_user: 2,
    Role.user: 1,
}

ROLE_CAPABILITIES = {
    Capability.manage_users: frozenset({Role.admin, Role.moderator}),
    Capability.manage_properties: frozenset({Role.admin, Role.moderator, Role.power_user}),
    Capability.view_all_data: frozenset({Role.admin, Role.moderator, Role.power_user}),
    Capability.change_passwords: frozenset({Role.admin, Role.moderator}),
}

# Label used by the old registration path; it never had any capabilities.
LEGACY_ROLE_ALIASES = {"agent": Role.user}


def _coerce(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def role_rank(role: Union[Role, str, None]) -> int:
    """Numeric rank of ``role``; 0 for anything outside the hierarchy."""
    parsed = _coerce(Role, role)
    return ROLE_RANK[parsed] if parsed is not None else 0


def can_modify_user_role(acting_role: Union[Role, str], target_role: Union[Role, str]) -> bool:
    """
    Admins may modify anyone. Everybody else may only modify users of a
    strictly lower rank, so two Moderators cannot touch each other.
    """
    acting = _coerce(Role, acting_role)
    if acting is None:
        return False
    if acting is Role.admin:
        return True
    return role_rank(acting) > role_rank(target_role)


def has_permission(role: Union[Role, str, None], capability: Union[Capability, str]) -> bool:
    parsed_role = _coerce(Role, role)
    parsed_capability = _coerce(Capability, capability)
    if parsed_role is None or parsed_capability is None:
        return False
    return parsed_role in ROLE_CAPABILITIES[parsed_capability]


def parse_role(value: Optional[str], default: Role = Role.user) -> Role:
    """Validate a caller-supplied role label."""
    if value is None or value == "":
        return default
    if value in LEGACY_ROLE_ALIASES:
        return LEGACY_ROLE_ALIASES[value]
    parsed = _coerce(Role, value)
    if parsed is None:
        allowed = ", ".join(r.value for r in Role)
        raise InvalidArgument(f"Invalid role '{value}'. Allowed roles: {allowed}")
    return parsed
