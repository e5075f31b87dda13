"""
Role model and capability checks.

A user holds a set of role assignments. ``diner`` and ``admin`` are global;
``franchisee`` is scoped to a single franchise through ``object_id``.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union


class Role(str, enum.Enum):
    """Closed set of roles a user can hold."""
    DINER = "diner"
    FRANCHISEE = "franchisee"
    ADMIN = "admin"


@dataclass(frozen=True)
class RoleAssignment:
    role: Role
    object_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role.value}
        if self.object_id is not None:
            data["objectId"] = self.object_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoleAssignment":
        return cls(role=Role(data["role"]), object_id=data.get("objectId"))


def has_role(roles: Iterable[RoleAssignment], role: Role, object_id: Optional[int] = None) -> bool:
    """
    Check whether ``roles`` grants ``role``.

    When ``object_id`` is given, only an assignment scoped to that object counts.
    """
    for assignment in roles:
        if assignment.role != role:
            continue
        if object_id is None or assignment.object_id == object_id:
            return True
    return False


@dataclass
class AuthUser:
    """Identity attached to a request once its bearer token is resolved."""
    id: int
    name: str
    email: str
    roles: list[RoleAssignment] = field(default_factory=list)
    token: Optional[str] = None

    def is_role(self, role: Union[Role, str]) -> bool:
        try:
            return has_role(self.roles, Role(role))
        except ValueError:
            return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "roles": [r.to_dict() for r in self.roles],
        }

    @classmethod
    def from_claims(cls, claims: dict[str, Any], token: Optional[str] = None) -> "AuthUser":
        return cls(
            id=int(claims["id"]),
            name=claims.get("name", ""),
            email=claims.get("email", ""),
            roles=[RoleAssignment.from_dict(r) for r in claims.get("roles", [])],
            token=token,
        )
