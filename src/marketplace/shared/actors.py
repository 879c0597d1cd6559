"""Acting identities.

Authentication happens upstream; the core only receives who is acting and
in which role, and decides what that role may see or do.
"""

from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError


class Role(Enum):
    ADMIN = "admin"
    SUPPLIER = "supplier"
    USER = "user"


@dataclass(frozen=True)
class Actor:
    id: str | None
    role: Role = Role.USER

    @classmethod
    def of(cls, actor_id, role) -> "Actor":
        if isinstance(role, Role):
            return cls(id=actor_id, role=role)
        try:
            return cls(id=actor_id, role=Role((role or Role.USER.value).lower()))
        except ValueError as exc:
            raise ValidationError({"actor_role": [f"Unknown role: {role}"]}) from exc

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_supplier(self) -> bool:
        return self.role is Role.SUPPLIER

    def owns(self, supplier_id) -> bool:
        return self.id is not None and str(self.id) == str(supplier_id)
