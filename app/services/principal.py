"""
Caller identity passed explicitly into every workflow call.

A reservation is owned by exactly one of a customer or a staff user (or by
nobody, for legacy rows), modelled as a small tagged union instead of a pair
of nullable ids.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class CustomerOwner:
    id: int


@dataclass(frozen=True)
class StaffOwner:
    id: int


@dataclass(frozen=True)
class Unassigned:
    pass


Owner = Union[CustomerOwner, StaffOwner, Unassigned]


def owner_from_refs(id_cliente: Optional[int], id_usuario: Optional[int]) -> Owner:
    if id_cliente is not None:
        return CustomerOwner(id_cliente)
    if id_usuario is not None:
        return StaffOwner(id_usuario)
    return Unassigned()


def owner_refs(owner: Owner) -> dict:
    """Column values for an owner: exactly one reference set"""
    if isinstance(owner, CustomerOwner):
        return {"id_cliente": owner.id, "id_usuario": None}
    if isinstance(owner, StaffOwner):
        return {"id_cliente": None, "id_usuario": owner.id}
    return {"id_cliente": None, "id_usuario": None}


@dataclass(frozen=True)
class Actor:
    """Who is calling, and what they may do"""
    owner: Owner
    role: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return isinstance(self.owner, StaffOwner)

    @property
    def is_customer(self) -> bool:
        return isinstance(self.owner, CustomerOwner)

    @property
    def can_bypass_ownership(self) -> bool:
        return self.is_staff

    @property
    def can_hard_delete(self) -> bool:
        return self.is_staff and self.role == "Admin"

    @property
    def writes_audit(self) -> bool:
        return self.is_staff

    @property
    def user_id(self) -> Optional[int]:
        return self.owner.id if self.is_staff else None

    @property
    def customer_id(self) -> Optional[int]:
        return self.owner.id if self.is_customer else None

    @property
    def default_channel(self) -> str:
        return "online" if self.is_customer else "telefono"

    @property
    def kind(self) -> str:
        if self.is_staff:
            return "usuario"
        if self.is_customer:
            return "cliente"
        return "anonimo"

    def owns(self, id_cliente: Optional[int]) -> bool:
        return self.is_customer and id_cliente is not None and self.owner.id == id_cliente
