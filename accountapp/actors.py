from dataclasses import dataclass
from typing import Optional


RENTER = 'RENTER'
OWNER = 'OWNER'
ADMIN = 'ADMIN'
SYSTEM = 'SYSTEM'

ROLES = (RENTER, OWNER, ADMIN, SYSTEM)


@dataclass(frozen=True)
class Actor:
    """
    Who is performing an operation.

    Passed explicitly into every authorization-sensitive booking operation.
    ``SYSTEM`` is used for the payment webhook and has no user id.
    """
    id: Optional[int]
    role: str

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown actor role: {self.role}")

    @classmethod
    def from_user(cls, user):
        return cls(id=user.id, role=user.role)

    @classmethod
    def system(cls):
        return cls(id=None, role=SYSTEM)

    @property
    def is_admin(self):
        return self.role == ADMIN

    @property
    def is_system(self):
        return self.role == SYSTEM
