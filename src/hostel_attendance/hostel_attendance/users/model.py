from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import ELEVATED_ROLES, Role


@dataclass(frozen=True)
class User:
    """Domain entity: hostel account.

    Note: plain data object, no DB access code here.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    batch: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as handed to the services: who, and with which role."""

    participant_id: int
    role: Role

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES
