from __future__ import annotations

from typing import Optional, Protocol, Set

from ..core.enums import Role
from .repository import UserRepository


class RosterProvider(Protocol):
    def participant_ids(self, cohort: Optional[str] = None) -> Set[int]:
        raise NotImplementedError


class UserRosterProvider(RosterProvider):
    """Roster = every active student, optionally narrowed to one batch."""

    def __init__(self, users: UserRepository, *, default_cohort: Optional[str] = None):
        self._users = users
        self._default_cohort = default_cohort or None

    def participant_ids(self, cohort: Optional[str] = None) -> Set[int]:
        return set(self._users.list_ids_by_role(Role.STUDENT, batch=cohort or self._default_cohort))
