from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for users.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def find_approver(self, *, role: Role, dept_id: Optional[int]) -> Optional[User]:
        """First active user holding ``role``, preferring ``dept_id``."""

        raise NotImplementedError

    def create_user(
        self,
        *,
        full_name: str,
        username: str,
        password_hash: str,
        role: Role,
        dept_id: Optional[int],
    ) -> int:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def list_directory(self, *, dept_id: Optional[int] = None) -> Sequence[dict]:
        """Directory rows, limited to ``dept_id`` when given."""

        raise NotImplementedError
