from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.enums import Feature, Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..policy.engine import PolicyEngine
from ..policy.permissions import Permission
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    full_name: str
    role: Role
    dept_id: Optional[int]

    def to_session(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.full_name,
            "role": self.role.value,
            "dept_id": self.dept_id,
        }

    @classmethod
    def from_session(cls, data) -> Optional["SessionUser"]:
        if "user_id" not in data:
            return None
        try:
            role = Role(data.get("role"))
        except ValueError:
            return None
        return cls(
            user_id=int(data["user_id"]),
            full_name=data.get("name") or "",
            role=role,
            dept_id=data.get("dept_id"),
        )


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        if not isinstance(username, str) or not isinstance(password, str):
            raise AuthenticationError("Invalid username or password")

        user = self._users.get_by_username(username.strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME'
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")

        logger.info("user %s logged in as %s", user.user_id, user.role.value)
        return SessionUser(
            user_id=user.user_id,
            full_name=user.full_name,
            role=user.role,
            dept_id=user.dept_id,
        )


class UserService:
    """Use case: manage employee accounts, gated by the permission table."""

    def __init__(self, users: UserRepository, policy: PolicyEngine):
        self._users = users
        self._policy = policy

    def create_account(
        self,
        *,
        current_user: SessionUser,
        full_name: str,
        username: str,
        password: str,
        role: Role,
        dept_id: Optional[int],
    ) -> int:
        if not self._policy.has_permission(current_user.role, Permission.EMPLOYEE_CREATE):
            raise AuthorizationError("You are not allowed to create employees")
        # Only the system owner may create peers or superiors.
        if current_user.role is not Role.SUPER_ADMIN and not current_user.role.outranks(role):
            raise AuthorizationError(f"You cannot create an account with role {role.value}")

        full_name = require_non_empty(full_name, "Full name")
        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", 6)
        if dept_id is not None:
            try:
                dept_id = int(dept_id)
            except (TypeError, ValueError):
                raise ValidationError("Department must be a number")

        if self._users.get_by_username(username):
            raise ValidationError("Username already exists")

        user_id = self._users.create_user(
            full_name=full_name,
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            dept_id=dept_id,
        )
        logger.info("user %s created account %s (%s)", current_user.user_id, user_id, role.value)
        return user_id

    def delete_user(self, *, current_user: SessionUser, user_id: int) -> None:
        if not self._policy.has_permission(current_user.role, Permission.EMPLOYEE_DELETE):
            raise AuthorizationError("You are not allowed to delete employees")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found")
        if user.user_id == current_user.user_id:
            raise ValidationError("You cannot delete your own account")
        if user.role is Role.SUPER_ADMIN:
            raise ValidationError("The system owner account cannot be deleted")
        if current_user.role is not Role.SUPER_ADMIN and not current_user.role.outranks(user.role):
            raise AuthorizationError(f"You cannot delete an account with role {user.role.value}")

        if not self._users.delete_by_id(user.user_id):
            raise ValidationError("Deleting the employee failed")
        logger.info("user %s deleted account %s", current_user.user_id, user.user_id)

    def list_directory(self, *, current_user: SessionUser) -> Sequence[dict]:
        if not self._policy.has_permission(current_user.role, Permission.EMPLOYEE_READ):
            raise AuthorizationError("You are not allowed to view the employee directory")
        if self._policy.has_permission(current_user.role, Permission.EMPLOYEE_VIEW_ALL):
            return self._users.list_directory()

        # Everyone else sees their own department only.
        if current_user.dept_id is None:
            raise AuthorizationError("You are not assigned to a department")
        return self._users.list_directory(dept_id=current_user.dept_id)

    def describe_access(self, role: Role) -> dict:
        """Everything the UI needs to show or grey out controls for ``role``."""
        document_access = self._policy.document_access(role)
        policy = self._policy.role_policy(role)
        return {
            "role": role.value,
            "permissions": sorted(p.value for p in self._policy.permissions_for(role)),
            "constraints": asdict(self._policy.get_role_constraints(role)),
            "features": [f.value for f in Feature if self._policy.can_access_feature(role, f)],
            "document_access": document_access.value if document_access else None,
            "clearance_levels": sorted(c.value for c in policy.clearance_levels) if policy else [],
        }
