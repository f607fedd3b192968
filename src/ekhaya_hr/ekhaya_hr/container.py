from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .approvals.mysql_approval_repository import MySQLApprovalRepository
from .approvals.repository import ApprovalRepository
from .approvals.service import ApprovalService
from .database.connection import DBConfig, DatabaseConnection
from .policy.defaults import build_default_engine
from .policy.engine import PolicyEngine
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    policy: PolicyEngine

    users_repo: UserRepository
    approvals_repo: ApprovalRepository

    auth_service: AuthService
    user_service: UserService
    approval_service: ApprovalService


def assemble(
    *,
    users_repo: UserRepository,
    approvals_repo: ApprovalRepository,
    policy: PolicyEngine,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services around already-built repositories and one policy engine."""
    return Container(
        conn=conn,
        policy=policy,
        users_repo=users_repo,
        approvals_repo=approvals_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, policy),
        approval_service=ApprovalService(approvals_repo, users_repo, policy),
    )


def build_container(*, db_config: dict, policy: Optional[PolicyEngine] = None, strict_policy: bool = True) -> Container:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))
    if policy is None:
        policy = build_default_engine(strict=strict_policy)

    return assemble(
        users_repo=MySQLUserRepository(conn),
        approvals_repo=MySQLApprovalRepository(conn),
        policy=policy,
        conn=conn,
    )
