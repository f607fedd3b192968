from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from ekhaya_hr.approvals.model import ApprovalDecisionRecord, ApprovalRequest
from ekhaya_hr.core.enums import RequestStatus, Role
from ekhaya_hr.policy.defaults import build_default_engine
from ekhaya_hr.users.model import User
from ekhaya_hr.users.service import SessionUser

FIXED_NOW = datetime(2026, 3, 2, 9, 30, 0)

OPS = 3
FINANCE = 4


class InMemoryUsers:
    def __init__(self, users=()):
        self._by_id: dict[int, User] = {u.user_id: u for u in users}
        self._next_id = max(self._by_id, default=0) + 1

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        for u in self._by_id.values():
            if u.username == username:
                return u
        return None

    def find_approver(self, *, role: Role, dept_id: Optional[int]) -> Optional[User]:
        candidates = [u for u in self._by_id.values() if u.role is role and u.is_active]
        candidates.sort(key=lambda u: (u.dept_id != dept_id, u.user_id))
        return candidates[0] if candidates else None

    def create_user(self, *, full_name, username, password_hash, role, dept_id) -> int:
        user_id = self._next_id
        self._next_id += 1
        self._by_id[user_id] = User(
            user_id=user_id,
            full_name=full_name,
            username=username,
            password_hash=password_hash,
            role=role,
            dept_id=dept_id,
        )
        return user_id

    def delete_by_id(self, user_id: int) -> bool:
        return self._by_id.pop(int(user_id), None) is not None

    def list_directory(self, *, dept_id=None):
        return [
            {"user_id": u.user_id, "full_name": u.full_name, "role": u.role.value, "dept_id": u.dept_id}
            for u in sorted(self._by_id.values(), key=lambda u: u.user_id)
            if dept_id is None or u.dept_id == dept_id
        ]


class InMemoryApprovals:
    def __init__(self):
        self._requests: dict[int, ApprovalRequest] = {}
        self._decisions: list[ApprovalDecisionRecord] = []
        self._next_id = 1

    def create(
        self,
        *,
        action_type,
        requester_id,
        requester_role,
        dept_id,
        subject,
        details,
        amount,
        status,
        current_step,
        required_role,
        assigned_approver_id,
    ) -> int:
        rid = self._next_id
        self._next_id += 1
        self._requests[rid] = ApprovalRequest(
            request_id=rid,
            action_type=action_type,
            requester_id=requester_id,
            requester_role=requester_role,
            dept_id=dept_id,
            subject=subject,
            details=details,
            amount=amount,
            status=status,
            current_step=current_step,
            required_role=required_role,
            assigned_approver_id=assigned_approver_id,
            created_at=FIXED_NOW,
            closed_at=None if status is RequestStatus.PENDING else FIXED_NOW,
        )
        return rid

    def get(self, *, request_id):
        return self._requests.get(int(request_id))

    def _pending_at(self, request_id, expected_step) -> Optional[ApprovalRequest]:
        req = self._requests.get(int(request_id))
        if not req or req.status is not RequestStatus.PENDING or req.current_step != expected_step:
            return None
        return req

    def _record(self, request_id, step, entry) -> None:
        self._decisions.append(
            ApprovalDecisionRecord(
                decision_id=len(self._decisions) + 1,
                request_id=int(request_id),
                step=step,
                approver_id=entry.approver_id,
                approver_role=entry.approver_role,
                decision=entry.decision,
                note=entry.note,
                decided_at=FIXED_NOW,
            )
        )

    def advance(
        self, *, request_id, expected_step, next_step, required_role, assigned_approver_id, decision=None
    ) -> bool:
        req = self._pending_at(request_id, expected_step)
        if not req:
            return False
        self._requests[req.request_id] = replace(
            req,
            current_step=next_step,
            required_role=required_role,
            assigned_approver_id=assigned_approver_id,
        )
        if decision is not None:
            self._record(request_id, expected_step, decision)
        return True

    def close(self, *, request_id, expected_step, status, closed_by, note=None, decision=None) -> bool:
        req = self._pending_at(request_id, expected_step)
        if not req:
            return False
        self._requests[req.request_id] = replace(
            req,
            status=status,
            required_role=None,
            assigned_approver_id=None,
            closed_at=FIXED_NOW,
            closed_by=closed_by,
            closing_note=note,
        )
        if decision is not None:
            self._record(request_id, expected_step, decision)
        return True

    def list_decisions(self, *, request_id):
        return [d for d in self._decisions if d.request_id == int(request_id)]

    def list_for_requester(self, *, requester_id, limit=200):
        items = [r for r in self._requests.values() if r.requester_id == requester_id]
        items.sort(key=lambda r: r.request_id, reverse=True)
        return items[:limit]

    def list_pending(self, *, required_role, limit=500):
        items = [
            r
            for r in self._requests.values()
            if r.status is RequestStatus.PENDING and r.required_role is required_role
        ]
        return items[:limit]


def make_user(user_id, username, role, dept_id=OPS, password="secret1", is_active=True) -> User:
    return User(
        user_id=user_id,
        full_name=username.title(),
        username=username,
        password_hash=generate_password_hash(password),
        role=role,
        dept_id=dept_id,
        is_active=is_active,
    )


def as_session(user: User) -> SessionUser:
    return SessionUser(user_id=user.user_id, full_name=user.full_name, role=user.role, dept_id=user.dept_id)


@pytest.fixture
def policy():
    return build_default_engine()


@pytest.fixture
def staff():
    """One account per role, most of them in Operations."""
    return {
        "owner": make_user(1, "owner", Role.SUPER_ADMIN, dept_id=1),
        "director": make_user(2, "director", Role.DIRECTOR, dept_id=1),
        "hr": make_user(3, "hrmanager", Role.HR_MANAGER, dept_id=2),
        "ops_manager": make_user(4, "opsmanager", Role.DEPARTMENT_MANAGER),
        "finance_manager": make_user(5, "finmanager", Role.DEPARTMENT_MANAGER, dept_id=FINANCE),
        "supervisor": make_user(6, "supervisor", Role.SUPERVISOR),
        "senior": make_user(7, "senior", Role.SENIOR_EMPLOYEE),
        "employee": make_user(8, "employee", Role.EMPLOYEE),
        "intern": make_user(9, "intern", Role.INTERN),
    }


@pytest.fixture
def users_repo(staff):
    return InMemoryUsers(staff.values())


@pytest.fixture
def approvals_repo():
    return InMemoryApprovals()


@pytest.fixture
def session_of(staff):
    """``session_of("supervisor")`` -> the SessionUser for that staff member."""
    return lambda key: as_session(staff[key])
