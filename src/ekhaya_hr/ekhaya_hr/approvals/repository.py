from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import ActionType, RequestStatus, Role
from .model import ApprovalDecisionRecord, ApprovalRequest, DecisionEntry


class ApprovalRepository(Protocol):
    """Persistence for approval requests.

    State changes are guarded on ``status='PENDING'`` and the expected step so
    that two approvers acting on the same request cannot both succeed. A
    ``decision`` passed to ``advance`` or ``close`` is stored against
    ``expected_step`` in the same transaction, and only when the guard holds.
    """

    def create(
        self,
        *,
        action_type: ActionType,
        requester_id: int,
        requester_role: Role,
        dept_id: Optional[int],
        subject: str,
        details: Optional[str],
        amount: Optional[float],
        status: RequestStatus,
        current_step: int,
        required_role: Optional[Role],
        assigned_approver_id: Optional[int],
    ) -> int:
        raise NotImplementedError

    def get(self, *, request_id: int) -> Optional[ApprovalRequest]:
        raise NotImplementedError

    def advance(
        self,
        *,
        request_id: int,
        expected_step: int,
        next_step: int,
        required_role: Role,
        assigned_approver_id: Optional[int],
        decision: Optional[DecisionEntry] = None,
    ) -> bool:
        raise NotImplementedError

    def close(
        self,
        *,
        request_id: int,
        expected_step: int,
        status: RequestStatus,
        closed_by: int,
        note: Optional[str] = None,
        decision: Optional[DecisionEntry] = None,
    ) -> bool:
        raise NotImplementedError

    def list_decisions(self, *, request_id: int) -> Sequence[ApprovalDecisionRecord]:
        raise NotImplementedError

    def list_for_requester(self, *, requester_id: int, limit: int = 200) -> Sequence[ApprovalRequest]:
        raise NotImplementedError

    def list_pending(self, *, required_role: Role, limit: int = 500) -> Sequence[ApprovalRequest]:
        """Pending requests waiting on ``required_role``, oldest first."""

        raise NotImplementedError
