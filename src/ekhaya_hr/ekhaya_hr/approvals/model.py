from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ActionType, ApprovalDecision, RequestStatus, Role


@dataclass(frozen=True)
class ApprovalRequest:
    """A workflow instance in progress.

    ``current_step`` is 0 once no step is pending (auto-approved or closed
    before any step was reached); ``required_role`` is then None.
    """

    request_id: int
    action_type: ActionType
    requester_id: int
    requester_role: Role
    dept_id: Optional[int]
    subject: str
    details: Optional[str]
    amount: Optional[float]
    status: RequestStatus
    current_step: int
    required_role: Optional[Role]
    assigned_approver_id: Optional[int]
    created_at: datetime
    closed_at: Optional[datetime] = None
    closed_by: Optional[int] = None
    closing_note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status == RequestStatus.PENDING


@dataclass(frozen=True)
class ApprovalDecisionRecord:
    decision_id: int
    request_id: int
    step: int
    approver_id: int
    approver_role: Role
    decision: ApprovalDecision
    note: Optional[str]
    decided_at: datetime


@dataclass(frozen=True)
class DecisionEntry:
    """A decision to be stored in the same transaction as the step change."""

    approver_id: int
    approver_role: Role
    decision: ApprovalDecision
    note: Optional[str] = None
