from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from ..common.validators import require_max_length, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_PENDING_LIMIT, MAX_SUBJECT_LENGTH
from ..core.enums import ActionType, ApprovalDecision, RequestStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..policy.engine import PolicyEngine
from ..policy.model import ApprovalCheck, DenialReason
from ..users.repository import UserRepository
from ..users.service import SessionUser
from .model import ApprovalDecisionRecord, ApprovalRequest, DecisionEntry
from .repository import ApprovalRepository

logger = logging.getLogger(__name__)

_DENIAL_MESSAGES = {
    DenialReason.UNKNOWN_ROLE: "Your role is not recognised",
    DenialReason.NO_WORKFLOW: "This request has no approval workflow",
    DenialReason.UNKNOWN_WORKFLOW_STEP: "This request is not waiting on a valid approval step",
    DenialReason.ROLE_MISMATCH: "This step must be approved by another role",
    DenialReason.AMOUNT_REQUIRED: "An amount is required to approve this expense",
    DenialReason.AMOUNT_EXCEEDS_CEILING: "The amount exceeds your approval limit",
}

_AMOUNT_REASONS = frozenset({DenialReason.AMOUNT_REQUIRED, DenialReason.AMOUNT_EXCEEDS_CEILING})


class ApprovalService:
    """Use case: submit requests and walk them through their approval chain."""

    def __init__(self, approvals: ApprovalRepository, users: UserRepository, policy: PolicyEngine):
        self._approvals = approvals
        self._users = users
        self._policy = policy

    def _resolve_approver(self, role: Role, dept_id: Optional[int]) -> Optional[int]:
        approver = self._users.find_approver(role=role, dept_id=dept_id)
        return approver.user_id if approver else None

    def _load_open(self, request_id: int) -> ApprovalRequest:
        req = self._approvals.get(request_id=int(request_id))
        if not req:
            raise NotFoundError("Request not found")
        if not req.is_open:
            raise ValidationError("Request has already been processed")
        return req

    def _assignee_blocks(self, current_user: SessionUser, req: ApprovalRequest) -> bool:
        """True while the step is held by another active user of the required role.

        An assignee who was deleted, deactivated or moved to another role no
        longer blocks the step; any holder of the required role may act.
        """
        if req.assigned_approver_id is None or req.assigned_approver_id == current_user.user_id:
            return False
        assignee = self._users.get_by_id(req.assigned_approver_id)
        return bool(assignee and assignee.is_active and assignee.role is req.required_role)

    def _check(self, current_user: SessionUser, req: ApprovalRequest) -> ApprovalCheck:
        return self._policy.check_approval(
            current_user.role,
            req.action_type,
            req.requester_role,
            req.current_step,
            req.amount,
        )

    def _authorize(self, current_user: SessionUser, req: ApprovalRequest, *, rejecting: bool = False) -> None:
        if self._assignee_blocks(current_user, req):
            raise AuthorizationError("This request is assigned to another approver")

        check = self._check(current_user, req)
        # The ceiling limits approval only; the step's approver may always reject.
        if check or (rejecting and check.reason in _AMOUNT_REASONS):
            return
        raise AuthorizationError(_DENIAL_MESSAGES[check.reason])

    def can_act(self, current_user: SessionUser, req: ApprovalRequest) -> bool:
        """Whether ``current_user`` could approve ``req`` right now."""
        if not req.is_open or self._assignee_blocks(current_user, req):
            return False
        return bool(self._check(current_user, req))

    def can_escalate(self, current_user: SessionUser, req: ApprovalRequest) -> bool:
        if not req.is_open or self._assignee_blocks(current_user, req):
            return False
        if self._check(current_user, req).reason is not DenialReason.AMOUNT_EXCEEDS_CEILING:
            return False
        return self._policy.get_next_approval_step(req.action_type, req.requester_role, req.current_step) is not None

    def submit(
        self,
        *,
        current_user: SessionUser,
        action_type: ActionType,
        subject: str,
        details: str = "",
        amount: Optional[float] = None,
    ) -> ApprovalRequest:
        steps = self._policy.workflow_for(action_type, current_user.role)
        if steps is None:
            raise AuthorizationError(
                f"{current_user.role.value} cannot submit {action_type.value.replace('_', ' ').lower()} requests"
            )

        subject = require_max_length(require_non_empty(subject, "Subject"), "Subject", MAX_SUBJECT_LENGTH)
        details = _clean_text(details, "Details")

        if amount is not None:
            if not math.isfinite(amount):
                raise ValidationError("Amount must be a finite number")
            if amount < 0:
                raise ValidationError("Amount cannot be negative")
        if action_type is ActionType.EXPENSE_APPROVAL and amount is None:
            raise ValidationError("Expense requests need an amount")

        if not steps:
            request_id = self._approvals.create(
                action_type=action_type,
                requester_id=current_user.user_id,
                requester_role=current_user.role,
                dept_id=current_user.dept_id,
                subject=subject,
                details=details,
                amount=amount,
                status=RequestStatus.APPROVED,
                current_step=0,
                required_role=None,
                assigned_approver_id=None,
            )
            logger.info(
                "request %s (%s) by user %s auto-approved", request_id, action_type.value, current_user.user_id
            )
        else:
            first = self._policy.get_next_approval_step(action_type, current_user.role, 0)
            request_id = self._approvals.create(
                action_type=action_type,
                requester_id=current_user.user_id,
                requester_role=current_user.role,
                dept_id=current_user.dept_id,
                subject=subject,
                details=details,
                amount=amount,
                status=RequestStatus.PENDING,
                current_step=first.step,
                required_role=first.required_role,
                assigned_approver_id=self._resolve_approver(first.required_role, current_user.dept_id),
            )
            logger.info(
                "request %s (%s) by user %s waiting on %s",
                request_id,
                action_type.value,
                current_user.user_id,
                first.required_role.value,
            )

        return self._approvals.get(request_id=request_id)

    def approve(self, *, current_user: SessionUser, request_id: int, note: str = "") -> ApprovalRequest:
        req = self._load_open(request_id)
        self._authorize(current_user, req)
        note = _clean_text(note, "Notes")
        entry = DecisionEntry(
            approver_id=current_user.user_id,
            approver_role=current_user.role,
            decision=ApprovalDecision.APPROVE,
            note=note,
        )

        nxt = self._policy.get_next_approval_step(req.action_type, req.requester_role, req.current_step)
        if nxt:
            ok = self._approvals.advance(
                request_id=req.request_id,
                expected_step=req.current_step,
                next_step=nxt.step,
                required_role=nxt.required_role,
                assigned_approver_id=self._resolve_approver(nxt.required_role, req.dept_id),
                decision=entry,
            )
        else:
            ok = self._approvals.close(
                request_id=req.request_id,
                expected_step=req.current_step,
                status=RequestStatus.APPROVED,
                closed_by=current_user.user_id,
                note=note,
                decision=entry,
            )
        if not ok:
            raise ValidationError("Request has already been processed")

        if nxt:
            logger.info(
                "request %s step %s approved by user %s, now waiting on %s",
                req.request_id,
                req.current_step,
                current_user.user_id,
                nxt.required_role.value,
            )
        else:
            logger.info("request %s fully approved by user %s", req.request_id, current_user.user_id)
        return self._approvals.get(request_id=req.request_id)

    def escalate(self, *, current_user: SessionUser, request_id: int, note: str = "") -> ApprovalRequest:
        """Hand an expense above this step's ceiling to the next step's approver."""
        req = self._load_open(request_id)
        if self._assignee_blocks(current_user, req):
            raise AuthorizationError("This request is assigned to another approver")

        check = self._check(current_user, req)
        if check.reason is not DenialReason.AMOUNT_EXCEEDS_CEILING:
            if check:
                raise ValidationError("Only requests above your approval limit can be escalated")
            raise AuthorizationError(_DENIAL_MESSAGES[check.reason])

        nxt = self._policy.get_next_approval_step(req.action_type, req.requester_role, req.current_step)
        if nxt is None:
            raise ValidationError("No higher approver for this request")

        note = _clean_text(note, "Notes")
        ok = self._approvals.advance(
            request_id=req.request_id,
            expected_step=req.current_step,
            next_step=nxt.step,
            required_role=nxt.required_role,
            assigned_approver_id=self._resolve_approver(nxt.required_role, req.dept_id),
            decision=DecisionEntry(
                approver_id=current_user.user_id,
                approver_role=current_user.role,
                decision=ApprovalDecision.ESCALATE,
                note=note,
            ),
        )
        if not ok:
            raise ValidationError("Request has already been processed")

        logger.info(
            "request %s escalated from step %s by user %s to %s",
            req.request_id,
            req.current_step,
            current_user.user_id,
            nxt.required_role.value,
        )
        return self._approvals.get(request_id=req.request_id)

    def reject(self, *, current_user: SessionUser, request_id: int, note: str = "") -> ApprovalRequest:
        req = self._load_open(request_id)
        self._authorize(current_user, req, rejecting=True)
        note = _clean_text(note, "Notes")

        ok = self._approvals.close(
            request_id=req.request_id,
            expected_step=req.current_step,
            status=RequestStatus.REJECTED,
            closed_by=current_user.user_id,
            note=note,
            decision=DecisionEntry(
                approver_id=current_user.user_id,
                approver_role=current_user.role,
                decision=ApprovalDecision.REJECT,
                note=note,
            ),
        )
        if not ok:
            raise ValidationError("Request has already been processed")

        logger.info("request %s rejected at step %s by user %s", req.request_id, req.current_step, current_user.user_id)
        return self._approvals.get(request_id=req.request_id)

    def decide(
        self,
        *,
        current_user: SessionUser,
        request_id: int,
        decision: ApprovalDecision,
        note: str = "",
    ) -> ApprovalRequest:
        if decision is ApprovalDecision.APPROVE:
            return self.approve(current_user=current_user, request_id=request_id, note=note)
        if decision is ApprovalDecision.ESCALATE:
            return self.escalate(current_user=current_user, request_id=request_id, note=note)
        return self.reject(current_user=current_user, request_id=request_id, note=note)

    def cancel(self, *, current_user: SessionUser, request_id: int) -> ApprovalRequest:
        req = self._load_open(request_id)
        if req.requester_id != current_user.user_id:
            raise AuthorizationError("Only the requester can cancel this request")

        ok = self._approvals.close(
            request_id=req.request_id,
            expected_step=req.current_step,
            status=RequestStatus.CANCELLED,
            closed_by=current_user.user_id,
        )
        if not ok:
            raise ValidationError("Request has already been processed")
        logger.info("request %s cancelled by its requester", req.request_id)
        return self._approvals.get(request_id=req.request_id)

    def get(self, *, current_user: SessionUser, request_id: int) -> ApprovalRequest:
        req = self._approvals.get(request_id=int(request_id))
        if not req:
            raise NotFoundError("Request not found")

        if req.requester_id == current_user.user_id:
            return req
        steps = self._policy.workflow_for(req.action_type, req.requester_role) or ()
        if any(s.required_role is current_user.role for s in steps):
            return req
        raise AuthorizationError("You cannot view this request")

    def history(self, *, current_user: SessionUser, request_id: int) -> Sequence[ApprovalDecisionRecord]:
        req = self.get(current_user=current_user, request_id=request_id)
        return self._approvals.list_decisions(request_id=req.request_id)

    def list_mine(self, *, current_user: SessionUser) -> Sequence[ApprovalRequest]:
        return self._approvals.list_for_requester(requester_id=current_user.user_id, limit=DEFAULT_HISTORY_LIMIT)

    def list_pending_for(self, *, current_user: SessionUser) -> Sequence[ApprovalRequest]:
        waiting = self._approvals.list_pending(required_role=current_user.role, limit=DEFAULT_PENDING_LIMIT)
        return [r for r in waiting if not self._assignee_blocks(current_user, r)]


def _clean_text(value, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    return value.strip() or None
