from __future__ import annotations

import logging
from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from ..core.enums import (
    TOP_ROLES,
    ActionType,
    ClearanceLevel,
    DocumentAccess,
    Feature,
    Role,
    ScheduleAction,
)
from ..core.exceptions import PolicyConfigurationError
from .model import ApprovalCheck, ApprovalStep, DenialReason, RoleConstraints, RolePolicy
from .permissions import Permission

logger = logging.getLogger(__name__)

E = TypeVar("E")

RoleLike = Union[Role, str]
Workflow = Tuple[ApprovalStep, ...]

# Handed out for roles missing from the table: every ceiling closed.
UNMAPPED_CONSTRAINTS = RoleConstraints(expense_limit=0, salary_limit=0, team_size_limit=0)


def _coerce(enum_cls: Type[E], value) -> Optional[E]:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        return None


def validate_policy(
    role_policies: Mapping[Role, RolePolicy],
    workflows: Mapping[ActionType, Mapping[Role, Sequence[ApprovalStep]]],
    *,
    strict: bool = True,
) -> None:
    """Check the authoring invariants of a policy table.

    Raises PolicyConfigurationError listing every problem found. In non-strict
    mode roles and action types may be missing (partial tables), but whatever
    is present must still be well formed.
    """
    problems: List[str] = []

    for role, policy in role_policies.items():
        if policy.role != role:
            problems.append(f"policy for {role.value} is declared for {policy.role.value}")

    if strict:
        for role in Role:
            if role not in role_policies:
                problems.append(f"no policy for role {role.value}")
        for action in ActionType:
            if action not in workflows:
                problems.append(f"no workflow table for {action.value}")

    for action, by_role in workflows.items():
        if strict:
            for top in sorted(TOP_ROLES, key=lambda r: r.rank):
                if top not in by_role:
                    problems.append(f"{action.value}: no workflow declared for {top.value}")

        for requester, steps in by_role.items():
            where = f"{action.value}/{requester.value}"
            numbers = [s.step for s in steps]
            if numbers != list(range(1, len(steps) + 1)):
                problems.append(f"{where}: steps must be numbered 1..{len(steps)}, got {numbers}")

            if requester in TOP_ROLES and steps:
                problems.append(f"{where}: top roles must not need approval")

            ceiling: Optional[int] = None
            unlimited_seen = False
            for s in steps:
                if s.max_amount is None:
                    unlimited_seen = True
                    continue
                if action is not ActionType.EXPENSE_APPROVAL:
                    problems.append(f"{where}: step {s.step} has a max_amount outside an expense workflow")
                    continue
                if s.max_amount < 0:
                    problems.append(f"{where}: step {s.step} has a negative max_amount")
                if unlimited_seen:
                    problems.append(f"{where}: step {s.step} sets a ceiling after an unlimited step")
                elif ceiling is not None and s.max_amount < ceiling:
                    problems.append(f"{where}: step {s.step} lowers the ceiling ({s.max_amount} < {ceiling})")
                ceiling = s.max_amount

    if problems:
        raise PolicyConfigurationError("; ".join(problems))


class PolicyEngine:
    """Read-only role/permission and approval-workflow lookups.

    Built once at startup and shared by reference. Every query is a pure
    function of the tables; unknown roles, permissions or action types fail
    closed instead of raising.
    """

    def __init__(
        self,
        role_policies: Mapping[Role, RolePolicy],
        workflows: Mapping[ActionType, Mapping[Role, Sequence[ApprovalStep]]],
        *,
        feature_permissions: Optional[Mapping[Feature, FrozenSet[Permission]]] = None,
        strict: bool = True,
    ):
        validate_policy(role_policies, workflows, strict=strict)

        self._policies: Mapping[Role, RolePolicy] = MappingProxyType(dict(role_policies))
        self._workflows: Mapping[ActionType, Mapping[Role, Workflow]] = MappingProxyType(
            {
                action: MappingProxyType({role: tuple(steps) for role, steps in by_role.items()})
                for action, by_role in workflows.items()
            }
        )
        self._features: Mapping[Feature, FrozenSet[Permission]] = MappingProxyType(
            {feature: frozenset(perms) for feature, perms in (feature_permissions or {}).items()}
        )

    # -------- Role policies --------
    def role_policy(self, role: RoleLike) -> Optional[RolePolicy]:
        r = _coerce(Role, role)
        if r is None:
            return None
        return self._policies.get(r)

    def has_permission(self, role: RoleLike, permission: Union[Permission, str]) -> bool:
        policy = self.role_policy(role)
        if policy is None:
            logger.debug("permission check for unknown role %r", role)
            return False
        p = _coerce(Permission, permission)
        if p is None:
            return False
        return p in policy.permissions

    def permissions_for(self, role: RoleLike) -> FrozenSet[Permission]:
        policy = self.role_policy(role)
        return policy.permissions if policy else frozenset()

    def get_role_constraints(self, role: RoleLike) -> RoleConstraints:
        policy = self.role_policy(role)
        return policy.constraints if policy else UNMAPPED_CONSTRAINTS

    def can_access_feature(self, role: RoleLike, feature: Union[Feature, str]) -> bool:
        f = _coerce(Feature, feature)
        if f is None:
            return False
        return any(self.has_permission(role, p) for p in self._features.get(f, ()))

    def can_access_clearance(self, role: RoleLike, level: Union[ClearanceLevel, str]) -> bool:
        policy = self.role_policy(role)
        lvl = _coerce(ClearanceLevel, level)
        return policy is not None and lvl is not None and lvl in policy.clearance_levels

    def document_access(self, role: RoleLike) -> Optional[DocumentAccess]:
        policy = self.role_policy(role)
        return policy.document_access if policy else None

    def can_manage_schedule(self, role: RoleLike, action: Union[ScheduleAction, str]) -> bool:
        policy = self.role_policy(role)
        act = _coerce(ScheduleAction, action)
        return policy is not None and act is not None and act in policy.schedule_actions

    def can_manage_salary(self, role: RoleLike, amount: float) -> bool:
        policy = self.role_policy(role)
        if policy is None:
            return False
        limit = policy.constraints.salary_limit
        if limit is None:
            return True
        return limit > 0 and amount <= limit

    # -------- Workflows --------
    def workflow_for(self, action_type: Union[ActionType, str], requester_role: RoleLike) -> Optional[Workflow]:
        """Ordered steps for a request, ``()`` if none are needed, None if undefined."""
        action = _coerce(ActionType, action_type)
        requester = _coerce(Role, requester_role)
        if action is None or requester is None:
            return None
        return self._workflows.get(action, {}).get(requester)

    def requires_approval(self, action_type: Union[ActionType, str], requester_role: RoleLike) -> bool:
        return bool(self.workflow_for(action_type, requester_role))

    @staticmethod
    def _find_step(steps: Workflow, number: int) -> Optional[ApprovalStep]:
        for s in steps:
            if s.step == number:
                return s
        return None

    def check_approval(
        self,
        approver_role: RoleLike,
        action_type: Union[ActionType, str],
        requester_role: RoleLike,
        current_step: int,
        amount: Optional[float] = None,
    ) -> ApprovalCheck:
        """Like ``can_approve`` but reports why a request was refused."""
        approver = _coerce(Role, approver_role)
        requester = _coerce(Role, requester_role)
        if approver is None or requester is None:
            return self._deny(DenialReason.UNKNOWN_ROLE, approver_role, action_type, requester_role, current_step)

        steps = self.workflow_for(action_type, requester)
        if not steps:
            return self._deny(DenialReason.NO_WORKFLOW, approver_role, action_type, requester_role, current_step)

        step = self._find_step(steps, current_step)
        if step is None:
            return self._deny(
                DenialReason.UNKNOWN_WORKFLOW_STEP, approver_role, action_type, requester_role, current_step
            )

        if step.required_role is not approver:
            return self._deny(
                DenialReason.ROLE_MISMATCH, approver_role, action_type, requester_role, current_step, step
            )

        if _coerce(ActionType, action_type) is ActionType.EXPENSE_APPROVAL and step.max_amount is not None:
            if amount is None:
                return self._deny(
                    DenialReason.AMOUNT_REQUIRED, approver_role, action_type, requester_role, current_step, step
                )
            # Written so that NaN fails the ceiling.
            if not amount <= step.max_amount:
                return self._deny(
                    DenialReason.AMOUNT_EXCEEDS_CEILING,
                    approver_role,
                    action_type,
                    requester_role,
                    current_step,
                    step,
                )

        return ApprovalCheck(allowed=True, step=step)

    def can_approve(
        self,
        approver_role: RoleLike,
        action_type: Union[ActionType, str],
        requester_role: RoleLike,
        current_step: int,
        amount: Optional[float] = None,
    ) -> bool:
        return self.check_approval(approver_role, action_type, requester_role, current_step, amount).allowed

    def get_next_approval_step(
        self,
        action_type: Union[ActionType, str],
        requester_role: RoleLike,
        completed_step: int,
    ) -> Optional[ApprovalStep]:
        """Step ``completed_step + 1`` of the workflow, or None once it is complete."""
        steps = self.workflow_for(action_type, requester_role)
        if not steps:
            return None
        return self._find_step(steps, completed_step + 1)

    @staticmethod
    def _deny(reason: DenialReason, approver, action, requester, step_no, step=None) -> ApprovalCheck:
        logger.debug(
            "approval denied (%s): approver=%s action=%s requester=%s step=%s",
            reason.value,
            getattr(approver, "value", approver),
            getattr(action, "value", action),
            getattr(requester, "value", requester),
            step_no,
        )
        return ApprovalCheck(allowed=False, reason=reason, step=step)
