from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

from ..core.enums import ClearanceLevel, DocumentAccess, Role, ScheduleAction
from .permissions import Permission


@dataclass(frozen=True)
class RoleConstraints:
    """Numeric/boolean limits attached to a role.

    For the ceilings, ``None`` means unlimited and ``0`` means nothing is
    allowed. The two are never interchangeable.
    """

    expense_limit: Optional[int] = None
    salary_limit: Optional[int] = None
    team_size_limit: Optional[int] = None
    department_only: bool = False
    team_only: bool = False


@dataclass(frozen=True)
class RolePolicy:
    role: Role
    permissions: FrozenSet[Permission]
    constraints: RoleConstraints = field(default_factory=RoleConstraints)
    clearance_levels: FrozenSet[ClearanceLevel] = frozenset({ClearanceLevel.NONE})
    document_access: DocumentAccess = DocumentAccess.OWN_LIMITED
    schedule_actions: FrozenSet[ScheduleAction] = frozenset()


@dataclass(frozen=True)
class ApprovalStep:
    """One link of an approval chain.

    ``max_amount`` is only meaningful for expense workflows; ``None`` puts no
    ceiling on the step.
    """

    step: int
    required_role: Role
    optional: bool = False
    max_amount: Optional[int] = None


class DenialReason(str, Enum):
    UNKNOWN_ROLE = "UNKNOWN_ROLE"
    NO_WORKFLOW = "NO_WORKFLOW"
    UNKNOWN_WORKFLOW_STEP = "UNKNOWN_WORKFLOW_STEP"
    ROLE_MISMATCH = "ROLE_MISMATCH"
    AMOUNT_REQUIRED = "AMOUNT_REQUIRED"
    AMOUNT_EXCEEDS_CEILING = "AMOUNT_EXCEEDS_CEILING"


@dataclass(frozen=True)
class ApprovalCheck:
    allowed: bool
    reason: Optional[DenialReason] = None
    step: Optional[ApprovalStep] = None

    def __bool__(self) -> bool:
        return self.allowed
