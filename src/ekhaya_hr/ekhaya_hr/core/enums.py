from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Organizational rank used as the key for authorization decisions."""

    SUPER_ADMIN = "SUPER_ADMIN"
    DIRECTOR = "DIRECTOR"
    HR_MANAGER = "HR_MANAGER"
    DEPARTMENT_MANAGER = "DEPARTMENT_MANAGER"
    SUPERVISOR = "SUPERVISOR"
    SENIOR_EMPLOYEE = "SENIOR_EMPLOYEE"
    EMPLOYEE = "EMPLOYEE"
    INTERN = "INTERN"

    @property
    def rank(self) -> int:
        """0 is the top of the hierarchy."""
        return _ROLE_ORDER.index(self)

    def outranks(self, other: "Role") -> bool:
        return self.rank < other.rank


_ROLE_ORDER = tuple(Role)

TOP_ROLES = frozenset({Role.SUPER_ADMIN, Role.DIRECTOR})


class ActionType(str, Enum):
    """Kinds of user actions that go through an approval workflow."""

    LEAVE_REQUEST = "LEAVE_REQUEST"
    EXPENSE_APPROVAL = "EXPENSE_APPROVAL"
    DISCIPLINARY_ACTION = "DISCIPLINARY_ACTION"
    TERMINATION = "TERMINATION"
    PERFORMANCE_REVIEW = "PERFORMANCE_REVIEW"
    SALARY_CHANGE = "SALARY_CHANGE"
    PROMOTION = "PROMOTION"


class RequestStatus(str, Enum):
    """Lifecycle state of an approval request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class ApprovalDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    ESCALATE = "escalate"


class ClearanceLevel(str, Enum):
    NONE = "NONE"
    CONFIDENTIAL = "CONFIDENTIAL"
    SECRET = "SECRET"
    TOP_SECRET = "TOP_SECRET"


class DocumentAccess(str, Enum):
    """Widest document scope a role may browse."""

    ALL = "ALL"
    HR_ALL = "HR_ALL"
    DEPARTMENT = "DEPARTMENT"
    TEAM = "TEAM"
    OWN_PLUS = "OWN_PLUS"
    OWN = "OWN"
    OWN_LIMITED = "OWN_LIMITED"


class ScheduleAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REQUEST = "REQUEST"


class Feature(str, Enum):
    """Coarse dashboard areas, each unlocked by any of a few permissions."""

    EMPLOYEE_MANAGEMENT = "employee-management"
    LEAVE_APPROVAL = "leave-approval"
    FINANCE_MANAGEMENT = "finance-management"
    EXPENSE_APPROVAL = "expense-approval"
    ADMIN_SETTINGS = "admin-settings"
