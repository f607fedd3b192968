from __future__ import annotations

from enum import Enum
from typing import FrozenSet


class Permission(str, Enum):
    """Named capabilities a role may hold."""

    # Employee management
    EMPLOYEE_CREATE = "employee_create"
    EMPLOYEE_READ = "employee_read"
    EMPLOYEE_UPDATE = "employee_update"
    EMPLOYEE_DELETE = "employee_delete"
    EMPLOYEE_VIEW_ALL = "employee_view_all"
    EMPLOYEE_VIEW_DEPARTMENT = "employee_view_department"
    EMPLOYEE_VIEW_SALARY = "employee_view_salary"
    EMPLOYEE_UPDATE_SALARY = "employee_update_salary"

    # Leave
    LEAVE_CREATE = "leave_create"
    LEAVE_VIEW_OWN = "leave_view_own"
    LEAVE_VIEW_TEAM = "leave_view_team"
    LEAVE_VIEW_ALL = "leave_view_all"
    LEAVE_APPROVE_TEAM = "leave_approve_team"
    LEAVE_APPROVE_DEPARTMENT = "leave_approve_department"
    LEAVE_APPROVE_ALL = "leave_approve_all"
    LEAVE_REJECT = "leave_reject"

    # Performance
    PERFORMANCE_CREATE_REVIEW = "performance_create_review"
    PERFORMANCE_VIEW_OWN = "performance_view_own"
    PERFORMANCE_VIEW_TEAM = "performance_view_team"
    PERFORMANCE_VIEW_ALL = "performance_view_all"
    PERFORMANCE_APPROVE = "performance_approve"
    PERFORMANCE_SET_GOALS = "performance_set_goals"

    # Time & attendance
    TIME_CLOCK_IN_OUT = "time_clock_in_out"
    TIME_VIEW_OWN = "time_view_own"
    TIME_VIEW_TEAM = "time_view_team"
    TIME_VIEW_ALL = "time_view_all"
    TIME_APPROVE = "time_approve"
    TIME_EDIT = "time_edit"

    # Payroll
    PAYROLL_VIEW_OWN = "payroll_view_own"
    PAYROLL_VIEW_ALL = "payroll_view_all"
    PAYROLL_PROCESS = "payroll_process"
    PAYROLL_APPROVE = "payroll_approve"
    PAYROLL_GENERATE_REPORTS = "payroll_generate_reports"

    # Disciplinary
    DISCIPLINARY_CREATE = "disciplinary_create"
    DISCIPLINARY_VIEW = "disciplinary_view"
    DISCIPLINARY_APPROVE = "disciplinary_approve"
    DISCIPLINARY_APPEAL = "disciplinary_appeal"

    # Termination
    TERMINATION_INITIATE = "termination_initiate"
    TERMINATION_APPROVE = "termination_approve"
    TERMINATION_VIEW = "termination_view"

    # Recruitment
    RECRUITMENT_POST_JOBS = "recruitment_post_jobs"
    RECRUITMENT_VIEW_APPLICATIONS = "recruitment_view_applications"
    RECRUITMENT_SCHEDULE_INTERVIEWS = "recruitment_schedule_interviews"
    RECRUITMENT_MAKE_OFFERS = "recruitment_make_offers"

    # Documents
    DOCUMENTS_UPLOAD = "documents_upload"
    DOCUMENTS_VIEW_OWN = "documents_view_own"
    DOCUMENTS_VIEW_ALL = "documents_view_all"
    DOCUMENTS_MANAGE_ACCESS = "documents_manage_access"
    DOCUMENTS_DELETE = "documents_delete"

    # Finance & expenses
    FINANCE_VIEW_REPORTS = "finance_view_reports"
    FINANCE_MANAGE_EXPENSES = "finance_manage_expenses"
    FINANCE_APPROVE_EXPENSES = "finance_approve_expenses"
    FINANCE_GENERATE_RECEIPTS = "finance_generate_receipts"

    # System administration
    ADMIN_USER_MANAGEMENT = "admin_user_management"
    ADMIN_SYSTEM_CONFIG = "admin_system_config"
    ADMIN_AUDIT_LOGS = "admin_audit_logs"
    ADMIN_SECURITY_INCIDENTS = "admin_security_incidents"
    ADMIN_BACKUP_RESTORE = "admin_backup_restore"

    # Reporting & analytics
    REPORTS_GENERATE = "reports_generate"
    REPORTS_VIEW_ALL = "reports_view_all"
    REPORTS_EXPORT = "reports_export"
    ANALYTICS_VIEW = "analytics_view"


class PermissionCategory(str, Enum):
    """Functional grouping, used for presentation only."""

    EMPLOYEE = "employee"
    LEAVE = "leave"
    PERFORMANCE = "performance"
    TIME = "time"
    PAYROLL = "payroll"
    DISCIPLINARY = "disciplinary"
    TERMINATION = "termination"
    RECRUITMENT = "recruitment"
    DOCUMENTS = "documents"
    FINANCE = "finance"
    ADMIN = "admin"
    REPORTING = "reporting"


# Value prefix -> category. "reports_" and "analytics_" share a category.
_PREFIX_CATEGORY = {
    "reports": PermissionCategory.REPORTING,
    "analytics": PermissionCategory.REPORTING,
}


def category_of(permission: Permission) -> PermissionCategory:
    prefix = permission.value.split("_", 1)[0]
    if prefix in _PREFIX_CATEGORY:
        return _PREFIX_CATEGORY[prefix]
    return PermissionCategory(prefix)


def permissions_in(category: PermissionCategory) -> FrozenSet[Permission]:
    return frozenset(p for p in Permission if category_of(p) is category)
