"""Default permission and approval tables for the HR dashboard.

The tables are returned by functions rather than kept as module-level
mappings so that each engine owns its own copy; ``build_default_engine`` is
meant to be called once during startup (see ``container.build_container``).
"""
from __future__ import annotations

from typing import Dict, Mapping, Tuple

from ..core.enums import ActionType, ClearanceLevel, DocumentAccess, Feature, Role, ScheduleAction
from .engine import PolicyEngine
from .model import ApprovalStep, RoleConstraints, RolePolicy
from .permissions import Permission as P
from .permissions import PermissionCategory, category_of

Workflows = Dict[ActionType, Dict[Role, Tuple[ApprovalStep, ...]]]


def _all_permissions() -> frozenset:
    return frozenset(P)


def _hr_manager_permissions() -> frozenset:
    return frozenset(
        {
            P.EMPLOYEE_CREATE,
            P.EMPLOYEE_READ,
            P.EMPLOYEE_UPDATE,
            P.EMPLOYEE_DELETE,
            P.EMPLOYEE_VIEW_ALL,
            P.EMPLOYEE_VIEW_SALARY,
            P.EMPLOYEE_UPDATE_SALARY,
            P.LEAVE_VIEW_ALL,
            P.LEAVE_APPROVE_ALL,
            P.LEAVE_REJECT,
            P.PERFORMANCE_CREATE_REVIEW,
            P.PERFORMANCE_VIEW_ALL,
            P.PERFORMANCE_APPROVE,
            P.PERFORMANCE_SET_GOALS,
            P.TIME_VIEW_ALL,
            P.TIME_APPROVE,
            P.TIME_EDIT,
            P.PAYROLL_VIEW_ALL,
            P.PAYROLL_PROCESS,
            P.PAYROLL_GENERATE_REPORTS,
            P.DISCIPLINARY_CREATE,
            P.DISCIPLINARY_VIEW,
            P.DISCIPLINARY_APPROVE,
            # Terminations are initiated here but signed off by a director.
            P.TERMINATION_INITIATE,
            P.TERMINATION_VIEW,
            P.RECRUITMENT_POST_JOBS,
            P.RECRUITMENT_VIEW_APPLICATIONS,
            P.RECRUITMENT_SCHEDULE_INTERVIEWS,
            P.RECRUITMENT_MAKE_OFFERS,
            P.DOCUMENTS_UPLOAD,
            P.DOCUMENTS_VIEW_ALL,
            P.DOCUMENTS_MANAGE_ACCESS,
            P.DOCUMENTS_DELETE,
            P.REPORTS_GENERATE,
            P.REPORTS_VIEW_ALL,
            P.REPORTS_EXPORT,
            P.ANALYTICS_VIEW,
            P.FINANCE_VIEW_REPORTS,
            P.FINANCE_APPROVE_EXPENSES,
        }
    )


def _department_manager_permissions() -> frozenset:
    return frozenset(
        {
            P.EMPLOYEE_READ,
            P.EMPLOYEE_UPDATE,
            P.EMPLOYEE_VIEW_DEPARTMENT,
            P.EMPLOYEE_VIEW_SALARY,
            P.LEAVE_VIEW_TEAM,
            P.LEAVE_APPROVE_DEPARTMENT,
            P.LEAVE_REJECT,
            P.PERFORMANCE_CREATE_REVIEW,
            P.PERFORMANCE_VIEW_TEAM,
            P.PERFORMANCE_APPROVE,
            P.PERFORMANCE_SET_GOALS,
            P.TIME_VIEW_TEAM,
            P.TIME_APPROVE,
            P.PAYROLL_VIEW_OWN,
            P.DISCIPLINARY_CREATE,
            P.DISCIPLINARY_VIEW,
            P.RECRUITMENT_POST_JOBS,
            P.RECRUITMENT_VIEW_APPLICATIONS,
            P.RECRUITMENT_SCHEDULE_INTERVIEWS,
            P.DOCUMENTS_UPLOAD,
            P.DOCUMENTS_VIEW_ALL,
            P.FINANCE_VIEW_REPORTS,
            P.FINANCE_APPROVE_EXPENSES,
            P.REPORTS_GENERATE,
            P.ANALYTICS_VIEW,
        }
    )


def _supervisor_permissions() -> frozenset:
    return frozenset(
        {
            P.EMPLOYEE_READ,
            P.EMPLOYEE_VIEW_DEPARTMENT,
            P.LEAVE_VIEW_TEAM,
            P.LEAVE_APPROVE_TEAM,
            P.PERFORMANCE_CREATE_REVIEW,
            P.PERFORMANCE_VIEW_TEAM,
            P.PERFORMANCE_SET_GOALS,
            P.TIME_VIEW_TEAM,
            P.TIME_APPROVE,
            P.DOCUMENTS_VIEW_OWN,
            P.DOCUMENTS_UPLOAD,
            P.REPORTS_GENERATE,
        }
    )


def _employee_permissions() -> frozenset:
    return frozenset(
        {
            P.EMPLOYEE_READ,
            P.LEAVE_CREATE,
            P.LEAVE_VIEW_OWN,
            P.PERFORMANCE_VIEW_OWN,
            P.TIME_CLOCK_IN_OUT,
            P.TIME_VIEW_OWN,
            P.PAYROLL_VIEW_OWN,
            P.DOCUMENTS_UPLOAD,
            P.DOCUMENTS_VIEW_OWN,
            P.FINANCE_GENERATE_RECEIPTS,
        }
    )


def _intern_permissions() -> frozenset:
    return frozenset(
        {
            P.LEAVE_CREATE,
            P.LEAVE_VIEW_OWN,
            P.PERFORMANCE_VIEW_OWN,
            P.TIME_CLOCK_IN_OUT,
            P.TIME_VIEW_OWN,
            P.DOCUMENTS_VIEW_OWN,
            P.FINANCE_GENERATE_RECEIPTS,
        }
    )


_ALL_CLEARANCE = frozenset(ClearanceLevel)
_ALL_SCHEDULE = frozenset({ScheduleAction.CREATE, ScheduleAction.UPDATE, ScheduleAction.DELETE, ScheduleAction.APPROVE})


def default_role_policies() -> Dict[Role, RolePolicy]:
    everything = _all_permissions()
    return {
        # System owner: unrestricted.
        Role.SUPER_ADMIN: RolePolicy(
            role=Role.SUPER_ADMIN,
            permissions=everything,
            constraints=RoleConstraints(),
            clearance_levels=_ALL_CLEARANCE,
            document_access=DocumentAccess.ALL,
            schedule_actions=_ALL_SCHEDULE,
        ),
        # Full HR powers, but no system administration.
        Role.DIRECTOR: RolePolicy(
            role=Role.DIRECTOR,
            permissions=frozenset(p for p in everything if category_of(p) is not PermissionCategory.ADMIN),
            constraints=RoleConstraints(),
            clearance_levels=_ALL_CLEARANCE,
            document_access=DocumentAccess.ALL,
            schedule_actions=_ALL_SCHEDULE,
        ),
        Role.HR_MANAGER: RolePolicy(
            role=Role.HR_MANAGER,
            permissions=_hr_manager_permissions(),
            constraints=RoleConstraints(expense_limit=50_000, salary_limit=1_000_000),
            clearance_levels=frozenset({ClearanceLevel.NONE, ClearanceLevel.CONFIDENTIAL, ClearanceLevel.SECRET}),
            document_access=DocumentAccess.HR_ALL,
            schedule_actions=_ALL_SCHEDULE,
        ),
        Role.DEPARTMENT_MANAGER: RolePolicy(
            role=Role.DEPARTMENT_MANAGER,
            permissions=_department_manager_permissions(),
            constraints=RoleConstraints(
                expense_limit=25_000,
                salary_limit=500_000,
                team_size_limit=50,
                department_only=True,
            ),
            clearance_levels=frozenset({ClearanceLevel.NONE, ClearanceLevel.CONFIDENTIAL}),
            document_access=DocumentAccess.DEPARTMENT,
            schedule_actions=frozenset({ScheduleAction.CREATE, ScheduleAction.UPDATE, ScheduleAction.APPROVE}),
        ),
        Role.SUPERVISOR: RolePolicy(
            role=Role.SUPERVISOR,
            permissions=_supervisor_permissions(),
            constraints=RoleConstraints(
                expense_limit=10_000,
                salary_limit=100_000,
                team_size_limit=15,
                team_only=True,
            ),
            clearance_levels=frozenset({ClearanceLevel.NONE, ClearanceLevel.CONFIDENTIAL}),
            document_access=DocumentAccess.TEAM,
            schedule_actions=frozenset({ScheduleAction.UPDATE, ScheduleAction.APPROVE}),
        ),
        Role.SENIOR_EMPLOYEE: RolePolicy(
            role=Role.SENIOR_EMPLOYEE,
            permissions=_employee_permissions() | {P.PERFORMANCE_SET_GOALS, P.TIME_EDIT},
            constraints=RoleConstraints(expense_limit=5_000, salary_limit=0, team_size_limit=5),
            document_access=DocumentAccess.OWN_PLUS,
            schedule_actions=frozenset({ScheduleAction.UPDATE}),
        ),
        Role.EMPLOYEE: RolePolicy(
            role=Role.EMPLOYEE,
            permissions=_employee_permissions(),
            constraints=RoleConstraints(expense_limit=1_000, salary_limit=0, team_size_limit=0),
            document_access=DocumentAccess.OWN,
            schedule_actions=frozenset({ScheduleAction.REQUEST}),
        ),
        Role.INTERN: RolePolicy(
            role=Role.INTERN,
            permissions=_intern_permissions(),
            constraints=RoleConstraints(expense_limit=500, salary_limit=0, team_size_limit=0),
            document_access=DocumentAccess.OWN_LIMITED,
            schedule_actions=frozenset({ScheduleAction.REQUEST}),
        ),
    }


def _chain(*steps: tuple) -> Tuple[ApprovalStep, ...]:
    """Build a 1..N chain from ``(role,)`` or ``(role, max_amount)`` tuples."""
    out = []
    for number, entry in enumerate(steps, start=1):
        role = entry[0]
        max_amount = entry[1] if len(entry) > 1 else None
        out.append(ApprovalStep(step=number, required_role=role, max_amount=max_amount))
    return tuple(out)


def _self_approving() -> Dict[Role, Tuple[ApprovalStep, ...]]:
    return {Role.SUPER_ADMIN: (), Role.DIRECTOR: ()}


def default_workflows() -> Workflows:
    hr, dm, sup, director = Role.HR_MANAGER, Role.DEPARTMENT_MANAGER, Role.SUPERVISOR, Role.DIRECTOR

    leave = {
        Role.EMPLOYEE: _chain((sup,), (dm,)),
        Role.SENIOR_EMPLOYEE: _chain((dm,)),
        Role.SUPERVISOR: _chain((dm,)),
        Role.DEPARTMENT_MANAGER: _chain((hr,)),
        Role.HR_MANAGER: _chain((director,)),
    }
    expense = {
        Role.EMPLOYEE: _chain((sup, 1_000), (dm, 10_000), (hr, 50_000), (director,)),
        Role.SUPERVISOR: _chain((dm, 25_000), (hr, 50_000), (director,)),
        Role.DEPARTMENT_MANAGER: _chain((hr, 50_000), (director,)),
        Role.HR_MANAGER: _chain((director,)),
    }
    disciplinary = {
        Role.SUPERVISOR: _chain((dm,), (hr,)),
        Role.DEPARTMENT_MANAGER: _chain((hr,)),
        Role.HR_MANAGER: _chain((director,)),
    }
    termination = {
        Role.DEPARTMENT_MANAGER: _chain((hr,), (director,)),
        Role.HR_MANAGER: _chain((director,)),
    }
    review = {
        Role.SUPERVISOR: _chain((dm,)),
        Role.DEPARTMENT_MANAGER: _chain((hr,)),
        Role.HR_MANAGER: (),
    }
    salary_change = {
        Role.DEPARTMENT_MANAGER: _chain((hr,), (director,)),
        Role.HR_MANAGER: _chain((director,)),
    }
    promotion = {
        Role.DEPARTMENT_MANAGER: _chain((hr,), (director,)),
        Role.HR_MANAGER: _chain((director,)),
    }

    tables: Mapping[ActionType, Dict[Role, Tuple[ApprovalStep, ...]]] = {
        ActionType.LEAVE_REQUEST: leave,
        ActionType.EXPENSE_APPROVAL: expense,
        ActionType.DISCIPLINARY_ACTION: disciplinary,
        ActionType.TERMINATION: termination,
        ActionType.PERFORMANCE_REVIEW: review,
        ActionType.SALARY_CHANGE: salary_change,
        ActionType.PROMOTION: promotion,
    }
    return {action: {**by_role, **_self_approving()} for action, by_role in tables.items()}


def default_feature_permissions() -> Dict[Feature, frozenset]:
    return {
        Feature.EMPLOYEE_MANAGEMENT: frozenset({P.EMPLOYEE_UPDATE}),
        Feature.LEAVE_APPROVAL: frozenset({P.LEAVE_APPROVE_TEAM, P.LEAVE_APPROVE_DEPARTMENT, P.LEAVE_APPROVE_ALL}),
        Feature.FINANCE_MANAGEMENT: frozenset({P.FINANCE_VIEW_REPORTS}),
        Feature.EXPENSE_APPROVAL: frozenset({P.FINANCE_APPROVE_EXPENSES}),
        Feature.ADMIN_SETTINGS: frozenset({P.ADMIN_SYSTEM_CONFIG}),
    }


def build_default_engine(*, strict: bool = True) -> PolicyEngine:
    return PolicyEngine(
        default_role_policies(),
        default_workflows(),
        feature_permissions=default_feature_permissions(),
        strict=strict,
    )
