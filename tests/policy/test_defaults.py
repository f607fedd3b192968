from __future__ import annotations

import pytest

from ekhaya_hr.core.enums import ActionType, ClearanceLevel, DocumentAccess, Feature, Role, ScheduleAction
from ekhaya_hr.policy.permissions import Permission, PermissionCategory, category_of, permissions_in


def test_permission_catalogue():
    assert len(Permission) == 62
    assert category_of(Permission.ANALYTICS_VIEW) is PermissionCategory.REPORTING
    assert category_of(Permission.REPORTS_EXPORT) is PermissionCategory.REPORTING
    assert category_of(Permission.TIME_CLOCK_IN_OUT) is PermissionCategory.TIME
    # Every permission lands in exactly one category.
    assert sum(len(permissions_in(c)) for c in PermissionCategory) == len(Permission)


def test_super_admin_holds_everything(policy):
    assert policy.permissions_for(Role.SUPER_ADMIN) == frozenset(Permission)


def test_director_has_everything_but_administration(policy):
    director = policy.permissions_for(Role.DIRECTOR)
    assert director.isdisjoint(permissions_in(PermissionCategory.ADMIN))
    assert director == frozenset(Permission) - permissions_in(PermissionCategory.ADMIN)
    assert policy.has_permission(Role.DIRECTOR, Permission.TERMINATION_APPROVE) is True


def test_hr_manager_initiates_but_does_not_approve_terminations(policy):
    assert policy.has_permission(Role.HR_MANAGER, Permission.TERMINATION_INITIATE) is True
    assert policy.has_permission(Role.HR_MANAGER, Permission.TERMINATION_APPROVE) is False


@pytest.mark.parametrize(
    "role, expected",
    [
        (Role.SUPER_ADMIN, None),
        (Role.DIRECTOR, None),
        (Role.HR_MANAGER, 50_000),
        (Role.DEPARTMENT_MANAGER, 25_000),
        (Role.SUPERVISOR, 10_000),
        (Role.SENIOR_EMPLOYEE, 5_000),
        (Role.EMPLOYEE, 1_000),
        (Role.INTERN, 500),
    ],
)
def test_expense_limits(policy, role, expected):
    assert policy.get_role_constraints(role).expense_limit == expected


def test_scoping_flags(policy):
    assert policy.get_role_constraints(Role.DEPARTMENT_MANAGER).department_only is True
    assert policy.get_role_constraints(Role.SUPERVISOR).team_only is True
    assert policy.get_role_constraints(Role.HR_MANAGER).department_only is False


def test_ranks_follow_declaration_order():
    assert Role.SUPER_ADMIN.rank == 0
    assert Role.DIRECTOR.outranks(Role.HR_MANAGER)
    assert not Role.INTERN.outranks(Role.EMPLOYEE)
    assert not Role.EMPLOYEE.outranks(Role.EMPLOYEE)


def test_every_chain_climbs_the_hierarchy(policy):
    for action in ActionType:
        for requester in Role:
            for step in policy.workflow_for(action, requester) or ():
                assert step.required_role.outranks(requester)


def test_expense_chain_for_employees(policy):
    steps = policy.workflow_for(ActionType.EXPENSE_APPROVAL, Role.EMPLOYEE)
    assert [(s.required_role, s.max_amount) for s in steps] == [
        (Role.SUPERVISOR, 1_000),
        (Role.DEPARTMENT_MANAGER, 10_000),
        (Role.HR_MANAGER, 50_000),
        (Role.DIRECTOR, None),
    ]


def test_hr_manager_reviews_need_no_approval(policy):
    assert policy.workflow_for(ActionType.PERFORMANCE_REVIEW, Role.HR_MANAGER) == ()


@pytest.mark.parametrize(
    "role, features",
    [
        (Role.SUPER_ADMIN, set(Feature)),
        (Role.DIRECTOR, set(Feature) - {Feature.ADMIN_SETTINGS}),
        (Role.SUPERVISOR, {Feature.LEAVE_APPROVAL}),
        (Role.EMPLOYEE, set()),
    ],
)
def test_feature_access(policy, role, features):
    assert {f for f in Feature if policy.can_access_feature(role, f)} == features


def test_feature_access_for_unknown_feature(policy):
    assert policy.can_access_feature(Role.SUPER_ADMIN, "space-program") is False


def test_clearance_and_documents(policy):
    assert policy.can_access_clearance(Role.DIRECTOR, ClearanceLevel.TOP_SECRET) is True
    assert policy.can_access_clearance(Role.HR_MANAGER, ClearanceLevel.TOP_SECRET) is False
    assert policy.can_access_clearance(Role.HR_MANAGER, "SECRET") is True
    assert policy.can_access_clearance(Role.INTERN, ClearanceLevel.CONFIDENTIAL) is False
    assert policy.document_access(Role.SUPERVISOR) is DocumentAccess.TEAM
    assert policy.document_access("CONTRACTOR") is None


def test_schedule_actions(policy):
    assert policy.can_manage_schedule(Role.HR_MANAGER, ScheduleAction.DELETE) is True
    assert policy.can_manage_schedule(Role.DEPARTMENT_MANAGER, ScheduleAction.DELETE) is False
    assert policy.can_manage_schedule(Role.EMPLOYEE, "REQUEST") is True
    assert policy.can_manage_schedule(Role.EMPLOYEE, ScheduleAction.APPROVE) is False
