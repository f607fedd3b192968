"""Example: query the policy engine directly (no Flask, no database).

Controllers are a thin layer; every authorization decision comes from the
engine built here.
"""

from ekhaya_hr.core.enums import ActionType, Role
from ekhaya_hr.policy.defaults import build_default_engine
from ekhaya_hr.policy.permissions import Permission


def main():
    policy = build_default_engine()

    print("employee may create leave:", policy.has_permission(Role.EMPLOYEE, Permission.LEAVE_CREATE))
    print("employee expense limit:", policy.get_role_constraints(Role.EMPLOYEE).expense_limit)

    for amount in (999, 1500):
        ok = policy.can_approve(Role.SUPERVISOR, ActionType.EXPENSE_APPROVAL, Role.EMPLOYEE, 1, amount)
        print(f"supervisor approves employee expense of {amount}:", ok)

    step = 0
    while True:
        nxt = policy.get_next_approval_step(ActionType.LEAVE_REQUEST, Role.EMPLOYEE, step)
        if nxt is None:
            print("leave request fully approved")
            break
        print(f"leave step {nxt.step}: {nxt.required_role.value}")
        step = nxt.step


if __name__ == "__main__":
    main()
