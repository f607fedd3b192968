from __future__ import annotations

import pytest

from ekhaya_hr.container import assemble
from ekhaya_hr.main import create_app


@pytest.fixture
def app(monkeypatch, users_repo, approvals_repo, policy):
    monkeypatch.setenv("APP_ENV", "testing")
    container = assemble(users_repo=users_repo, approvals_repo=approvals_repo, policy=policy)
    return create_app(container=container)


@pytest.fixture
def login(app):
    def _login(username, password="secret1"):
        client = app.test_client()
        res = client.post("/api/auth/login", json={"username": username, "password": password})
        assert res.status_code == 200, res.get_json()
        return client

    return _login


def test_health(app):
    res = app.test_client().get("/api/health")
    assert res.status_code == 200
    assert res.get_json() == {"status": "ok"}


def test_login_failures_and_anonymous_access(app):
    client = app.test_client()
    assert client.get("/api/approvals/mine").status_code == 401

    res = client.post("/api/auth/login", json={"username": "employee", "password": "nope"})
    assert res.status_code == 401
    assert res.get_json()["error"] == "Invalid username or password"


def test_logout_clears_session(login):
    client = login("employee")
    assert client.get("/api/approvals/mine").status_code == 200
    client.post("/api/auth/logout")
    assert client.get("/api/approvals/mine").status_code == 401


def test_expense_request_round_trip(login):
    employee = login("employee")
    res = employee.post(
        "/api/approvals",
        json={"action_type": "EXPENSE_APPROVAL", "subject": "Taxi", "amount": "800"},
    )
    assert res.status_code == 201
    req = res.get_json()["request"]
    assert req["status"] == "PENDING"
    assert req["required_role"] == "SUPERVISOR"
    assert req["amount"] == 800.0

    supervisor = login("supervisor")
    pending = supervisor.get("/api/approvals/pending").get_json()["requests"]
    assert [(r["request_id"], r["can_act"]) for r in pending] == [(req["request_id"], True)]

    res = supervisor.post(f"/api/approvals/{req['request_id']}/decision", json={"action": "approve", "notes": "fine"})
    assert res.status_code == 200
    assert res.get_json()["request"]["required_role"] == "DEPARTMENT_MANAGER"

    detail = employee.get(f"/api/approvals/{req['request_id']}").get_json()
    assert detail["request"]["current_step"] == 2
    assert detail["request"]["can_act"] is False
    assert [(h["step"], h["decision"], h["note"]) for h in detail["history"]] == [(1, "approve", "fine")]


def test_submit_rejects_bad_input(login):
    employee = login("employee")

    res = employee.post("/api/approvals", json={"action_type": "SABBATICAL", "subject": "x"})
    assert res.status_code == 400
    assert res.get_json()["error"] == "Unknown action type"

    res = employee.post("/api/approvals", json={"action_type": "EXPENSE_APPROVAL", "subject": "x", "amount": "abc"})
    assert res.status_code == 400
    assert res.get_json()["error"] == "Amount must be a number"

    res = employee.post("/api/approvals", json={"action_type": "TERMINATION", "subject": "x"})
    assert res.status_code == 403


def test_decision_errors(login):
    employee = login("employee")
    rid = employee.post(
        "/api/approvals",
        json={"action_type": "LEAVE_REQUEST", "subject": "Family event"},
    ).get_json()["request"]["request_id"]

    supervisor = login("supervisor")
    res = supervisor.post(f"/api/approvals/{rid}/decision", json={"action": "maybe"})
    assert res.status_code == 400

    res = login("hrmanager").post(f"/api/approvals/{rid}/decision", json={"action": "approve"})
    assert res.status_code == 403

    assert login("intern").get(f"/api/approvals/{rid}").status_code == 403
    assert supervisor.get("/api/approvals/999").status_code == 404


def test_director_request_is_auto_approved(login):
    res = login("director").post("/api/approvals", json={"action_type": "SALARY_CHANGE", "subject": "Adjust band"})
    assert res.status_code == 201
    assert res.get_json()["request"]["status"] == "APPROVED"


def test_cancel(login):
    employee = login("employee")
    rid = employee.post(
        "/api/approvals",
        json={"action_type": "LEAVE_REQUEST", "subject": "Moving day"},
    ).get_json()["request"]["request_id"]

    res = employee.post(f"/api/approvals/{rid}/cancel")
    assert res.status_code == 200
    assert res.get_json()["request"]["status"] == "CANCELLED"


def test_my_access(login):
    access = login("opsmanager").get("/api/me/access").get_json()
    assert access["role"] == "DEPARTMENT_MANAGER"
    assert access["constraints"]["department_only"] is True
    assert "expense-approval" in access["features"]


def test_employee_admin(login, users_repo):
    hr = login("hrmanager")
    res = hr.post(
        "/api/employees",
        json={"full_name": "New Hire", "username": "newhire", "password": "welcome1", "dept_id": 3},
    )
    assert res.status_code == 201
    new_id = res.get_json()["user_id"]
    assert users_repo.get_by_id(new_id).role.value == "EMPLOYEE"

    res = hr.post("/api/employees", json={"full_name": "X", "username": "x", "password": "welcome1", "role": "CEO"})
    assert res.status_code == 400

    supervisor = login("supervisor")
    assert supervisor.post("/api/employees", json={"full_name": "X"}).status_code == 403
    assert supervisor.delete(f"/api/employees/{new_id}").status_code == 403

    assert hr.delete(f"/api/employees/{new_id}").status_code == 200
    assert hr.delete(f"/api/employees/{new_id}").status_code == 404

    employees = login("employee").get("/api/employees").get_json()["employees"]
    assert {e["dept_id"] for e in employees} == {3}
    assert len(employees) == 5
    assert len(hr.get("/api/employees").get_json()["employees"]) == 9

    res = hr.post(
        "/api/employees",
        json={"full_name": "Y", "username": "y", "password": "welcome1", "dept_id": "ops"},
    )
    assert res.status_code == 400
    assert hr.delete("/api/employees/2").status_code == 403


@pytest.mark.parametrize("amount", ["nan", "NaN", "inf", "-Infinity", True])
def test_submit_rejects_non_finite_or_boolean_amounts(login, amount):
    res = login("employee").post(
        "/api/approvals",
        json={"action_type": "EXPENSE_APPROVAL", "subject": "Taxi", "amount": amount},
    )
    assert res.status_code == 400
    assert res.get_json()["error"].startswith("Amount must be a")


def test_non_text_fields_are_client_errors(app, login):
    employee = login("employee")

    res = employee.post("/api/approvals", json={"action_type": "LEAVE_REQUEST", "subject": 123})
    assert res.status_code == 400
    assert res.get_json()["error"] == "Subject is required"

    res = employee.post("/api/approvals", json={"action_type": "LEAVE_REQUEST", "subject": "x", "details": [1]})
    assert res.status_code == 400

    res = app.test_client().post("/api/auth/login", json={"username": ["employee"], "password": "secret1"})
    assert res.status_code == 401


def test_escalation_round_trip(login):
    employee = login("employee")
    rid = employee.post(
        "/api/approvals",
        json={"action_type": "EXPENSE_APPROVAL", "subject": "Conference", "amount": 5000},
    ).get_json()["request"]["request_id"]

    supervisor = login("supervisor")
    [pending] = supervisor.get("/api/approvals/pending").get_json()["requests"]
    assert (pending["can_act"], pending["can_escalate"]) == (False, True)

    res = supervisor.post(f"/api/approvals/{rid}/decision", json={"action": "escalate", "notes": "Over limit"})
    assert res.status_code == 200
    assert res.get_json()["request"]["required_role"] == "DEPARTMENT_MANAGER"
    assert supervisor.get("/api/approvals/pending").get_json()["requests"] == []

    [pending] = login("opsmanager").get("/api/approvals/pending").get_json()["requests"]
    assert (pending["request_id"], pending["can_act"], pending["can_escalate"]) == (rid, True, False)
