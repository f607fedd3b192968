from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import ActionType, ApprovalDecision, RequestStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ApprovalDecisionRecord, ApprovalRequest, DecisionEntry
from .repository import ApprovalRepository

_REQUEST_COLUMNS = """
    request_id, action_type, requester_id, requester_role, dept_id,
    subject, details, amount, status, current_step, required_role,
    assigned_approver_id, created_at, closed_at, closed_by, closing_note
"""


def _row_to_request(r: dict) -> ApprovalRequest:
    amount = r.get("amount")
    required_role = r.get("required_role")
    return ApprovalRequest(
        request_id=int(r["request_id"]),
        action_type=ActionType(r["action_type"]),
        requester_id=int(r["requester_id"]),
        requester_role=Role(r["requester_role"]),
        dept_id=r.get("dept_id"),
        subject=r["subject"],
        details=r.get("details"),
        amount=float(amount) if amount is not None else None,
        status=RequestStatus(r["status"]),
        current_step=int(r["current_step"]),
        required_role=Role(required_role) if required_role else None,
        assigned_approver_id=r.get("assigned_approver_id"),
        created_at=r["created_at"],
        closed_at=r.get("closed_at"),
        closed_by=r.get("closed_by"),
        closing_note=r.get("closing_note"),
    )


def _insert_decision(cur, request_id: int, step: int, entry: DecisionEntry) -> None:
    cur.execute(
        """
        INSERT INTO approval_decisions(request_id, step, approver_id, approver_role, decision, note)
        VALUES(%s,%s,%s,%s,%s,%s)
        """,
        (
            int(request_id),
            int(step),
            int(entry.approver_id),
            entry.approver_role.value,
            entry.decision.value,
            entry.note,
        ),
    )


class MySQLApprovalRepository(ApprovalRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        action_type: ActionType,
        requester_id: int,
        requester_role: Role,
        dept_id: Optional[int],
        subject: str,
        details: Optional[str],
        amount: Optional[float],
        status: RequestStatus,
        current_step: int,
        required_role: Optional[Role],
        assigned_approver_id: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO approval_requests(
                    action_type, requester_id, requester_role, dept_id, subject, details, amount,
                    status, current_step, required_role, assigned_approver_id, closed_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s, IF(%s='PENDING', NULL, NOW()))
                """,
                (
                    action_type.value,
                    int(requester_id),
                    requester_role.value,
                    dept_id,
                    subject,
                    details,
                    amount,
                    status.value,
                    int(current_step),
                    required_role.value if required_role else None,
                    assigned_approver_id,
                    status.value,
                ),
            )
            return int(cur.lastrowid)

    def get(self, *, request_id: int) -> Optional[ApprovalRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM approval_requests WHERE request_id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def advance(
        self,
        *,
        request_id: int,
        expected_step: int,
        next_step: int,
        required_role: Role,
        assigned_approver_id: Optional[int],
        decision: Optional[DecisionEntry] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE approval_requests
                SET current_step=%s, required_role=%s, assigned_approver_id=%s
                WHERE request_id=%s AND status=%s AND current_step=%s
                """,
                (
                    int(next_step),
                    required_role.value,
                    assigned_approver_id,
                    int(request_id),
                    RequestStatus.PENDING.value,
                    int(expected_step),
                ),
            )
            if cur.rowcount <= 0:
                return False
            if decision is not None:
                _insert_decision(cur, request_id, expected_step, decision)
            return True

    def close(
        self,
        *,
        request_id: int,
        expected_step: int,
        status: RequestStatus,
        closed_by: int,
        note: Optional[str] = None,
        decision: Optional[DecisionEntry] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE approval_requests
                SET status=%s, required_role=NULL, assigned_approver_id=NULL,
                    closed_by=%s, closed_at=NOW(), closing_note=%s
                WHERE request_id=%s AND status=%s AND current_step=%s
                """,
                (
                    status.value,
                    int(closed_by),
                    note,
                    int(request_id),
                    RequestStatus.PENDING.value,
                    int(expected_step),
                ),
            )
            if cur.rowcount <= 0:
                return False
            if decision is not None:
                _insert_decision(cur, request_id, expected_step, decision)
            return True

    def list_decisions(self, *, request_id: int) -> Sequence[ApprovalDecisionRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT decision_id, request_id, step, approver_id, approver_role, decision, note, decided_at
                FROM approval_decisions
                WHERE request_id=%s
                ORDER BY step ASC, decision_id ASC
                """,
                (int(request_id),),
            )
            return [
                ApprovalDecisionRecord(
                    decision_id=int(r["decision_id"]),
                    request_id=int(r["request_id"]),
                    step=int(r["step"]),
                    approver_id=int(r["approver_id"]),
                    approver_role=Role(r["approver_role"]),
                    decision=ApprovalDecision(r["decision"]),
                    note=r.get("note"),
                    decided_at=r["decided_at"],
                )
                for r in fetchall(cur)
            ]

    def list_for_requester(self, *, requester_id: int, limit: int = 200) -> Sequence[ApprovalRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM approval_requests
                WHERE requester_id=%s
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (int(requester_id), int(limit)),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_pending(self, *, required_role: Role, limit: int = 500) -> Sequence[ApprovalRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM approval_requests
                WHERE status=%s AND required_role=%s
                ORDER BY created_at ASC
                LIMIT %s
                """,
                (RequestStatus.PENDING.value, required_role.value, int(limit)),
            )
            return [_row_to_request(r) for r in fetchall(cur)]
