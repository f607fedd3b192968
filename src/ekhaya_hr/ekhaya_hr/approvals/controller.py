from __future__ import annotations

import math
from typing import Optional

from flask import Flask, g, jsonify

from ..common.http import error_response, json_body, login_required
from ..core.enums import ActionType, ApprovalDecision
from ..core.exceptions import ValidationError
from ..container import Container
from .model import ApprovalDecisionRecord, ApprovalRequest


def _request_json(
    req: ApprovalRequest, *, can_act: Optional[bool] = None, can_escalate: Optional[bool] = None
) -> dict:
    out = {
        "request_id": req.request_id,
        "action_type": req.action_type.value,
        "requester_id": req.requester_id,
        "requester_role": req.requester_role.value,
        "subject": req.subject,
        "details": req.details,
        "amount": req.amount,
        "status": req.status.value,
        "current_step": req.current_step,
        "required_role": req.required_role.value if req.required_role else None,
        "assigned_approver_id": req.assigned_approver_id,
        "created_at": req.created_at.isoformat() if req.created_at else None,
        "closed_at": req.closed_at.isoformat() if req.closed_at else None,
        "closing_note": req.closing_note,
    }
    if can_act is not None:
        out["can_act"] = can_act
    if can_escalate is not None:
        out["can_escalate"] = can_escalate
    return out


def _decision_json(d: ApprovalDecisionRecord) -> dict:
    return {
        "step": d.step,
        "approver_id": d.approver_id,
        "approver_role": d.approver_role.value,
        "decision": d.decision.value,
        "note": d.note,
        "decided_at": d.decided_at.isoformat() if d.decided_at else None,
    }


def _parse_amount(value) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("Amount must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be a number")
    if not math.isfinite(amount):
        raise ValidationError("Amount must be a finite number")
    return amount


def register(app: Flask, container: Container) -> None:
    svc = container.approval_service

    @app.route("/api/approvals", methods=["POST"], endpoint="submit_approval")
    @login_required
    def submit_approval():
        data = json_body()
        try:
            try:
                action_type = ActionType(data.get("action_type"))
            except ValueError:
                raise ValidationError("Unknown action type")
            req = svc.submit(
                current_user=g.user,
                action_type=action_type,
                subject=data.get("subject", ""),
                details=data.get("details", ""),
                amount=_parse_amount(data.get("amount")),
            )
        except Exception as e:
            return error_response(e)
        return jsonify({"request": _request_json(req)}), 201

    @app.route("/api/approvals/mine", methods=["GET"], endpoint="my_approvals")
    @login_required
    def my_approvals():
        requests = svc.list_mine(current_user=g.user)
        return jsonify({"requests": [_request_json(r) for r in requests]})

    @app.route("/api/approvals/pending", methods=["GET"], endpoint="pending_approvals")
    @login_required
    def pending_approvals():
        requests = svc.list_pending_for(current_user=g.user)
        return jsonify(
            {
                "requests": [
                    _request_json(r, can_act=svc.can_act(g.user, r), can_escalate=svc.can_escalate(g.user, r))
                    for r in requests
                ]
            }
        )

    @app.route("/api/approvals/<int:request_id>", methods=["GET"], endpoint="approval_detail")
    @login_required
    def approval_detail(request_id: int):
        try:
            req = svc.get(current_user=g.user, request_id=request_id)
            history = svc.history(current_user=g.user, request_id=request_id)
        except Exception as e:
            return error_response(e)
        return jsonify(
            {
                "request": _request_json(req, can_act=svc.can_act(g.user, req)),
                "history": [_decision_json(d) for d in history],
            }
        )

    @app.route("/api/approvals/<int:request_id>/decision", methods=["POST"], endpoint="decide_approval")
    @login_required
    def decide_approval(request_id: int):
        data = json_body()
        try:
            try:
                decision = ApprovalDecision(data.get("action"))
            except ValueError:
                raise ValidationError("Invalid action")
            req = svc.decide(
                current_user=g.user,
                request_id=request_id,
                decision=decision,
                note=data.get("notes", ""),
            )
        except Exception as e:
            return error_response(e)
        return jsonify({"success": True, "request": _request_json(req)})

    @app.route("/api/approvals/<int:request_id>/cancel", methods=["POST"], endpoint="cancel_approval")
    @login_required
    def cancel_approval(request_id: int):
        try:
            req = svc.cancel(current_user=g.user, request_id=request_id)
        except Exception as e:
            return error_response(e)
        return jsonify({"success": True, "request": _request_json(req)})
