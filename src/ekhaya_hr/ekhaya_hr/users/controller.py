from __future__ import annotations

from flask import Flask, g, jsonify, session

from ..common.http import error_response, json_body, login_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        try:
            user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))
        except Exception as e:
            return error_response(e)

        session.clear()
        session.update(user.to_session())
        session.permanent = True
        return jsonify({"user": user.to_session()})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/me/access", methods=["GET"], endpoint="my_access")
    @login_required
    def my_access():
        return jsonify(container.user_service.describe_access(g.user.role))

    @app.route("/api/employees", methods=["GET"], endpoint="list_employees")
    @login_required
    def list_employees():
        try:
            rows = container.user_service.list_directory(current_user=g.user)
        except Exception as e:
            return error_response(e)
        return jsonify({"employees": list(rows)})

    @app.route("/api/employees", methods=["POST"], endpoint="create_employee")
    @login_required
    def create_employee():
        data = json_body()
        try:
            try:
                role = Role(data.get("role") or Role.EMPLOYEE.value)
            except ValueError:
                raise ValidationError("Unknown role")
            user_id = container.user_service.create_account(
                current_user=g.user,
                full_name=data.get("full_name", ""),
                username=data.get("username", ""),
                password=data.get("password", ""),
                role=role,
                dept_id=data.get("dept_id"),
            )
        except Exception as e:
            return error_response(e)
        return jsonify({"user_id": user_id}), 201

    @app.route("/api/employees/<int:user_id>", methods=["DELETE"], endpoint="delete_employee")
    @login_required
    def delete_employee(user_id: int):
        try:
            container.user_service.delete_user(current_user=g.user, user_id=user_id)
        except Exception as e:
            return error_response(e)
        return jsonify({"success": True})
