from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_role, current_user_id, json_body, json_view
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from .service import parse_role, parse_user_input


def register(app: Flask, container: Container) -> None:
    service = container.user_service

    def require_admin() -> None:
        if current_role() != Role.ADMIN:
            raise AuthorizationError("Only administrators can manage users.")

    @app.route("/api/users", methods=["GET"], endpoint="users_index")
    @json_view
    def users_index():
        require_admin()
        role_s = request.args.get("role")
        return jsonify(
            service.list(
                search=request.args.get("search"),
                role=parse_role(role_s) if role_s else None,
                page=request.args.get("page", 1, type=int),
            )
        )

    @app.route("/api/users/permissions", methods=["GET"], endpoint="users_permissions")
    @json_view
    def users_permissions():
        return jsonify({"permissions": service.available_permissions()})

    @app.route("/api/users", methods=["POST"], endpoint="users_store")
    @json_view
    def users_store():
        require_admin()
        user = service.create(data=parse_user_input(json_body(), password_required=True))
        return jsonify(user.to_dict()), 201

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="users_show")
    @json_view
    def users_show(user_id: int):
        require_admin()
        return jsonify(service.get(user_id=user_id).to_dict())

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="users_update")
    @json_view
    def users_update(user_id: int):
        require_admin()
        user = service.update(user_id=user_id, data=parse_user_input(json_body(), password_required=False))
        return jsonify(user.to_dict())

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="users_destroy")
    @json_view
    def users_destroy(user_id: int):
        require_admin()
        service.delete(user_id=user_id, current_user_id=current_user_id())
        return jsonify({"deleted": True})
