from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_user_id, json_view
from ..common.validators import require_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_index")
    @json_view
    def notifications_index():
        page = require_int(request.args.get("page", 1), "page", minimum=1)
        return jsonify(service.list_for_user(user_id=current_user_id(), page=page))

    @app.route("/api/notifications/recent", methods=["GET"], endpoint="notifications_recent")
    @json_view
    def notifications_recent():
        return jsonify(service.recent(user_id=current_user_id()))

    @app.route("/api/notifications/<int:notification_id>/read", methods=["POST"], endpoint="notifications_mark_read")
    @json_view
    def notifications_mark_read(notification_id: int):
        service.mark_read(user_id=current_user_id(), notification_id=notification_id)
        return jsonify({"success": True})

    @app.route("/api/notifications/read-all", methods=["POST"], endpoint="notifications_mark_all_read")
    @json_view
    def notifications_mark_all_read():
        updated = service.mark_all_read(user_id=current_user_id())
        return jsonify({"success": True, "updated": updated})

    @app.route("/api/notifications/<int:notification_id>", methods=["DELETE"], endpoint="notifications_delete")
    @json_view
    def notifications_delete(notification_id: int):
        service.delete(user_id=current_user_id(), notification_id=notification_id)
        return jsonify({"success": True, "message": "Notification deleted."})

    @app.route("/api/notifications/read", methods=["DELETE"], endpoint="notifications_delete_read")
    @json_view
    def notifications_delete_read():
        deleted = service.delete_read(user_id=current_user_id())
        return jsonify({"success": True, "deleted": deleted, "message": "Read notifications deleted."})
