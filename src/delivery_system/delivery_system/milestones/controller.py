from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, json_view
from ..container import Container
from .service import parse_milestone_update


def register(app: Flask, container: Container) -> None:
    service = container.milestone_service

    @app.route("/api/delivery-orders/<int:order_id>/milestones/initialize", methods=["POST"], endpoint="milestones_initialize")
    @json_view
    def milestones_initialize(order_id: int):
        service.initialize(order_id=order_id)
        return jsonify({"message": "Milestones initialized successfully.", **service.analysis(order_id=order_id)})

    @app.route("/api/delivery-orders/<int:order_id>/milestones/advance", methods=["POST"], endpoint="milestones_advance")
    @json_view
    def milestones_advance(order_id: int):
        started = service.advance(order_id=order_id)
        if started:
            message = f"Advanced to milestone: {started.name}"
        else:
            message = "All milestones completed. Order marked as delivered."
        return jsonify({"message": message, **service.analysis(order_id=order_id)})

    @app.route(
        "/api/delivery-orders/<int:order_id>/milestones/<int:milestone_id>",
        methods=["PUT"],
        endpoint="milestones_update",
    )
    @json_view
    def milestones_update(order_id: int, milestone_id: int):
        service.update(order_id=order_id, milestone_id=milestone_id, data=parse_milestone_update(json_body()))
        return jsonify({"message": "Milestone updated successfully.", **service.analysis(order_id=order_id)})

    @app.route("/api/delivery-orders/<int:order_id>/critical-path", methods=["GET"], endpoint="milestones_critical_path")
    @json_view
    def milestones_critical_path(order_id: int):
        return jsonify(service.analysis(order_id=order_id))
