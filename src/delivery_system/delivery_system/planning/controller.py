from __future__ import annotations

from decimal import Decimal

from flask import Flask, jsonify

from ..common.datetime_utils import today_local
from ..common.http import arg_date, body_date, current_user_id, json_body, json_view
from ..common.validators import optional_int, require_decimal, require_int
from ..container import Container
from ..core.enums import VehicleType
from ..core.exceptions import ValidationError


def _optional_money(data: dict, name: str):
    value = data.get(name)
    if value is None or value == "":
        return None
    return require_decimal(value, name, minimum=Decimal("0"))


def _id_list(data: dict, name: str) -> list[int]:
    raw = data.get(name)
    if not isinstance(raw, list) or not raw:
        raise ValidationError(f"{name} must be a non-empty list")
    return [require_int(v, f"{name}.{i}", minimum=1) for i, v in enumerate(raw)]


def register(app: Flask, container: Container) -> None:
    routes = container.route_planner
    allocation = container.allocation_planner

    # ---- route planner -----------------------------------------------------

    @app.route("/api/route-planner", methods=["GET"], endpoint="route_planner_index")
    @json_view
    def route_planner_index():
        return jsonify(routes.plan(plan_date=arg_date("date", today_local())))

    @app.route("/api/route-planner/calculate", methods=["POST"], endpoint="route_planner_calculate")
    @json_view
    def route_planner_calculate():
        return jsonify(routes.calculate_route(order_ids=_id_list(json_body(), "order_ids")))

    @app.route("/api/route-planner/orders/<int:order_id>/confirm", methods=["POST"], endpoint="route_planner_confirm")
    @json_view
    def route_planner_confirm(order_id: int):
        data = json_body()
        order = routes.confirm_delivery(
            order_id=order_id,
            delivery_date=body_date(data, "delivery_date", today_local()),
            base_rate=_optional_money(data, "base_rate"),
            drop_cost=_optional_money(data, "drop_cost"),
        )
        return jsonify({"message": f"Delivery confirmed for PO# {order.po_number}", "order": order.to_dict()})

    @app.route("/api/route-planner/confirm-bulk", methods=["POST"], endpoint="route_planner_confirm_bulk")
    @json_view
    def route_planner_confirm_bulk():
        data = json_body()
        raw = data.get("orders")
        if not isinstance(raw, list) or not raw:
            raise ValidationError("orders must be a non-empty list")
        entries = []
        for i, item in enumerate(raw):
            if not isinstance(item, dict):
                raise ValidationError(f"orders.{i} is invalid")
            entries.append((require_int(item.get("id"), f"orders.{i}.id", minimum=1), _optional_money(item, "base_rate")))
        count = routes.confirm_bulk(entries=entries, delivery_date=body_date(data, "delivery_date", today_local()))
        return jsonify({"message": f"{count} delivery order(s) confirmed successfully", "confirmed": count})

    # ---- allocation planner ------------------------------------------------

    @app.route("/api/allocation-planner", methods=["GET"], endpoint="allocation_planner_index")
    @json_view
    def allocation_planner_index():
        return jsonify(allocation.overview(plan_date=arg_date("date", today_local())))

    @app.route("/api/allocation-planner/suggestions", methods=["GET"], endpoint="allocation_planner_suggestions")
    @json_view
    def allocation_planner_suggestions():
        suggestions = allocation.suggest_batches(plan_date=arg_date("date", today_local()))
        return jsonify({"suggestions": [s.to_dict() for s in suggestions]})

    @app.route("/api/allocation-planner/allocate", methods=["POST"], endpoint="allocation_planner_allocate")
    @json_view
    def allocation_planner_allocate():
        data = json_body()
        planned_date = body_date(data, "planned_date")
        if not planned_date:
            raise ValidationError("planned_date is required")
        try:
            vehicle_type = VehicleType((data.get("vehicle_type") or "").strip())
        except ValueError:
            raise ValidationError("vehicle_type must be one of: l300, truck")
        batch = allocation.allocate(
            order_ids=_id_list(data, "order_ids"),
            planned_date=planned_date,
            vehicle_type=vehicle_type,
            vehicle_id=optional_int(data.get("vehicle_id"), "vehicle_id"),
            created_by=current_user_id(),
        )
        message = f"Batch created successfully with {batch.order_count} orders"
        return jsonify({"message": message, "batch": batch.to_dict()}), 201

    @app.route("/api/allocation-planner/orders/<int:order_id>/remove", methods=["POST"], endpoint="allocation_planner_remove")
    @json_view
    def allocation_planner_remove(order_id: int):
        batch = allocation.remove_from_batch(order_id=order_id)
        return jsonify({"message": "Order removed from batch", "batch": batch.to_dict() if batch else None})

    @app.route("/api/allocation-planner/batches/<int:batch_id>", methods=["DELETE"], endpoint="allocation_planner_delete")
    @json_view
    def allocation_planner_delete(batch_id: int):
        allocation.delete_batch(batch_id=batch_id)
        return jsonify({"message": "Batch deleted and orders released"})

    @app.route("/api/allocation-planner/batches/<int:batch_id>/start", methods=["POST"], endpoint="allocation_planner_start")
    @json_view
    def allocation_planner_start(batch_id: int):
        batch = allocation.start_delivery(batch_id=batch_id)
        return jsonify({"message": f"Batch {batch.batch_number} is now in transit", "batch": batch.to_dict()})

    @app.route("/api/allocation-planner/batches/<int:batch_id>/complete", methods=["POST"], endpoint="allocation_planner_complete")
    @json_view
    def allocation_planner_complete(batch_id: int):
        data = json_body()
        batch = allocation.complete_batch(batch_id=batch_id, delivery_date=body_date(data, "delivery_date", today_local()))
        message = f"Batch {batch.batch_number} completed with {batch.order_count} orders"
        return jsonify({"message": message, "batch": batch.to_dict()})
