from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_user_id, json_body, json_view
from ..common.validators import require_int
from ..container import Container
from ..rates.service import parse_rate_type
from .service import parse_filters, parse_order_input


def register(app: Flask, container: Container) -> None:
    service = container.order_service

    @app.route("/api/delivery-orders", methods=["GET"], endpoint="delivery_orders_index")
    @json_view
    def delivery_orders_index():
        filters = parse_filters(request.args.to_dict())
        page = require_int(request.args.get("page", 1), "page", minimum=1)
        result = service.list(filters=filters, page=page)
        return jsonify(
            {
                "orders": [o.to_dict(with_items=False) for o in result.orders],
                "pagination": {
                    "total": result.total,
                    "page": result.page,
                    "per_page": result.per_page,
                    "last_page": result.last_page,
                },
                "summary": service.summary(filters=filters),
                "filters": {k: v for k, v in request.args.items() if k != "page"},
            }
        )

    @app.route("/api/delivery-orders/<int:order_id>", methods=["GET"], endpoint="delivery_orders_show")
    @json_view
    def delivery_orders_show(order_id: int):
        return jsonify({"order": service.get(order_id).to_dict()})

    @app.route("/api/delivery-orders", methods=["POST"], endpoint="delivery_orders_store")
    @json_view
    def delivery_orders_store():
        data = parse_order_input(json_body())
        order = service.create(data=data, created_by=current_user_id())
        return jsonify({"message": "Delivery order created successfully.", "order": order.to_dict()}), 201

    @app.route("/api/delivery-orders/<int:order_id>", methods=["PUT"], endpoint="delivery_orders_update")
    @json_view
    def delivery_orders_update(order_id: int):
        data = parse_order_input(json_body())
        order = service.update(order_id=order_id, data=data)
        return jsonify({"message": "Delivery order updated successfully.", "order": order.to_dict()})

    @app.route("/api/delivery-orders/<int:order_id>", methods=["DELETE"], endpoint="delivery_orders_destroy")
    @json_view
    def delivery_orders_destroy(order_id: int):
        service.delete(order_id=order_id)
        return jsonify({"message": "Delivery order deleted successfully."})

    @app.route("/api/clients/<int:client_id>/products", methods=["GET"], endpoint="client_products")
    @json_view
    def client_products(client_id: int):
        return jsonify({"products": service.client_products(client_id=client_id)})

    @app.route("/api/rates/quote", methods=["GET"], endpoint="rates_quote")
    @json_view
    def rates_quote():
        quote = container.rate_service.quote_for_client(
            client_id=require_int(request.args.get("client_id"), "client_id", minimum=1),
            additional_rate_type=parse_rate_type(request.args.get("additional_rate_type")),
        )
        return jsonify(
            {
                "base_rate": float(quote.base_rate),
                "additional_rate_type": quote.additional_rate_type.value,
                "additional_rate": float(quote.additional_rate),
                "total_rate": float(quote.total_rate),
            }
        )
