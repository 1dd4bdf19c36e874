from __future__ import annotations

from dataclasses import asdict
from datetime import time
from decimal import Decimal
from enum import Enum
from typing import Any

from flask import Flask, jsonify, request

from ..common.http import json_view
from ..common.validators import optional_int
from ..container import Container


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, Enum):
        return value.value
    return value


def _rows(items) -> list[dict]:
    return [{k: _plain(v) for k, v in asdict(item).items()} for item in items]


def register(app: Flask, container: Container) -> None:
    repo = container.masterdata_repo

    def active_only() -> bool:
        return request.args.get("include_inactive") not in {"1", "true"}

    @app.route("/api/master-data/provinces", methods=["GET"], endpoint="masterdata_provinces")
    @json_view
    def masterdata_provinces():
        return jsonify({"provinces": _rows(repo.list_provinces(active_only=active_only()))})

    @app.route("/api/master-data/area-groups", methods=["GET"], endpoint="masterdata_area_groups")
    @json_view
    def masterdata_area_groups():
        return jsonify({"area_groups": _rows(repo.list_area_groups(active_only=active_only()))})

    @app.route("/api/master-data/areas", methods=["GET"], endpoint="masterdata_areas")
    @json_view
    def masterdata_areas():
        province_id = optional_int(request.args.get("province_id"), "province_id")
        return jsonify({"areas": _rows(repo.list_areas(province_id=province_id, active_only=active_only()))})

    @app.route("/api/master-data/clients", methods=["GET"], endpoint="masterdata_clients")
    @json_view
    def masterdata_clients():
        return jsonify({"clients": _rows(repo.list_clients(active_only=active_only()))})

    @app.route("/api/master-data/vehicles", methods=["GET"], endpoint="masterdata_vehicles")
    @json_view
    def masterdata_vehicles():
        return jsonify({"vehicles": _rows(repo.list_vehicles(active_only=active_only()))})

    @app.route("/api/master-data/rate-settings", methods=["GET"], endpoint="masterdata_rate_settings")
    @json_view
    def masterdata_rate_settings():
        return jsonify(
            {
                "rate_settings": _rows(repo.list_rate_settings(active_only=active_only())),
                "surcharges": {k: float(v) for k, v in container.rate_service.surcharge_table().items()},
            }
        )
