from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import end_of_month, start_of_month, today_local
from ..common.http import arg_date, json_view
from ..common.validators import optional_int
from ..container import Container
from ..core.enums import ReportPeriod
from ..core.exceptions import ValidationError


def _period() -> ReportPeriod:
    try:
        return ReportPeriod((request.args.get("view") or ReportPeriod.DAILY.value).strip())
    except ValueError:
        raise ValidationError("view must be one of: daily, weekly, monthly")


def register(app: Flask, container: Container) -> None:
    service = container.sales_service

    @app.route("/api/dashboard", methods=["GET"], endpoint="dashboard")
    @json_view
    def dashboard():
        return jsonify(service.dashboard(province_id=optional_int(request.args.get("province_id"), "province_id")))

    @app.route("/api/sales-tracking", methods=["GET"], endpoint="sales_tracking_index")
    @json_view
    def sales_tracking_index():
        today = today_local()
        return jsonify(
            service.report(
                start=arg_date("start_date", start_of_month(today)),
                end=arg_date("end_date", end_of_month(today)),
                province_id=optional_int(request.args.get("province_id"), "province_id"),
                period=_period(),
            )
        )

    @app.route("/api/sales-tracking/kpi-alerts", methods=["POST"], endpoint="sales_tracking_kpi_alerts")
    @json_view
    def sales_tracking_kpi_alerts():
        today = today_local()
        raised = service.raise_kpi_alerts(
            start=arg_date("start_date", start_of_month(today)),
            end=arg_date("end_date", end_of_month(today)),
        )
        return jsonify({"raised": raised})
