from __future__ import annotations

from typing import Optional, Sequence

from ..common.money import to_decimal
from ..core.enums import VehicleType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Area, AreaGroup, Client, Product, Province, RateSetting, Vehicle
from .repository import MasterDataRepository

# Shared by every query that needs a client with its rate zone.
CLIENT_COLUMNS = """
    c.id AS client_id, c.code AS client_code, c.name AS client_name,
    c.province_id AS client_province_id, p.name AS province_name,
    c.area_id, a.name AS area_name,
    ag.id AS area_group_id, ag.name AS area_group_name, ag.code AS area_group_code,
    ag.base_rate AS area_group_base_rate,
    c.distance_km, c.cutoff_time,
    c.contact_person, c.contact_number, c.email AS client_email, c.is_active AS client_is_active
"""

CLIENT_JOINS = """
    LEFT JOIN provinces p ON p.id = c.province_id
    LEFT JOIN areas a ON a.id = c.area_id
    LEFT JOIN area_groups ag ON ag.id = a.area_group_id
"""


def client_from_row(r: dict) -> Client:
    return Client(
        client_id=int(r["client_id"]),
        code=r["client_code"],
        name=r.get("client_name"),
        province_id=int(r["client_province_id"]),
        province_name=r.get("province_name"),
        area_id=r.get("area_id"),
        area_name=r.get("area_name"),
        area_group_id=r.get("area_group_id"),
        area_group_name=r.get("area_group_name"),
        area_group_code=r.get("area_group_code"),
        base_rate=to_decimal(r.get("area_group_base_rate")),
        distance_km=to_decimal(r["distance_km"]) if r.get("distance_km") is not None else None,
        cutoff_time=normalize_mysql_time(r.get("cutoff_time")),
        contact_person=r.get("contact_person"),
        contact_number=r.get("contact_number"),
        email=r.get("client_email"),
        is_active=bool(r.get("client_is_active", True)),
    )


PRODUCT_COLUMNS = "pr.id, pr.part_number, pr.description, pr.unit_price, pr.category, pr.is_active"


def _product_from_row(r: dict) -> Product:
    return Product(
        product_id=int(r["id"]),
        part_number=r["part_number"],
        description=r.get("description"),
        unit_price=to_decimal(r["unit_price"]),
        category=r.get("category"),
        is_active=bool(r["is_active"]),
    )


class MySQLMasterDataRepository(MasterDataRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_provinces(self, *, active_only: bool = True) -> Sequence[Province]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, name, code, is_active FROM provinces"
                + (" WHERE is_active=1" if active_only else "")
                + " ORDER BY name"
            )
            return [
                Province(province_id=int(r["id"]), name=r["name"], code=r["code"], is_active=bool(r["is_active"]))
                for r in fetchall(cur)
            ]

    @staticmethod
    def _area_group(r: dict) -> AreaGroup:
        return AreaGroup(
            area_group_id=int(r["id"]),
            name=r["name"],
            code=r["code"],
            description=r.get("description"),
            base_rate=to_decimal(r["base_rate"]),
            is_active=bool(r["is_active"]),
        )

    def list_area_groups(self, *, active_only: bool = True) -> Sequence[AreaGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, name, code, description, base_rate, is_active FROM area_groups"
                + (" WHERE is_active=1" if active_only else "")
                + " ORDER BY name"
            )
            return [self._area_group(r) for r in fetchall(cur)]

    def get_area_group(self, area_group_id: int) -> Optional[AreaGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, name, code, description, base_rate, is_active FROM area_groups WHERE id=%s",
                (area_group_id,),
            )
            row = fetchone(cur)
            return self._area_group(row) if row else None

    def list_areas(self, *, province_id: Optional[int] = None, active_only: bool = True) -> Sequence[Area]:
        clauses = []
        params: list = []
        if province_id is not None:
            clauses.append("province_id=%s")
            params.append(province_id)
        if active_only:
            clauses.append("is_active=1")
        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT id, province_id, area_group_id, name, code, is_active FROM areas{where} ORDER BY name",
                tuple(params),
            )
            return [
                Area(
                    area_id=int(r["id"]),
                    province_id=int(r["province_id"]),
                    area_group_id=r.get("area_group_id"),
                    name=r["name"],
                    code=r["code"],
                    is_active=bool(r["is_active"]),
                )
                for r in fetchall(cur)
            ]

    def get_client(self, client_id: int) -> Optional[Client]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {CLIENT_COLUMNS} FROM clients c {CLIENT_JOINS} WHERE c.id=%s", (client_id,))
            row = fetchone(cur)
            return client_from_row(row) if row else None

    def list_clients(self, *, active_only: bool = True) -> Sequence[Client]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {CLIENT_COLUMNS} FROM clients c {CLIENT_JOINS}"
                + (" WHERE c.is_active=1" if active_only else "")
                + " ORDER BY c.code"
            )
            return [client_from_row(r) for r in fetchall(cur)]

    def list_client_products(self, client_id: int) -> Sequence[Product]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {PRODUCT_COLUMNS}
                FROM client_products cp
                JOIN products pr ON pr.id = cp.product_id
                WHERE cp.client_id=%s AND pr.is_active=1
                ORDER BY pr.part_number
                """,
                (client_id,),
            )
            return [_product_from_row(r) for r in fetchall(cur)]

    def get_product(self, product_id: int) -> Optional[Product]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {PRODUCT_COLUMNS} FROM products pr WHERE pr.id=%s", (product_id,))
            row = fetchone(cur)
            return _product_from_row(row) if row else None

    def list_vehicles(self, *, active_only: bool = True) -> Sequence[Vehicle]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, code, name, type, plate_number, max_value, is_active FROM vehicles"
                + (" WHERE is_active=1" if active_only else "")
                + " ORDER BY code"
            )
            return [
                Vehicle(
                    vehicle_id=int(r["id"]),
                    code=r["code"],
                    name=r["name"],
                    vehicle_type=VehicleType(r["type"]),
                    plate_number=r.get("plate_number"),
                    max_value=to_decimal(r["max_value"]),
                    is_active=bool(r["is_active"]),
                )
                for r in fetchall(cur)
            ]

    def list_rate_settings(self, *, active_only: bool = True) -> Sequence[RateSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, name, type, rate, province_id, is_active FROM rate_settings"
                + (" WHERE is_active=1" if active_only else "")
                + " ORDER BY id"
            )
            return [
                RateSetting(
                    rate_setting_id=int(r["id"]),
                    name=r["name"],
                    rate_type=r["type"],
                    rate=to_decimal(r["rate"]),
                    province_id=r.get("province_id"),
                    is_active=bool(r["is_active"]),
                )
                for r in fetchall(cur)
            ]
