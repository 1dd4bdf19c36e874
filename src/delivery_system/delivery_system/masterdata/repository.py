from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Area, AreaGroup, Client, Product, Province, RateSetting, Vehicle


class MasterDataRepository(Protocol):
    """Read access to the rate lookup hierarchy and other reference data."""

    def list_provinces(self, *, active_only: bool = True) -> Sequence[Province]:
        raise NotImplementedError

    def list_area_groups(self, *, active_only: bool = True) -> Sequence[AreaGroup]:
        raise NotImplementedError

    def get_area_group(self, area_group_id: int) -> Optional[AreaGroup]:
        raise NotImplementedError

    def list_areas(self, *, province_id: Optional[int] = None, active_only: bool = True) -> Sequence[Area]:
        raise NotImplementedError

    def get_client(self, client_id: int) -> Optional[Client]:
        raise NotImplementedError

    def list_clients(self, *, active_only: bool = True) -> Sequence[Client]:
        raise NotImplementedError

    def list_client_products(self, client_id: int) -> Sequence[Product]:
        raise NotImplementedError

    def get_product(self, product_id: int) -> Optional[Product]:
        raise NotImplementedError

    def list_vehicles(self, *, active_only: bool = True) -> Sequence[Vehicle]:
        raise NotImplementedError

    def list_rate_settings(self, *, active_only: bool = True) -> Sequence[RateSetting]:
        raise NotImplementedError
