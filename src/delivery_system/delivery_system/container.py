from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from .common.transactions import Transaction
from .core.constants import (
    DEFAULT_MAX_ORDERS_PER_BATCH,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SURCHARGES,
    DEFAULT_UPCOMING_DAYS,
    KPI_THRESHOLD_PERCENT,
    L300_MAX_VALUE,
)
from .database.connection import DBConfig, DatabaseConnection
from .masterdata.mysql_masterdata_repository import MySQLMasterDataRepository
from .masterdata.repository import MasterDataRepository
from .milestones.mysql_milestone_repository import MySQLMilestoneRepository
from .milestones.repository import MilestoneRepository
from .milestones.service import MilestoneService
from .notifications.factory import NotificationFactory
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .orders.mysql_order_repository import MySQLOrderRepository
from .orders.repository import OrderRepository
from .orders.service import DeliveryOrderService
from .planning.allocation_planner import AllocationPlannerService
from .planning.mysql_batch_repository import MySQLBatchRepository
from .planning.repository import BatchRepository
from .planning.route_planner import RoutePlannerService
from .rates.service import RateService
from .sales.service import SalesTrackingService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    masterdata_repo: MasterDataRepository
    orders_repo: OrderRepository
    milestones_repo: MilestoneRepository
    batches_repo: BatchRepository
    notifications_repo: NotificationRepository
    users_repo: UserRepository

    rate_service: RateService
    notification_service: NotificationService
    order_service: DeliveryOrderService
    milestone_service: MilestoneService
    route_planner: RoutePlannerService
    allocation_planner: AllocationPlannerService
    sales_service: SalesTrackingService
    user_service: UserService


def wire_services(
    *,
    masterdata_repo: MasterDataRepository,
    orders_repo: OrderRepository,
    milestones_repo: MilestoneRepository,
    batches_repo: BatchRepository,
    notifications_repo: NotificationRepository,
    users_repo: UserRepository,
    conn: Optional[DatabaseConnection] = None,
    transaction: Optional[Transaction] = None,
    surcharges: Optional[Mapping[str, Decimal]] = None,
    kpi_threshold: Decimal = KPI_THRESHOLD_PERCENT,
    l300_max_value: Decimal = L300_MAX_VALUE,
    max_orders_per_batch: int = DEFAULT_MAX_ORDERS_PER_BATCH,
    page_size: int = DEFAULT_PAGE_SIZE,
    upcoming_days: int = DEFAULT_UPCOMING_DAYS,
) -> Container:
    """Build the services on top of any set of repositories (MySQL or in-memory)."""
    rate_service = RateService(masterdata_repo, default_surcharges=surcharges or DEFAULT_SURCHARGES)
    notification_service = NotificationService(notifications_repo, orders_repo, factory=NotificationFactory())
    order_service = DeliveryOrderService(
        orders_repo,
        masterdata_repo,
        rate_service,
        notification_service,
        page_size=page_size,
        transaction=transaction,
    )
    milestone_service = MilestoneService(
        milestones_repo, orders_repo, notification_service, transaction=transaction
    )
    route_planner = RoutePlannerService(
        orders_repo, rate_service, upcoming_days=upcoming_days, transaction=transaction
    )
    allocation_planner = AllocationPlannerService(
        orders_repo,
        batches_repo,
        rate_service,
        masterdata_repo,
        notification_service,
        l300_max_value=l300_max_value,
        max_orders_per_batch=max_orders_per_batch,
        transaction=transaction,
    )
    sales_service = SalesTrackingService(orders_repo, notification_service, kpi_threshold=kpi_threshold)
    user_service = UserService(users_repo)

    return Container(
        conn=conn,
        masterdata_repo=masterdata_repo,
        orders_repo=orders_repo,
        milestones_repo=milestones_repo,
        batches_repo=batches_repo,
        notifications_repo=notifications_repo,
        users_repo=users_repo,
        rate_service=rate_service,
        notification_service=notification_service,
        order_service=order_service,
        milestone_service=milestone_service,
        route_planner=route_planner,
        allocation_planner=allocation_planner,
        sales_service=sales_service,
        user_service=user_service,
    )


def build_container(
    *,
    db_config: dict,
    surcharges: Optional[Mapping[str, Decimal]] = None,
    kpi_threshold: Decimal = KPI_THRESHOLD_PERCENT,
    l300_max_value: Decimal = L300_MAX_VALUE,
    max_orders_per_batch: int = DEFAULT_MAX_ORDERS_PER_BATCH,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire_services(
        conn=conn,
        transaction=conn.transaction,
        masterdata_repo=MySQLMasterDataRepository(conn),
        orders_repo=MySQLOrderRepository(conn),
        milestones_repo=MySQLMilestoneRepository(conn),
        batches_repo=MySQLBatchRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        users_repo=MySQLUserRepository(conn),
        surcharges=surcharges,
        kpi_threshold=kpi_threshold,
        l300_max_value=l300_max_value,
        max_orders_per_batch=max_orders_per_batch,
    )
