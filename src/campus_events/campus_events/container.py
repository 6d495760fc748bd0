from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .analytics.service import AnalyticsService
from .attendance.memory_attendance_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.supabase_attendance_repository import SupabaseAttendanceRepository
from .core.constants import DEFAULT_PAYMENT_FAILURE_RATE
from .core.enums import StoreBackend
from .data.registry import DataServiceRegistry
from .data.service import DataService
from .database.connection import DBConfig, DatabaseConnection
from .database.memory import MemoryDatabase
from .database.seed import seed_demo_data
from .database.supabase_base import build_supabase_client, is_offline_config
from .events.memory_event_repository import InMemoryEventRepository
from .events.mysql_event_repository import MySQLEventRepository
from .events.repository import EventRepository
from .events.supabase_event_repository import SupabaseEventRepository
from .food_stalls.memory_food_stall_repository import InMemoryFoodStallRepository
from .food_stalls.mysql_food_stall_repository import MySQLFoodStallRepository
from .food_stalls.repository import FoodStallRepository
from .food_stalls.supabase_food_stall_repository import SupabaseFoodStallRepository
from .registrations.memory_registration_repository import InMemoryRegistrationRepository
from .registrations.mysql_registration_repository import MySQLRegistrationRepository
from .registrations.payment import PaymentGateway, SimulatedPaymentGateway
from .registrations.repository import RegistrationRepository
from .registrations.supabase_registration_repository import SupabaseRegistrationRepository
from .users.identity import IdentityProvider, LocalIdentityProvider, SupabaseIdentityProvider
from .users.memory_profile_repository import InMemoryProfileRepository
from .users.mysql_profile_repository import MySQLProfileRepository
from .users.repository import ProfileRepository
from .users.service import AuthService
from .users.session import Session
from .users.supabase_profile_repository import SupabaseProfileRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    backend: StoreBackend
    offline: bool

    events_repo: EventRepository
    registrations_repo: RegistrationRepository
    attendance_repo: AttendanceRepository
    food_stalls_repo: FoodStallRepository
    profiles_repo: ProfileRepository

    identity: IdentityProvider
    payments: PaymentGateway

    auth_service: AuthService
    analytics_service: AnalyticsService
    data_services: DataServiceRegistry


def resolve_backend(backend: str | StoreBackend, *, supabase_url: str | None, supabase_key: str | None) -> tuple[StoreBackend, bool]:
    """Pick the concrete backend; Supabase without a real project means offline memory mode."""

    chosen = StoreBackend(str(getattr(backend, "value", backend)).lower())
    if chosen == StoreBackend.SUPABASE and is_offline_config(supabase_url, supabase_key):
        logger.warning("Supabase is not configured; running in offline mode with demo data")
        return StoreBackend.MEMORY, True
    return chosen, False


def build_container(
    *,
    backend: str | StoreBackend = StoreBackend.SUPABASE,
    supabase_url: str | None = None,
    supabase_key: str | None = None,
    db_config: Optional[dict] = None,
    payment_failure_rate: float = DEFAULT_PAYMENT_FAILURE_RATE,
    require_registration_for_attendance: bool = False,
    seed_demo: bool = False,
    memory_db: Optional[MemoryDatabase] = None,
    payments: Optional[PaymentGateway] = None,
) -> Container:
    chosen, offline = resolve_backend(backend, supabase_url=supabase_url, supabase_key=supabase_key)

    if chosen == StoreBackend.SUPABASE:
        client = build_supabase_client(str(supabase_url), str(supabase_key))
        events_repo = SupabaseEventRepository(client)
        registrations_repo = SupabaseRegistrationRepository(client)
        attendance_repo = SupabaseAttendanceRepository(client)
        food_stalls_repo = SupabaseFoodStallRepository(client)
        profiles_repo = SupabaseProfileRepository(client)
        identity = SupabaseIdentityProvider(client)
    elif chosen == StoreBackend.MYSQL:
        if not db_config:
            raise ValueError("DB_CONFIG is required for the mysql backend")
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
        events_repo = MySQLEventRepository(conn)
        registrations_repo = MySQLRegistrationRepository(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
        food_stalls_repo = MySQLFoodStallRepository(conn)
        profiles_repo = MySQLProfileRepository(conn)
        identity = LocalIdentityProvider(profiles_repo)
    else:
        db = memory_db or MemoryDatabase()
        events_repo = InMemoryEventRepository(db)
        registrations_repo = InMemoryRegistrationRepository(db)
        attendance_repo = InMemoryAttendanceRepository(db)
        food_stalls_repo = InMemoryFoodStallRepository(db)
        profiles_repo = InMemoryProfileRepository(db)
        identity = LocalIdentityProvider(profiles_repo)

    if (seed_demo or offline) and chosen != StoreBackend.SUPABASE:
        seed_demo_data(
            profiles=profiles_repo,
            credentials=profiles_repo,
            events=events_repo,
            food_stalls=food_stalls_repo,
        )

    payments = payments or SimulatedPaymentGateway(payment_failure_rate)

    def new_data_service(session: Session) -> DataService:
        return DataService(
            session,
            events=events_repo,
            registrations=registrations_repo,
            attendance=attendance_repo,
            food_stalls=food_stalls_repo,
            profiles=profiles_repo,
            payments=payments,
            require_registration_for_attendance=require_registration_for_attendance,
        )

    logger.info("Store backend: %s%s", chosen.value, " (offline)" if offline else "")
    return Container(
        backend=chosen,
        offline=offline,
        events_repo=events_repo,
        registrations_repo=registrations_repo,
        attendance_repo=attendance_repo,
        food_stalls_repo=food_stalls_repo,
        profiles_repo=profiles_repo,
        identity=identity,
        payments=payments,
        auth_service=AuthService(profiles_repo, identity),
        analytics_service=AnalyticsService(events_repo, attendance_repo, food_stalls_repo, profiles_repo),
        data_services=DataServiceRegistry(new_data_service),
    )
