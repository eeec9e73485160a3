from functools import lru_cache
import logging

from fastapi import Depends, Header

from barbershop.core.config import settings
from barbershop.application.ports.booking_store import BookingStorePort
from barbershop.application.ports.change_feed import ChangeFeedPort
from barbershop.application.use_cases.admin_session import AdminSession
from barbershop.application.use_cases.availability import AvailabilityResolver
from barbershop.application.use_cases.booking_writer import BookingWriter
from barbershop.application.use_cases.client_flow import ClientBookingFlow
from barbershop.application.use_cases.client_registry import ClientBookingRegistry
from barbershop.application.use_cases.lifecycle import BookingLifecycleManager
from barbershop.application.utils.refresh_signal import RefreshSignal
from barbershop.application.utils.retry import RetryPolicy
from barbershop.application.utils.time_slots import safe_timezone
from barbershop.infrastructure.identity.memory_identity import MemoryIdentityProvider
from barbershop.infrastructure.local.json_storage import JsonFileLocalStorage
from barbershop.infrastructure.realtime.memory_feed import InProcessChangeFeed
from barbershop.infrastructure.store.memory_store import MemoryBookingStore
from barbershop.infrastructure.store.postgrest_store import PostgrestBookingStore
from barbershop.infrastructure.store.sql_store import SqlBookingStore


logger = logging.getLogger(__name__)

_booking_store: BookingStorePort | None = None


@lru_cache
def get_change_feed() -> ChangeFeedPort:
    return InProcessChangeFeed()


@lru_cache
def get_refresh_signal() -> RefreshSignal:
    return RefreshSignal()


@lru_cache
def get_identity_provider() -> MemoryIdentityProvider:
    return MemoryIdentityProvider()


def get_booking_store() -> BookingStorePort:
    global _booking_store
    if _booking_store is None:
        provider = settings.STORE_PROVIDER.lower()
        feed = get_change_feed()
        logger.info("ENV=%s", settings.ENV)
        if provider == "postgrest" and not (settings.SUPABASE_URL and settings.SUPABASE_ANON_KEY):
            if settings.ENV.lower() in {"dev", "local"}:
                logger.info("Using MemoryBookingStore (Supabase credentials missing, ENV=dev/local)")
                provider = "memory"
        if provider == "postgrest":
            _booking_store = PostgrestBookingStore(feed=feed)
        elif provider == "sql":
            store = SqlBookingStore.from_url(settings.DATABASE_URL, feed=feed)
            for principal_id in settings.admin_principal_ids():
                store.add_profile(principal_id, is_admin=True)
            _booking_store = store
        else:
            store = MemoryBookingStore(feed=feed)
            for principal_id in settings.admin_principal_ids():
                store.add_profile(principal_id, is_admin=True)
            _booking_store = store
        logger.info("Using %s booking store", provider)
    return _booking_store


def reset_booking_store(store: BookingStorePort | None = None) -> None:
    """Replace the process-wide store (tests and local harnesses)."""
    global _booking_store
    _booking_store = store


def get_principal(x_principal_id: str | None = Header(default=None)) -> str | None:
    if x_principal_id is None or not x_principal_id.strip():
        return None
    return x_principal_id.strip()


def get_scoped_store(principal_id: str | None = Depends(get_principal)) -> BookingStorePort:
    return get_booking_store().with_principal(principal_id)


def get_availability_resolver() -> AvailabilityResolver:
    return AvailabilityResolver(store=get_booking_store(), timezone=safe_timezone(settings.SHOP_TIMEZONE))


def get_booking_writer(store: BookingStorePort = Depends(get_scoped_store)) -> BookingWriter:
    return BookingWriter(store=store, refresh=get_refresh_signal())


def get_lifecycle_manager(store: BookingStorePort = Depends(get_scoped_store)) -> BookingLifecycleManager:
    return BookingLifecycleManager(store=store, refresh=get_refresh_signal())


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.PROFILE_FETCH_ATTEMPTS,
        delay_seconds=settings.PROFILE_FETCH_DELAY_SECONDS,
    )


def get_admin_session() -> AdminSession:
    return AdminSession(
        identity=get_identity_provider(),
        store=get_booking_store(),
        retry=get_retry_policy(),
    )


def get_client_flow(session_id: str, storage_dir: str | None = None) -> ClientBookingFlow:
    store = get_booking_store().with_principal(session_id)
    registry = ClientBookingRegistry(
        storage=JsonFileLocalStorage(storage_dir or settings.LOCAL_STORAGE_DIR),
        feed=get_change_feed(),
    )
    registry.load()
    registry.start()
    return ClientBookingFlow(
        writer=BookingWriter(store=store, refresh=get_refresh_signal()),
        lifecycle=BookingLifecycleManager(store=store, refresh=get_refresh_signal()),
        registry=registry,
        resolver=get_availability_resolver(),
        session_id=session_id,
    )
