from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from barbershop.application.exceptions import BookingError, ConflictError, StoreError
from barbershop.application.ports.booking_store import BookingStorePort
from barbershop.application.ports.change_feed import ChangeFeedPort
from barbershop.domain.entities.blocked_period import BlockedPeriod
from barbershop.domain.entities.booking import Booking, BookingInsert
from barbershop.domain.entities.change_event import DELETE, INSERT, UPDATE, ChangeEvent
from barbershop.domain.entities.profile import Profile
from barbershop.infrastructure.store.policy import ensure_admin, ensure_can_delete
from barbershop.infrastructure.store.sql_models import Base, BlockedPeriodRow, BookingRow, ProfileRow


logger = logging.getLogger(__name__)


def create_sql_engine(database_url: str, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        if database_url.startswith("sqlite:///") and database_url != "sqlite:///:memory:":
            Path(database_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)
    return create_engine(database_url, pool_pre_ping=True, pool_recycle=300, echo=echo)


def create_tables(engine: Engine) -> None:
    """Create all tables - for development and tests."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        raise


def _is_unique_violation(error: IntegrityError) -> bool:
    text = str(error.orig).lower()
    return "unique" in text or "duplicate key" in text or getattr(error.orig, "pgcode", None) == "23505"


class SqlBookingStore(BookingStorePort):
    def __init__(
        self,
        session_factory: sessionmaker,
        feed: ChangeFeedPort | None = None,
        principal_id: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._feed = feed
        self._principal_id = principal_id

    @classmethod
    def from_url(cls, database_url: str, feed: ChangeFeedPort | None = None, echo: bool = False) -> "SqlBookingStore":
        engine = create_sql_engine(database_url, echo=echo)
        create_tables(engine)
        return cls(sessionmaker(autocommit=False, autoflush=False, bind=engine), feed=feed)

    def with_principal(self, principal_id: str | None) -> "SqlBookingStore":
        return SqlBookingStore(self._session_factory, feed=self._feed, principal_id=principal_id)

    def add_profile(self, principal_id: str, is_admin: bool = False, email: str | None = None) -> Profile:
        with self._session() as db:
            row = db.get(ProfileRow, principal_id)
            if row is None:
                row = ProfileRow(id=principal_id)
                db.add(row)
            row.is_admin = is_admin
            row.email = email
            db.commit()
            db.refresh(row)
            return Profile(id=row.id, is_admin=bool(row.is_admin), email=row.email, created_at=row.created_at)

    def list_bookings(self, day: date | None = None, include_completed: bool = False) -> list[Booking]:
        with self._session() as db:
            query = db.query(BookingRow)
            if not include_completed:
                query = query.filter(BookingRow.is_completed.is_(False))
            if day is not None:
                query = query.filter(BookingRow.date == day)
            rows = query.order_by(BookingRow.date.asc(), BookingRow.time_slot.asc()).all()
            return [Booking.from_row(r.to_row()) for r in rows]

    def get_booked_slots(self, day: date) -> list[str]:
        with self._session() as db:
            rows = db.query(BookingRow.time_slot).filter(BookingRow.date == day).all()
            return [r[0] for r in rows]

    def find_blocking_period(self, day: date) -> BlockedPeriod | None:
        with self._session() as db:
            row = (
                db.query(BlockedPeriodRow)
                .filter(BlockedPeriodRow.start_date <= day, BlockedPeriodRow.end_date >= day)
                .order_by(BlockedPeriodRow.id.asc())
                .first()
            )
            if row is None:
                return None
            return BlockedPeriod(
                id=row.id,
                start_date=row.start_date,
                end_date=row.end_date,
                reason=row.reason,
                created_at=row.created_at,
            )

    def insert_booking(self, booking: BookingInsert) -> Booking:
        with self._session() as db:
            row = BookingRow(
                date=booking.date,
                time_slot=booking.time_slot,
                client_name=booking.client_name,
                client_phone=booking.client_phone,
                service_type=booking.service_type,
                is_completed=False,
                user_id=booking.user_id,
            )
            db.add(row)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                if _is_unique_violation(e):
                    raise ConflictError() from e
                raise StoreError(str(e.orig)) from e
            db.refresh(row)
            payload = row.to_row()

        self._publish(INSERT, new=payload)
        return Booking.from_row(payload)

    def mark_completed(self, booking_id: int) -> None:
        with self._session() as db:
            ensure_admin(self._current_profile(db), "update bookings")
            row = db.get(BookingRow, booking_id)
            if row is None:
                return
            row.is_completed = True
            db.commit()
            db.refresh(row)
            payload = row.to_row()

        self._publish(UPDATE, new=payload, old={"id": booking_id})

    def delete_booking(self, booking_id: int) -> None:
        with self._session() as db:
            row = db.get(BookingRow, booking_id)
            if row is None:
                return
            ensure_can_delete(self._current_profile(db), self._principal_id, row.user_id)
            db.delete(row)
            db.commit()

        self._publish(DELETE, old={"id": booking_id})

    def insert_blocked_period(self, start_date: date, end_date: date, reason: str | None = None) -> BlockedPeriod:
        with self._session() as db:
            ensure_admin(self._current_profile(db), "block periods")
            row = BlockedPeriodRow(start_date=start_date, end_date=end_date, reason=reason)
            db.add(row)
            db.commit()
            db.refresh(row)
            return BlockedPeriod(
                id=row.id,
                start_date=row.start_date,
                end_date=row.end_date,
                reason=row.reason,
                created_at=row.created_at,
            )

    def get_profile(self, principal_id: str) -> Profile | None:
        with self._session() as db:
            row = db.get(ProfileRow, principal_id)
            if row is None:
                return None
            return Profile(id=row.id, is_admin=bool(row.is_admin), email=row.email, created_at=row.created_at)

    def _current_profile(self, db: Session) -> Profile | None:
        if self._principal_id is None:
            return None
        row = db.get(ProfileRow, self._principal_id)
        if row is None:
            return None
        return Profile(id=row.id, is_admin=bool(row.is_admin), email=row.email)

    def _session(self) -> "_StoreSession":
        return _StoreSession(self._session_factory)

    def _publish(self, event_type: str, new: dict[str, Any] | None = None, old: dict[str, Any] | None = None) -> None:
        if self._feed is not None:
            self._feed.publish(ChangeEvent(table="bookings", event_type=event_type, new=new or {}, old=old or {}))


class _StoreSession:
    """Session context that closes the session and maps driver errors to StoreError."""

    def __init__(self, factory: sessionmaker) -> None:
        self._db: Session = factory()

    def __enter__(self) -> Session:
        return self._db

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc is not None:
                self._db.rollback()
        finally:
            self._db.close()

        if exc is None or isinstance(exc, BookingError):
            return False
        if isinstance(exc, SQLAlchemyError):
            logger.error("Database call failed", extra={"error": str(exc)})
            raise StoreError(str(exc)) from exc
        return False
