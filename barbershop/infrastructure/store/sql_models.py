from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingRow(Base):
    __tablename__ = "bookings"
    __table_args__ = (UniqueConstraint("date", "time_slot", name="bookings_date_time_slot_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    date = Column(Date, nullable=False, index=True)
    time_slot = Column(String(5), nullable=False)
    client_name = Column(String(255), nullable=False)
    client_phone = Column(String(50), nullable=False)
    service_type = Column(String(255), nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False, index=True)
    user_id = Column(String(255), nullable=True)

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "date": self.date.isoformat(),
            "time_slot": self.time_slot,
            "client_name": self.client_name,
            "client_phone": self.client_phone,
            "service_type": self.service_type,
            "is_completed": bool(self.is_completed),
            "user_id": self.user_id,
        }


class BlockedPeriodRow(Base):
    __tablename__ = "blocked_periods"

    id = Column(Integer, primary_key=True, autoincrement=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class ProfileRow(Base):
    __tablename__ = "profiles"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
