from datetime import date, datetime

from pydantic import BaseModel, Field

from barbershop.domain.entities.availability import DayAvailability, DayStatus, SlotState
from barbershop.domain.entities.blocked_period import BlockedPeriod
from barbershop.domain.entities.booking import DEFAULT_SERVICE_TYPE, Booking


class BookingCreateSchema(BaseModel):
    date: date
    time_slot: str = Field(min_length=5, max_length=5)
    client_name: str
    client_phone: str
    service_type: str = DEFAULT_SERVICE_TYPE


class BookingSchema(BaseModel):
    id: int
    created_at: datetime | None = None
    date: date
    time_slot: str
    client_name: str
    client_phone: str
    service_type: str
    is_completed: bool = False
    user_id: str | None = None

    @staticmethod
    def from_entity(booking: Booking) -> "BookingSchema":
        return BookingSchema(
            id=booking.id,
            created_at=booking.created_at,
            date=booking.date,
            time_slot=booking.time_slot,
            client_name=booking.client_name,
            client_phone=booking.client_phone,
            service_type=booking.service_type,
            is_completed=booking.is_completed,
            user_id=booking.user_id,
        )


class BlockedPeriodCreateSchema(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = None


class BlockedPeriodSchema(BaseModel):
    id: int
    start_date: date
    end_date: date
    reason: str | None = None
    created_at: datetime | None = None

    @staticmethod
    def from_entity(period: BlockedPeriod) -> "BlockedPeriodSchema":
        return BlockedPeriodSchema(
            id=period.id,
            start_date=period.start_date,
            end_date=period.end_date,
            reason=period.reason,
            created_at=period.created_at,
        )


class SlotSchema(BaseModel):
    time: str
    state: SlotState


class AvailabilitySchema(BaseModel):
    date: date
    status: DayStatus
    reason: str | None = None
    slots: list[SlotSchema] = Field(default_factory=list)
    selectable: list[str] = Field(default_factory=list)

    @staticmethod
    def from_entity(availability: DayAvailability) -> "AvailabilitySchema":
        return AvailabilitySchema(
            date=availability.date,
            status=availability.status,
            reason=availability.reason,
            slots=[SlotSchema(time=s.time, state=s.state) for s in availability.slots],
            selectable=availability.selectable_slots(),
        )


class MeSchema(BaseModel):
    principal_id: str | None = None
    is_admin: bool = False
