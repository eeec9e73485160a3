from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from barbershop.api.v1.schemas import (
    AvailabilitySchema, BlockedPeriodCreateSchema, BlockedPeriodSchema,
    BookingCreateSchema, BookingSchema, MeSchema,
)
from barbershop.wiring.dependencies import (
    get_availability_resolver, get_booking_writer, get_lifecycle_manager,
    get_principal, get_scoped_store,
)
from barbershop.application.exceptions import (
    AuthorizationError, BookingError, ConflictError, StoreError, ValidationError,
)
from barbershop.application.ports.booking_store import BookingStorePort
from barbershop.application.use_cases.availability import AvailabilityResolver
from barbershop.application.use_cases.booking_writer import BookingWriter
from barbershop.application.use_cases.client_flow import SLOT_NOT_SELECTABLE
from barbershop.application.use_cases.lifecycle import BookingLifecycleManager
from barbershop.application.utils.time_slots import generate_time_slots
from barbershop.domain.entities.availability import DayAvailability, DayStatus, SlotState

router = APIRouter()


def _to_http(e: BookingError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, AuthorizationError):
        return HTTPException(status_code=403, detail=str(e))
    return HTTPException(status_code=502, detail=str(e))


def _require_admin(store: BookingStorePort, principal_id: str | None) -> None:
    # Guards the admin listing only; mutations are authorized by the store.
    try:
        profile = store.get_profile(principal_id) if principal_id else None
    except StoreError as e:
        raise _to_http(e)
    if profile is None or not profile.is_admin:
        raise HTTPException(status_code=403, detail="Nuk keni të drejta administrimi.")


def _ensure_bookable(availability: DayAvailability, time_slot: str) -> None:
    # Booked slots fall through to the store so a lost race reports 409.
    state = availability.state_of(time_slot)
    if availability.status is not DayStatus.open or state not in (SlotState.available, SlotState.booked):
        raise HTTPException(status_code=400, detail=SLOT_NOT_SELECTABLE)


@router.get("/slots", response_model=list[str])
def list_slots():
    return generate_time_slots()


@router.get("/availability/{day}", response_model=AvailabilitySchema)
def availability(
    day: date,
    resolver: AvailabilityResolver = Depends(get_availability_resolver),
):
    try:
        result = resolver.resolve(day)
    except BookingError as e:
        raise _to_http(e)
    return AvailabilitySchema.from_entity(result)


@router.post("/bookings", response_model=BookingSchema, status_code=201)
def create_booking(
    req: BookingCreateSchema,
    principal_id: str | None = Depends(get_principal),
    writer: BookingWriter = Depends(get_booking_writer),
    resolver: AvailabilityResolver = Depends(get_availability_resolver),
):
    try:
        _ensure_bookable(resolver.resolve(req.date), req.time_slot)
        booking = writer.create_booking(
            day=req.date,
            time_slot=req.time_slot,
            client_name=req.client_name,
            client_phone=req.client_phone,
            service_type=req.service_type,
            user_id=principal_id,
        )
    except BookingError as e:
        raise _to_http(e)
    return BookingSchema.from_entity(booking)


@router.get("/bookings", response_model=list[BookingSchema])
def list_active_bookings(
    day: date | None = Query(default=None, alias="date"),
    principal_id: str | None = Depends(get_principal),
    store: BookingStorePort = Depends(get_scoped_store),
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle_manager),
):
    _require_admin(store, principal_id)
    try:
        bookings = lifecycle.load_active_bookings(day)
    except BookingError as e:
        raise _to_http(e)
    return [BookingSchema.from_entity(b) for b in bookings]


@router.post("/bookings/{booking_id}/complete", status_code=204)
def complete_booking(
    booking_id: int,
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle_manager),
):
    try:
        lifecycle.mark_completed(booking_id)
    except BookingError as e:
        raise _to_http(e)
    return Response(status_code=204)


@router.delete("/bookings/{booking_id}", status_code=204)
def delete_booking(
    booking_id: int,
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle_manager),
):
    try:
        lifecycle.delete_booking(booking_id)
    except BookingError as e:
        raise _to_http(e)
    return Response(status_code=204)


@router.post("/blocked-periods", response_model=BlockedPeriodSchema, status_code=201)
def block_period(
    req: BlockedPeriodCreateSchema,
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle_manager),
):
    try:
        period = lifecycle.block_period(req.start_date, req.end_date, req.reason)
    except BookingError as e:
        raise _to_http(e)
    return BlockedPeriodSchema.from_entity(period)


@router.get("/me", response_model=MeSchema)
def me(
    principal_id: str | None = Depends(get_principal),
    store: BookingStorePort = Depends(get_scoped_store),
):
    if not principal_id:
        return MeSchema()
    try:
        profile = store.get_profile(principal_id)
    except BookingError as e:
        raise _to_http(e)
    return MeSchema(principal_id=principal_id, is_admin=bool(profile and profile.is_admin))
