from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable

import httpx

from barbershop.application.exceptions import AuthorizationError, ConflictError, StoreError
from barbershop.application.ports.booking_store import BookingStorePort
from barbershop.application.ports.change_feed import ChangeFeedPort
from barbershop.core.config import settings
from barbershop.domain.entities.blocked_period import BlockedPeriod
from barbershop.domain.entities.booking import Booking, BookingInsert
from barbershop.domain.entities.change_event import DELETE, INSERT, UPDATE, ChangeEvent
from barbershop.domain.entities.profile import Profile


UNIQUE_VIOLATION = "23505"
INSUFFICIENT_PRIVILEGE = "42501"


class PostgrestBookingStore(BookingStorePort):
    """
    Store backed by a hosted Postgres exposed through PostgREST (Supabase).
    Row-level security on the server decides what each principal may do;
    this adapter only maps the responses onto the error taxonomy.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        feed: ChangeFeedPort | None = None,
        token_provider: Callable[[str], str | None] | None = None,
        principal_id: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.SUPABASE_URL or "").rstrip("/")
        self._api_key = api_key or settings.SUPABASE_ANON_KEY
        if not self._base_url or not self._api_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required for the PostgREST store")

        self._feed = feed
        self._token_provider = token_provider
        self._principal_id = principal_id
        self._client = client or httpx.Client(timeout=10.0)
        self._logger = logging.getLogger(__name__)

    def with_principal(self, principal_id: str | None) -> "PostgrestBookingStore":
        return PostgrestBookingStore(
            base_url=self._base_url,
            api_key=self._api_key,
            feed=self._feed,
            token_provider=self._token_provider,
            principal_id=principal_id,
            client=self._client,
        )

    def list_bookings(self, day: date | None = None, include_completed: bool = False) -> list[Booking]:
        params: dict[str, str] = {"select": "*", "order": "date.asc,time_slot.asc"}
        if not include_completed:
            params["is_completed"] = "eq.false"
        if day is not None:
            params["date"] = f"eq.{day.isoformat()}"
        rows = self._request("GET", "bookings", params=params)
        return [Booking.from_row(r) for r in rows]

    def get_booked_slots(self, day: date) -> list[str]:
        rows = self._request("GET", "bookings", params={"select": "time_slot", "date": f"eq.{day.isoformat()}"})
        return [str(r["time_slot"])[:5] for r in rows]

    def find_blocking_period(self, day: date) -> BlockedPeriod | None:
        rows = self._request(
            "GET",
            "blocked_periods",
            params={
                "select": "*",
                "start_date": f"lte.{day.isoformat()}",
                "end_date": f"gte.{day.isoformat()}",
                "limit": "1",
            },
        )
        if not rows:
            return None
        return BlockedPeriod.from_row(rows[0])

    def insert_booking(self, booking: BookingInsert) -> Booking:
        rows = self._request("POST", "bookings", json=[booking.to_row()], prefer="return=representation")
        if not rows:
            raise StoreError("Insert returned no row")
        created = Booking.from_row(rows[0])
        self._publish(INSERT, new=created.to_row())
        return created

    def mark_completed(self, booking_id: int) -> None:
        rows = self._request(
            "PATCH",
            "bookings",
            params={"id": f"eq.{booking_id}"},
            json={"is_completed": True},
            prefer="return=representation",
        )
        if not rows:
            self._raise_if_denied(booking_id, "update bookings")
            return
        self._publish(UPDATE, new=rows[0], old={"id": booking_id})

    def delete_booking(self, booking_id: int) -> None:
        rows = self._request(
            "DELETE",
            "bookings",
            params={"id": f"eq.{booking_id}"},
            prefer="return=representation",
        )
        if not rows:
            self._raise_if_denied(booking_id, "delete this booking")
            return
        self._publish(DELETE, old={"id": booking_id})

    def insert_blocked_period(self, start_date: date, end_date: date, reason: str | None = None) -> BlockedPeriod:
        payload: dict[str, Any] = {"start_date": start_date.isoformat(), "end_date": end_date.isoformat()}
        if reason is not None:
            payload["reason"] = reason
        rows = self._request("POST", "blocked_periods", json=[payload], prefer="return=representation")
        if not rows:
            raise StoreError("Insert returned no row")
        return BlockedPeriod.from_row(rows[0])

    def get_profile(self, principal_id: str) -> Profile | None:
        rows = self._request("GET", "profiles", params={"select": "*", "id": f"eq.{principal_id}"})
        if not rows:
            return None
        return Profile.from_payload(rows[0])

    def _raise_if_denied(self, booking_id: int, action: str) -> None:
        """
        Row-level security filters a denied PATCH or DELETE down to zero rows
        instead of failing it. A row that is still readable was denied.
        """
        rows = self._request("GET", "bookings", params={"select": "id", "id": f"eq.{booking_id}"})
        if rows:
            self._logger.warning("Store filtered out write", extra={"booking_id": booking_id, "reason": action})
            raise AuthorizationError(f"Not allowed to {action}")

    def _headers(self, prefer: str | None) -> dict[str, str]:
        token = None
        if self._principal_id and self._token_provider:
            token = self._token_provider(self._principal_id)
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {token or self._api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        url = f"{self._base_url}/rest/v1/{table}"
        try:
            resp = self._client.request(method, url, params=params, json=json, headers=self._headers(prefer))
        except httpx.HTTPError as e:
            self._logger.error("Store request failed", extra={"error": str(e)})
            raise StoreError(str(e)) from e

        if resp.status_code >= 400:
            raise self._map_error(resp)

        if not resp.content:
            return []
        data = resp.json()
        if isinstance(data, dict):
            return [data]
        return data

    def _map_error(self, resp: httpx.Response) -> Exception:
        code = None
        message = resp.text
        try:
            body = resp.json()
            code = body.get("code")
            message = body.get("message") or message
        except (ValueError, AttributeError):
            pass

        self._logger.error(
            "Store rejected request",
            extra={"error": message, "reason": code, "event": resp.status_code},
        )
        if code == UNIQUE_VIOLATION or "duplicate key" in message or "unique constraint" in message:
            return ConflictError()
        if code == INSUFFICIENT_PRIVILEGE or resp.status_code in (401, 403):
            return AuthorizationError(message)
        return StoreError(message or f"HTTP {resp.status_code}")

    def _publish(self, event_type: str, new: dict[str, Any] | None = None, old: dict[str, Any] | None = None) -> None:
        if self._feed is not None:
            self._feed.publish(ChangeEvent(table="bookings", event_type=event_type, new=new or {}, old=old or {}))
