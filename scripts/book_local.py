#!/usr/bin/env python3
"""
Interactive local booking harness (no HTTP, no browser).

Usage:
  python3 scripts/book_local.py

What it does:
- Keeps a stable client session id (and its "my bookings" file) between runs
- Drives the same availability, booking and registry code the API uses
- Lets you sign in as an admin to complete, delete and block
"""

from __future__ import annotations

import os
import sys
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from barbershop.application.exceptions import BookingError
from barbershop.application.use_cases.availability import AvailabilityWatcher
from barbershop.application.use_cases.lifecycle import BookingLifecycleManager
from barbershop.domain.entities.availability import DayAvailability
from barbershop.wiring.dependencies import (
    get_admin_session,
    get_availability_resolver,
    get_change_feed,
    get_client_flow,
    get_identity_provider,
    get_refresh_signal,
)


def _print_header(session_id: str) -> None:
    print("\nLocal Booking Harness")
    print("-" * 60)
    print(f"session_id: {session_id}")
    print("Commands: /help for the full list, /quit to exit")
    print("-" * 60)


def _print_help() -> None:
    print("Commands:")
    print("  /date YYYY-MM-DD            -> select a date and show its slots")
    print("  /book HH:MM name phone      -> book a slot on the selected date")
    print("  /mine                       -> list bookings made from this device")
    print("  /cancel ID                  -> cancel one of your bookings")
    print("  /login PRINCIPAL            -> sign in (admin if the profile says so)")
    print("  /logout")
    print("  /whoami                     -> show the signed-in principal")
    print("  /active                     -> admin: active bookings for the selected date")
    print("  /complete ID                -> admin: mark a booking completed")
    print("  /delete ID                  -> admin: delete any booking")
    print("  /block START END [reason]   -> admin: block a date range")
    print("  /quit")


def _print_availability(availability: DayAvailability) -> None:
    print(f"\n--- {availability.date.isoformat()} ({availability.status.value}) ---")
    if availability.reason:
        print(availability.reason)
    row: list[str] = []
    for slot in availability.slots:
        row.append(f"{slot.time} {slot.state.value:<9}")
        if len(row) == 4:
            print("  ".join(row))
            row = []
    if row:
        print("  ".join(row))


def main() -> None:
    session_id = os.getenv("BOOKING_SESSION_ID", "local_device_1")
    flow = get_client_flow(session_id)
    watcher = AvailabilityWatcher(
        resolver=get_availability_resolver(),
        feed=get_change_feed(),
        refresh=get_refresh_signal(),
        on_update=_print_availability,
    )
    admin = get_admin_session()
    admin.start()
    identity = get_identity_provider()
    lifecycle: BookingLifecycleManager | None = None

    _print_header(session_id)

    while True:
        try:
            line = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            break

        if not line:
            continue

        cmd, *args = line.split()
        cmd = cmd.lower()
        try:
            if cmd in ("/quit", "/exit"):
                print("Bye!")
                break
            elif cmd == "/help":
                _print_help()
            elif cmd == "/date" and args:
                day = date.fromisoformat(args[0])
                flow.select_date(day)
                watcher.select_date(day)
            elif cmd == "/book" and len(args) >= 3:
                flow.select_time(args[0])
                booking = flow.confirm(" ".join(args[1:-1]), args[-1])
                print(f"Booked #{booking.id} on {booking.date.isoformat()} at {booking.time_slot}")
            elif cmd == "/mine":
                for b in flow.my_bookings:
                    print(f"#{b.id} {b.date.isoformat()} {b.time_slot} {b.client_name}")
                if not flow.my_bookings:
                    print("(no bookings on this device)")
            elif cmd == "/cancel" and args:
                flow.cancel(int(args[0]))
                print("Cancelled.")
            elif cmd == "/login" and args:
                identity.sign_in(args[0])
                print(f"admin={admin.is_admin}" + (f" ({admin.error})" if admin.error else ""))
                lifecycle = BookingLifecycleManager(admin.store, refresh=get_refresh_signal())
            elif cmd == "/whoami":
                print(f"principal={identity.current_principal()} admin={admin.is_admin}")
            elif cmd == "/logout":
                identity.sign_out()
                lifecycle = None
            elif cmd in ("/active", "/complete", "/delete", "/block"):
                admin.require_admin()
                assert lifecycle is not None
                if cmd == "/active":
                    for b in lifecycle.load_active_bookings(watcher.selected_date):
                        print(f"#{b.id} {b.date.isoformat()} {b.time_slot} {b.client_name} {b.client_phone}")
                elif cmd == "/complete" and args:
                    lifecycle.mark_completed(int(args[0]))
                elif cmd == "/delete" and args:
                    lifecycle.delete_booking(int(args[0]))
                elif cmd == "/block" and len(args) >= 2:
                    period = lifecycle.block_period(
                        date.fromisoformat(args[0]),
                        date.fromisoformat(args[1]),
                        " ".join(args[2:]) or None,
                    )
                    print(f"Blocked #{period.id}")
            else:
                print("Unknown command. Type /help.")
        except BookingError as e:
            print(f"ERROR: {e}")
        except ValueError as e:
            print(f"Invalid input: {e}")

    watcher.close()
    admin.close()


if __name__ == "__main__":
    main()
