
class BookingError(RuntimeError):
    """Base class for failures surfaced by the booking core."""
    pass


class ValidationError(BookingError):
    """Raised before any store call when required input is missing or empty."""
    pass


class ConflictError(BookingError):
    """Raised when the store rejects an insert on the (date, time_slot) uniqueness constraint."""

    default_message = "Kjo kohë sapo u rezervua nga dikush tjetër. Ju lutem zgjidhni një orar tjetër."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class AuthorizationError(BookingError):
    """Raised when the store rejects a mutation for insufficient privilege."""

    hint = "Kontrolloni të drejtat (RLS policy) për këtë veprim."

    def __init__(self, message: str | None = None) -> None:
        base = message or "Operation not permitted"
        super().__init__(f"{base}. {self.hint}")


class StoreError(BookingError):
    """Raised for any other store failure (network, transient, unexpected)."""
    pass


class LocalStateError(BookingError):
    """Raised when device-local persisted state cannot be parsed."""
    pass
