"""Error taxonomy for the booking domain.

``ValidationError`` is Protean's own (raised with a ``{field: [messages]}``
dict), so field-level validation from commands and aggregates and the checks
in the application layer look identical to callers. The remaining errors
carry what the HTTP layer needs to pick a status code.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError

__all__ = [
    "AuthorizationError",
    "BookingError",
    "ConflictError",
    "DownstreamError",
    "NotFoundError",
    "ValidationError",
]


class BookingError(Exception):
    """Base class for booking errors that are not field validation failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class NotFoundError(ObjectNotFoundError):
    """An order, service, address or promotion lookup missed."""

    def __init__(self, message: str):
        Exception.__init__(self, message)
        self.message = message
        self.messages = {"_entity": [message]}

    def __str__(self) -> str:
        return self.message


class AuthorizationError(BookingError):
    """The caller is not allowed to perform the operation."""

    def __init__(self, message: str = "Forbidden", authenticated: bool = True):
        super().__init__(message)
        self.authenticated = authenticated


class ConflictError(BookingError):
    """The operation is illegal for the order's current state."""

    def __init__(self, message: str, current_status: str | None = None):
        super().__init__(message)
        self.current_status = current_status

    def to_dict(self) -> dict:
        return {"error": self.message, "current_status": self.current_status}


class DownstreamError(BookingError):
    """Persistence or payment provider failure."""

    def __init__(self, message: str, order_id: str | None = None):
        super().__init__(message)
        self.order_id = order_id

    def to_dict(self) -> dict:
        data = {"error": self.message}
        if self.order_id:
            data["order_id"] = self.order_id
        return data
