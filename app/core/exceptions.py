"""
Custom application exceptions
"""

from typing import Optional, Dict, Any


class EventHallException(Exception):
    """Base exception for the booking platform"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(EventHallException):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_ERROR",
            status_code=401,
            details=details
        )


class AuthorizationError(EventHallException):
    """Authorization related errors"""

    def __init__(self, message: str = "Access denied", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_FORBIDDEN",
            status_code=403,
            details=details
        )


class NotFoundError(EventHallException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        details = {"resource": resource}
        if identifier:
            message = f"{resource} with id {identifier} not found"
            details["id"] = str(identifier)
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details=details
        )


class ValidationError(EventHallException):
    """Validation errors"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class InvalidStateError(EventHallException):
    """Operation not allowed in the resource's current state"""

    def __init__(self, message: str, code: str = "INVALID_STATE", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            details=details
        )


class AlreadyPaidError(InvalidStateError):
    """Booking has already been paid"""

    def __init__(self, booking_id: Any):
        super().__init__(
            message="Booking already paid",
            code="ALREADY_PAID",
            details={"booking_id": str(booking_id)}
        )


class AlreadyProcessedError(InvalidStateError):
    """Payment has already been approved or rejected"""

    def __init__(self, payment_id: Any, status: str):
        super().__init__(
            message="Payment already processed",
            code="ALREADY_PROCESSED",
            details={"payment_id": str(payment_id), "status": status}
        )


class ProofMissingError(EventHallException):
    """Payment proof has not been uploaded"""

    def __init__(self, payment_id: Any):
        super().__init__(
            message="Payment proof not uploaded",
            code="PROOF_MISSING",
            status_code=400,
            details={"payment_id": str(payment_id)}
        )


class SoldOutError(EventHallException):
    """No tickets left for the event"""

    def __init__(self, event_id: Any, total_tickets: Optional[int] = None):
        details = {"event_id": str(event_id)}
        if total_tickets is not None:
            details["total_tickets"] = total_tickets
        super().__init__(
            message="Event tickets are already sold out",
            code="SOLD_OUT",
            status_code=400,
            details=details
        )
