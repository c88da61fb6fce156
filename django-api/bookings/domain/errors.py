"""Domain error codes for the bookings module."""

from dataclasses import dataclass, field
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    INVALID_CREATION_ID = "INVALID_CREATION_ID"
    BOOKING_LOCKED = "BOOKING_LOCKED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    STEP_NOT_REACHABLE = "STEP_NOT_REACHABLE"
    MISSING_PACKET_ASSIGNMENT = "MISSING_PACKET_ASSIGNMENT"
    PACKET_CONFLICT = "PACKET_CONFLICT"
    STALE_ASSIGNMENT = "STALE_ASSIGNMENT"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    INVOICE_LINE_NOT_FOUND = "INVOICE_LINE_NOT_FOUND"
    SCHOOL_NOT_FOUND = "SCHOOL_NOT_FOUND"
    PACKET_NOT_FOUND = "PACKET_NOT_FOUND"
    YEAR_NOT_FOUND = "YEAR_NOT_FOUND"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str
    errors: tuple[str, ...] = field(default=())

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class BookingNotFoundError(DomainError):
    """Raised when a booking is not found."""

    def __init__(self, creation_id: str) -> None:
        super().__init__(
            code=ErrorCode.BOOKING_NOT_FOUND,
            message="Booking not found",
        )
        object.__setattr__(self, "creation_id", creation_id)


class InvalidCreationIdError(DomainError):
    """Raised when a creation ID is not a valid UUID."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_CREATION_ID,
            message="Invalid booking ID format",
        )


class BookingLockedError(DomainError):
    """Raised when a frozen (non-unsubmitted) booking is edited through the wizard."""

    def __init__(self, status: str) -> None:
        super().__init__(
            code=ErrorCode.BOOKING_LOCKED,
            message="This order has already been submitted and cannot be changed now",
        )
        object.__setattr__(self, "status", status)


class ValidationFailedError(DomainError):
    """Raised when user-correctable input fails validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_FAILED,
            message=errors[0] if errors else "Invalid input",
            errors=tuple(errors),
        )


class StepNotReachableError(DomainError):
    """Raised when navigating to a wizard step that has not been reached yet."""

    def __init__(self, step: int) -> None:
        super().__init__(
            code=ErrorCode.STEP_NOT_REACHABLE,
            message=f"Step {step} cannot be reached yet",
        )
        object.__setattr__(self, "step", step)


class MissingPacketAssignmentError(DomainError):
    """Raised when committing a plan that still contains shortfalls."""

    def __init__(self, descriptions: list[str]) -> None:
        super().__init__(
            code=ErrorCode.MISSING_PACKET_ASSIGNMENT,
            message="Packets cannot be assigned while some requests have no packet",
            errors=tuple(descriptions),
        )


class PacketConflictError(DomainError):
    """Raised when a confirmed assignment would double-book a school."""

    def __init__(self, conflicts: list) -> None:
        super().__init__(
            code=ErrorCode.PACKET_CONFLICT,
            message="Some packets were assigned to another order in the meantime; check availability again",
        )
        object.__setattr__(self, "conflicts", tuple(conflicts))


class StaleAssignmentError(DomainError):
    """Raised when a confirmed assignment no longer matches the booking."""

    def __init__(self, demand_key: str) -> None:
        super().__init__(
            code=ErrorCode.STALE_ASSIGNMENT,
            message="The order changed since availability was checked; check availability again",
        )
        object.__setattr__(self, "demand_key", demand_key)


class InvalidStatusTransitionError(DomainError):
    """Raised when a booking status change is not allowed."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            message=f"Cannot change status from {current} to {target}",
        )


class NonConferenceGameNotFoundError(DomainError):
    """Raised when a non-conference game does not belong to the booking."""

    def __init__(self, game_id: int) -> None:
        super().__init__(
            code=ErrorCode.GAME_NOT_FOUND,
            message="Non-conference game not found",
        )
        object.__setattr__(self, "game_id", game_id)


class InvoiceLineNotFoundError(DomainError):
    """Raised when an invoice line does not belong to the booking."""

    def __init__(self, line_id: int) -> None:
        super().__init__(
            code=ErrorCode.INVOICE_LINE_NOT_FOUND,
            message="Invoice line not found",
        )
        object.__setattr__(self, "line_id", line_id)


class SchoolNotFoundError(DomainError):
    """Raised when a referenced school does not exist."""

    def __init__(self, school_id: int) -> None:
        super().__init__(
            code=ErrorCode.SCHOOL_NOT_FOUND,
            message="School not found",
        )
        object.__setattr__(self, "school_id", school_id)


class PacketNotFoundError(DomainError):
    """Raised when a referenced packet does not exist."""

    def __init__(self, packet_id: int) -> None:
        super().__init__(
            code=ErrorCode.PACKET_NOT_FOUND,
            message="Packet not found",
        )
        object.__setattr__(self, "packet_id", packet_id)


class YearNotFoundError(DomainError):
    """Raised when no competition year is configured."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.YEAR_NOT_FOUND,
            message="No competition year is configured",
        )
