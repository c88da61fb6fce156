"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class CreationId:
    """Client-generated identifier for a Booking.

    Minted before the booking exists server-side so the order URL is stable
    across reloads. The store may also assign its own sequential id.
    """

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class PacketCount:
    """Non-negative number of packets."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Packet count cannot be negative")


class BookingStatus(Enum):
    UNSUBMITTED = "unsubmitted"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    SHIPPED = "shipped"
    ABANDONED = "abandoned"
    CANCELED = "canceled"
    REJECTED = "rejected"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def releases_packets(self) -> bool:
        """Whether exposures of a booking in this status no longer count."""
        return self in (BookingStatus.ABANDONED, BookingStatus.CANCELED, BookingStatus.REJECTED)


TERMINAL_STATUSES = frozenset(
    {
        BookingStatus.SHIPPED,
        BookingStatus.ABANDONED,
        BookingStatus.CANCELED,
        BookingStatus.REJECTED,
    }
)

STATUS_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.UNSUBMITTED: frozenset({BookingStatus.SUBMITTED, BookingStatus.ABANDONED}),
    BookingStatus.SUBMITTED: frozenset(
        {BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELED}
    ),
    BookingStatus.APPROVED: frozenset({BookingStatus.SHIPPED, BookingStatus.CANCELED}),
    BookingStatus.SHIPPED: frozenset(),
    BookingStatus.ABANDONED: frozenset(),
    BookingStatus.CANCELED: frozenset(),
    BookingStatus.REJECTED: frozenset(),
}


class Authority(Enum):
    """Orderer's authority to place the order on behalf of the school."""

    COACH = "coach"
    COACH_KNOWS = "coachKnows"
    COACH_DOESNT_KNOW = "coachDoesntKnow"


class InvoiceLineType(Enum):
    CONFERENCE = "conference"
    NON_CONFERENCE_GAME = "nonConferenceGame"
    STATE_SERIES = "stateSeries"
    PRACTICE_PACKET = "practicePacket"
    PRACTICE_PACKET_CAP = "practicePacketCap"
    COMPILATION = "compilation"
    MANUAL = "manual"


class ExposureSource(Enum):
    CONFERENCE = "conference"
    NON_CONFERENCE_GAME = "nonConferenceGame"
