from bookings.domain.exposures import Conflict, Exposure
from bookings.domain.models import (
    Booking,
    Compilation,
    Conference,
    InvoiceLine,
    NonConferenceGame,
    Packet,
    PracticeSelections,
    School,
    StateSeries,
    Year,
)
from bookings.domain.resolver import PotentialAssignment
from bookings.domain.value_objects import (
    Authority,
    BookingStatus,
    CreationId,
    ExposureSource,
    InvoiceLineType,
    Money,
    PacketCount,
)

__all__ = [
    "Booking",
    "Compilation",
    "Conference",
    "InvoiceLine",
    "NonConferenceGame",
    "Packet",
    "PracticeSelections",
    "School",
    "StateSeries",
    "Year",
    "Exposure",
    "Conflict",
    "PotentialAssignment",
    "Authority",
    "BookingStatus",
    "CreationId",
    "ExposureSource",
    "InvoiceLineType",
    "Money",
    "PacketCount",
]
