"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager
from typing import Any

from bookings.domain import (
    Authority,
    Booking,
    BookingStatus,
    Compilation,
    Conflict,
    CreationId,
    Exposure,
    InvoiceLine,
    NonConferenceGame,
    Packet,
    School,
    StateSeries,
    Year,
)

# Booking fields that update_booking() may change.
UPDATABLE_BOOKING_FIELDS = frozenset(
    {
        "external_note",
        "internal_note",
        "requests_w9",
        "ship_date",
        "payment_received_date",
        "status",
        "current_step",
        "submitted_at",
    }
)


class CatalogStore(ABC):
    """Interface for years, schools, packets and practice material."""

    @abstractmethod
    def list_years(self) -> list[Year]:
        """Return all years, most recent first."""
        ...

    @abstractmethod
    def get_year(self, code: str) -> Year | None:
        ...

    @abstractmethod
    def list_schools(self, active_only: bool = False) -> list[School]:
        """Return schools ordered by short name."""
        ...

    @abstractmethod
    def get_school(self, school_id: int) -> School | None:
        ...

    @abstractmethod
    def list_packets(
        self,
        year_code: str | None = None,
        competition_only: bool = False,
        practice_only: bool = False,
    ) -> list[Packet]:
        """Return packets ordered by year code then number."""
        ...

    @abstractmethod
    def list_state_series(self, available_only: bool = False) -> list[StateSeries]:
        ...

    @abstractmethod
    def list_compilations(self, available_only: bool = False) -> list[Compilation]:
        ...


class BookingStore(ABC):
    """Interface for booking persistence operations.

    Every mutating method is its own failure domain and returns the updated
    booking. Mutating methods expect the booking to exist; callers check with
    get_booking first.
    """

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Return a context manager grouping several calls into one transaction."""
        ...

    @abstractmethod
    def get_booking(self, creation_id: CreationId, for_update: bool = False) -> Booking | None:
        """Return a booking by creation ID, or None if not found."""
        ...

    @abstractmethod
    def list_bookings(self, statuses: Sequence[BookingStatus] | None = None) -> list[Booking]:
        """Return bookings ordered by created_at descending."""
        ...

    @abstractmethod
    def save_basics(
        self,
        creation_id: CreationId,
        school_id: int,
        name: str,
        email_address: str,
        authority: Authority,
    ) -> Booking:
        """Create the booking if needed and set the orderer identity."""
        ...

    @abstractmethod
    def update_booking(self, creation_id: CreationId, changes: dict[str, Any]) -> Booking:
        """Set scalar fields; keys must be in UPDATABLE_BOOKING_FIELDS."""
        ...

    @abstractmethod
    def delete_booking(self, creation_id: CreationId) -> None:
        ...

    @abstractmethod
    def replace_conference(
        self,
        creation_id: CreationId,
        name: str,
        packets_requested: int,
        school_ids: Sequence[int],
    ) -> Booking:
        """Replace the conference wholesale; previous packet assignments are dropped."""
        ...

    @abstractmethod
    def delete_conference(self, creation_id: CreationId) -> Booking:
        ...

    @abstractmethod
    def add_non_conference_game(
        self, creation_id: CreationId, school_ids: Sequence[int]
    ) -> NonConferenceGame:
        ...

    @abstractmethod
    def delete_non_conference_game(self, creation_id: CreationId, game_id: int) -> Booking:
        ...

    @abstractmethod
    def set_game_packet(
        self, creation_id: CreationId, game_id: int, packet_id: int | None
    ) -> Booking:
        ...

    @abstractmethod
    def add_conference_packets(
        self, creation_id: CreationId, packet_ids: Iterable[int]
    ) -> Booking:
        """Add packets to the conference; adding an already-assigned packet is a no-op."""
        ...

    @abstractmethod
    def clear_packet_assignments(self, creation_id: CreationId) -> Booking:
        ...

    @abstractmethod
    def replace_practice_selections(
        self,
        creation_id: CreationId,
        state_series_ids: Iterable[int] | None = None,
        packet_ids: Iterable[int] | None = None,
        compilation_ids: Iterable[int] | None = None,
    ) -> Booking:
        """Replace each given selection set; None leaves that set unchanged."""
        ...

    @abstractmethod
    def replace_invoice_lines(
        self, creation_id: CreationId, lines: Sequence[InvoiceLine]
    ) -> Booking:
        ...

    @abstractmethod
    def add_invoice_line(self, creation_id: CreationId, line: InvoiceLine) -> Booking:
        ...

    @abstractmethod
    def update_invoice_line(
        self, creation_id: CreationId, line_id: int, changes: dict[str, Any]
    ) -> Booking:
        ...

    @abstractmethod
    def delete_invoice_line(self, creation_id: CreationId, line_id: int) -> Booking:
        ...


class ExposureStore(ABC):
    """Interface over the global, cross-booking exposure set."""

    @abstractmethod
    def list_exposures(
        self,
        year_code: str | None = None,
        exclude_booking: CreationId | None = None,
    ) -> list[Exposure]:
        """Return exposures of all bookings that still hold their packets."""
        ...

    @abstractmethod
    def conflicts_for(
        self, candidates: Sequence[Exposure], exclude_booking: CreationId
    ) -> list[Conflict]:
        """Return conflicts between candidates and exposures of other bookings."""
        ...

    @abstractmethod
    def lock_packets(self, packet_ids: Iterable[int]) -> None:
        """Hold the given packets until the surrounding transaction ends."""
        ...
