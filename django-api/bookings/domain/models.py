"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in bookings/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from bookings.domain.value_objects import (
    Authority,
    BookingStatus,
    CreationId,
    InvoiceLineType,
    Money,
    PacketCount,
)


@dataclass(frozen=True)
class Year:
    """A competitive season."""

    code: str
    name: str
    start_date: date
    end_date: date
    maximum_packet_practice_material_price: Money

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class School:
    id: int
    short_name: str
    name: str
    city: str = ""
    state: str = ""
    latitude: Decimal | None = None
    longitude: Decimal | None = None
    active: bool = True


@dataclass(frozen=True)
class Packet:
    """A numbered unit of question content belonging to a Year."""

    id: int
    year_code: str
    number: int
    name: str
    available_for_competition: bool
    available_for_practice: bool
    price_as_practice_material: Money


@dataclass(frozen=True)
class StateSeries:
    id: int
    name: str
    description: str
    price: Money
    available: bool = True


@dataclass(frozen=True)
class Compilation:
    id: int
    name: str
    description: str
    price: Money
    available: bool = True


@dataclass(frozen=True)
class Conference:
    """Group order spanning several schools that share packets.

    school_ids always starts with the orderer's school and holds no duplicates.
    """

    name: str
    packets_requested: PacketCount
    school_ids: tuple[int, ...]
    assigned_packets: tuple[Packet, ...] = ()

    @staticmethod
    def member_ids(orderer_school_id: int, school_ids) -> tuple[int, ...]:
        """Orderer first, then the other schools in given order, without duplicates."""
        members = [orderer_school_id]
        for school_id in school_ids:
            if school_id not in members:
                members.append(school_id)
        return tuple(members)

    @property
    def packets_still_needed(self) -> int:
        return max(self.packets_requested.value - len(self.assigned_packets), 0)


@dataclass(frozen=True)
class NonConferenceGame:
    """A game between two schools, optionally heard by a third."""

    id: int
    school_ids: tuple[int, ...]
    assigned_packet: Packet | None = None

    def __post_init__(self) -> None:
        if not 2 <= len(self.school_ids) <= 3:
            raise ValueError("A non-conference game needs two or three schools")
        if len(set(self.school_ids)) != len(self.school_ids):
            raise ValueError("A non-conference game cannot list the same school twice")


@dataclass(frozen=True)
class PracticeSelections:
    """Practice material chosen for a booking; empty sets mean "none"."""

    state_series: tuple[StateSeries, ...] = ()
    packets: tuple[Packet, ...] = ()
    compilations: tuple[Compilation, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.state_series or self.packets or self.compilations)


@dataclass(frozen=True)
class InvoiceLine:
    """A priced line item. id is None for lines that are not persisted."""

    type: InvoiceLineType
    label: str
    quantity: int
    unit_cost: Decimal
    item_id: int | None = None
    id: int | None = None

    @property
    def total(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class Booking:
    """Aggregate root: one customer's order for packets and practice material."""

    id: int
    creation_id: CreationId
    status: BookingStatus
    created_at: datetime
    school: School | None = None
    name: str = ""
    email_address: str = ""
    authority: Authority | None = None
    conference: Conference | None = None
    non_conference_games: tuple[NonConferenceGame, ...] = ()
    practice_selections: PracticeSelections | None = None
    invoice_lines: tuple[InvoiceLine, ...] = ()
    external_note: str = ""
    internal_note: str = ""
    requests_w9: bool = False
    ship_date: date | None = None
    payment_received_date: date | None = None
    current_step: int = 0
    submitted_at: datetime | None = None

    @property
    def is_editable(self) -> bool:
        return self.status == BookingStatus.UNSUBMITTED

    @property
    def has_basics(self) -> bool:
        return bool(self.school and self.name and self.email_address and self.authority)

    @property
    def has_packet_assignments(self) -> bool:
        conference_assigned = bool(self.conference and self.conference.assigned_packets)
        return conference_assigned or any(g.assigned_packet for g in self.non_conference_games)

    @property
    def has_unassigned_demands(self) -> bool:
        """True while the conference or any game is still waiting for a packet."""
        if self.conference and self.conference.packets_still_needed > 0:
            return True
        return any(g.assigned_packet is None for g in self.non_conference_games)

    @property
    def assigned_packet_ids(self) -> frozenset[int]:
        ids = set()
        if self.conference:
            ids.update(p.id for p in self.conference.assigned_packets)
        ids.update(g.assigned_packet.id for g in self.non_conference_games if g.assigned_packet)
        return frozenset(ids)

    def find_game(self, game_id: int) -> NonConferenceGame | None:
        return next((g for g in self.non_conference_games if g.id == game_id), None)

    def find_invoice_line(self, line_id: int) -> InvoiceLine | None:
        return next((line for line in self.invoice_lines if line.id == line_id), None)
