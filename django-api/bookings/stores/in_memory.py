"""
In-memory store implementations.

Useful for testing and development. Not suitable for production
as all bookings are lost when the process terminates.
"""

import itertools
import threading
from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from bookings.domain import (
    Authority,
    Booking,
    BookingStatus,
    Compilation,
    Conference,
    Conflict,
    CreationId,
    Exposure,
    InvoiceLine,
    NonConferenceGame,
    Packet,
    PacketCount,
    PracticeSelections,
    School,
    StateSeries,
    Year,
)
from bookings.domain.exposures import derive_exposures, find_conflicts
from bookings.stores.interfaces import (
    UPDATABLE_BOOKING_FIELDS,
    BookingStore,
    CatalogStore,
    ExposureStore,
)


class InMemoryCatalogStore(CatalogStore):
    """Catalog held in plain dictionaries keyed by id."""

    def __init__(
        self,
        years: Iterable[Year] = (),
        schools: Iterable[School] = (),
        packets: Iterable[Packet] = (),
        state_series: Iterable[StateSeries] = (),
        compilations: Iterable[Compilation] = (),
    ) -> None:
        self.years = {y.code: y for y in years}
        self.schools = {s.id: s for s in schools}
        self.packets = {p.id: p for p in packets}
        self.state_series = {s.id: s for s in state_series}
        self.compilations = {c.id: c for c in compilations}

    def list_years(self) -> list[Year]:
        return sorted(self.years.values(), key=lambda y: y.start_date, reverse=True)

    def get_year(self, code: str) -> Year | None:
        return self.years.get(code)

    def list_schools(self, active_only: bool = False) -> list[School]:
        schools = sorted(self.schools.values(), key=lambda s: (s.short_name, s.id))
        return [s for s in schools if s.active or not active_only]

    def get_school(self, school_id: int) -> School | None:
        return self.schools.get(school_id)

    def list_packets(
        self,
        year_code: str | None = None,
        competition_only: bool = False,
        practice_only: bool = False,
    ) -> list[Packet]:
        packets = sorted(self.packets.values(), key=lambda p: (p.year_code, p.number))
        if year_code:
            packets = [p for p in packets if p.year_code == year_code]
        if competition_only:
            packets = [p for p in packets if p.available_for_competition]
        if practice_only:
            packets = [p for p in packets if p.available_for_practice]
        return packets

    def list_state_series(self, available_only: bool = False) -> list[StateSeries]:
        series = sorted(self.state_series.values(), key=lambda s: (s.name, s.id))
        return [s for s in series if s.available or not available_only]

    def list_compilations(self, available_only: bool = False) -> list[Compilation]:
        compilations = sorted(self.compilations.values(), key=lambda c: (c.name, c.id))
        return [c for c in compilations if c.available or not available_only]


class InMemoryBookingStore(BookingStore):
    """
    Bookings held as immutable domain objects, replaced on every write.

    Thread-safety:
        Uses a re-entrant lock; atomic() holds it for the duration of the block.
    """

    def __init__(self, catalog: InMemoryCatalogStore) -> None:
        self._catalog = catalog
        self._bookings: dict[CreationId, Booking] = {}
        self._ids = itertools.count(1)
        self._game_ids = itertools.count(1)
        self._line_ids = itertools.count(1)
        self._lock = threading.RLock()

    def atomic(self) -> AbstractContextManager:
        return self._lock

    def get_booking(self, creation_id: CreationId, for_update: bool = False) -> Booking | None:
        return self._bookings.get(creation_id)

    def list_bookings(self, statuses: Sequence[BookingStatus] | None = None) -> list[Booking]:
        bookings = sorted(self._bookings.values(), key=lambda b: b.created_at, reverse=True)
        if statuses:
            bookings = [b for b in bookings if b.status in statuses]
        return bookings

    def all_bookings(self) -> list[Booking]:
        return list(self._bookings.values())

    def save_basics(
        self,
        creation_id: CreationId,
        school_id: int,
        name: str,
        email_address: str,
        authority: Authority,
    ) -> Booking:
        with self._lock:
            booking = self._bookings.get(creation_id) or Booking(
                id=next(self._ids),
                creation_id=creation_id,
                status=BookingStatus.UNSUBMITTED,
                created_at=datetime.now(UTC),
            )
            return self._put(
                replace(
                    booking,
                    school=self._catalog.schools[school_id],
                    name=name,
                    email_address=email_address,
                    authority=authority,
                )
            )

    def update_booking(self, creation_id: CreationId, changes: dict[str, Any]) -> Booking:
        unknown = set(changes) - UPDATABLE_BOOKING_FIELDS
        if unknown:
            raise ValueError(f"Cannot update booking fields: {sorted(unknown)}")
        return self._put(replace(self._bookings[creation_id], **changes))

    def delete_booking(self, creation_id: CreationId) -> None:
        self._bookings.pop(creation_id, None)

    def replace_conference(
        self,
        creation_id: CreationId,
        name: str,
        packets_requested: int,
        school_ids: Sequence[int],
    ) -> Booking:
        booking = self._bookings[creation_id]
        conference = Conference(
            name=name,
            packets_requested=PacketCount(packets_requested),
            school_ids=Conference.member_ids(booking.school.id, school_ids),
        )
        return self._put(replace(booking, conference=conference))

    def delete_conference(self, creation_id: CreationId) -> Booking:
        return self._put(replace(self._bookings[creation_id], conference=None))

    def add_non_conference_game(
        self, creation_id: CreationId, school_ids: Sequence[int]
    ) -> NonConferenceGame:
        with self._lock:
            booking = self._bookings[creation_id]
            game = NonConferenceGame(id=next(self._game_ids), school_ids=tuple(school_ids))
            self._put(replace(booking, non_conference_games=(*booking.non_conference_games, game)))
            return game

    def delete_non_conference_game(self, creation_id: CreationId, game_id: int) -> Booking:
        booking = self._bookings[creation_id]
        games = tuple(g for g in booking.non_conference_games if g.id != game_id)
        return self._put(replace(booking, non_conference_games=games))

    def set_game_packet(
        self, creation_id: CreationId, game_id: int, packet_id: int | None
    ) -> Booking:
        booking = self._bookings[creation_id]
        packet = self._catalog.packets[packet_id] if packet_id is not None else None
        games = tuple(
            replace(g, assigned_packet=packet) if g.id == game_id else g
            for g in booking.non_conference_games
        )
        return self._put(replace(booking, non_conference_games=games))

    def add_conference_packets(
        self, creation_id: CreationId, packet_ids: Iterable[int]
    ) -> Booking:
        booking = self._bookings[creation_id]
        assigned = list(booking.conference.assigned_packets)
        for packet_id in packet_ids:
            if all(p.id != packet_id for p in assigned):
                assigned.append(self._catalog.packets[packet_id])
        assigned.sort(key=lambda p: (p.year_code, p.number))
        conference = replace(booking.conference, assigned_packets=tuple(assigned))
        return self._put(replace(booking, conference=conference))

    def clear_packet_assignments(self, creation_id: CreationId) -> Booking:
        booking = self._bookings[creation_id]
        conference = (
            replace(booking.conference, assigned_packets=()) if booking.conference else None
        )
        games = tuple(replace(g, assigned_packet=None) for g in booking.non_conference_games)
        return self._put(replace(booking, conference=conference, non_conference_games=games))

    def replace_practice_selections(
        self,
        creation_id: CreationId,
        state_series_ids: Iterable[int] | None = None,
        packet_ids: Iterable[int] | None = None,
        compilation_ids: Iterable[int] | None = None,
    ) -> Booking:
        booking = self._bookings[creation_id]
        current = booking.practice_selections or PracticeSelections()
        selections = PracticeSelections(
            state_series=(
                tuple(self._catalog.state_series[i] for i in state_series_ids)
                if state_series_ids is not None
                else current.state_series
            ),
            packets=(
                tuple(self._catalog.packets[i] for i in packet_ids)
                if packet_ids is not None
                else current.packets
            ),
            compilations=(
                tuple(self._catalog.compilations[i] for i in compilation_ids)
                if compilation_ids is not None
                else current.compilations
            ),
        )
        return self._put(replace(booking, practice_selections=selections))

    def replace_invoice_lines(
        self, creation_id: CreationId, lines: Sequence[InvoiceLine]
    ) -> Booking:
        with self._lock:
            persisted = tuple(replace(line, id=next(self._line_ids)) for line in lines)
            return self._put(replace(self._bookings[creation_id], invoice_lines=persisted))

    def add_invoice_line(self, creation_id: CreationId, line: InvoiceLine) -> Booking:
        with self._lock:
            booking = self._bookings[creation_id]
            persisted = replace(line, id=next(self._line_ids))
            return self._put(replace(booking, invoice_lines=(*booking.invoice_lines, persisted)))

    def update_invoice_line(
        self, creation_id: CreationId, line_id: int, changes: dict[str, Any]
    ) -> Booking:
        booking = self._bookings[creation_id]
        lines = tuple(
            replace(line, **changes) if line.id == line_id else line
            for line in booking.invoice_lines
        )
        return self._put(replace(booking, invoice_lines=lines))

    def delete_invoice_line(self, creation_id: CreationId, line_id: int) -> Booking:
        booking = self._bookings[creation_id]
        lines = tuple(line for line in booking.invoice_lines if line.id != line_id)
        return self._put(replace(booking, invoice_lines=lines))

    def _put(self, booking: Booking) -> Booking:
        self._bookings[booking.creation_id] = booking
        return booking


class InMemoryExposureStore(ExposureStore):
    """Exposures derived on demand from an InMemoryBookingStore."""

    def __init__(self, bookings: InMemoryBookingStore, catalog: InMemoryCatalogStore) -> None:
        self._bookings = bookings
        self._catalog = catalog

    def list_exposures(
        self,
        year_code: str | None = None,
        exclude_booking: CreationId | None = None,
    ) -> list[Exposure]:
        exposures = []
        for booking in self._bookings.all_bookings():
            if booking.status.releases_packets or booking.creation_id == exclude_booking:
                continue
            exposures.extend(derive_exposures(booking))

        if year_code:
            packets = self._catalog.packets
            exposures = [
                e for e in exposures
                if e.packet_id in packets and packets[e.packet_id].year_code == year_code
            ]
        return exposures

    def conflicts_for(
        self, candidates: Sequence[Exposure], exclude_booking: CreationId
    ) -> list[Conflict]:
        return find_conflicts(candidates, self.list_exposures(exclude_booking=exclude_booking))

    def lock_packets(self, packet_ids: Iterable[int]) -> None:
        pass
