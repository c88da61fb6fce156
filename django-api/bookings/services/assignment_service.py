"""Packet assignment service.

Resolves which packets a booking can use and commits confirmed plans. There
is no reservation between resolving and committing; the commit re-checks the
plan against current exposures while holding the involved packets, so the
first booking to commit a packet wins and the other must resolve again.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace

from bookings.domain import Booking, CreationId, Exposure, PotentialAssignment
from bookings.domain.errors import (
    BookingLockedError,
    BookingNotFoundError,
    MissingPacketAssignmentError,
    PacketConflictError,
    StaleAssignmentError,
)
from bookings.domain.exposures import derive_exposures, find_double_bookings
from bookings.domain.resolver import (
    CONFERENCE_DEMAND_KEY,
    parse_game_demand_key,
    resolve_packet_assignments,
)
from bookings.services.booking_service import parse_creation_id
from bookings.services.catalog_service import CatalogService
from bookings.stores.interfaces import BookingStore, ExposureStore

logger = logging.getLogger(__name__)


class AssignmentService:
    """Service for packet availability, assignment and exposure reporting."""

    def __init__(
        self,
        bookings: BookingStore,
        catalog: CatalogService,
        exposures: ExposureStore,
    ) -> None:
        self._bookings = bookings
        self._catalog = catalog
        self._exposures = exposures

    def potential_assignments(self, creation_id: str | CreationId) -> list[PotentialAssignment]:
        """Run a fresh resolver pass for the booking.

        Raises:
            BookingNotFoundError: If the booking does not exist.
        """
        return self.resolve(self._get(parse_creation_id(creation_id)))

    def resolve(self, booking: Booking) -> list[PotentialAssignment]:
        year = self._catalog.current_year()
        existing = self._exposures.list_exposures(
            year_code=year.code, exclude_booking=booking.creation_id
        )
        assignments = resolve_packet_assignments(
            booking,
            self._catalog.competition_packets(),
            existing,
            self._catalog.schools_by_id(),
        )
        missing = sum(1 for a in assignments if a.is_missing_packet_assignment)
        logger.info(
            "Resolved %d packet assignments for booking %s (%d missing)",
            len(assignments),
            booking.creation_id,
            missing,
        )
        return assignments

    def assign_packets(
        self,
        creation_id: str | CreationId,
        confirmed: Sequence[PotentialAssignment],
        authorized: bool = False,
    ) -> Booking:
        """Persist a confirmed plan, making its exposures visible to other bookings.

        Re-submitting a plan that is already applied changes nothing.

        Raises:
            MissingPacketAssignmentError: If any entry has no packet.
            StaleAssignmentError: If an entry no longer matches the booking.
            PacketConflictError: If another booking exposed a school to one of
                the packets since the plan was resolved.
        """
        cid = parse_creation_id(creation_id)
        missing = [a.description for a in confirmed if a.is_missing_packet_assignment]
        if missing:
            logger.warning("Attempt to assign packets despite errors on booking %s", cid)
            raise MissingPacketAssignmentError(missing)

        with self._bookings.atomic():
            booking = self._get(cid, for_update=True)
            if not booking.is_editable and not authorized:
                raise BookingLockedError(booking.status.value)

            packets_by_id = self._catalog.packets_by_id()
            conference_ids, game_packets = self._plan_changes(booking, confirmed, packets_by_id)
            if not conference_ids and not game_packets:
                return booking

            self._exposures.lock_packets({*conference_ids, *game_packets.values()})
            candidates = self._candidate_exposures(
                booking, conference_ids, game_packets, packets_by_id
            )
            conflicts = self._exposures.conflicts_for(candidates, exclude_booking=cid)
            if conflicts:
                logger.warning(
                    "Packet conflict committing booking %s: %d pairs", cid, len(conflicts)
                )
                raise PacketConflictError(conflicts)

            if conference_ids:
                booking = self._bookings.add_conference_packets(cid, conference_ids)
            for game_id, packet_id in game_packets.items():
                booking = self._bookings.set_game_packet(cid, game_id, packet_id)

        logger.info(
            "Assigned %d packets to booking %s",
            len(conference_ids) + len(game_packets),
            cid,
        )
        return booking

    def clear_packet_assignments(
        self, creation_id: str | CreationId, authorized: bool = False
    ) -> Booking:
        """Release every packet held by the booking's conference and games."""
        cid = parse_creation_id(creation_id)
        booking = self._get(cid)
        if not booking.is_editable and not authorized:
            raise BookingLockedError(booking.status.value)
        if not booking.has_packet_assignments:
            return booking
        logger.info("Cleared packet assignments for booking %s", cid)
        return self._bookings.clear_packet_assignments(cid)

    def list_exposures(self, year_code: str | None = None) -> list[Exposure]:
        return self._exposures.list_exposures(year_code=year_code)

    def list_double_bookings(self, year_code: str | None = None) -> list[Exposure]:
        return find_double_bookings(self._exposures.list_exposures(year_code=year_code))

    def _get(self, cid: CreationId, for_update: bool = False) -> Booking:
        booking = self._bookings.get_booking(cid, for_update=for_update)
        if booking is None:
            raise BookingNotFoundError(str(cid))
        return booking

    @staticmethod
    def _plan_changes(booking, confirmed, packets_by_id):
        """Split a plan into new conference packets and new game packets.

        Entries already reflected in the booking are dropped.
        """
        conference_ids: list[int] = []
        game_packets: dict[int, int] = {}
        already_assigned = (
            {p.id for p in booking.conference.assigned_packets} if booking.conference else set()
        )

        for entry in confirmed:
            packet = packets_by_id.get(entry.packet_id)
            if packet is None or not packet.available_for_competition:
                raise StaleAssignmentError(entry.demand_key)

            if entry.demand_key == CONFERENCE_DEMAND_KEY:
                if booking.conference is None:
                    raise StaleAssignmentError(entry.demand_key)
                if packet.id not in already_assigned and packet.id not in conference_ids:
                    conference_ids.append(packet.id)
                continue

            game_id = parse_game_demand_key(entry.demand_key)
            game = booking.find_game(game_id) if game_id is not None else None
            if game is None:
                raise StaleAssignmentError(entry.demand_key)
            if game.assigned_packet is not None:
                if game.assigned_packet.id != packet.id:
                    raise StaleAssignmentError(entry.demand_key)
                continue
            if game_packets.setdefault(game.id, packet.id) != packet.id:
                raise StaleAssignmentError(entry.demand_key)

        if booking.conference is not None:
            requested = booking.conference.packets_requested.value
            if len(already_assigned) + len(conference_ids) > requested:
                raise StaleAssignmentError(CONFERENCE_DEMAND_KEY)

        return conference_ids, game_packets

    @staticmethod
    def _candidate_exposures(booking, conference_ids, game_packets, packets_by_id):
        """Exposures the booking would have once the new packets are applied."""
        conference = booking.conference
        if conference is not None and conference_ids:
            conference = replace(
                conference,
                assigned_packets=(
                    *conference.assigned_packets,
                    *(packets_by_id[i] for i in conference_ids),
                ),
            )
        games = tuple(
            replace(g, assigned_packet=packets_by_id[game_packets[g.id]])
            if g.id in game_packets
            else g
            for g in booking.non_conference_games
        )
        planned = replace(booking, conference=conference, non_conference_games=games)
        return derive_exposures(planned)
