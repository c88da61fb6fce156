"""Booking service - all booking business logic lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

Every public mutation is its own failure domain. Mutations on a booking that
has left the unsubmitted status raise BookingLockedError unless the caller is
authorized (staff).
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from bookings.domain import (
    Authority,
    Booking,
    BookingStatus,
    CreationId,
    InvoiceLine,
    InvoiceLineType,
    NonConferenceGame,
)
from bookings.domain.errors import (
    BookingLockedError,
    BookingNotFoundError,
    InvalidCreationIdError,
    InvalidStatusTransitionError,
    InvoiceLineNotFoundError,
    NonConferenceGameNotFoundError,
    PacketNotFoundError,
    SchoolNotFoundError,
    ValidationFailedError,
)
from bookings.domain.pricing import PricingRules, calculate_invoice_lines
from bookings.domain.value_objects import STATUS_TRANSITIONS
from bookings.stores.interfaces import BookingStore, CatalogStore

logger = logging.getLogger(__name__)

CUSTOMER_DETAIL_FIELDS = frozenset({"external_note", "requests_w9"})
STAFF_DETAIL_FIELDS = CUSTOMER_DETAIL_FIELDS | {
    "internal_note",
    "ship_date",
    "payment_received_date",
}
INVOICE_LINE_FIELDS = frozenset({"type", "label", "quantity", "unit_cost", "item_id"})


def parse_creation_id(creation_id: str | CreationId) -> CreationId:
    """Return a CreationId, raising InvalidCreationIdError for malformed input."""
    if isinstance(creation_id, CreationId):
        return creation_id
    try:
        return CreationId.from_string(creation_id)
    except (ValueError, TypeError, AttributeError):
        raise InvalidCreationIdError() from None


class BookingService:
    """Service for booking mutations and invoice handling."""

    def __init__(
        self,
        bookings: BookingStore,
        catalog: CatalogStore,
        pricing: PricingRules | None = None,
    ) -> None:
        self._bookings = bookings
        self._catalog = catalog
        self._pricing = pricing or PricingRules()

    # Reads

    def get_booking(self, creation_id: str | CreationId) -> Booking:
        """Return a booking by creation ID.

        Raises:
            InvalidCreationIdError: If the creation_id is not a valid UUID.
            BookingNotFoundError: If the booking does not exist.
        """
        cid = parse_creation_id(creation_id)
        booking = self._bookings.get_booking(cid)
        if booking is None:
            raise BookingNotFoundError(str(cid))
        return booking

    def find_booking(self, creation_id: str | CreationId) -> Booking | None:
        return self._bookings.get_booking(parse_creation_id(creation_id))

    def list_bookings(self, statuses: Sequence[BookingStatus] | None = None) -> list[Booking]:
        return self._bookings.list_bookings(statuses)

    def delete_booking(self, creation_id: str | CreationId) -> None:
        booking = self.get_booking(creation_id)
        self._bookings.delete_booking(booking.creation_id)
        logger.info("Deleted booking %s", booking.creation_id)

    # Basics and details

    def save_basics(
        self,
        creation_id: str | CreationId,
        school_id: int,
        name: str,
        email_address: str,
        authority: Authority,
        authorized: bool = False,
    ) -> Booking:
        """Create the booking on first call, otherwise update the orderer identity.

        Raises:
            SchoolNotFoundError: If the school does not exist, or is inactive
                for a new booking.
            BookingLockedError: If the booking is no longer editable.
        """
        cid = parse_creation_id(creation_id)
        existing = self._bookings.get_booking(cid)
        if existing is not None:
            self._check_editable(existing, authorized)

        school = self._catalog.get_school(school_id)
        if school is None or (existing is None and not school.active):
            raise SchoolNotFoundError(school_id)

        booking = self._bookings.save_basics(cid, school.id, name, email_address, authority)
        if existing is None:
            logger.info("Created booking %s for school %s", cid, school.id)
        return booking

    def update_details(
        self,
        creation_id: str | CreationId,
        changes: dict[str, Any],
        authorized: bool = False,
    ) -> Booking:
        """Set notes, the W9 flag and, for staff, shipping and payment dates."""
        booking = self._load_editable(creation_id, authorized)
        allowed = STAFF_DETAIL_FIELDS if authorized else CUSTOMER_DETAIL_FIELDS
        rejected = sorted(set(changes) - allowed)
        if rejected:
            raise ValidationFailedError([f"Field cannot be changed: {name}" for name in rejected])
        if not changes:
            return booking
        return self._bookings.update_booking(booking.creation_id, dict(changes))

    # Conference

    def set_conference(
        self,
        creation_id: str | CreationId,
        name: str,
        packets_requested: int,
        school_ids: Sequence[int],
        authorized: bool = False,
    ) -> Booking:
        """Replace the conference wholesale.

        The orderer's school is always a member and listed first; listing it
        again is a no-op. Previous conference packet assignments are dropped.
        """
        booking = self._load_editable(creation_id, authorized)
        if booking.school is None:
            raise ValidationFailedError(["Please indicate what school you are from."])
        if packets_requested < 0:
            raise ValidationFailedError(["Packets requested cannot be negative."])
        self._require_schools(school_ids)

        updated = self._bookings.replace_conference(
            booking.creation_id, name, packets_requested, school_ids
        )
        logger.info(
            "Replaced conference on booking %s: %d schools, %d packets",
            booking.creation_id,
            len(updated.conference.school_ids),
            packets_requested,
        )
        return updated

    def delete_conference(self, creation_id: str | CreationId, authorized: bool = False) -> Booking:
        booking = self._load_editable(creation_id, authorized)
        if booking.conference is None:
            return booking
        return self._bookings.delete_conference(booking.creation_id)

    # Non-conference games

    def add_non_conference_games(
        self,
        creation_id: str | CreationId,
        games: Iterable[Sequence[int]],
        authorized: bool = False,
    ) -> Booking:
        """Add each game with its own store call.

        A failure partway through leaves the games added before it in place.
        """
        booking = self._load_editable(creation_id, authorized)
        for school_ids in games:
            try:
                NonConferenceGame(id=0, school_ids=tuple(school_ids))
            except ValueError as exc:
                raise ValidationFailedError([str(exc)]) from None
            self._require_schools(school_ids)
            game = self._bookings.add_non_conference_game(booking.creation_id, school_ids)
            logger.info("Added game %s to booking %s", game.id, booking.creation_id)
        return self.get_booking(booking.creation_id)

    def delete_non_conference_game(
        self, creation_id: str | CreationId, game_id: int, authorized: bool = False
    ) -> Booking:
        booking = self._load_editable(creation_id, authorized)
        self._require_game(booking, game_id)
        return self._bookings.delete_non_conference_game(booking.creation_id, game_id)

    def assign_game_packet(
        self,
        creation_id: str | CreationId,
        game_id: int,
        packet_id: int,
        authorized: bool = False,
    ) -> Booking:
        booking = self._load_editable(creation_id, authorized)
        self._require_game(booking, game_id)
        if packet_id not in self._packet_ids():
            raise PacketNotFoundError(packet_id)
        updated = self._bookings.set_game_packet(booking.creation_id, game_id, packet_id)
        logger.info("Assigned packet %s to game %s", packet_id, game_id)
        return updated

    def unassign_game_packet(
        self, creation_id: str | CreationId, game_id: int, authorized: bool = False
    ) -> Booking:
        booking = self._load_editable(creation_id, authorized)
        self._require_game(booking, game_id)
        return self._bookings.set_game_packet(booking.creation_id, game_id, None)

    # Practice material

    def set_practice_state_series(
        self, creation_id: str | CreationId, ids: Iterable[int], authorized: bool = False
    ) -> Booking:
        return self.set_practice_selections(creation_id, state_series_ids=ids, authorized=authorized)

    def set_practice_packets(
        self, creation_id: str | CreationId, ids: Iterable[int], authorized: bool = False
    ) -> Booking:
        return self.set_practice_selections(creation_id, packet_ids=ids, authorized=authorized)

    def set_practice_compilations(
        self, creation_id: str | CreationId, ids: Iterable[int], authorized: bool = False
    ) -> Booking:
        return self.set_practice_selections(creation_id, compilation_ids=ids, authorized=authorized)

    def set_practice_selections(
        self,
        creation_id: str | CreationId,
        state_series_ids: Iterable[int] | None = None,
        packet_ids: Iterable[int] | None = None,
        compilation_ids: Iterable[int] | None = None,
        authorized: bool = False,
    ) -> Booking:
        """Replace each given selection set wholesale; None leaves a set untouched.

        Empty sets record "no practice material".
        """
        booking = self._load_editable(creation_id, authorized)
        state_series_ids = _unique(state_series_ids)
        packet_ids = _unique(packet_ids)
        compilation_ids = _unique(compilation_ids)

        errors = []
        if state_series_ids is not None:
            known = {s.id for s in self._catalog.list_state_series()}
            errors += [f"Unknown state series: {i}" for i in state_series_ids if i not in known]
        if packet_ids is not None:
            known = self._packet_ids()
            errors += [f"Unknown packet: {i}" for i in packet_ids if i not in known]
        if compilation_ids is not None:
            known = {c.id for c in self._catalog.list_compilations()}
            errors += [f"Unknown compilation: {i}" for i in compilation_ids if i not in known]
        if errors:
            raise ValidationFailedError(errors)

        return self._bookings.replace_practice_selections(
            booking.creation_id,
            state_series_ids=state_series_ids,
            packet_ids=packet_ids,
            compilation_ids=compilation_ids,
        )

    # Invoice

    def preview_lines(self, booking: Booking) -> list[InvoiceLine]:
        years_by_code = {year.code: year for year in self._catalog.list_years()}
        return calculate_invoice_lines(booking, years_by_code, self._pricing)

    def invoice_preview(self, creation_id: str | CreationId) -> list[InvoiceLine]:
        """Return the lines the booking would be invoiced for; nothing is persisted."""
        return self.preview_lines(self.get_booking(creation_id))

    def recalculate_invoice(self, creation_id: str | CreationId, authorized: bool = False) -> Booking:
        """Replace every invoice line, manual ones included, with freshly priced lines."""
        booking = self._load_editable(creation_id, authorized)
        lines = self.preview_lines(booking)
        updated = self._bookings.replace_invoice_lines(booking.creation_id, lines)
        logger.info(
            "Recalculated invoice for booking %s: %d lines", booking.creation_id, len(lines)
        )
        return updated

    def delete_invoice(self, creation_id: str | CreationId, authorized: bool = False) -> Booking:
        booking = self._load_editable(creation_id, authorized)
        if not booking.invoice_lines:
            return booking
        logger.info("Deleted invoice for booking %s", booking.creation_id)
        return self._bookings.replace_invoice_lines(booking.creation_id, [])

    def add_invoice_line(
        self,
        creation_id: str | CreationId,
        label: str,
        quantity: int,
        unit_cost: Decimal,
        line_type: InvoiceLineType = InvoiceLineType.MANUAL,
        item_id: int | None = None,
        authorized: bool = False,
    ) -> Booking:
        booking = self._load_editable(creation_id, authorized)
        line = InvoiceLine(
            type=line_type,
            label=label,
            quantity=quantity,
            unit_cost=Decimal(unit_cost),
            item_id=item_id,
        )
        return self._bookings.add_invoice_line(booking.creation_id, line)

    def update_invoice_line(
        self,
        creation_id: str | CreationId,
        line_id: int,
        changes: dict[str, Any],
        authorized: bool = False,
    ) -> Booking:
        booking = self._load_editable(creation_id, authorized)
        self._require_invoice_line(booking, line_id)
        rejected = sorted(set(changes) - INVOICE_LINE_FIELDS)
        if rejected:
            raise ValidationFailedError([f"Field cannot be changed: {name}" for name in rejected])
        return self._bookings.update_invoice_line(booking.creation_id, line_id, dict(changes))

    def delete_invoice_line(
        self, creation_id: str | CreationId, line_id: int, authorized: bool = False
    ) -> Booking:
        booking = self._load_editable(creation_id, authorized)
        self._require_invoice_line(booking, line_id)
        return self._bookings.delete_invoice_line(booking.creation_id, line_id)

    # Lifecycle

    def submit(
        self,
        creation_id: str | CreationId,
        external_note: str = "",
        requests_w9: bool = False,
    ) -> Booking:
        """Persist the final note and W9 flag, price the order and freeze it.

        Raises:
            BookingLockedError: If the booking was already submitted.
            ValidationFailedError: If the orderer's basics are incomplete, or
                the conference or a game still has no packet.
        """
        with self._bookings.atomic():
            booking = self._load_editable(creation_id, authorized=False, for_update=True)
            if not booking.has_basics:
                raise ValidationFailedError(["Please complete the first step before submitting."])
            if booking.has_unassigned_demands:
                raise ValidationFailedError(
                    ["Please check question availability before submitting your order."]
                )

            booking = self._bookings.update_booking(
                booking.creation_id,
                {"external_note": external_note, "requests_w9": requests_w9},
            )
            self._bookings.replace_invoice_lines(booking.creation_id, self.preview_lines(booking))
            updated = self._bookings.update_booking(
                booking.creation_id,
                {"status": BookingStatus.SUBMITTED, "submitted_at": datetime.now(UTC)},
            )

        logger.info("Submitted booking %s", booking.creation_id)
        return updated

    def change_status(self, creation_id: str | CreationId, status: BookingStatus) -> Booking:
        """Apply an administrative lifecycle transition.

        Raises:
            InvalidStatusTransitionError: If the transition is not allowed.
        """
        booking = self.get_booking(creation_id)
        if status not in STATUS_TRANSITIONS[booking.status]:
            logger.warning(
                "Rejected status change %s -> %s for booking %s",
                booking.status.value,
                status.value,
                booking.creation_id,
            )
            raise InvalidStatusTransitionError(booking.status.value, status.value)

        changes: dict[str, Any] = {"status": status}
        if status == BookingStatus.SUBMITTED:
            changes["submitted_at"] = datetime.now(UTC)
        updated = self._bookings.update_booking(booking.creation_id, changes)
        logger.info(
            "Changed status of booking %s: %s -> %s",
            booking.creation_id,
            booking.status.value,
            status.value,
        )
        return updated

    # Helpers

    def _load_editable(
        self,
        creation_id: str | CreationId,
        authorized: bool,
        for_update: bool = False,
    ) -> Booking:
        cid = parse_creation_id(creation_id)
        booking = self._bookings.get_booking(cid, for_update=for_update)
        if booking is None:
            raise BookingNotFoundError(str(cid))
        self._check_editable(booking, authorized)
        return booking

    @staticmethod
    def _check_editable(booking: Booking, authorized: bool) -> None:
        if not booking.is_editable and not authorized:
            raise BookingLockedError(booking.status.value)

    def _require_schools(self, school_ids: Iterable[int]) -> None:
        for school_id in school_ids:
            if self._catalog.get_school(school_id) is None:
                raise SchoolNotFoundError(school_id)

    def _packet_ids(self) -> set[int]:
        return {packet.id for packet in self._catalog.list_packets()}

    @staticmethod
    def _require_game(booking: Booking, game_id: int) -> None:
        if booking.find_game(game_id) is None:
            raise NonConferenceGameNotFoundError(game_id)

    @staticmethod
    def _require_invoice_line(booking: Booking, line_id: int) -> None:
        if booking.find_invoice_line(line_id) is None:
            raise InvoiceLineNotFoundError(line_id)


def _unique(ids: Iterable[int] | None) -> list[int] | None:
    if ids is None:
        return None
    return list(dict.fromkeys(ids))
