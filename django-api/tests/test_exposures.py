"""Unit tests for exposure derivation and double-booking detection.

Run with: pytest tests/test_exposures.py -v
"""

from datetime import UTC, datetime
from uuid import uuid4

from bookings.domain import (
    Booking,
    BookingStatus,
    Conference,
    CreationId,
    ExposureSource,
    NonConferenceGame,
    PacketCount,
)
from bookings.domain.exposures import derive_exposures, find_conflicts, find_double_bookings

from tests.builders import ALPHA, BETA, DELTA, GAMMA, make_packet, make_school


def booking_with(conference=None, games=(), school_id=ALPHA, booking_id=1):
    return Booking(
        id=booking_id,
        creation_id=CreationId(uuid4()),
        status=BookingStatus.UNSUBMITTED,
        created_at=datetime.now(UTC),
        school=make_school(school_id, "Orderer"),
        conference=conference,
        non_conference_games=tuple(games),
    )


def conference_of(school_ids, *packets):
    return Conference(
        name="Lakes Conference",
        packets_requested=PacketCount(max(len(packets), 1)),
        school_ids=tuple(school_ids),
        assigned_packets=tuple(packets),
    )


class TestDeriveExposures:
    """Tests for derive_exposures."""

    def test_conference_exposes_every_member_to_every_packet(self):
        booking = booking_with(
            conference=conference_of((ALPHA, BETA, GAMMA), make_packet(11, 1), make_packet(12, 2))
        )

        exposures = derive_exposures(booking)

        assert {e.pair for e in exposures} == {
            (school, packet) for school in (ALPHA, BETA, GAMMA) for packet in (11, 12)
        }
        assert all(e.source == ExposureSource.CONFERENCE for e in exposures)
        assert all(e.orderer_school_id == ALPHA for e in exposures)

    def test_game_exposes_its_schools(self):
        game = NonConferenceGame(id=5, school_ids=(ALPHA, DELTA), assigned_packet=make_packet(13, 3))
        exposures = derive_exposures(booking_with(games=[game]))

        assert {e.pair for e in exposures} == {(ALPHA, 13), (DELTA, 13)}
        assert {e.source_id for e in exposures} == {5}
        assert exposures[0].source == ExposureSource.NON_CONFERENCE_GAME

    def test_unassigned_requests_expose_nothing(self):
        booking = booking_with(
            conference=conference_of((ALPHA, BETA, GAMMA)),
            games=[NonConferenceGame(id=5, school_ids=(ALPHA, DELTA))],
        )
        assert derive_exposures(booking) == []


class TestFindConflicts:
    """Tests for find_conflicts."""

    def test_pair_exposed_by_other_booking_conflicts(self):
        holder = booking_with(conference=conference_of((BETA, GAMMA, DELTA), make_packet(11, 1)))
        candidate = booking_with(
            games=[NonConferenceGame(id=1, school_ids=(ALPHA, BETA), assigned_packet=make_packet(11, 1))]
        )

        conflicts = find_conflicts(derive_exposures(candidate), derive_exposures(holder))

        assert len(conflicts) == 1
        assert conflicts[0].school_id == BETA
        assert conflicts[0].packet_id == 11
        assert conflicts[0].conflicting_booking_id == holder.creation_id

    def test_same_booking_is_never_a_conflict(self):
        booking = booking_with(conference=conference_of((ALPHA, BETA, GAMMA), make_packet(11, 1)))
        exposures = derive_exposures(booking)
        assert find_conflicts(exposures, exposures) == []

    def test_second_order_from_same_school_conflicts(self):
        """Two orders from one school are still different bookings."""
        first = booking_with(conference=conference_of((ALPHA, BETA, GAMMA), make_packet(11, 1)))
        second = booking_with(
            games=[NonConferenceGame(id=1, school_ids=(ALPHA, DELTA), assigned_packet=make_packet(11, 1))],
            booking_id=2,
        )

        conflicts = find_conflicts(derive_exposures(second), derive_exposures(first))

        assert [(c.school_id, c.packet_id) for c in conflicts] == [(ALPHA, 11)]
        assert conflicts[0].conflicting_booking_id == first.creation_id

    def test_different_packet_is_not_a_conflict(self):
        holder = booking_with(conference=conference_of((ALPHA, BETA, GAMMA), make_packet(11, 1)))
        candidate = booking_with(
            games=[NonConferenceGame(id=1, school_ids=(ALPHA, BETA), assigned_packet=make_packet(12, 2))]
        )
        assert find_conflicts(derive_exposures(candidate), derive_exposures(holder)) == []


class TestFindDoubleBookings:
    """Tests for the staff double-booking report."""

    def test_reports_every_exposure_of_a_shared_pair(self):
        first = booking_with(conference=conference_of((ALPHA, BETA, GAMMA), make_packet(11, 1)))
        second = booking_with(
            games=[NonConferenceGame(id=1, school_ids=(ALPHA, DELTA), assigned_packet=make_packet(11, 1))],
            school_id=DELTA,
            booking_id=2,
        )

        report = find_double_bookings(derive_exposures(first) + derive_exposures(second))

        assert {e.pair for e in report} == {(ALPHA, 11)}
        assert {e.booking_creation_id for e in report} == {first.creation_id, second.creation_id}

    def test_no_shared_pairs_means_empty_report(self):
        first = booking_with(conference=conference_of((ALPHA, BETA, GAMMA), make_packet(11, 1)))
        assert find_double_bookings(derive_exposures(first)) == []
