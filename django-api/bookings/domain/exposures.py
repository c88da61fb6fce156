"""Exposure model: which school hears which packet, and double-booking detection.

An exposure is derived from a booking's assigned packets; it is never created on
its own. The invariant protected here is that no (school, packet) pair is
exposed by two different bookings.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from bookings.domain.models import Booking
from bookings.domain.value_objects import CreationId, ExposureSource


@dataclass(frozen=True)
class Exposure:
    """A school has heard, or will hear, a packet through a booking."""

    school_id: int
    packet_id: int
    booking_creation_id: CreationId
    orderer_school_id: int | None
    source: ExposureSource
    source_id: int

    @property
    def pair(self) -> tuple[int, int]:
        return (self.school_id, self.packet_id)


@dataclass(frozen=True)
class Conflict:
    school_id: int
    packet_id: int
    conflicting_booking_id: CreationId


def derive_exposures(booking: Booking) -> list[Exposure]:
    """Return one exposure per (school, packet) implied by the booking's assignments."""
    orderer_school_id = booking.school.id if booking.school else None
    exposures = []

    if booking.conference:
        for packet in booking.conference.assigned_packets:
            for school_id in booking.conference.school_ids:
                exposures.append(
                    Exposure(
                        school_id=school_id,
                        packet_id=packet.id,
                        booking_creation_id=booking.creation_id,
                        orderer_school_id=orderer_school_id,
                        source=ExposureSource.CONFERENCE,
                        source_id=booking.id,
                    )
                )

    for game in booking.non_conference_games:
        if game.assigned_packet is None:
            continue
        for school_id in game.school_ids:
            exposures.append(
                Exposure(
                    school_id=school_id,
                    packet_id=game.assigned_packet.id,
                    booking_creation_id=booking.creation_id,
                    orderer_school_id=orderer_school_id,
                    source=ExposureSource.NON_CONFERENCE_GAME,
                    source_id=game.id,
                )
            )

    return exposures


def find_conflicts(
    candidates: Iterable[Exposure], existing: Iterable[Exposure]
) -> list[Conflict]:
    """Return candidate pairs already exposed by a different booking.

    Conflicts are keyed on the booking, not the orderer: a second order from
    the same school still conflicts with the first when they share a
    (school, packet) pair. Only a booking's own exposures are ignored.
    """
    existing_by_pair: dict[tuple[int, int], set[CreationId]] = defaultdict(set)
    for exposure in existing:
        existing_by_pair[exposure.pair].add(exposure.booking_creation_id)

    conflicts = set()
    for candidate in candidates:
        for booking_id in existing_by_pair.get(candidate.pair, ()):
            if booking_id != candidate.booking_creation_id:
                conflicts.add(Conflict(candidate.school_id, candidate.packet_id, booking_id))

    return sorted(
        conflicts, key=lambda c: (c.school_id, c.packet_id, str(c.conflicting_booking_id))
    )


def find_double_bookings(exposures: Iterable[Exposure]) -> list[Exposure]:
    """Return every exposure whose (school, packet) pair is shared by two or more bookings."""
    by_pair: dict[tuple[int, int], list[Exposure]] = defaultdict(list)
    for exposure in exposures:
        by_pair[exposure.pair].append(exposure)

    double_booked = []
    for pair in sorted(by_pair):
        group = by_pair[pair]
        if len({e.booking_creation_id for e in group}) > 1:
            double_booked.extend(group)
    return double_booked
