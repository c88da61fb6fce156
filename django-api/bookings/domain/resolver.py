"""Packet availability resolver.

Strategy (greedy, deterministic):
  1. Build demands: the conference needs N packets, each unassigned
     non-conference game needs one.
  2. Pool = competition packets not already used by this booking, lowest
     number first.
  3. For each demand, take the lowest-numbered packets that no school in the
     demand has been exposed to by another booking.
  4. A packet taken in this pass leaves the pool for later demands.
  5. If nothing fits, mark the entry missing and keep going, so every
     shortfall is reported in one pass.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from bookings.domain.exposures import Exposure
from bookings.domain.formatting import make_english_list
from bookings.domain.models import Booking, NonConferenceGame, Packet, School

CONFERENCE_DEMAND_KEY = "conference"
GAME_DEMAND_PREFIX = "nonConferenceGame-"


@dataclass(frozen=True)
class Demand:
    key: str
    description: str
    school_ids: tuple[int, ...]
    packets_needed: int


@dataclass(frozen=True)
class PotentialAssignment:
    description: str
    demand_key: str
    packet_id: int | None
    is_missing_packet_assignment: bool


def game_demand_key(game_id: int) -> str:
    return f"{GAME_DEMAND_PREFIX}{game_id}"


def parse_game_demand_key(demand_key: str) -> int | None:
    if not demand_key.startswith(GAME_DEMAND_PREFIX):
        return None
    try:
        return int(demand_key[len(GAME_DEMAND_PREFIX):])
    except ValueError:
        return None


def describe_game(game: NonConferenceGame, schools_by_id: Mapping[int, School]) -> str:
    names = [
        schools_by_id[sid].short_name if sid in schools_by_id else f"school {sid}"
        for sid in game.school_ids
    ]
    return f"the game between {make_english_list(names)}"


def build_demands(booking: Booking, schools_by_id: Mapping[int, School]) -> list[Demand]:
    """Return the exposure-generating demands of a booking that still need packets."""
    demands = []

    conference = booking.conference
    if conference and conference.packets_still_needed > 0:
        demands.append(
            Demand(
                key=CONFERENCE_DEMAND_KEY,
                description=conference.name,
                school_ids=conference.school_ids,
                packets_needed=conference.packets_still_needed,
            )
        )

    for game in booking.non_conference_games:
        if game.assigned_packet is None:
            demands.append(
                Demand(
                    key=game_demand_key(game.id),
                    description=describe_game(game, schools_by_id),
                    school_ids=game.school_ids,
                    packets_needed=1,
                )
            )

    return demands


def resolve_packet_assignments(
    booking: Booking,
    packets: Iterable[Packet],
    existing_exposures: Iterable[Exposure],
    schools_by_id: Mapping[int, School] | None = None,
) -> list[PotentialAssignment]:
    """Propose a packet for every demand of the booking, or mark it missing.

    existing_exposures must not include this booking's own exposures.
    """
    schools_by_id = schools_by_id or {}
    exposed_pairs = {
        e.pair for e in existing_exposures if e.booking_creation_id != booking.creation_id
    }

    used_by_booking = booking.assigned_packet_ids
    pool = sorted(
        (p for p in packets if p.available_for_competition and p.id not in used_by_booking),
        key=lambda p: (p.number, p.id),
    )

    assignments = []
    for demand in build_demands(booking, schools_by_id):
        chosen = _take_packets(pool, demand, exposed_pairs)
        for index in range(demand.packets_needed):
            packet = chosen[index] if index < len(chosen) else None
            assignments.append(
                PotentialAssignment(
                    description=_entry_description(demand, index),
                    demand_key=demand.key,
                    packet_id=packet.id if packet else None,
                    is_missing_packet_assignment=packet is None,
                )
            )

    return assignments


def has_shortfall(assignments: Iterable[PotentialAssignment]) -> bool:
    return any(a.is_missing_packet_assignment for a in assignments)


def _take_packets(
    pool: list[Packet], demand: Demand, exposed_pairs: set[tuple[int, int]]
) -> list[Packet]:
    chosen = []
    for packet in list(pool):
        if len(chosen) == demand.packets_needed:
            break
        if any((school_id, packet.id) in exposed_pairs for school_id in demand.school_ids):
            continue
        chosen.append(packet)
        pool.remove(packet)
    return chosen


def _entry_description(demand: Demand, index: int) -> str:
    if demand.packets_needed == 1:
        return demand.description
    return f"{demand.description} (packet {index + 1} of {demand.packets_needed})"
