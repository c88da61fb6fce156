"""Invoice pricing rule.

Lines are derived from the order's current state only; recalculating always
produces the full set of lines from scratch.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Self

from bookings.domain.formatting import format_money
from bookings.domain.models import Booking, InvoiceLine, Year
from bookings.domain.value_objects import InvoiceLineType

DEFAULT_CONFERENCE_TIERS = {3: Decimal("15"), 4: Decimal("20"), 5: Decimal("25"), 6: Decimal("30")}
DEFAULT_GAME_PRICE = Decimal("15")


@dataclass(frozen=True)
class PricingRules:
    """Per-packet conference price by member-school count, and per-game price."""

    conference_tiers: Mapping[int, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_CONFERENCE_TIERS)
    )
    non_conference_game_price: Decimal = DEFAULT_GAME_PRICE

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any] | None) -> Self:
        if not config:
            return cls()
        tiers = config.get("CONFERENCE_TIERS", DEFAULT_CONFERENCE_TIERS)
        return cls(
            conference_tiers={int(k): Decimal(str(v)) for k, v in tiers.items()},
            non_conference_game_price=Decimal(
                str(config.get("NON_CONFERENCE_GAME_PRICE", DEFAULT_GAME_PRICE))
            ),
        )

    def conference_packet_price(self, school_count: int) -> Decimal:
        """Smallest tier applies below it, largest tier applies above it."""
        tiers = sorted(self.conference_tiers)
        applicable = [t for t in tiers if t <= school_count]
        return self.conference_tiers[applicable[-1] if applicable else tiers[0]]


def calculate_invoice_lines(
    booking: Booking,
    years_by_code: Mapping[str, Year],
    rules: PricingRules | None = None,
) -> list[InvoiceLine]:
    rules = rules or PricingRules()
    lines = []

    conference = booking.conference
    if conference and conference.packets_requested.value > 0:
        school_count = len(conference.school_ids)
        packets = conference.packets_requested.value
        lines.append(
            InvoiceLine(
                type=InvoiceLineType.CONFERENCE,
                label=f"{conference.name}: {packets} packets for {school_count} schools",
                quantity=packets,
                unit_cost=rules.conference_packet_price(school_count),
            )
        )

    for game in booking.non_conference_games:
        lines.append(
            InvoiceLine(
                type=InvoiceLineType.NON_CONFERENCE_GAME,
                label=_game_label(game.assigned_packet),
                quantity=1,
                unit_cost=rules.non_conference_game_price,
                item_id=game.id,
            )
        )

    practice = booking.practice_selections
    if practice:
        for series in practice.state_series:
            lines.append(
                InvoiceLine(
                    type=InvoiceLineType.STATE_SERIES,
                    label=series.name,
                    quantity=1,
                    unit_cost=series.price.amount,
                    item_id=series.id,
                )
            )
        lines.extend(_practice_packet_lines(practice.packets, years_by_code))
        for compilation in practice.compilations:
            lines.append(
                InvoiceLine(
                    type=InvoiceLineType.COMPILATION,
                    label=compilation.name,
                    quantity=1,
                    unit_cost=compilation.price.amount,
                    item_id=compilation.id,
                )
            )

    return lines


def invoice_total(lines: Iterable[InvoiceLine]) -> Decimal:
    return sum((line.total for line in lines), Decimal("0"))


def _game_label(packet) -> str:
    if packet is None:
        return "Non-conference game"
    return f"Non-conference game (packet {packet.number})"


def _practice_packet_lines(packets, years_by_code: Mapping[str, Year]) -> list[InvoiceLine]:
    by_year = defaultdict(list)
    for packet in packets:
        by_year[packet.year_code].append(packet)

    lines = []
    for year_code in sorted(by_year):
        year_packets = sorted(by_year[year_code], key=lambda p: p.number)
        for packet in year_packets:
            lines.append(
                InvoiceLine(
                    type=InvoiceLineType.PRACTICE_PACKET,
                    label=f"{year_code} packet {packet.number} (practice)",
                    quantity=1,
                    unit_cost=packet.price_as_practice_material.amount,
                    item_id=packet.id,
                )
            )

        year = years_by_code.get(year_code)
        if year is None:
            continue
        subtotal = sum((p.price_as_practice_material.amount for p in year_packets), Decimal("0"))
        cap = year.maximum_packet_practice_material_price.amount
        if subtotal > cap:
            lines.append(
                InvoiceLine(
                    type=InvoiceLineType.PRACTICE_PACKET_CAP,
                    label=f"{year_code} practice packets capped at {format_money(cap)}",
                    quantity=1,
                    unit_cost=cap - subtotal,
                )
            )

    return lines
