"""Unit tests for invoice pricing.

Run with: pytest tests/test_pricing.py -v
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from bookings.domain import (
    Booking,
    BookingStatus,
    Compilation,
    Conference,
    CreationId,
    InvoiceLineType,
    Money,
    NonConferenceGame,
    PacketCount,
    PracticeSelections,
    StateSeries,
    Year,
)
from bookings.domain.pricing import PricingRules, calculate_invoice_lines, invoice_total

from tests.builders import ALPHA, BETA, PAST_YEAR, make_packet, make_school

YEARS = {
    PAST_YEAR: Year(
        code=PAST_YEAR,
        name="Past season",
        start_date=date(2023, 8, 1),
        end_date=date(2024, 7, 31),
        maximum_packet_practice_material_price=Money(Decimal("25")),
    )
}


def booking_with(**kwargs):
    return Booking(
        id=1,
        creation_id=CreationId(uuid4()),
        status=BookingStatus.UNSUBMITTED,
        created_at=datetime.now(UTC),
        school=make_school(ALPHA, "Alpha"),
        **kwargs,
    )


def conference_of(school_count, packets=2):
    return Conference(
        name="Lakes",
        packets_requested=PacketCount(packets),
        school_ids=tuple(range(1, school_count + 1)),
    )


def practice_packets(count, price="10"):
    return tuple(
        make_packet(20 + n, n, PAST_YEAR, competition=False, practice=True, price=price)
        for n in range(1, count + 1)
    )


class TestPricingRules:
    """Tests for conference price tiers."""

    @pytest.mark.parametrize(
        "school_count,price",
        [(2, "15"), (3, "15"), (4, "20"), (5, "25"), (6, "30"), (9, "30")],
    )
    def test_conference_packet_price_by_school_count(self, school_count, price):
        assert PricingRules().conference_packet_price(school_count) == Decimal(price)

    def test_from_mapping_reads_settings(self):
        rules = PricingRules.from_mapping(
            {"CONFERENCE_TIERS": {"3": "10", "5": "12"}, "NON_CONFERENCE_GAME_PRICE": "9"}
        )
        assert rules.conference_packet_price(4) == Decimal("10")
        assert rules.conference_packet_price(5) == Decimal("12")
        assert rules.non_conference_game_price == Decimal("9")

    def test_from_mapping_without_config_uses_defaults(self):
        assert PricingRules.from_mapping(None) == PricingRules()


class TestCalculateInvoiceLines:
    """Tests for calculate_invoice_lines."""

    def test_empty_booking_has_no_lines(self):
        assert calculate_invoice_lines(booking_with(), YEARS) == []

    def test_conference_line(self):
        lines = calculate_invoice_lines(booking_with(conference=conference_of(4, packets=3)), YEARS)

        assert len(lines) == 1
        assert lines[0].type == InvoiceLineType.CONFERENCE
        assert lines[0].quantity == 3
        assert lines[0].unit_cost == Decimal("20")
        assert lines[0].label == "Lakes: 3 packets for 4 schools"
        assert invoice_total(lines) == Decimal("60")

    def test_one_line_per_game(self):
        games = (
            NonConferenceGame(id=1, school_ids=(ALPHA, BETA)),
            NonConferenceGame(id=2, school_ids=(ALPHA, 3), assigned_packet=make_packet(12, 2)),
        )

        lines = calculate_invoice_lines(booking_with(non_conference_games=games), YEARS)

        assert [line.unit_cost for line in lines] == [Decimal("15"), Decimal("15")]
        assert [line.item_id for line in lines] == [1, 2]
        assert lines[1].label == "Non-conference game (packet 2)"

    def test_practice_packets_below_cap_are_not_capped(self):
        practice = PracticeSelections(packets=practice_packets(2))

        lines = calculate_invoice_lines(booking_with(practice_selections=practice), YEARS)

        assert [line.type for line in lines] == [InvoiceLineType.PRACTICE_PACKET] * 2
        assert invoice_total(lines) == Decimal("20")

    def test_practice_packets_over_cap_get_a_discount_line(self):
        """Three $10 packets from a year capped at $25 total $25."""
        practice = PracticeSelections(packets=practice_packets(3))

        lines = calculate_invoice_lines(booking_with(practice_selections=practice), YEARS)

        cap_line = lines[-1]
        assert cap_line.type == InvoiceLineType.PRACTICE_PACKET_CAP
        assert cap_line.unit_cost == Decimal("-5")
        assert invoice_total(lines) == Decimal("25")

    def test_state_series_and_compilations_are_priced(self):
        practice = PracticeSelections(
            state_series=(StateSeries(id=1, name="Series A", description="", price=Money(Decimal("30"))),),
            compilations=(Compilation(id=2, name="Hits", description="", price=Money(Decimal("20"))),),
        )

        lines = calculate_invoice_lines(booking_with(practice_selections=practice), YEARS)

        assert [(line.type, line.item_id) for line in lines] == [
            (InvoiceLineType.STATE_SERIES, 1),
            (InvoiceLineType.COMPILATION, 2),
        ]
        assert invoice_total(lines) == Decimal("50")

    def test_recalculating_is_stable(self):
        booking = booking_with(
            conference=conference_of(3),
            non_conference_games=(NonConferenceGame(id=1, school_ids=(ALPHA, BETA)),),
            practice_selections=PracticeSelections(packets=practice_packets(3)),
        )

        first = calculate_invoice_lines(booking, YEARS)
        second = calculate_invoice_lines(booking, YEARS)

        assert first == second
        assert invoice_total(first) == Decimal("30") + Decimal("15") + Decimal("25")
