"""Pytest configuration and shared fixtures."""

import uuid
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from rest_framework.test import APIClient

from bookings import models as orm
from bookings.domain import Authority, Compilation, Money, StateSeries, Year
from bookings.services import AssignmentService, BookingService, CatalogService, OrderFlowService
from bookings.stores.in_memory import (
    InMemoryBookingStore,
    InMemoryCatalogStore,
    InMemoryExposureStore,
)

from tests.builders import (
    ALPHA,
    BETA,
    CLOSED,
    CURRENT_YEAR,
    DELTA,
    EPSILON,
    GAMMA,
    PAST_YEAR,
    make_packet,
    make_school,
)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def staff_client(admin_user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


# In-memory stores and services


@pytest.fixture
def catalog_store() -> InMemoryCatalogStore:
    """Current year with competition packets 1-5 (ids 11-15), past year with practice packets 1-3 (ids 21-23)."""
    today = date.today()
    return InMemoryCatalogStore(
        years=[
            Year(
                code=CURRENT_YEAR,
                name="Current season",
                start_date=today - timedelta(days=100),
                end_date=today + timedelta(days=200),
                maximum_packet_practice_material_price=Money(Decimal("40")),
            ),
            Year(
                code=PAST_YEAR,
                name="Past season",
                start_date=today - timedelta(days=465),
                end_date=today - timedelta(days=101),
                maximum_packet_practice_material_price=Money(Decimal("25")),
            ),
        ],
        schools=[
            make_school(ALPHA, "Alpha"),
            make_school(BETA, "Beta"),
            make_school(GAMMA, "Gamma"),
            make_school(DELTA, "Delta"),
            make_school(EPSILON, "Epsilon"),
            make_school(CLOSED, "Closed", active=False),
        ],
        packets=[
            *(make_packet(10 + n, n) for n in range(1, 6)),
            *(
                make_packet(20 + n, n, PAST_YEAR, competition=False, practice=True, price="10")
                for n in range(1, 4)
            ),
        ],
        state_series=[
            StateSeries(id=1, name="State Series A", description="", price=Money(Decimal("30"))),
        ],
        compilations=[
            Compilation(id=1, name="Greatest Hits", description="", price=Money(Decimal("20"))),
        ],
    )


@pytest.fixture
def booking_store(catalog_store) -> InMemoryBookingStore:
    return InMemoryBookingStore(catalog_store)


@pytest.fixture
def exposure_store(booking_store, catalog_store) -> InMemoryExposureStore:
    return InMemoryExposureStore(booking_store, catalog_store)


@pytest.fixture
def catalog_service(catalog_store) -> CatalogService:
    return CatalogService(catalog_store)


@pytest.fixture
def booking_service(booking_store, catalog_store) -> BookingService:
    return BookingService(booking_store, catalog_store)


@pytest.fixture
def assignment_service(booking_store, catalog_service, exposure_store) -> AssignmentService:
    return AssignmentService(booking_store, catalog_service, exposure_store)


@pytest.fixture
def order_flow(booking_store, booking_service, assignment_service, catalog_service) -> OrderFlowService:
    return OrderFlowService(booking_store, booking_service, assignment_service, catalog_service)


@pytest.fixture
def start_booking(booking_service):
    """Create a booking with complete basics for the given school."""

    def start(school_id=ALPHA, name="Pat Coach"):
        return booking_service.save_basics(
            str(uuid.uuid4()),
            school_id=school_id,
            name=name,
            email_address="pat@example.org",
            authority=Authority.COACH,
        )

    return start


# Database catalog


@pytest.fixture
def catalog_rows(db) -> SimpleNamespace:
    """Catalog rows for API tests: a current year with three competition packets."""
    today = date.today()
    current = orm.Year.objects.create(
        code="2024-25",
        name="2024-25",
        start_date=today - timedelta(days=100),
        end_date=today + timedelta(days=200),
        maximum_packet_practice_material_price=Decimal("40"),
    )
    past = orm.Year.objects.create(
        code="2023-24",
        name="2023-24",
        start_date=today - timedelta(days=465),
        end_date=today - timedelta(days=101),
        maximum_packet_practice_material_price=Decimal("25"),
    )
    schools = {
        short_name: orm.School.objects.create(
            short_name=short_name, name=f"{short_name} Middle School", active=active
        )
        for short_name, active in [
            ("Alpha", True),
            ("Beta", True),
            ("Gamma", True),
            ("Closed", False),
        ]
    }
    packets = [
        orm.Packet.objects.create(year=current, number=n, name=f"Packet {n}") for n in (1, 2, 3)
    ]
    practice_packets = [
        orm.Packet.objects.create(
            year=past,
            number=n,
            name=f"Packet {n}",
            available_for_competition=False,
            available_for_practice=True,
            price_as_practice_material=Decimal("10"),
        )
        for n in (1, 2)
    ]
    state_series = orm.StateSeries.objects.create(name="State Series A", price=Decimal("30"))
    compilation = orm.Compilation.objects.create(name="Greatest Hits", price=Decimal("20"))
    return SimpleNamespace(
        current=current,
        past=past,
        schools=schools,
        packets=packets,
        practice_packets=practice_packets,
        state_series=state_series,
        compilation=compilation,
    )
