"""Build services wired to the Django stores."""

from django.conf import settings

from bookings.domain.pricing import PricingRules
from bookings.services import AssignmentService, BookingService, CatalogService, OrderFlowService
from bookings.stores.django_store import (
    DjangoBookingStore,
    DjangoCatalogStore,
    DjangoExposureStore,
)


def catalog_service() -> CatalogService:
    return CatalogService(DjangoCatalogStore())


def booking_service() -> BookingService:
    return BookingService(
        DjangoBookingStore(),
        DjangoCatalogStore(),
        PricingRules.from_mapping(getattr(settings, "BOOKINGS_PRICING", None)),
    )


def assignment_service() -> AssignmentService:
    return AssignmentService(DjangoBookingStore(), catalog_service(), DjangoExposureStore())


def order_flow_service() -> OrderFlowService:
    return OrderFlowService(
        DjangoBookingStore(), booking_service(), assignment_service(), catalog_service()
    )
