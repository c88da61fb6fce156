from bookings.services.assignment_service import AssignmentService
from bookings.services.booking_service import BookingService, parse_creation_id
from bookings.services.catalog_service import CatalogService
from bookings.services.order_flow_service import (
    OrderFlowService,
    StepResult,
    StepState,
    WizardState,
)

__all__ = [
    "AssignmentService",
    "BookingService",
    "CatalogService",
    "OrderFlowService",
    "StepResult",
    "StepState",
    "WizardState",
    "parse_creation_id",
]
