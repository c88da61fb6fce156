"""Order flow service - owns the wizard position of a booking.

Completion is always derived from persisted booking data, so a reload
resumes at the right step. Moving backwards invalidates artifacts that
depend on later steps:

  - target < 6 deletes the invoice, which is recalculated at Confirm;
  - target < 4 deletes packet assignments once the booking reached step 4,
    so the next resolver pass is not constrained by them.

Both deletions finish before the step pointer moves, inside one store
transaction. Moving forwards never invalidates anything.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from bookings.domain import Booking, CreationId, InvoiceLine, PotentialAssignment
from bookings.domain.errors import BookingLockedError, StepNotReachableError
from bookings.services.assignment_service import AssignmentService
from bookings.services.booking_service import BookingService, parse_creation_id
from bookings.services.catalog_service import CatalogService
from bookings.services.steps import (
    CHECK_AVAILABILITY_STEP,
    CONFIRM_STEP,
    FIRST_STEP,
    LAST_STEP,
    STEPS,
    StepContext,
    get_step,
    highest_completed_step,
)
from bookings.stores.interfaces import BookingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepState:
    number: int
    title: str
    is_complete: bool
    is_navigable: bool


@dataclass(frozen=True)
class WizardState:
    """Snapshot of the wizard for one booking."""

    booking: Booking
    current_step: int
    highest_completed_step: int
    highest_seen_step: int
    read_only: bool
    steps: tuple[StepState, ...]
    potential_assignments: tuple[PotentialAssignment, ...] | None = None
    invoice_preview: tuple[InvoiceLine, ...] | None = None


@dataclass(frozen=True)
class StepResult:
    """Outcome of submitting a step; errors are user-facing and never raised."""

    state: WizardState | None
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class OrderFlowService:
    """Service driving the six-step order wizard."""

    def __init__(
        self,
        store: BookingStore,
        bookings: BookingService,
        assignments: AssignmentService,
        catalog: CatalogService,
    ) -> None:
        self._store = store
        self._bookings = bookings
        self._assignments = assignments
        self._catalog = catalog

    def resume(self, creation_id: str | CreationId) -> WizardState:
        """Place the wizard right after the highest completed step.

        Raises:
            BookingNotFoundError: If the booking does not exist.
        """
        booking = self._bookings.get_booking(creation_id)
        if booking.is_editable:
            position = min(highest_completed_step(booking) + 1, LAST_STEP)
            if position != booking.current_step:
                booking = self._store.update_booking(
                    booking.creation_id, {"current_step": position}
                )
        return self.build_state(booking)

    def get_state(self, creation_id: str | CreationId) -> WizardState:
        return self.build_state(self._bookings.get_booking(creation_id))

    def go_to_step(self, creation_id: str | CreationId, target: int) -> WizardState:
        """Navigate to a step already seen, invalidating later artifacts when moving back.

        Raises:
            BookingLockedError: If the booking is no longer editable.
            StepNotReachableError: If target is outside 1..highest seen step.
        """
        booking = self._editable(creation_id)
        current = self._current_step(booking)
        if not FIRST_STEP <= target <= self._highest_seen(booking):
            raise StepNotReachableError(target)

        if target < current:
            with self._store.atomic():
                if booking.invoice_lines and target < CONFIRM_STEP:
                    self._bookings.delete_invoice(booking.creation_id)
                reached_assignment = (
                    current >= CHECK_AVAILABILITY_STEP or booking.has_packet_assignments
                )
                if reached_assignment and target < CHECK_AVAILABILITY_STEP:
                    self._assignments.clear_packet_assignments(booking.creation_id)
                booking = self._store.update_booking(
                    booking.creation_id, {"current_step": target}
                )
            logger.info(
                "Booking %s moved back from step %d to %d", booking.creation_id, current, target
            )
        elif target != booking.current_step:
            booking = self._store.update_booking(booking.creation_id, {"current_step": target})

        return self.build_state(booking)

    def go_to_next_step(
        self,
        creation_id: str | CreationId,
        step_number: int,
        payload: Mapping[str, Any],
    ) -> StepResult:
        """Validate and commit one step, then advance the pointer.

        Validation problems come back in StepResult.errors. The first step may
        be submitted for a booking that does not exist yet; it creates it.
        """
        cid = parse_creation_id(creation_id)
        booking = self._bookings.find_booking(cid)
        if booking is not None and not booking.is_editable:
            raise BookingLockedError(booking.status.value)

        reachable = self._highest_seen(booking) if booking else FIRST_STEP
        if not FIRST_STEP <= step_number <= max(reachable, FIRST_STEP):
            raise StepNotReachableError(step_number)

        step = get_step(step_number)
        context = StepContext(
            creation_id=str(cid),
            bookings=self._bookings,
            assignments=self._assignments,
            catalog=self._catalog,
        )
        errors = step.validate(context, booking, payload)
        if errors:
            state = self.build_state(booking) if booking else None
            return StepResult(state=state, errors=tuple(errors))

        booking = step.commit(context, booking, payload)
        if booking.is_editable:
            booking = self._store.update_booking(
                booking.creation_id, {"current_step": min(step_number + 1, LAST_STEP)}
            )
        logger.info("Booking %s completed step %d", booking.creation_id, step_number)
        return StepResult(state=self.build_state(booking))

    def build_state(self, booking: Booking) -> WizardState:
        current = self._current_step(booking)
        completed = highest_completed_step(booking)
        seen = max(current, completed)
        read_only = not booking.is_editable

        potential = None
        if current == CHECK_AVAILABILITY_STEP and not read_only:
            # Never reused across visits to the step.
            potential = tuple(self._assignments.resolve(booking))

        preview = None
        if current == CONFIRM_STEP:
            preview = tuple(booking.invoice_lines) if read_only else tuple(
                self._bookings.preview_lines(booking)
            )

        return WizardState(
            booking=booking,
            current_step=current,
            highest_completed_step=completed,
            highest_seen_step=seen,
            read_only=read_only,
            steps=tuple(
                StepState(
                    number=step.number,
                    title=step.title,
                    is_complete=step.is_complete(booking),
                    is_navigable=not read_only and step.number <= seen,
                )
                for step in STEPS
            ),
            potential_assignments=potential,
            invoice_preview=preview,
        )

    def _editable(self, creation_id: str | CreationId) -> Booking:
        booking = self._bookings.get_booking(creation_id)
        if not booking.is_editable:
            raise BookingLockedError(booking.status.value)
        return booking

    @staticmethod
    def _reachable_limit(booking: Booking) -> int:
        # Nothing past Check Availability until every demand holds a packet.
        if booking.has_unassigned_demands:
            return CHECK_AVAILABILITY_STEP
        return LAST_STEP

    def _current_step(self, booking: Booking) -> int:
        if not booking.is_editable:
            return CONFIRM_STEP
        if booking.current_step >= FIRST_STEP:
            return min(booking.current_step, self._reachable_limit(booking))
        return min(highest_completed_step(booking) + 1, LAST_STEP)

    def _highest_seen(self, booking: Booking) -> int:
        seen = max(self._current_step(booking), highest_completed_step(booking))
        return min(seen, self._reachable_limit(booking))
