"""Order wizard steps.

Each step knows its number and title, whether persisted booking data
satisfies it, how to validate a submitted payload and how to commit it.
The order-flow service holds the fixed ordered list STEPS and is the only
owner of the wizard position.

Payloads are plain mappings with snake_case keys; missing keys mean the
customer left the question unanswered.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import validate_email

from bookings.domain import Authority, Booking, PotentialAssignment
from bookings.services.assignment_service import AssignmentService
from bookings.services.booking_service import BookingService
from bookings.services.catalog_service import CatalogService

FIRST_STEP = 1
CHECK_AVAILABILITY_STEP = 4
CONFIRM_STEP = 6
LAST_STEP = 6


@dataclass(frozen=True)
class StepContext:
    """Collaborators a step may use while validating or committing."""

    creation_id: str
    bookings: BookingService
    assignments: AssignmentService
    catalog: CatalogService


class Step(ABC):
    number: int
    title: str

    @abstractmethod
    def is_complete(self, booking: Booking) -> bool:
        """Whether persisted booking data satisfies this step."""
        ...

    def validate(
        self, context: StepContext, booking: Booking | None, payload: Mapping[str, Any]
    ) -> list[str]:
        """Return user-facing messages; an empty list means the payload is acceptable."""
        return []

    @abstractmethod
    def commit(
        self, context: StepContext, booking: Booking | None, payload: Mapping[str, Any]
    ) -> Booking:
        """Persist the payload and return the updated booking."""
        ...


class BasicsStep(Step):
    number = 1
    title = "Starting Out"

    def is_complete(self, booking: Booking) -> bool:
        return booking.has_basics

    def validate(self, context, booking, payload):
        if not payload.get("school_id"):
            return ["Please indicate what school you are from."]

        name = (payload.get("name") or "").strip()
        if not name:
            return ["Please give your name."]
        if " " not in name:
            return ["Please give your full name."]

        email_address = (payload.get("email_address") or "").strip()
        if not email_address:
            return ["Please give your email address."]
        try:
            validate_email(email_address)
        except ValidationError:
            return ["Please use a valid email address."]

        is_coach = payload.get("is_coach")
        if not isinstance(is_coach, bool):
            return ["Please indicate whether you are the coach."]
        if not is_coach and not isinstance(payload.get("coach_knows"), bool):
            return ["Please indicate whether the coach knows the exact order you are placing."]

        return []

    def commit(self, context, booking, payload):
        if payload["is_coach"]:
            authority = Authority.COACH
        elif payload["coach_knows"]:
            authority = Authority.COACH_KNOWS
        else:
            authority = Authority.COACH_DOESNT_KNOW

        return context.bookings.save_basics(
            context.creation_id,
            school_id=payload["school_id"],
            name=payload["name"].strip(),
            email_address=payload["email_address"].strip(),
            authority=authority,
        )


class ConferenceStep(Step):
    number = 2
    title = "Conference"

    def is_complete(self, booking: Booking) -> bool:
        return booking.conference is not None

    def validate(self, context, booking, payload):
        ordering = payload.get("ordering_for_conference")
        if not isinstance(ordering, bool):
            return ["Please indicate whether you are ordering for a conference or tournament."]
        if not ordering:
            return []

        if not (payload.get("name") or "").strip():
            return ["Please give the name of the conference or tournament."]

        orderer_id = booking.school.id if booking and booking.school else None
        other_ids = {i for i in payload.get("other_school_ids") or () if i != orderer_id}
        if not other_ids:
            return ["Please specify the other schools in the conference."]
        if len(other_ids) < 2:
            return ["Presumably there are at least three schools in the conference."]

        packets_requested = payload.get("packets_requested")
        if not packets_requested or packets_requested < 1:
            return ["Please tell us how many packets of questions you want for the conference."]
        pool_size = len(context.catalog.competition_packets())
        if packets_requested > pool_size:
            return [
                f"We’re only writing {pool_size} packets of questions this year, "
                "so you can’t request more than that."
            ]

        return []

    def commit(self, context, booking, payload):
        if not payload["ordering_for_conference"]:
            return context.bookings.delete_conference(context.creation_id)
        return context.bookings.set_conference(
            context.creation_id,
            name=payload["name"].strip(),
            packets_requested=payload["packets_requested"],
            school_ids=payload["other_school_ids"],
        )


class NonConferenceGamesStep(Step):
    number = 3
    title = "Non-Conference Games"

    def is_complete(self, booking: Booking) -> bool:
        return bool(booking.non_conference_games)

    def validate(self, context, booking, payload):
        ordering = payload.get("order_non_conference_games")
        if not isinstance(ordering, bool):
            return [
                "Please tell us whether you want to order questions for games "
                "that are not part of your conference."
            ]
        if not ordering:
            return []

        new_games = payload.get("games") or []
        existing = booking.non_conference_games if booking else ()
        if not new_games and not existing:
            return [
                "Please let us know the details of your non-conference games "
                "so that we can check whether questions are available."
            ]

        errors = []
        for school_ids in new_games:
            errors.extend(_game_errors(school_ids))
        return errors

    def commit(self, context, booking, payload):
        if payload["order_non_conference_games"]:
            new_games = [
                [i for i in school_ids if i is not None] for school_ids in payload.get("games") or []
            ]
            if new_games:
                return context.bookings.add_non_conference_games(context.creation_id, new_games)
            return booking

        for game in booking.non_conference_games:
            booking = context.bookings.delete_non_conference_game(context.creation_id, game.id)
        return booking


class CheckAvailabilityStep(Step):
    """Commits the confirmed plan, or a fresh resolver pass when none is given."""

    number = 4
    title = "Check Question Availability"

    def is_complete(self, booking: Booking) -> bool:
        return booking.has_packet_assignments

    def validate(self, context, booking, payload):
        return [
            f"We weren’t able to find a packet for {a.description}."
            for a in self._plan(context, booking, payload)
            if a.is_missing_packet_assignment
        ]

    def commit(self, context, booking, payload):
        return context.assignments.assign_packets(
            context.creation_id, self._plan(context, booking, payload)
        )

    @staticmethod
    def _plan(context, booking, payload) -> list[PotentialAssignment]:
        if payload.get("assignments") is not None:
            return list(payload["assignments"])
        return context.assignments.resolve(booking)


class PracticeQuestionsStep(Step):
    number = 5
    title = "Practice Questions"

    def is_complete(self, booking: Booking) -> bool:
        return booking.practice_selections is not None

    def validate(self, context, booking, payload):
        if not isinstance(payload.get("order_practice_questions"), bool):
            return ["Please tell us whether you want to order practice questions."]
        return []

    def commit(self, context, booking, payload):
        # "No practice material" is three empty sets.
        chosen = payload if payload["order_practice_questions"] else {}
        return context.bookings.set_practice_selections(
            context.creation_id,
            state_series_ids=chosen.get("state_series_ids") or [],
            packet_ids=chosen.get("packet_ids") or [],
            compilation_ids=chosen.get("compilation_ids") or [],
        )


class ConfirmStep(Step):
    number = 6
    title = "Confirm Order"

    def is_complete(self, booking: Booking) -> bool:
        return not booking.is_editable

    def validate(self, context, booking, payload):
        if booking.has_unassigned_demands:
            return ["Please check question availability before submitting your order."]
        return []

    def commit(self, context, booking, payload):
        return context.bookings.submit(
            context.creation_id,
            external_note=payload.get("external_note") or "",
            requests_w9=bool(payload.get("requests_w9")),
        )


STEPS: tuple[Step, ...] = (
    BasicsStep(),
    ConferenceStep(),
    NonConferenceGamesStep(),
    CheckAvailabilityStep(),
    PracticeQuestionsStep(),
    ConfirmStep(),
)


def get_step(number: int) -> Step:
    return STEPS[number - 1]


def highest_completed_step(booking: Booking | None) -> int:
    """Highest of steps 1-5 whose data is persisted, checked from the top down.

    Later answers do not count past Check Availability while the conference or
    a game still needs a packet.
    """
    if booking is None:
        return 0
    for step in reversed(STEPS[:-1]):
        if step.is_complete(booking):
            completed = step.number
            break
    else:
        return 0
    if booking.has_unassigned_demands:
        return min(completed, CHECK_AVAILABILITY_STEP - 1)
    return completed


def _game_errors(school_ids) -> list[str]:
    school_ids = list(school_ids or [])
    first, second = (school_ids + [None, None])[:2]
    if not first or not second:
        return ["Please tell us the schools that will be playing this game."]
    listed = [i for i in school_ids if i is not None]
    if len(set(listed)) != len(listed):
        return ["You have listed the same school twice."]
    if len(listed) > 3:
        return ["A game can have at most three schools."]
    return []
