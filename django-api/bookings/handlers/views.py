"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses (see handlers/errors.py)
- Never contain business logic
- Never expose internal error details

Customer wizard endpoints are anonymous; the unguessable creation id is the
capability. Staff-only endpoints require IsAdminUser, and staff requests may
edit bookings that are no longer editable by customers.
"""

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings import cache as catalog_cache
from bookings.domain import BookingStatus, InvoiceLineType, PotentialAssignment
from bookings.domain.errors import ValidationFailedError
from bookings.handlers import factories
from bookings.handlers.errors import error_body
from bookings.handlers.serializers import (
    STEP_SERIALIZERS,
    BookingSerializer,
    BookingUpsertSerializer,
    ConferenceInputSerializer,
    ExposureSerializer,
    GoToStepSerializer,
    InvoiceLineInputSerializer,
    InvoiceLineSerializer,
    NonConferenceGameInputSerializer,
    PacketRefSerializer,
    PacketSerializer,
    PotentialAssignmentSerializer,
    PracticeItemSerializer,
    SchoolSerializer,
    StatusInputSerializer,
    SubmitInputSerializer,
    WizardStateSerializer,
    YearSerializer,
)


def is_staff(request: Request) -> bool:
    return bool(request.user and request.user.is_staff)


def booking_response(request: Request, booking, response_status=status.HTTP_200_OK) -> Response:
    data = BookingSerializer(booking, context={"is_staff": is_staff(request)}).data
    return Response(data, status=response_status)


def state_data(request: Request, state) -> dict:
    return WizardStateSerializer(state, context={"is_staff": is_staff(request)}).data


def id_list(request: Request) -> list[int]:
    """Parse a body that is a bare JSON list of ids."""
    if not isinstance(request.data, list) or not all(
        isinstance(i, int) and not isinstance(i, bool) for i in request.data
    ):
        raise ValidationFailedError(["Expected a list of ids."])
    return request.data


def query_filter(request: Request, allowed: tuple[str, ...], default: str) -> str:
    value = request.query_params.get("filter", default)
    if value not in allowed:
        raise ValidationFailedError([f"filter must be one of: {', '.join(allowed)}"])
    return value


class StaffOnlyMethodsMixin:
    """Require IsAdminUser for the HTTP methods listed in staff_methods."""

    staff_methods: tuple[str, ...] = ()

    def get_permissions(self):
        if self.request.method in self.staff_methods:
            return [IsAdminUser()]
        return [AllowAny()]


# Catalog


class YearListView(APIView):
    """Handler for GET /api/years"""

    def get(self, request: Request) -> Response:
        data = catalog_cache.get_or_build(
            "years",
            "all",
            lambda: YearSerializer(factories.catalog_service().list_years(), many=True).data,
        )
        return Response(data)


class CurrentYearView(APIView):
    """Handler for GET /api/years/current"""

    def get(self, request: Request) -> Response:
        data = catalog_cache.get_or_build(
            "currentYear",
            "all",
            lambda: YearSerializer(factories.catalog_service().current_year()).data,
        )
        return Response(data)


class SchoolListView(APIView):
    """Handler for GET /api/schools?filter=active|all"""

    def get(self, request: Request) -> Response:
        choice = query_filter(request, catalog_cache.CATALOG_FILTERS["schools"], "all")
        data = catalog_cache.get_or_build(
            "schools",
            choice,
            lambda: SchoolSerializer(
                factories.catalog_service().list_schools(active_only=choice == "active"),
                many=True,
            ).data,
        )
        return Response(data)


class PacketListView(APIView):
    """Handler for GET /api/packets?filter=...&yearCode=..."""

    def get(self, request: Request) -> Response:
        choice = query_filter(request, catalog_cache.CATALOG_FILTERS["packets"], "all")
        year_code = request.query_params.get("yearCode") or None
        data = catalog_cache.get_or_build(
            "packets",
            choice,
            lambda: PacketSerializer(
                factories.catalog_service().list_packets(choice, year_code), many=True
            ).data,
            year_code=year_code,
        )
        return Response(data)


class StateSeriesListView(APIView):
    """Handler for GET /api/stateSeries?filter=available|all"""

    def get(self, request: Request) -> Response:
        choice = query_filter(request, catalog_cache.CATALOG_FILTERS["stateSeries"], "all")
        data = catalog_cache.get_or_build(
            "stateSeries",
            choice,
            lambda: PracticeItemSerializer(
                factories.catalog_service().list_state_series(available_only=choice == "available"),
                many=True,
            ).data,
        )
        return Response(data)


class CompilationListView(APIView):
    """Handler for GET /api/compilations?filter=available|all"""

    def get(self, request: Request) -> Response:
        choice = query_filter(request, catalog_cache.CATALOG_FILTERS["compilations"], "all")
        data = catalog_cache.get_or_build(
            "compilations",
            choice,
            lambda: PracticeItemSerializer(
                factories.catalog_service().list_compilations(available_only=choice == "available"),
                many=True,
            ).data,
        )
        return Response(data)


# Bookings


class BookingListView(APIView):
    """Handler for GET /api/bookings?statusCode=submitted,approved"""

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        raw = request.query_params.get("statusCode", "")
        try:
            statuses = [BookingStatus(code) for code in raw.split(",") if code]
        except ValueError:
            raise ValidationFailedError([f"Unknown status code in: {raw}"]) from None
        bookings = factories.booking_service().list_bookings(statuses or None)
        return Response(BookingSerializer(bookings, many=True, context={"is_staff": True}).data)


class BookingDetailView(StaffOnlyMethodsMixin, APIView):
    """Handler for GET|POST|DELETE /api/bookings/{creation_id}"""

    staff_methods = ("DELETE",)

    def get(self, request: Request, creation_id: str) -> Response:
        return booking_response(request, factories.booking_service().get_booking(creation_id))

    def post(self, request: Request, creation_id: str) -> Response:
        serializer = BookingUpsertSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        service = factories.booking_service()
        authorized = is_staff(request)

        created = service.find_booking(creation_id) is None
        if "school_id" in data:
            booking = service.save_basics(
                creation_id,
                school_id=data["school_id"],
                name=data["name"],
                email_address=data["email_address"],
                authority=data["authority"],
                authorized=authorized,
            )
        else:
            booking = service.get_booking(creation_id)

        details = {k: v for k, v in data.items() if k in BookingUpsertSerializer.DETAIL_FIELDS}
        if details:
            booking = service.update_details(creation_id, details, authorized=authorized)

        return booking_response(
            request, booking, status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    def delete(self, request: Request, creation_id: str) -> Response:
        factories.booking_service().delete_booking(creation_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class BookingStatusView(APIView):
    """Handler for POST /api/bookings/{creation_id}/status"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request, creation_id: str) -> Response:
        serializer = StatusInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = factories.booking_service().change_status(
            creation_id, serializer.validated_data["status"]
        )
        return booking_response(request, booking)


class ConferenceView(APIView):
    """Handler for POST|DELETE /api/bookings/{creation_id}/conference"""

    def post(self, request: Request, creation_id: str) -> Response:
        serializer = ConferenceInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = factories.booking_service().set_conference(
            creation_id, **serializer.validated_data, authorized=is_staff(request)
        )
        return booking_response(request, booking)

    def delete(self, request: Request, creation_id: str) -> Response:
        booking = factories.booking_service().delete_conference(
            creation_id, authorized=is_staff(request)
        )
        return booking_response(request, booking)


class NonConferenceGameListView(APIView):
    """Handler for POST /api/bookings/{creation_id}/nonConferenceGames (batch add)"""

    def post(self, request: Request, creation_id: str) -> Response:
        serializer = NonConferenceGameInputSerializer(data=request.data, many=True)
        serializer.is_valid(raise_exception=True)
        booking = factories.booking_service().add_non_conference_games(
            creation_id,
            [game["school_ids"] for game in serializer.validated_data],
            authorized=is_staff(request),
        )
        return booking_response(request, booking)


class NonConferenceGameDetailView(APIView):
    """Handler for DELETE /api/bookings/{creation_id}/nonConferenceGames/{game_id}"""

    def delete(self, request: Request, creation_id: str, game_id: int) -> Response:
        booking = factories.booking_service().delete_non_conference_game(
            creation_id, game_id, authorized=is_staff(request)
        )
        return booking_response(request, booking)


class NonConferenceGamePacketView(APIView):
    """Handler for POST|DELETE /api/bookings/{creation_id}/nonConferenceGames/{game_id}/packet"""

    permission_classes = [IsAdminUser]

    def post(self, request: Request, creation_id: str, game_id: int) -> Response:
        serializer = PacketRefSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = factories.booking_service().assign_game_packet(
            creation_id, game_id, serializer.validated_data["packet_id"], authorized=True
        )
        return booking_response(request, booking)

    def delete(self, request: Request, creation_id: str, game_id: int) -> Response:
        booking = factories.booking_service().unassign_game_packet(
            creation_id, game_id, authorized=True
        )
        return booking_response(request, booking)


class PracticeSelectionView(APIView):
    """Handler for POST /api/bookings/{creation_id}/{stateSeries|practicePackets|practiceCompilations}

    The body is the complete list of ids; it replaces the current selection.
    """

    selection: str = ""

    def post(self, request: Request, creation_id: str) -> Response:
        ids = id_list(request)
        service = factories.booking_service()
        setter = {
            "stateSeries": service.set_practice_state_series,
            "practicePackets": service.set_practice_packets,
            "practiceCompilations": service.set_practice_compilations,
        }[self.selection]
        booking = setter(creation_id, ids, authorized=is_staff(request))
        return booking_response(request, booking)


# Packet assignment


class PotentialPacketAssignmentsView(APIView):
    """Handler for GET /api/bookings/{creation_id}/potentialPacketAssignments"""

    def get(self, request: Request, creation_id: str) -> Response:
        assignments = factories.assignment_service().potential_assignments(creation_id)
        return Response(PotentialAssignmentSerializer(assignments, many=True).data)


class PacketAssignmentsView(APIView):
    """Handler for POST|DELETE /api/bookings/{creation_id}/packetAssignments"""

    def post(self, request: Request, creation_id: str) -> Response:
        serializer = PotentialAssignmentSerializer(data=request.data, many=True)
        serializer.is_valid(raise_exception=True)
        confirmed = [PotentialAssignment(**item) for item in serializer.validated_data]
        booking = factories.assignment_service().assign_packets(
            creation_id, confirmed, authorized=is_staff(request)
        )
        return booking_response(request, booking)

    def delete(self, request: Request, creation_id: str) -> Response:
        booking = factories.assignment_service().clear_packet_assignments(
            creation_id, authorized=is_staff(request)
        )
        return booking_response(request, booking)


class PacketExposureListView(APIView):
    """Handler for GET /api/packetExposures?yearCode=..."""

    def get(self, request: Request) -> Response:
        year_code = request.query_params.get("yearCode") or None
        exposures = factories.assignment_service().list_exposures(year_code)
        return Response(ExposureSerializer(exposures, many=True).data)


class DoubleBookingListView(APIView):
    """Handler for GET /api/packetExposures/doubleBookings"""

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        year_code = request.query_params.get("yearCode") or None
        exposures = factories.assignment_service().list_double_bookings(year_code)
        return Response(ExposureSerializer(exposures, many=True).data)


# Invoice


class InvoicePreviewView(APIView):
    """Handler for GET /api/bookings/{creation_id}/invoicePreview"""

    def get(self, request: Request, creation_id: str) -> Response:
        lines = factories.booking_service().invoice_preview(creation_id)
        return Response(InvoiceLineSerializer(lines, many=True).data)


class RecalculateInvoiceView(APIView):
    """Handler for POST /api/bookings/{creation_id}/recalculateInvoice

    Replaces every line, including ones added by hand.
    """

    permission_classes = [IsAdminUser]

    def post(self, request: Request, creation_id: str) -> Response:
        booking = factories.booking_service().recalculate_invoice(creation_id, authorized=True)
        return booking_response(request, booking)


class InvoiceView(StaffOnlyMethodsMixin, APIView):
    """Handler for POST|DELETE /api/bookings/{creation_id}/invoice"""

    staff_methods = ("POST",)

    def post(self, request: Request, creation_id: str) -> Response:
        serializer = InvoiceLineInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = factories.booking_service().add_invoice_line(
            creation_id,
            label=data["label"],
            quantity=data["quantity"],
            unit_cost=data["unit_cost"],
            line_type=data.get("type", InvoiceLineType.MANUAL),
            item_id=data.get("item_id"),
            authorized=True,
        )
        return booking_response(request, booking, status.HTTP_201_CREATED)

    def delete(self, request: Request, creation_id: str) -> Response:
        booking = factories.booking_service().delete_invoice(
            creation_id, authorized=is_staff(request)
        )
        return booking_response(request, booking)


class InvoiceLineView(APIView):
    """Handler for PATCH|DELETE /api/bookings/{creation_id}/invoice/{line_id}"""

    permission_classes = [IsAdminUser]

    def patch(self, request: Request, creation_id: str, line_id: int) -> Response:
        serializer = InvoiceLineInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        booking = factories.booking_service().update_invoice_line(
            creation_id, line_id, dict(serializer.validated_data), authorized=True
        )
        return booking_response(request, booking)

    def delete(self, request: Request, creation_id: str, line_id: int) -> Response:
        booking = factories.booking_service().delete_invoice_line(
            creation_id, line_id, authorized=True
        )
        return booking_response(request, booking)


class SubmitView(APIView):
    """Handler for POST /api/bookings/{creation_id}/submit"""

    def post(self, request: Request, creation_id: str) -> Response:
        serializer = SubmitInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = factories.booking_service().submit(creation_id, **serializer.validated_data)
        return booking_response(request, booking)


# Wizard


class OrderFlowView(APIView):
    """Handler for GET /api/bookings/{creation_id}/flow (resume)"""

    def get(self, request: Request, creation_id: str) -> Response:
        state = factories.order_flow_service().resume(creation_id)
        return Response(state_data(request, state))


class OrderFlowGoToView(APIView):
    """Handler for POST /api/bookings/{creation_id}/flow/goTo"""

    def post(self, request: Request, creation_id: str) -> Response:
        serializer = GoToStepSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        state = factories.order_flow_service().go_to_step(
            creation_id, serializer.validated_data["step"]
        )
        return Response(state_data(request, state))


class OrderFlowStepView(APIView):
    """Handler for POST /api/bookings/{creation_id}/flow/steps/{step}

    Step validation messages come back with status 400 alongside the
    unchanged wizard state.
    """

    def post(self, request: Request, creation_id: str, step: int) -> Response:
        serializer_class = STEP_SERIALIZERS.get(step)
        if serializer_class is None:
            raise ValidationFailedError([f"Unknown step: {step}"])
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = factories.order_flow_service().go_to_next_step(
            creation_id, step, serializer.validated_data
        )
        state = state_data(request, result.state) if result.state else None
        if not result.ok:
            body = error_body(ValidationFailedError(list(result.errors)))
            body["state"] = state
            return Response(body, status=status.HTTP_400_BAD_REQUEST)
        return Response(state)
