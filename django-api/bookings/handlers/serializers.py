"""Serializers for transforming domain models to API responses and parsing input.

Output serializers read domain dataclasses. Input serializers accept the
camelCase JSON the client sends and produce snake_case validated_data via
``source``.
"""

from rest_framework import serializers

from bookings.domain import Authority, BookingStatus, InvoiceLineType, PotentialAssignment
from bookings.domain.pricing import invoice_total


class EnumValueField(serializers.Field):
    """Render an Enum member as its value; parse a value into the member."""

    def __init__(self, enum, **kwargs):
        self.enum = enum
        super().__init__(**kwargs)

    def to_representation(self, value):
        return value.value

    def to_internal_value(self, data):
        try:
            return self.enum(data)
        except ValueError:
            choices = ", ".join(member.value for member in self.enum)
            raise serializers.ValidationError(f"Must be one of: {choices}.") from None


# Output


class YearSerializer(serializers.Serializer):
    code = serializers.CharField()
    name = serializers.CharField()
    startDate = serializers.DateField(source="start_date")
    endDate = serializers.DateField(source="end_date")
    maximumPacketPracticeMaterialPrice = serializers.DecimalField(
        max_digits=10, decimal_places=2, source="maximum_packet_practice_material_price.amount"
    )


class SchoolSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    shortName = serializers.CharField(source="short_name")
    name = serializers.CharField()
    city = serializers.CharField()
    state = serializers.CharField()
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, allow_null=True)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, allow_null=True)
    active = serializers.BooleanField()


class PacketSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    yearCode = serializers.CharField(source="year_code")
    number = serializers.IntegerField()
    name = serializers.CharField()
    availableForCompetition = serializers.BooleanField(source="available_for_competition")
    availableForPractice = serializers.BooleanField(source="available_for_practice")
    priceAsPracticeMaterial = serializers.DecimalField(
        max_digits=10, decimal_places=2, source="price_as_practice_material.amount"
    )


class PracticeItemSerializer(serializers.Serializer):
    """Serializer for StateSeries and Compilation, which share a shape."""

    id = serializers.IntegerField()
    name = serializers.CharField()
    description = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2, source="price.amount")
    available = serializers.BooleanField()


class ConferenceSerializer(serializers.Serializer):
    name = serializers.CharField()
    packetsRequested = serializers.IntegerField(source="packets_requested.value")
    schoolIds = serializers.ListField(child=serializers.IntegerField(), source="school_ids")
    assignedPackets = PacketSerializer(many=True, source="assigned_packets")


class NonConferenceGameSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    schoolIds = serializers.ListField(child=serializers.IntegerField(), source="school_ids")
    assignedPacket = PacketSerializer(source="assigned_packet", allow_null=True)


class PracticeSelectionsSerializer(serializers.Serializer):
    stateSeries = PracticeItemSerializer(many=True, source="state_series")
    packets = PacketSerializer(many=True)
    compilations = PracticeItemSerializer(many=True)


class InvoiceLineSerializer(serializers.Serializer):
    id = serializers.IntegerField(allow_null=True)
    type = EnumValueField(InvoiceLineType)
    itemId = serializers.IntegerField(source="item_id", allow_null=True)
    label = serializers.CharField()
    quantity = serializers.IntegerField()
    unitCost = serializers.DecimalField(max_digits=10, decimal_places=2, source="unit_cost")
    total = serializers.DecimalField(max_digits=12, decimal_places=2)


class BookingSerializer(serializers.Serializer):
    """Serializer for Booking; internal notes are only shown to staff."""

    id = serializers.IntegerField()
    creationId = serializers.CharField(source="creation_id")
    statusCode = EnumValueField(BookingStatus, source="status")
    school = SchoolSerializer(allow_null=True)
    name = serializers.CharField()
    emailAddress = serializers.CharField(source="email_address")
    authority = EnumValueField(Authority, allow_null=True)
    conference = ConferenceSerializer(allow_null=True)
    nonConferenceGames = NonConferenceGameSerializer(many=True, source="non_conference_games")
    practiceSelections = PracticeSelectionsSerializer(
        source="practice_selections", allow_null=True
    )
    invoiceLines = InvoiceLineSerializer(many=True, source="invoice_lines")
    cost = serializers.SerializerMethodField()
    externalNote = serializers.CharField(source="external_note")
    internalNote = serializers.CharField(source="internal_note")
    requestsW9 = serializers.BooleanField(source="requests_w9")
    shipDate = serializers.DateField(source="ship_date", allow_null=True)
    paymentReceivedDate = serializers.DateField(source="payment_received_date", allow_null=True)
    currentStep = serializers.IntegerField(source="current_step")
    createdAt = serializers.DateTimeField(source="created_at")
    submittedAt = serializers.DateTimeField(source="submitted_at", allow_null=True)

    def get_cost(self, booking):
        return invoice_total(booking.invoice_lines)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not self.context.get("is_staff"):
            data.pop("internalNote")
        return data


class PotentialAssignmentSerializer(serializers.Serializer):
    description = serializers.CharField()
    demandKey = serializers.CharField(source="demand_key")
    packetId = serializers.IntegerField(source="packet_id", allow_null=True)
    isMissingPacketAssignment = serializers.BooleanField(source="is_missing_packet_assignment")


class ExposureSerializer(serializers.Serializer):
    schoolId = serializers.IntegerField(source="school_id")
    packetId = serializers.IntegerField(source="packet_id")
    bookingCreationId = serializers.CharField(source="booking_creation_id")
    ordererSchoolId = serializers.IntegerField(source="orderer_school_id", allow_null=True)
    source = serializers.CharField(source="source.value")
    sourceId = serializers.IntegerField(source="source_id")


class StepStateSerializer(serializers.Serializer):
    number = serializers.IntegerField()
    title = serializers.CharField()
    isComplete = serializers.BooleanField(source="is_complete")
    isNavigable = serializers.BooleanField(source="is_navigable")


class WizardStateSerializer(serializers.Serializer):
    booking = BookingSerializer()
    currentStep = serializers.IntegerField(source="current_step")
    highestCompletedStep = serializers.IntegerField(source="highest_completed_step")
    highestSeenStep = serializers.IntegerField(source="highest_seen_step")
    readOnly = serializers.BooleanField(source="read_only")
    steps = StepStateSerializer(many=True)
    potentialAssignments = PotentialAssignmentSerializer(
        many=True, source="potential_assignments", allow_null=True
    )
    invoicePreview = InvoiceLineSerializer(many=True, source="invoice_preview", allow_null=True)


# Input


class BookingUpsertSerializer(serializers.Serializer):
    """Body of POST /bookings/{creationId}: basics, details, or both."""

    schoolId = serializers.IntegerField(source="school_id", required=False)
    school = serializers.DictField(required=False)
    name = serializers.CharField(required=False, allow_blank=True)
    emailAddress = serializers.EmailField(source="email_address", required=False)
    authority = EnumValueField(Authority, required=False)
    externalNote = serializers.CharField(source="external_note", required=False, allow_blank=True)
    requestsW9 = serializers.BooleanField(source="requests_w9", required=False)
    internalNote = serializers.CharField(source="internal_note", required=False, allow_blank=True)
    shipDate = serializers.DateField(source="ship_date", required=False, allow_null=True)
    paymentReceivedDate = serializers.DateField(
        source="payment_received_date", required=False, allow_null=True
    )

    BASICS_FIELDS = ("school_id", "name", "email_address", "authority")
    DETAIL_FIELDS = (
        "external_note",
        "requests_w9",
        "internal_note",
        "ship_date",
        "payment_received_date",
    )

    def validate(self, attrs):
        school = attrs.pop("school", None)
        if "school_id" not in attrs and school and "id" in school:
            attrs["school_id"] = school["id"]
        given = [field for field in self.BASICS_FIELDS if field in attrs]
        if given and len(given) != len(self.BASICS_FIELDS):
            raise serializers.ValidationError(
                "School, name, email address and authority must be given together."
            )
        return attrs


class ConferenceInputSerializer(serializers.Serializer):
    name = serializers.CharField()
    packetsRequested = serializers.IntegerField(source="packets_requested", min_value=0)
    schoolIds = serializers.ListField(
        child=serializers.IntegerField(), source="school_ids", allow_empty=True
    )


class NonConferenceGameInputSerializer(serializers.Serializer):
    schoolIds = serializers.ListField(
        child=serializers.IntegerField(), source="school_ids", min_length=2, max_length=3
    )


class PacketRefSerializer(serializers.Serializer):
    """Accepts {"packetId": 3} or {"id": 3}."""

    packetId = serializers.IntegerField(source="packet_id", required=False)
    id = serializers.IntegerField(required=False)

    def validate(self, attrs):
        packet_id = attrs.get("packet_id", attrs.get("id"))
        if packet_id is None:
            raise serializers.ValidationError("A packet id is required.")
        return {"packet_id": packet_id}


class InvoiceLineInputSerializer(serializers.Serializer):
    type = EnumValueField(InvoiceLineType, required=False)
    itemId = serializers.IntegerField(source="item_id", required=False, allow_null=True)
    label = serializers.CharField()
    quantity = serializers.IntegerField()
    unitCost = serializers.DecimalField(max_digits=10, decimal_places=2, source="unit_cost")


class StatusInputSerializer(serializers.Serializer):
    status = EnumValueField(BookingStatus)


class SubmitInputSerializer(serializers.Serializer):
    externalNote = serializers.CharField(
        source="external_note", required=False, allow_blank=True, default=""
    )
    requestsW9 = serializers.BooleanField(source="requests_w9", required=False, default=False)


class GoToStepSerializer(serializers.Serializer):
    step = serializers.IntegerField()


# Wizard step payloads. Fields are optional so the step itself reports
# unanswered questions with its own messages.


class BasicsStepSerializer(serializers.Serializer):
    schoolId = serializers.IntegerField(source="school_id", required=False, allow_null=True)
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    emailAddress = serializers.CharField(
        source="email_address", required=False, allow_blank=True, allow_null=True
    )
    isCoach = serializers.BooleanField(source="is_coach", required=False, allow_null=True)
    coachKnows = serializers.BooleanField(source="coach_knows", required=False, allow_null=True)


class ConferenceStepSerializer(serializers.Serializer):
    orderingForConference = serializers.BooleanField(
        source="ordering_for_conference", required=False, allow_null=True
    )
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    otherSchoolIds = serializers.ListField(
        child=serializers.IntegerField(), source="other_school_ids", required=False
    )
    packetsRequested = serializers.IntegerField(
        source="packets_requested", required=False, allow_null=True
    )


class NonConferenceGamesStepSerializer(serializers.Serializer):
    orderNonConferenceGames = serializers.BooleanField(
        source="order_non_conference_games", required=False, allow_null=True
    )
    games = serializers.ListField(
        child=serializers.ListField(child=serializers.IntegerField(allow_null=True)),
        required=False,
    )

    def to_internal_value(self, data):
        # Games may be sent as {"schoolIds": [...]} objects or as bare id lists.
        if isinstance(data, dict) and isinstance(data.get("games"), list):
            data = dict(data)
            data["games"] = [
                game.get("schoolIds", []) if isinstance(game, dict) else game
                for game in data["games"]
            ]
        return super().to_internal_value(data)


class CheckAvailabilityStepSerializer(serializers.Serializer):
    assignments = PotentialAssignmentSerializer(many=True, required=False, allow_null=True)

    def validate(self, attrs):
        if attrs.get("assignments") is not None:
            attrs["assignments"] = [PotentialAssignment(**a) for a in attrs["assignments"]]
        return attrs


class PracticeQuestionsStepSerializer(serializers.Serializer):
    orderPracticeQuestions = serializers.BooleanField(
        source="order_practice_questions", required=False, allow_null=True
    )
    stateSeriesIds = serializers.ListField(
        child=serializers.IntegerField(), source="state_series_ids", required=False
    )
    packetIds = serializers.ListField(
        child=serializers.IntegerField(), source="packet_ids", required=False
    )
    compilationIds = serializers.ListField(
        child=serializers.IntegerField(), source="compilation_ids", required=False
    )


class ConfirmStepSerializer(SubmitInputSerializer):
    pass


STEP_SERIALIZERS = {
    1: BasicsStepSerializer,
    2: ConferenceStepSerializer,
    3: NonConferenceGamesStepSerializer,
    4: CheckAvailabilityStepSerializer,
    5: PracticeQuestionsStepSerializer,
    6: ConfirmStepSerializer,
}
