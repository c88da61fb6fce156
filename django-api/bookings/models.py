"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import uuid

from django.db import models


class Year(models.Model):
    """Persistence model for competitive seasons."""

    code = models.CharField(primary_key=True, max_length=16)
    name = models.CharField(max_length=100)
    start_date = models.DateField()
    end_date = models.DateField()
    maximum_packet_practice_material_price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        ordering = ["-start_date"]

    def __str__(self) -> str:
        return self.name


class School(models.Model):
    """Persistence model for registered schools."""

    short_name = models.CharField(max_length=100)
    name = models.CharField(max_length=255)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=50, blank=True)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    active = models.BooleanField(default=True)

    class Meta:
        ordering = ["short_name"]

    def __str__(self) -> str:
        return self.short_name


class Packet(models.Model):
    """Persistence model for question packets."""

    year = models.ForeignKey(Year, on_delete=models.PROTECT, related_name="packets")
    number = models.PositiveIntegerField()
    name = models.CharField(max_length=100)
    available_for_competition = models.BooleanField(default=True)
    available_for_practice = models.BooleanField(default=False)
    price_as_practice_material = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    class Meta:
        ordering = ["year__code", "number"]
        constraints = [
            models.UniqueConstraint(fields=["year", "number"], name="unique_packet_number_per_year"),
        ]

    def __str__(self) -> str:
        return f"{self.year_id} #{self.number}"


class StateSeries(models.Model):
    """Persistence model for state series practice sets."""

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    available = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "state series"

    def __str__(self) -> str:
        return self.name


class Compilation(models.Model):
    """Persistence model for practice compilations."""

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    available = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Booking(models.Model):
    """Persistence model for orders."""

    class Status(models.TextChoices):
        UNSUBMITTED = "unsubmitted", "Unsubmitted"
        SUBMITTED = "submitted", "Submitted"
        APPROVED = "approved", "Approved"
        SHIPPED = "shipped", "Shipped"
        ABANDONED = "abandoned", "Abandoned"
        CANCELED = "canceled", "Canceled"
        REJECTED = "rejected", "Rejected"

    class Authority(models.TextChoices):
        COACH = "coach", "They are the coach"
        COACH_KNOWS = "coachKnows", "The coach knows about the order"
        COACH_DOESNT_KNOW = "coachDoesntKnow", "The coach doesn't know about the order"

    creation_id = models.UUIDField(unique=True, default=uuid.uuid4, editable=False)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.UNSUBMITTED)
    school = models.ForeignKey(
        School, on_delete=models.PROTECT, related_name="bookings", null=True, blank=True
    )
    name = models.CharField(max_length=255, blank=True)
    email_address = models.EmailField(blank=True)
    authority = models.CharField(max_length=32, choices=Authority.choices, blank=True)
    external_note = models.TextField(blank=True)
    internal_note = models.TextField(blank=True)
    requests_w9 = models.BooleanField(default=False)
    ship_date = models.DateField(null=True, blank=True)
    payment_received_date = models.DateField(null=True, blank=True)
    current_step = models.PositiveSmallIntegerField(default=0)
    practice_recorded = models.BooleanField(default=False)
    practice_state_series = models.ManyToManyField(
        StateSeries, blank=True, related_name="bookings"
    )
    practice_packets = models.ManyToManyField(
        Packet, blank=True, related_name="practice_bookings"
    )
    practice_compilations = models.ManyToManyField(
        Compilation, blank=True, related_name="bookings"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    submitted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "-created_at"], name="booking_status_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.creation_id}"


class Conference(models.Model):
    """Persistence model for a booking's conference."""

    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, related_name="conference")
    name = models.CharField(max_length=255)
    packets_requested = models.PositiveIntegerField()
    schools = models.ManyToManyField(School, related_name="conferences")
    assigned_packets = models.ManyToManyField(
        Packet, blank=True, related_name="conference_assignments"
    )

    def __str__(self) -> str:
        return self.name


class NonConferenceGame(models.Model):
    """Persistence model for games outside a conference."""

    booking = models.ForeignKey(
        Booking, on_delete=models.CASCADE, related_name="non_conference_games"
    )
    first_school = models.ForeignKey(School, on_delete=models.PROTECT, related_name="+")
    second_school = models.ForeignKey(School, on_delete=models.PROTECT, related_name="+")
    third_school = models.ForeignKey(
        School, on_delete=models.PROTECT, related_name="+", null=True, blank=True
    )
    assigned_packet = models.ForeignKey(
        Packet,
        on_delete=models.PROTECT,
        related_name="game_assignments",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ["id"]

    @property
    def school_ids(self) -> tuple[int, ...]:
        ids = (self.first_school_id, self.second_school_id, self.third_school_id)
        return tuple(i for i in ids if i is not None)

    def __str__(self) -> str:
        return f"Game {self.pk} ({self.booking_id})"


class InvoiceLine(models.Model):
    """Persistence model for invoice line items."""

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="invoice_lines")
    type = models.CharField(max_length=32)
    item_id = models.IntegerField(null=True, blank=True)
    label = models.CharField(max_length=255)
    quantity = models.IntegerField(default=1)
    unit_cost = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return self.label
