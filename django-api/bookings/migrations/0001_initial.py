"""
Initial migration for bookings app.

Creates the catalog (years, schools, packets, practice material) and the
booking aggregate tables.
"""
import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Year",
            fields=[
                ("code", models.CharField(max_length=16, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                (
                    "maximum_packet_practice_material_price",
                    models.DecimalField(decimal_places=2, max_digits=10),
                ),
            ],
            options={
                "ordering": ["-start_date"],
            },
        ),
        migrations.CreateModel(
            name="School",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("short_name", models.CharField(max_length=100)),
                ("name", models.CharField(max_length=255)),
                ("city", models.CharField(blank=True, max_length=100)),
                ("state", models.CharField(blank=True, max_length=50)),
                ("latitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("longitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("active", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["short_name"],
            },
        ),
        migrations.CreateModel(
            name="Packet",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.PositiveIntegerField()),
                ("name", models.CharField(max_length=100)),
                ("available_for_competition", models.BooleanField(default=True)),
                ("available_for_practice", models.BooleanField(default=False)),
                (
                    "price_as_practice_material",
                    models.DecimalField(decimal_places=2, default=0, max_digits=10),
                ),
                (
                    "year",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="packets",
                        to="bookings.year",
                    ),
                ),
            ],
            options={
                "ordering": ["year__code", "number"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("year", "number"), name="unique_packet_number_per_year"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="StateSeries",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("available", models.BooleanField(default=True)),
            ],
            options={
                "verbose_name_plural": "state series",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Compilation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("available", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("creation_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("unsubmitted", "Unsubmitted"),
                            ("submitted", "Submitted"),
                            ("approved", "Approved"),
                            ("shipped", "Shipped"),
                            ("abandoned", "Abandoned"),
                            ("canceled", "Canceled"),
                            ("rejected", "Rejected"),
                        ],
                        default="unsubmitted",
                        max_length=16,
                    ),
                ),
                ("name", models.CharField(blank=True, max_length=255)),
                ("email_address", models.EmailField(blank=True, max_length=254)),
                (
                    "authority",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("coach", "They are the coach"),
                            ("coachKnows", "The coach knows about the order"),
                            ("coachDoesntKnow", "The coach doesn't know about the order"),
                        ],
                        max_length=32,
                    ),
                ),
                ("external_note", models.TextField(blank=True)),
                ("internal_note", models.TextField(blank=True)),
                ("requests_w9", models.BooleanField(default=False)),
                ("ship_date", models.DateField(blank=True, null=True)),
                ("payment_received_date", models.DateField(blank=True, null=True)),
                ("current_step", models.PositiveSmallIntegerField(default=0)),
                ("practice_recorded", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "school",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="bookings.school",
                    ),
                ),
                (
                    "practice_state_series",
                    models.ManyToManyField(
                        blank=True, related_name="bookings", to="bookings.stateseries"
                    ),
                ),
                (
                    "practice_packets",
                    models.ManyToManyField(
                        blank=True, related_name="practice_bookings", to="bookings.packet"
                    ),
                ),
                (
                    "practice_compilations",
                    models.ManyToManyField(
                        blank=True, related_name="bookings", to="bookings.compilation"
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "-created_at"], name="booking_status_created_idx"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Conference",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("packets_requested", models.PositiveIntegerField()),
                (
                    "booking",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="conference",
                        to="bookings.booking",
                    ),
                ),
                (
                    "schools",
                    models.ManyToManyField(related_name="conferences", to="bookings.school"),
                ),
                (
                    "assigned_packets",
                    models.ManyToManyField(
                        blank=True, related_name="conference_assignments", to="bookings.packet"
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="NonConferenceGame",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="non_conference_games",
                        to="bookings.booking",
                    ),
                ),
                (
                    "first_school",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="bookings.school",
                    ),
                ),
                (
                    "second_school",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="bookings.school",
                    ),
                ),
                (
                    "third_school",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="bookings.school",
                    ),
                ),
                (
                    "assigned_packet",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="game_assignments",
                        to="bookings.packet",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="InvoiceLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(max_length=32)),
                ("item_id", models.IntegerField(blank=True, null=True)),
                ("label", models.CharField(max_length=255)),
                ("quantity", models.IntegerField(default=1)),
                ("unit_cost", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="invoice_lines",
                        to="bookings.booking",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
    ]
