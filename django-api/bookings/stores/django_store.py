"""Django ORM implementation of the stores."""

from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager
from typing import Any

from django.db import transaction
from django.db.models import Prefetch, Q

from bookings import models as orm
from bookings.domain import (
    Authority,
    Booking,
    BookingStatus,
    Compilation,
    Conference,
    Conflict,
    CreationId,
    Exposure,
    InvoiceLine,
    InvoiceLineType,
    Money,
    NonConferenceGame,
    Packet,
    PacketCount,
    PracticeSelections,
    School,
    StateSeries,
    Year,
)
from bookings.domain.exposures import derive_exposures, find_conflicts
from bookings.stores.interfaces import (
    UPDATABLE_BOOKING_FIELDS,
    BookingStore,
    CatalogStore,
    ExposureStore,
)

RELEASED_STATUSES = [s.value for s in BookingStatus if s.releases_packets]


def to_year(row: orm.Year) -> Year:
    return Year(
        code=row.code,
        name=row.name,
        start_date=row.start_date,
        end_date=row.end_date,
        maximum_packet_practice_material_price=Money(row.maximum_packet_practice_material_price),
    )


def to_school(row: orm.School) -> School:
    return School(
        id=row.pk,
        short_name=row.short_name,
        name=row.name,
        city=row.city,
        state=row.state,
        latitude=row.latitude,
        longitude=row.longitude,
        active=row.active,
    )


def to_packet(row: orm.Packet) -> Packet:
    return Packet(
        id=row.pk,
        year_code=row.year_id,
        number=row.number,
        name=row.name,
        available_for_competition=row.available_for_competition,
        available_for_practice=row.available_for_practice,
        price_as_practice_material=Money(row.price_as_practice_material),
    )


def to_state_series(row: orm.StateSeries) -> StateSeries:
    return StateSeries(
        id=row.pk,
        name=row.name,
        description=row.description,
        price=Money(row.price),
        available=row.available,
    )


def to_compilation(row: orm.Compilation) -> Compilation:
    return Compilation(
        id=row.pk,
        name=row.name,
        description=row.description,
        price=Money(row.price),
        available=row.available,
    )


def to_invoice_line(row: orm.InvoiceLine) -> InvoiceLine:
    return InvoiceLine(
        id=row.pk,
        type=InvoiceLineType(row.type),
        item_id=row.item_id,
        label=row.label,
        quantity=row.quantity,
        unit_cost=row.unit_cost,
    )


def to_booking(row: orm.Booking) -> Booking:
    conference = None
    conference_row = getattr(row, "conference", None)
    if conference_row is not None:
        member_ids = sorted(s.pk for s in conference_row.schools.all())
        if row.school_id is not None:
            member_ids = list(Conference.member_ids(row.school_id, member_ids))
        conference = Conference(
            name=conference_row.name,
            packets_requested=PacketCount(conference_row.packets_requested),
            school_ids=tuple(member_ids),
            assigned_packets=tuple(
                sorted(
                    (to_packet(p) for p in conference_row.assigned_packets.all()),
                    key=lambda p: (p.year_code, p.number),
                )
            ),
        )

    games = tuple(
        NonConferenceGame(
            id=game.pk,
            school_ids=game.school_ids,
            assigned_packet=to_packet(game.assigned_packet) if game.assigned_packet else None,
        )
        for game in row.non_conference_games.all()
    )

    practice = None
    if row.practice_recorded:
        practice = PracticeSelections(
            state_series=tuple(to_state_series(s) for s in row.practice_state_series.all()),
            packets=tuple(to_packet(p) for p in row.practice_packets.all()),
            compilations=tuple(to_compilation(c) for c in row.practice_compilations.all()),
        )

    return Booking(
        id=row.pk,
        creation_id=CreationId(row.creation_id),
        status=BookingStatus(row.status),
        created_at=row.created_at,
        school=to_school(row.school) if row.school else None,
        name=row.name,
        email_address=row.email_address,
        authority=Authority(row.authority) if row.authority else None,
        conference=conference,
        non_conference_games=games,
        practice_selections=practice,
        invoice_lines=tuple(to_invoice_line(line) for line in row.invoice_lines.all()),
        external_note=row.external_note,
        internal_note=row.internal_note,
        requests_w9=row.requests_w9,
        ship_date=row.ship_date,
        payment_received_date=row.payment_received_date,
        current_step=row.current_step,
        submitted_at=row.submitted_at,
    )


def booking_queryset():
    return orm.Booking.objects.select_related("school").prefetch_related(
        "conference__schools",
        Prefetch("conference__assigned_packets", queryset=orm.Packet.objects.all()),
        Prefetch(
            "non_conference_games",
            queryset=orm.NonConferenceGame.objects.select_related("assigned_packet"),
        ),
        "practice_state_series",
        "practice_packets",
        "practice_compilations",
        "invoice_lines",
    )


class DjangoCatalogStore(CatalogStore):
    """Catalog store using Django ORM."""

    def list_years(self) -> list[Year]:
        return [to_year(row) for row in orm.Year.objects.order_by("-start_date")]

    def get_year(self, code: str) -> Year | None:
        row = orm.Year.objects.filter(code=code).first()
        return to_year(row) if row else None

    def list_schools(self, active_only: bool = False) -> list[School]:
        qs = orm.School.objects.order_by("short_name", "id")
        if active_only:
            qs = qs.filter(active=True)
        return [to_school(row) for row in qs]

    def get_school(self, school_id: int) -> School | None:
        row = orm.School.objects.filter(pk=school_id).first()
        return to_school(row) if row else None

    def list_packets(
        self,
        year_code: str | None = None,
        competition_only: bool = False,
        practice_only: bool = False,
    ) -> list[Packet]:
        qs = orm.Packet.objects.order_by("year_id", "number")
        if year_code:
            qs = qs.filter(year_id=year_code)
        if competition_only:
            qs = qs.filter(available_for_competition=True)
        if practice_only:
            qs = qs.filter(available_for_practice=True)
        return [to_packet(row) for row in qs]

    def list_state_series(self, available_only: bool = False) -> list[StateSeries]:
        qs = orm.StateSeries.objects.order_by("name", "id")
        if available_only:
            qs = qs.filter(available=True)
        return [to_state_series(row) for row in qs]

    def list_compilations(self, available_only: bool = False) -> list[Compilation]:
        qs = orm.Compilation.objects.order_by("name", "id")
        if available_only:
            qs = qs.filter(available=True)
        return [to_compilation(row) for row in qs]


class DjangoBookingStore(BookingStore):
    """Booking store using Django ORM."""

    def atomic(self) -> AbstractContextManager:
        return transaction.atomic()

    def get_booking(self, creation_id: CreationId, for_update: bool = False) -> Booking | None:
        if for_update:
            # Lock the row only; prefetches below read the related tables normally.
            orm.Booking.objects.select_for_update().filter(
                creation_id=creation_id.value
            ).first()
        row = booking_queryset().filter(creation_id=creation_id.value).first()
        return to_booking(row) if row else None

    def list_bookings(self, statuses: Sequence[BookingStatus] | None = None) -> list[Booking]:
        qs = booking_queryset().order_by("-created_at")
        if statuses:
            qs = qs.filter(status__in=[s.value for s in statuses])
        return [to_booking(row) for row in qs]

    def save_basics(
        self,
        creation_id: CreationId,
        school_id: int,
        name: str,
        email_address: str,
        authority: Authority,
    ) -> Booking:
        orm.Booking.objects.update_or_create(
            creation_id=creation_id.value,
            defaults={
                "school_id": school_id,
                "name": name,
                "email_address": email_address,
                "authority": authority.value,
            },
        )
        return self._reload(creation_id)

    def update_booking(self, creation_id: CreationId, changes: dict[str, Any]) -> Booking:
        unknown = set(changes) - UPDATABLE_BOOKING_FIELDS
        if unknown:
            raise ValueError(f"Cannot update booking fields: {sorted(unknown)}")
        values = dict(changes)
        if isinstance(values.get("status"), BookingStatus):
            values["status"] = values["status"].value
        row = self._row(creation_id)
        for key, value in values.items():
            setattr(row, key, value)
        row.save(update_fields=[*values, "updated_at"])
        return self._reload(creation_id)

    def delete_booking(self, creation_id: CreationId) -> None:
        orm.Booking.objects.filter(creation_id=creation_id.value).delete()

    def replace_conference(
        self,
        creation_id: CreationId,
        name: str,
        packets_requested: int,
        school_ids: Sequence[int],
    ) -> Booking:
        row = self._row(creation_id)
        with transaction.atomic():
            orm.Conference.objects.filter(booking=row).delete()
            conference = orm.Conference.objects.create(
                booking=row, name=name, packets_requested=packets_requested
            )
            conference.schools.set(school_ids)
        return self._reload(creation_id)

    def delete_conference(self, creation_id: CreationId) -> Booking:
        orm.Conference.objects.filter(booking__creation_id=creation_id.value).delete()
        return self._reload(creation_id)

    def add_non_conference_game(
        self, creation_id: CreationId, school_ids: Sequence[int]
    ) -> NonConferenceGame:
        row = self._row(creation_id)
        padded = list(school_ids) + [None] * (3 - len(school_ids))
        game = orm.NonConferenceGame.objects.create(
            booking=row,
            first_school_id=padded[0],
            second_school_id=padded[1],
            third_school_id=padded[2],
        )
        return NonConferenceGame(id=game.pk, school_ids=game.school_ids)

    def delete_non_conference_game(self, creation_id: CreationId, game_id: int) -> Booking:
        orm.NonConferenceGame.objects.filter(
            booking__creation_id=creation_id.value, pk=game_id
        ).delete()
        return self._reload(creation_id)

    def set_game_packet(
        self, creation_id: CreationId, game_id: int, packet_id: int | None
    ) -> Booking:
        orm.NonConferenceGame.objects.filter(
            booking__creation_id=creation_id.value, pk=game_id
        ).update(assigned_packet_id=packet_id)
        return self._reload(creation_id)

    def add_conference_packets(
        self, creation_id: CreationId, packet_ids: Iterable[int]
    ) -> Booking:
        conference = orm.Conference.objects.get(booking__creation_id=creation_id.value)
        conference.assigned_packets.add(*packet_ids)
        return self._reload(creation_id)

    def clear_packet_assignments(self, creation_id: CreationId) -> Booking:
        with transaction.atomic():
            conference = orm.Conference.objects.filter(
                booking__creation_id=creation_id.value
            ).first()
            if conference is not None:
                conference.assigned_packets.clear()
            orm.NonConferenceGame.objects.filter(
                booking__creation_id=creation_id.value
            ).update(assigned_packet=None)
        return self._reload(creation_id)

    def replace_practice_selections(
        self,
        creation_id: CreationId,
        state_series_ids: Iterable[int] | None = None,
        packet_ids: Iterable[int] | None = None,
        compilation_ids: Iterable[int] | None = None,
    ) -> Booking:
        row = self._row(creation_id)
        with transaction.atomic():
            if state_series_ids is not None:
                row.practice_state_series.set(list(state_series_ids))
            if packet_ids is not None:
                row.practice_packets.set(list(packet_ids))
            if compilation_ids is not None:
                row.practice_compilations.set(list(compilation_ids))
            row.practice_recorded = True
            row.save(update_fields=["practice_recorded", "updated_at"])
        return self._reload(creation_id)

    def replace_invoice_lines(
        self, creation_id: CreationId, lines: Sequence[InvoiceLine]
    ) -> Booking:
        row = self._row(creation_id)
        with transaction.atomic():
            orm.InvoiceLine.objects.filter(booking=row).delete()
            orm.InvoiceLine.objects.bulk_create(
                [self._invoice_line_row(row, line) for line in lines]
            )
        return self._reload(creation_id)

    def add_invoice_line(self, creation_id: CreationId, line: InvoiceLine) -> Booking:
        row = self._row(creation_id)
        self._invoice_line_row(row, line).save()
        return self._reload(creation_id)

    def update_invoice_line(
        self, creation_id: CreationId, line_id: int, changes: dict[str, Any]
    ) -> Booking:
        values = dict(changes)
        if isinstance(values.get("type"), InvoiceLineType):
            values["type"] = values["type"].value
        orm.InvoiceLine.objects.filter(
            booking__creation_id=creation_id.value, pk=line_id
        ).update(**values)
        return self._reload(creation_id)

    def delete_invoice_line(self, creation_id: CreationId, line_id: int) -> Booking:
        orm.InvoiceLine.objects.filter(
            booking__creation_id=creation_id.value, pk=line_id
        ).delete()
        return self._reload(creation_id)

    def _row(self, creation_id: CreationId) -> orm.Booking:
        return orm.Booking.objects.get(creation_id=creation_id.value)

    def _reload(self, creation_id: CreationId) -> Booking:
        return to_booking(booking_queryset().get(creation_id=creation_id.value))

    @staticmethod
    def _invoice_line_row(booking_row: orm.Booking, line: InvoiceLine) -> orm.InvoiceLine:
        return orm.InvoiceLine(
            booking=booking_row,
            type=line.type.value,
            item_id=line.item_id,
            label=line.label,
            quantity=line.quantity,
            unit_cost=line.unit_cost,
        )


class DjangoExposureStore(ExposureStore):
    """Exposures materialized from conference and game assignments."""

    def list_exposures(
        self,
        year_code: str | None = None,
        exclude_booking: CreationId | None = None,
    ) -> list[Exposure]:
        packets = orm.Packet.objects.all()
        if year_code:
            packets = packets.filter(year_id=year_code)
        return self._exposures_on(packets, exclude_booking)

    def conflicts_for(
        self, candidates: Sequence[Exposure], exclude_booking: CreationId
    ) -> list[Conflict]:
        packet_ids = {c.packet_id for c in candidates}
        if not packet_ids:
            return []
        existing = self._exposures_on(
            orm.Packet.objects.filter(pk__in=packet_ids), exclude_booking
        )
        return find_conflicts(candidates, existing)

    def lock_packets(self, packet_ids: Iterable[int]) -> None:
        list(orm.Packet.objects.select_for_update().filter(pk__in=list(packet_ids)))

    @staticmethod
    def _exposures_on(packets, exclude_booking: CreationId | None) -> list[Exposure]:
        """Exposures on the given packets, loading only bookings that hold one of them."""
        holders = (
            booking_queryset()
            .exclude(status__in=RELEASED_STATUSES)
            .filter(
                Q(conference__assigned_packets__in=packets)
                | Q(non_conference_games__assigned_packet__in=packets)
            )
            .distinct()
        )
        if exclude_booking is not None:
            holders = holders.exclude(creation_id=exclude_booking.value)

        packet_ids = set(packets.values_list("pk", flat=True))
        return [
            exposure
            for row in holders
            for exposure in derive_exposures(to_booking(row))
            if exposure.packet_id in packet_ids
        ]
