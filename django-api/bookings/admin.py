from django.contrib import admin

from bookings.models import (
    Booking,
    Compilation,
    Conference,
    InvoiceLine,
    NonConferenceGame,
    Packet,
    School,
    StateSeries,
    Year,
)


class PacketInline(admin.TabularInline):
    model = Packet
    extra = 1


class ConferenceInline(admin.StackedInline):
    model = Conference
    extra = 0
    filter_horizontal = ["schools", "assigned_packets"]


class NonConferenceGameInline(admin.TabularInline):
    model = NonConferenceGame
    extra = 0


class InvoiceLineInline(admin.TabularInline):
    model = InvoiceLine
    extra = 0


@admin.register(Year)
class YearAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "start_date", "end_date"]
    inlines = [PacketInline]


@admin.register(School)
class SchoolAdmin(admin.ModelAdmin):
    list_display = ["short_name", "name", "city", "state", "active"]
    list_filter = ["active", "state"]
    search_fields = ["short_name", "name", "city"]


@admin.register(Packet)
class PacketAdmin(admin.ModelAdmin):
    list_display = ["year", "number", "name", "available_for_competition", "available_for_practice"]
    list_filter = ["year", "available_for_competition", "available_for_practice"]


@admin.register(StateSeries)
class StateSeriesAdmin(admin.ModelAdmin):
    list_display = ["name", "price", "available"]


@admin.register(Compilation)
class CompilationAdmin(admin.ModelAdmin):
    list_display = ["name", "price", "available"]


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ["creation_id", "school", "name", "status", "created_at", "submitted_at"]
    list_filter = ["status"]
    search_fields = ["name", "email_address", "school__short_name"]
    readonly_fields = ["creation_id", "created_at", "updated_at"]
    filter_horizontal = ["practice_state_series", "practice_packets", "practice_compilations"]
    inlines = [ConferenceInline, NonConferenceGameInline, InvoiceLineInline]
