from django.urls import path

from bookings.handlers import (
    BookingDetailView,
    BookingListView,
    BookingStatusView,
    CompilationListView,
    ConferenceView,
    CurrentYearView,
    DoubleBookingListView,
    InvoiceLineView,
    InvoicePreviewView,
    InvoiceView,
    NonConferenceGameDetailView,
    NonConferenceGameListView,
    NonConferenceGamePacketView,
    OrderFlowGoToView,
    OrderFlowStepView,
    OrderFlowView,
    PacketAssignmentsView,
    PacketExposureListView,
    PacketListView,
    PotentialPacketAssignmentsView,
    PracticeSelectionView,
    RecalculateInvoiceView,
    SchoolListView,
    StateSeriesListView,
    SubmitView,
    YearListView,
)

booking = "bookings/<str:creation_id>"

urlpatterns = [
    path("years", YearListView.as_view(), name="year-list"),
    path("years/current", CurrentYearView.as_view(), name="year-current"),
    path("schools", SchoolListView.as_view(), name="school-list"),
    path("packets", PacketListView.as_view(), name="packet-list"),
    path("stateSeries", StateSeriesListView.as_view(), name="state-series-list"),
    path("compilations", CompilationListView.as_view(), name="compilation-list"),
    path("bookings", BookingListView.as_view(), name="booking-list"),
    path(booking, BookingDetailView.as_view(), name="booking-detail"),
    path(f"{booking}/status", BookingStatusView.as_view(), name="booking-status"),
    path(f"{booking}/flow", OrderFlowView.as_view(), name="order-flow"),
    path(f"{booking}/flow/goTo", OrderFlowGoToView.as_view(), name="order-flow-go-to"),
    path(
        f"{booking}/flow/steps/<int:step>",
        OrderFlowStepView.as_view(),
        name="order-flow-step",
    ),
    path(f"{booking}/conference", ConferenceView.as_view(), name="conference"),
    path(
        f"{booking}/nonConferenceGames",
        NonConferenceGameListView.as_view(),
        name="non-conference-game-list",
    ),
    path(
        f"{booking}/nonConferenceGames/<int:game_id>",
        NonConferenceGameDetailView.as_view(),
        name="non-conference-game-detail",
    ),
    path(
        f"{booking}/nonConferenceGames/<int:game_id>/packet",
        NonConferenceGamePacketView.as_view(),
        name="non-conference-game-packet",
    ),
    path(
        f"{booking}/potentialPacketAssignments",
        PotentialPacketAssignmentsView.as_view(),
        name="potential-packet-assignments",
    ),
    path(
        f"{booking}/packetAssignments",
        PacketAssignmentsView.as_view(),
        name="packet-assignments",
    ),
    path(
        f"{booking}/stateSeries",
        PracticeSelectionView.as_view(selection="stateSeries"),
        name="practice-state-series",
    ),
    path(
        f"{booking}/practicePackets",
        PracticeSelectionView.as_view(selection="practicePackets"),
        name="practice-packets",
    ),
    path(
        f"{booking}/practiceCompilations",
        PracticeSelectionView.as_view(selection="practiceCompilations"),
        name="practice-compilations",
    ),
    path(f"{booking}/invoicePreview", InvoicePreviewView.as_view(), name="invoice-preview"),
    path(
        f"{booking}/recalculateInvoice",
        RecalculateInvoiceView.as_view(),
        name="recalculate-invoice",
    ),
    path(f"{booking}/invoice", InvoiceView.as_view(), name="invoice"),
    path(f"{booking}/invoice/<int:line_id>", InvoiceLineView.as_view(), name="invoice-line"),
    path(f"{booking}/submit", SubmitView.as_view(), name="submit"),
    path("packetExposures", PacketExposureListView.as_view(), name="packet-exposure-list"),
    path(
        "packetExposures/doubleBookings",
        DoubleBookingListView.as_view(),
        name="double-booking-list",
    ),
]
