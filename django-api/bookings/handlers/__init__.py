from bookings.handlers.views import (
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

__all__ = [
    "BookingDetailView",
    "BookingListView",
    "BookingStatusView",
    "CompilationListView",
    "ConferenceView",
    "CurrentYearView",
    "DoubleBookingListView",
    "InvoiceLineView",
    "InvoicePreviewView",
    "InvoiceView",
    "NonConferenceGameDetailView",
    "NonConferenceGameListView",
    "NonConferenceGamePacketView",
    "OrderFlowGoToView",
    "OrderFlowStepView",
    "OrderFlowView",
    "PacketAssignmentsView",
    "PacketExposureListView",
    "PacketListView",
    "PotentialPacketAssignmentsView",
    "PracticeSelectionView",
    "RecalculateInvoiceView",
    "SchoolListView",
    "StateSeriesListView",
    "SubmitView",
    "YearListView",
]
