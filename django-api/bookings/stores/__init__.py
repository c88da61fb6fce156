from bookings.stores.interfaces import BookingStore, CatalogStore, ExposureStore

__all__ = ["BookingStore", "CatalogStore", "ExposureStore"]
