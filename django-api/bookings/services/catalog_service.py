"""Catalog service - read access to years, schools, packets and practice material."""

from datetime import date

from bookings.domain import Compilation, Packet, School, StateSeries, Year
from bookings.domain.errors import YearNotFoundError
from bookings.stores.interfaces import CatalogStore

PACKET_FILTERS = ("availableForCompetition", "availableForPractice", "all")


class CatalogService:
    """Service for catalog read operations."""

    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    def list_years(self) -> list[Year]:
        return self._store.list_years()

    def years_by_code(self) -> dict[str, Year]:
        return {year.code: year for year in self._store.list_years()}

    def current_year(self, today: date | None = None) -> Year:
        """Return the year whose date range contains today, else the latest one.

        Raises:
            YearNotFoundError: If no year is configured.
        """
        today = today or date.today()
        years = self._store.list_years()
        if not years:
            raise YearNotFoundError()
        return next((year for year in years if year.contains(today)), years[0])

    def list_schools(self, active_only: bool = False) -> list[School]:
        return self._store.list_schools(active_only=active_only)

    def schools_by_id(self) -> dict[int, School]:
        return {school.id: school for school in self._store.list_schools()}

    def get_school(self, school_id: int) -> School | None:
        return self._store.get_school(school_id)

    def list_packets(self, filter: str = "all", year_code: str | None = None) -> list[Packet]:
        """Return packets matching one of PACKET_FILTERS, optionally for one year."""
        return self._store.list_packets(
            year_code=year_code,
            competition_only=filter == "availableForCompetition",
            practice_only=filter == "availableForPractice",
        )

    def packets_by_id(self) -> dict[int, Packet]:
        return {packet.id: packet for packet in self._store.list_packets()}

    def competition_packets(self, today: date | None = None) -> list[Packet]:
        """Return the current year's competition pool."""
        year = self.current_year(today)
        return self._store.list_packets(year_code=year.code, competition_only=True)

    def list_state_series(self, available_only: bool = False) -> list[StateSeries]:
        return self._store.list_state_series(available_only=available_only)

    def list_compilations(self, available_only: bool = False) -> list[Compilation]:
        return self._store.list_compilations(available_only=available_only)
