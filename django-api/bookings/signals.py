"""Django signals for catalog cache invalidation."""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from bookings import cache as catalog_cache
from bookings.models import Compilation, Packet, School, StateSeries, Year


@receiver([post_save, post_delete], sender=Year)
def invalidate_year_cache(sender, instance, **kwargs):
    """Invalidate year lists, the current year and that year's packets."""
    catalog_cache.invalidate("years")
    catalog_cache.invalidate("currentYear")
    catalog_cache.invalidate("packets", year_codes=[instance.code])


@receiver([post_save, post_delete], sender=School)
def invalidate_school_cache(sender, instance, **kwargs):
    catalog_cache.invalidate("schools")


@receiver([post_save, post_delete], sender=Packet)
def invalidate_packet_cache(sender, instance, **kwargs):
    """Invalidate packet lists, both unfiltered and for the packet's year."""
    catalog_cache.invalidate("packets", year_codes=[instance.year_id])


@receiver([post_save, post_delete], sender=StateSeries)
def invalidate_state_series_cache(sender, instance, **kwargs):
    catalog_cache.invalidate("stateSeries")


@receiver([post_save, post_delete], sender=Compilation)
def invalidate_compilation_cache(sender, instance, **kwargs):
    catalog_cache.invalidate("compilations")
