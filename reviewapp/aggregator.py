"""
Rating Aggregator

Recomputes a car's derived rating fields from its full review set.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db.models import Count, Sum

from carsapp.models import Car
from .models import Review

logger = logging.getLogger(__name__)

ONE_PLACE = Decimal('0.1')


def average_rating(total, count):
    """Mean of ``count`` ratings summing to ``total``, rounded half-up to one decimal."""
    if not count:
        return Decimal('0.0')
    return (Decimal(total) / Decimal(count)).quantize(ONE_PLACE, rounding=ROUND_HALF_UP)


class RatingAggregator:
    """Owns Car.average_rating and Car.total_ratings."""

    def recompute(self, car_id):
        """
        Recompute the aggregate for ``car_id`` from every stored review.

        Must run inside the caller's transaction: the car row is locked so
        concurrent recomputations for the same car serialize instead of
        overwriting each other.
        """
        car = Car.objects.select_for_update().get(pk=car_id)

        stats = Review.objects.filter(car_id=car_id).aggregate(
            count=Count('id'),
            total=Sum('rating'),
        )
        count = stats['count'] or 0
        total = stats['total'] or 0

        car.total_ratings = count
        car.average_rating = average_rating(total, count)
        car.save(update_fields=['total_ratings', 'average_rating', 'updated_at'])

        logger.info(
            f"Recomputed rating for car {car_id}: {car.average_rating} over {count} reviews"
        )
        return car
