from decimal import Decimal

from django.db import models
from django.conf import settings


class Car(models.Model):

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='cars'
    )

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    make = models.CharField(max_length=100)
    model = models.CharField(max_length=100)
    year = models.PositiveIntegerField()
    location = models.CharField(max_length=255, blank=True)
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2)

    is_active = models.BooleanField(default=True)
    is_verified = models.BooleanField(default=False)

    # Optional listing window; bookings must fall inside it when set.
    available_from = models.DateTimeField(null=True, blank=True)
    available_to = models.DateTimeField(null=True, blank=True)

    # Derived by reviewapp.aggregator.RatingAggregator only.
    average_rating = models.DecimalField(max_digits=2, decimal_places=1, default=Decimal('0.0'))
    total_ratings = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.make} {self.model} ({self.year})"

    @property
    def is_bookable(self):
        return self.is_active and self.is_verified
