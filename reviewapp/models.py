from django.db import models
from django.conf import settings
from django.db.models import Q


class Review(models.Model):

    car = models.ForeignKey(
        'carsapp.Car',
        on_delete=models.CASCADE,
        related_name='reviews'
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews'
    )

    # One review per booking
    booking = models.OneToOneField(
        'bookingapp.Booking',
        on_delete=models.CASCADE,
        related_name='review'
    )

    rating = models.PositiveSmallIntegerField()
    comment = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['car', 'rating'], name='review_car_rating_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(rating__gte=1, rating__lte=5),
                name='review_rating_range',
            ),
        ]

    def __str__(self):
        return f"{self.rating}/5 for car {self.car_id} (booking {self.booking_id})"
