from django.db import models
from django.conf import settings
from django.db.models import F, Q

from . import states


class BookingQuerySet(models.QuerySet):

    def blocking(self):
        return self.filter(status__in=states.BLOCKING_STATUSES)

    def overlapping(self, start, end):
        # Half-open intervals: [start, end) touching at a boundary do not overlap.
        return self.filter(start_date__lt=end, end_date__gt=start)


class Booking(models.Model):

    car = models.ForeignKey(
        'carsapp.Car',
        on_delete=models.CASCADE,
        related_name='bookings'
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bookings'
    )

    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    pickup_location = models.CharField(max_length=255, blank=True)
    return_location = models.CharField(max_length=255, blank=True)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    notes = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=states.STATUS_CHOICES, default=states.REQUESTED)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['car', 'status', 'start_date', 'end_date'], name='booking_overlap_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(start_date__lt=F('end_date')),
                name='booking_start_before_end',
            ),
        ]

    def __str__(self):
        return f"Booking #{self.pk} for car {self.car_id} ({self.status})"

    @property
    def is_blocking(self):
        return states.is_blocking(self.status)


class Payment(models.Model):

    STATUS_UNPAID = 'UNPAID'
    STATUS_PAID = 'PAID'
    STATUS_REFUNDED = 'REFUNDED'
    STATUS_FAILED = 'FAILED'

    PAYMENT_STATUS = (
        (STATUS_UNPAID, 'Unpaid'),
        (STATUS_PAID, 'Paid'),
        (STATUS_REFUNDED, 'Refunded'),
        (STATUS_FAILED, 'Failed'),
    )

    METHOD_CREDIT_CARD = 'CREDIT_CARD'
    METHOD_DEBIT_CARD = 'DEBIT_CARD'
    METHOD_PAYPAL = 'PAYPAL'
    METHOD_MPESA = 'MPESA'
    METHOD_CASH = 'CASH'

    PAYMENT_METHODS = (
        (METHOD_CREDIT_CARD, 'Credit Card'),
        (METHOD_DEBIT_CARD, 'Debit Card'),
        (METHOD_PAYPAL, 'PayPal'),
        (METHOD_MPESA, 'M-Pesa'),
        (METHOD_CASH, 'Cash'),
    )

    ONLINE_METHODS = frozenset({METHOD_CREDIT_CARD, METHOD_DEBIT_CARD, METHOD_PAYPAL, METHOD_MPESA})

    TYPE_ONLINE = 'ONLINE'
    TYPE_ON_DELIVERY = 'ON_DELIVERY'

    PAYMENT_TYPES = (
        (TYPE_ONLINE, 'Online'),
        (TYPE_ON_DELIVERY, 'On Delivery'),
    )

    booking = models.OneToOneField(
        Booking,
        on_delete=models.CASCADE,
        related_name='payment'
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='payments'
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHODS)
    payment_type = models.CharField(max_length=20, choices=PAYMENT_TYPES)
    status = models.CharField(max_length=20, choices=PAYMENT_STATUS, default=STATUS_UNPAID)
    transaction_id = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Payment for booking {self.booking_id} ({self.status})"

    @classmethod
    def type_for_method(cls, method):
        return cls.TYPE_ONLINE if method in cls.ONLINE_METHODS else cls.TYPE_ON_DELIVERY
