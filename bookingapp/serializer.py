from rest_framework import serializers
from .models import Booking, Payment
from . import states


class PaymentSerializer(serializers.ModelSerializer):

    class Meta:
        model = Payment
        fields = [
            'id',
            'amount',
            'currency',
            'payment_method',
            'payment_type',
            'status',
            'transaction_id',
            'created_at',
        ]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):

    payment = PaymentSerializer(read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'car',
            'user',
            'start_date',
            'end_date',
            'pickup_location',
            'return_location',
            'total_price',
            'notes',
            'status',
            'payment',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):

    car = serializers.IntegerField()
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()
    payment_method = serializers.ChoiceField(choices=Payment.PAYMENT_METHODS, default=Payment.METHOD_CASH)
    pickup_location = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    return_location = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class TransitionSerializer(serializers.Serializer):

    event = serializers.ChoiceField(choices=states.EVENTS)


class PaymentWebhookSerializer(serializers.Serializer):

    OUTCOMES = {
        'succeeded': states.PAYMENT_SUCCEEDED,
        'failed': states.PAYMENT_FAILED_EVENT,
    }

    outcome = serializers.ChoiceField(choices=list(OUTCOMES))
    transaction_id = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class AvailabilityCheckSerializer(serializers.Serializer):

    car_id = serializers.IntegerField()
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()


class DateRangeSerializer(serializers.Serializer):

    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
