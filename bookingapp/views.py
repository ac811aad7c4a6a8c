import hmac
import logging

from django.conf import settings
from django.db.models import Q
from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny

from accountapp.actors import Actor
from reviewapp.serializer import ReviewSerializer, ReviewCreateSerializer
from . import states
from .exceptions import (
    BookingError,
    ConflictError,
    DuplicateReviewError,
    ForbiddenError,
    InvalidStateError,
    NotCompletedError,
    NotFoundError,
    PolicyError,
    StorageError,
    ValidationError,
)
from .models import Booking
from .serializer import (
    AvailabilityCheckSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    PaymentWebhookSerializer,
    TransitionSerializer,
)
from .services import BookingManager, DateRange, quote_price
from carsapp.models import Car

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    PolicyError: status.HTTP_400_BAD_REQUEST,
    InvalidStateError: status.HTTP_400_BAD_REQUEST,
    NotCompletedError: status.HTTP_400_BAD_REQUEST,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    DuplicateReviewError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

WEBHOOK_SECRET_HEADER = 'HTTP_X_WEBHOOK_SECRET'


def error_response(exc: BookingError):
    return Response(
        {'error': exc.message},
        status=ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    )


class BookingViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Handles car rental bookings.
    - Renters request bookings, cancel them and review completed ones
    - Car owners and admins move bookings through their lifecycle
    - The payment provider reports payment outcomes through the webhook
    """
    queryset = Booking.objects.all()
    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.OrderingFilter]
    ordering_fields = ['start_date', 'created_at', 'total_price']
    ordering = ['-created_at']
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        """Filter bookings based on user role"""
        user = self.request.user
        queryset = Booking.objects.select_related('payment')
        if user.role == 'ADMIN':
            return queryset
        # Renters see their own bookings, owners also see bookings of their cars
        return queryset.filter(Q(user=user) | Q(car__owner=user))

    def get_manager(self):
        return BookingManager.from_settings()

    def create(self, request, *args, **kwargs):
        """Request a new booking"""
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            car = Car.objects.get(id=data['car'])
        except Car.DoesNotExist:
            return Response(
                {'error': 'Car not found'},
                status=status.HTTP_404_NOT_FOUND
            )

        date_range = DateRange(data['start_date'], data['end_date'])
        if date_range.start >= date_range.end:
            return Response(
                {'error': 'End date must be after start date'},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            booking = self.get_manager().request_booking(
                car.id,
                Actor.from_user(request.user),
                date_range,
                quote_price(car, date_range),
                payment_method=data['payment_method'],
                pickup_location=data['pickup_location'],
                return_location=data['return_location'],
                notes=data['notes'],
            )
        except BookingError as exc:
            return error_response(exc)

        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def my_bookings(self, request):
        """Get all bookings made by the current user"""
        bookings = Booking.objects.filter(user=request.user).order_by('-created_at')

        status_filter = request.query_params.get('status')
        if status_filter:
            bookings = bookings.filter(status=status_filter)

        serializer = self.get_serializer(bookings, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['post'])
    def transition(self, request, pk=None):
        """Apply a lifecycle event (ACCEPT, CONFIRM, DISPATCH, COMPLETE, ...)"""
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booking = self.get_manager().transition(
                int(pk),
                serializer.validated_data['event'],
                Actor.from_user(request.user),
            )
        except BookingError as exc:
            return error_response(exc)

        return Response(BookingSerializer(booking).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel a booking"""
        try:
            booking = self.get_manager().transition(
                int(pk),
                states.CANCEL,
                Actor.from_user(request.user),
            )
        except BookingError as exc:
            return error_response(exc)

        return Response(BookingSerializer(booking).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def review(self, request, pk=None):
        """Review a completed booking"""
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            review = self.get_manager().attach_review(
                int(pk),
                Actor.from_user(request.user),
                serializer.validated_data['rating'],
                serializer.validated_data['comment'],
            )
        except BookingError as exc:
            return error_response(exc)

        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], permission_classes=[AllowAny])
    def payment(self, request, pk=None):
        """Payment provider webhook - reports a payment outcome"""
        actor = self._webhook_actor(request)
        if actor is None:
            return Response(
                {'error': 'You are not authorized to report payments'},
                status=status.HTTP_403_FORBIDDEN
            )

        serializer = PaymentWebhookSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = PaymentWebhookSerializer.OUTCOMES[serializer.validated_data['outcome']]

        try:
            booking = self.get_manager().transition(
                int(pk),
                event,
                actor,
                reference=serializer.validated_data['transaction_id'],
            )
        except BookingError as exc:
            return error_response(exc)

        return Response(BookingSerializer(booking).data, status=status.HTTP_200_OK)

    def _webhook_actor(self, request):
        secret = getattr(settings, 'PAYMENT_WEBHOOK_SECRET', '')
        provided = request.META.get(WEBHOOK_SECRET_HEADER, '')
        if secret and provided and hmac.compare_digest(secret, provided):
            return Actor.system()

        user = request.user
        if user.is_authenticated and user.role == 'ADMIN':
            return Actor.from_user(user)

        logger.warning(f"Rejected payment webhook call for booking {self.kwargs.get('pk')}")
        return None

    @action(detail=False, methods=['get'])
    def check_availability(self, request):
        """Check car availability for specific dates"""
        serializer = AvailabilityCheckSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            car = Car.objects.get(id=data['car_id'])
        except Car.DoesNotExist:
            return Response(
                {'error': 'Car not found'},
                status=status.HTTP_404_NOT_FOUND
            )

        date_range = DateRange(data['start_date'], data['end_date'])
        try:
            available = self.get_manager().is_available(car.id, date_range)
        except BookingError as exc:
            return error_response(exc)

        return Response({
            'car_id': car.id,
            'start_date': data['start_date'],
            'end_date': data['end_date'],
            'available': available,
            'price_per_day': car.price_per_day,
            'quoted_price': quote_price(car, date_range),
        })
