from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from django.db.models import Q
from .models import Car
from .serializer import CarSerializer
from bookingapp.exceptions import NotFoundError
from bookingapp.serializer import DateRangeSerializer
from bookingapp.services import BookingManager


class CarViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Car listings and their booking calendars.
    - Anyone can browse active, verified cars
    - Owners also see their own unverified listings
    """
    queryset = Car.objects.all()
    serializer_class = CarSerializer
    permission_classes = [AllowAny]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['make', 'model', 'title', 'description', 'location']
    ordering_fields = ['created_at', 'price_per_day', 'year', 'average_rating']
    ordering = ['-created_at']
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        """Filter cars based on user role and status"""
        listed = Q(is_active=True, is_verified=True)
        user = self.request.user
        if user.is_authenticated:
            if user.role == 'ADMIN':
                return Car.objects.all()
            return Car.objects.filter(listed | Q(owner=user))
        return Car.objects.filter(listed)

    @action(detail=True, methods=['get'])
    def availability(self, request, pk=None):
        """Get the blocked date intervals of a car for calendar display"""
        car = self.get_object()

        try:
            intervals = BookingManager.from_settings().get_availability(car.id)
        except NotFoundError as exc:
            return Response({'error': exc.message}, status=status.HTTP_404_NOT_FOUND)

        serializer = DateRangeSerializer(
            [{'start': r.start, 'end': r.end} for r in intervals],
            many=True
        )
        return Response(serializer.data)
