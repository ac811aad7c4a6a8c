from rest_framework import viewsets, filters
from rest_framework.permissions import AllowAny
from .models import Review
from .serializer import ReviewSerializer


class ReviewViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Published reviews. Reviews are created through the booking endpoint.
    """
    queryset = Review.objects.all()
    serializer_class = ReviewSerializer
    permission_classes = [AllowAny]
    filter_backends = [filters.OrderingFilter]
    ordering_fields = ['created_at', 'rating']
    ordering = ['-created_at']

    def get_queryset(self):
        """Filter reviews by car"""
        car_id = self.request.query_params.get('car_id')
        if car_id is None:
            return Review.objects.all()
        if not car_id.isdigit():
            return Review.objects.none()
        return Review.objects.filter(car_id=car_id)
