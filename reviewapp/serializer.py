from rest_framework import serializers
from .models import Review


class ReviewSerializer(serializers.ModelSerializer):

    class Meta:
        model = Review
        fields = '__all__'
        read_only_fields = ['car', 'user', 'booking', 'created_at']


class ReviewCreateSerializer(serializers.Serializer):

    rating = serializers.IntegerField()
    comment = serializers.CharField(required=False, allow_blank=True, default='')
