from rest_framework import serializers
from .models import Car


class CarSerializer(serializers.ModelSerializer):

    class Meta:
        model = Car
        fields = '__all__'
        read_only_fields = ['owner', 'is_verified', 'average_rating', 'total_ratings']
