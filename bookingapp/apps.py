from django.apps import AppConfig


class BookingappConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'bookingapp'
