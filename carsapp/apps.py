from django.apps import AppConfig


class CarsappConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'carsapp'
