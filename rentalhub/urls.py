from django.urls import path, include

urlpatterns = [
    path('api/', include('carsapp.urls')),
    path('api/', include('bookingapp.urls')),
    path('api/', include('reviewapp.urls')),
]
