"""
URL configuration for Retreat Pricing project.
"""

from django.contrib import admin
from django.urls import path

admin.site.site_header = "Retreat Pricing Admin"
admin.site.site_title = "Admin Portal"
admin.site.index_title = "Accommodations, discount codes and bookings"

urlpatterns = [
    path('admin/', admin.site.urls),
]
