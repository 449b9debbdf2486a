"""
URL configuration for the store ratings API.
"""
from django.contrib import admin
from django.urls import path, include

from .health import health_view

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", health_view, name="health"),
    path("api/auth/", include("accounts.urls")),
    path("api/", include("accounts.profile_urls")),
    path("api/stores/", include("stores.urls")),
    path("api/ratings/", include("ratings.urls")),
    path("api/admin/", include("dashboard.urls")),
]
