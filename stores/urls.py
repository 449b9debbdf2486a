"""URL configuration for stores app."""
from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import StoreViewSet

router = SimpleRouter()
router.register(r"", StoreViewSet, basename="store")

urlpatterns = [
    path("", include(router.urls)),
]
