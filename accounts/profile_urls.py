"""Profile routes, mounted at /api/."""
from django.urls import path

from . import views

urlpatterns = [
    path("profile/", views.ProfileView.as_view(), name="profile"),
]
