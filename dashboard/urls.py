"""URL configuration for the admin dashboard, mounted at /api/admin/."""
from django.urls import path

from . import views

urlpatterns = [
    path("stats/", views.DashboardStatsView.as_view(), name="admin-stats"),
    path("users/", views.UserListView.as_view(), name="admin-users"),
    path("users/<int:pk>/", views.UserDetailView.as_view(), name="admin-user-detail"),
]
