"""Authentication routes, mounted at /api/auth/."""
from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from . import views

urlpatterns = [
    path("register/", views.RegisterView.as_view(), name="auth-register"),
    path("login/", views.LoginView.as_view(), name="auth-login"),
    path("token/refresh/", TokenRefreshView.as_view(), name="auth-token-refresh"),
    path("logout/", views.LogoutView.as_view(), name="auth-logout"),
    path("update-password/", views.ChangePasswordView.as_view(), name="auth-update-password"),
    path("profile/", views.ProfileView.as_view(), name="auth-profile"),
]
