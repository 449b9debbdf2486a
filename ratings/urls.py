"""URL configuration for ratings app."""
from django.urls import path

from . import views

urlpatterns = [
    path("", views.RatingSubmitView.as_view(), name="rating-submit"),
    path("store/<int:store_id>/", views.StoreRatingsView.as_view(), name="store-ratings"),
    path("user/<int:store_id>/", views.MyStoreRatingView.as_view(), name="my-store-rating"),
    path("<int:pk>/", views.RatingDetailView.as_view(), name="rating-detail"),
]
