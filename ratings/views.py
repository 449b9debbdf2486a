"""
Rating endpoints.

POST   /api/ratings/                    create or update the caller's rating
GET    /api/ratings/store/{store_id}/   a store's ratings, newest first (public)
GET    /api/ratings/user/{store_id}/    the caller's rating for a store
DELETE /api/ratings/{id}/               author or admin
"""
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.exceptions import NotFoundError
from core.permissions import CanDeleteRating, principal_for
from stores.services import get_store

from . import services
from .serializers import RatingSerializer, RatingSubmitSerializer
from .throttling import RatingSubmitThrottle


class RatingSubmitView(APIView):
    """201 when the rating was created, 200 when the existing one was updated."""

    permission_classes = [IsAuthenticated]
    throttle_classes = [RatingSubmitThrottle]

    def post(self, request):
        serializer = RatingSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        rating, created = services.submit_rating(
            principal_for(request),
            data["store_id"],
            data["rating"],
            data.get("comment", ""),
        )
        return Response(
            RatingSerializer(rating).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class StoreRatingsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, store_id):
        store = get_store(store_id)
        ratings = services.get_ratings_for_store(store.pk)
        return Response(RatingSerializer(ratings, many=True).data)


class MyStoreRatingView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, store_id):
        rating = services.get_user_rating_for_store(request.user.pk, store_id)
        if rating is None:
            raise NotFoundError("You have not rated this store yet.")
        return Response(RatingSerializer(rating).data)


class RatingDetailView(APIView):
    permission_classes = [IsAuthenticated, CanDeleteRating]

    def delete(self, request, pk):
        rating = services.get_rating(pk)
        self.check_object_permissions(request, rating)
        services.remove_rating(principal_for(request), rating.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
