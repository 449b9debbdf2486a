"""
Store endpoints.

GET    /api/stores/          list with rating aggregates (public, filterable)
POST   /api/stores/          create (store_owner)
GET    /api/stores/owner/    the caller's stores
GET    /api/stores/{id}/     detail (public)
PUT    /api/stores/{id}/     update (owner or admin)
PATCH  /api/stores/{id}/     partial update (owner or admin)
DELETE /api/stores/{id}/     delete with its ratings (owner or admin)
"""
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.permissions import CanManageStore, HasPolicyAction, principal_for
from core.policy import Action

from . import services
from .serializers import StoreSerializer


class StoreViewSet(viewsets.ViewSet):
    """Stores - owners manage their own, admins manage all, anyone can browse."""

    permission_classes = [permissions.IsAuthenticatedOrReadOnly, HasPolicyAction, CanManageStore]
    policy_actions = {"POST": Action.CREATE_STORE}
    lookup_value_regex = r"\d+"

    def list(self, request):
        stores = services.list_all_stores(request.query_params)
        return Response(StoreSerializer(stores, many=True).data)

    def create(self, request):
        serializer = StoreSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store = services.create_store(principal_for(request), **serializer.validated_data)
        return Response(StoreSerializer(store).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        store = services.get_store(pk)
        return Response(StoreSerializer(store).data)

    def update(self, request, pk=None, partial=False):
        store = services.get_store(pk)
        self.check_object_permissions(request, store)
        serializer = StoreSerializer(store, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        patch = dict(serializer.validated_data)
        # Read-only keys (owner, id, ...) go to the service, which rejects them.
        for key in request.data:
            field = serializer.fields.get(key)
            if field is None or field.read_only:
                patch[key] = request.data[key]
        store = services.update_store(store.pk, principal_for(request), **patch)
        return Response(StoreSerializer(store).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        store = services.get_store(pk)
        self.check_object_permissions(request, store)
        services.delete_store(store.pk, principal_for(request))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(
        detail=False,
        methods=["get"],
        url_path="owner",
        permission_classes=[permissions.IsAuthenticated],
    )
    def owner(self, request):
        stores = services.get_stores_for_owner(request.user.pk)
        return Response(StoreSerializer(stores, many=True).data)
