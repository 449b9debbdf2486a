"""
Admin-only endpoints.

GET    /api/admin/stats/        dashboard counters
GET    /api/admin/users/        all users (?role=user|store_owner|admin)
DELETE /api/admin/users/{id}/   delete a user with their stores and ratings
"""
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import HasPolicyAction, principal_for
from core.policy import Action

from . import services
from .serializers import AdminUserSerializer, DashboardStatsSerializer


class DashboardStatsView(APIView):
    permission_classes = [IsAuthenticated, HasPolicyAction]
    policy_actions = {"GET": Action.VIEW_STATS}

    def get(self, request):
        stats = services.get_dashboard_stats()
        return Response(DashboardStatsSerializer(stats).data)


class UserListView(APIView):
    permission_classes = [IsAuthenticated, HasPolicyAction]
    policy_actions = {"GET": Action.LIST_USERS}

    def get(self, request):
        users = services.list_users(principal_for(request), request.query_params.get("role"))
        return Response(AdminUserSerializer(users, many=True).data)


class UserDetailView(APIView):
    permission_classes = [IsAuthenticated, HasPolicyAction]
    policy_actions = {"DELETE": Action.DELETE_USER}

    def delete(self, request, pk):
        services.delete_user(principal_for(request), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
