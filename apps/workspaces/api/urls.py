from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    WorkspaceViewSet,
    WorkspaceMemberViewSet,
    TeamViewSet,
    TeamMemberViewSet,
    WorkspaceInviteViewSet,
)

router = DefaultRouter(trailing_slash=False)
router.register(r'workspaces', WorkspaceViewSet, basename='workspace')
router.register(r'workspace-members', WorkspaceMemberViewSet, basename='workspace-member')
router.register(r'teams', TeamViewSet, basename='team')
router.register(r'team-members', TeamMemberViewSet, basename='team-member')
router.register(r'workspace-invites', WorkspaceInviteViewSet, basename='workspace-invite')

urlpatterns = [
    path('', include(router.urls)),
]
