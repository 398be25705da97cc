import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import exceptions
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from apps.accounts.models import User
from apps.core import responses
from apps.core.exceptions import ConflictError
from apps.core.permissions import CsrfProtected
from apps.core.viewsets import EnvelopeModelViewSet
from apps.workspaces.models import (
    Workspace,
    WorkspaceMember,
    Team,
    TeamMember,
    WorkspaceInvite,
)
from apps.workspaces.tokens import calculate_expiration_date
from .serializers import (
    WorkspaceSerializer,
    WorkspaceMemberSerializer,
    TeamSerializer,
    TeamMemberSerializer,
    WorkspaceInviteSerializer,
    InviteCreateSerializer,
    InviteAcceptSerializer,
)

logger = logging.getLogger(__name__)


def visible_workspaces(user):
    """Workspaces the user owns or belongs to."""
    return Workspace.objects.filter(Q(owner=user) | Q(members__user=user)).distinct()


def visible_teams(user):
    return Team.objects.filter(
        Q(workspace__in=visible_workspaces(user)) | Q(members__user=user)
    ).distinct()


class WorkspaceScopedViewSet(EnvelopeModelViewSet):
    """Base for workspace endpoints: authenticated Clerk users only."""
    permission_classes = [CsrfProtected, IsAuthenticated]


class WorkspaceViewSet(WorkspaceScopedViewSet):
    """
    API endpoint for workspaces.
    Only the owner may rename or delete a workspace.
    """
    resource_name = 'Workspace'
    serializer_class = WorkspaceSerializer

    def get_queryset(self):
        return visible_workspaces(self.request.user).select_related('owner')

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)

    def _ensure_owner(self, workspace, verb):
        if not workspace.is_owner(self.request.user):
            raise exceptions.PermissionDenied(f'Only workspace owners can {verb} the workspace')

    def perform_update(self, serializer):
        self._ensure_owner(serializer.instance, 'update')
        serializer.save()

    def perform_destroy(self, instance):
        self._ensure_owner(instance, 'delete')
        instance.delete()


class WorkspaceMemberViewSet(WorkspaceScopedViewSet):
    """
    API endpoint for workspace members.
    Owners and admins manage membership.
    """
    resource_name = 'Workspace member'
    serializer_class = WorkspaceMemberSerializer
    filterset_fields = ['workspace', 'user', 'role']

    def get_queryset(self):
        return WorkspaceMember.objects.filter(
            workspace__in=visible_workspaces(self.request.user)
        ).select_related('user', 'workspace')

    def _ensure_admin(self, workspace):
        if not workspace.is_admin(self.request.user):
            raise exceptions.PermissionDenied('Only workspace owners and admins can manage members')

    def perform_create(self, serializer):
        self._ensure_admin(serializer.validated_data['workspace'])
        serializer.save()

    def perform_update(self, serializer):
        self._ensure_admin(serializer.instance.workspace)
        serializer.save()

    def perform_destroy(self, instance):
        self._ensure_admin(instance.workspace)
        instance.delete()


class TeamViewSet(WorkspaceScopedViewSet):
    resource_name = 'Team'
    serializer_class = TeamSerializer
    filterset_fields = ['workspace']

    def get_queryset(self):
        return visible_teams(self.request.user)

    def perform_create(self, serializer):
        with transaction.atomic():
            team = serializer.save()
            TeamMember.objects.create(team=team, user=self.request.user, role=TeamMember.Role.OWNER)


class TeamMemberViewSet(WorkspaceScopedViewSet):
    resource_name = 'Team member'
    serializer_class = TeamMemberSerializer
    filterset_fields = ['team', 'user', 'role']

    def get_queryset(self):
        return TeamMember.objects.filter(
            team__in=visible_teams(self.request.user)
        ).select_related('user', 'team')


class WorkspaceInviteViewSet(WorkspaceScopedViewSet):
    """
    API endpoint for workspace invitations.

    create: Owner invites an email address
    validate: Check a token before signing in
    accept: Join the workspace the token points to
    by_workspace: Invitations of one workspace (owners and admins)
    """
    resource_name = 'Invitation'
    serializer_class = WorkspaceInviteSerializer
    http_method_names = ['get', 'post', 'delete', 'head', 'options']

    def get_queryset(self):
        return WorkspaceInvite.objects.filter(
            workspace__owner=self.request.user
        ).select_related('workspace')

    def get_permissions(self):
        if self.action == 'validate':
            return [CsrfProtected()]
        return super().get_permissions()

    def create(self, request, *args, **kwargs):
        payload = InviteCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        workspace = data['workspace']
        user = request.user

        if not workspace.is_owner(user):
            raise exceptions.PermissionDenied('Only workspace owners can send invitations')

        if data['email'] == user.email.lower():
            return responses.bad_request('You cannot invite yourself to the workspace')

        invited = User.objects.filter(email__iexact=data['email']).first()
        if invited is not None and workspace.has_member(invited):
            raise ConflictError('This user is already a member of the workspace')

        invitation = WorkspaceInvite.objects.create(
            workspace=workspace,
            email=data['email'],
            role=data['role'],
            expires_at=calculate_expiration_date(data['expires_in_hours']),
        )
        logger.info('Invitation %s created for %s', invitation.pk, invitation.email)

        invitation_url = f'{settings.FRONTEND_URL}/workspace/invite?token={invitation.token}'
        return responses.created(
            {
                'invitation': WorkspaceInviteSerializer(invitation).data,
                'invitationUrl': invitation_url,
            },
            'Workspace invitation created successfully'
        )

    @action(detail=False, methods=['get'], url_path=r'validate/(?P<token>[0-9a-fA-F]+)')
    def validate(self, request, token=None):
        result = WorkspaceInvite.objects.validate_token(token)
        if not result['valid']:
            return responses.bad_request(result['message'])

        invitation = result['invitation']
        return responses.success(
            {
                'valid': True,
                'workspace': {'id': invitation.workspace.id, 'name': invitation.workspace.name},
                'role': invitation.role,
                'email': invitation.email,
            },
            result['message']
        )

    @action(detail=False, methods=['post'])
    def accept(self, request):
        payload = InviteAcceptSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        user = request.user

        result = WorkspaceInvite.objects.validate_token(payload.validated_data['token'])
        if not result['valid']:
            return responses.bad_request(result['message'])

        invitation = result['invitation']
        if user.email.lower() != invitation.email.lower():
            raise exceptions.PermissionDenied('This invitation was sent to a different email address')

        workspace = invitation.workspace
        if workspace.has_member(user):
            raise ConflictError('You are already a member of this workspace')

        with transaction.atomic():
            membership = WorkspaceMember.objects.create(
                workspace=workspace, user=user, role=invitation.role
            )
            invitation.mark_used()
        logger.info('User %s joined workspace %s', user.pk, workspace.pk)

        return responses.success(
            {
                'membership': WorkspaceMemberSerializer(membership).data,
                'workspace': {'id': workspace.id, 'name': workspace.name},
            },
            'Successfully joined workspace'
        )

    @action(detail=False, methods=['get'], url_path=r'workspace/(?P<workspace_id>\d+)')
    def by_workspace(self, request, workspace_id=None):
        workspace = get_object_or_404(Workspace, pk=workspace_id)
        if not workspace.is_admin(request.user):
            raise exceptions.PermissionDenied('Only workspace owners and admins can view invitations')

        invitations = workspace.invites.select_related('workspace')
        return responses.success(
            WorkspaceInviteSerializer(invitations, many=True).data,
            'Workspace invitations retrieved successfully'
        )

    def destroy(self, request, *args, **kwargs):
        invitation = get_object_or_404(WorkspaceInvite.objects.select_related('workspace'), pk=kwargs['pk'])
        if not invitation.workspace.is_owner(request.user):
            raise exceptions.PermissionDenied('Only workspace owners can delete invitations')
        invitation.delete()
        return responses.success(None, 'Invitation deleted successfully')
