from rest_framework import serializers

from apps.workspaces.models import (
    Workspace,
    WorkspaceMember,
    Team,
    TeamMember,
    WorkspaceInvite,
)
from apps.workspaces.tokens import DEFAULT_EXPIRATION_HOURS


# =============================================================================
# Workspace Serializers
# =============================================================================

class WorkspaceSerializer(serializers.ModelSerializer):
    owner_email = serializers.EmailField(source='owner.email', read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Workspace
        fields = ['id', 'name', 'owner', 'owner_email', 'member_count', 'created_at', 'updated_at']
        read_only_fields = ['owner']

    def get_member_count(self, obj):
        return obj.members.count()


class WorkspaceMemberSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True)
    user_name = serializers.CharField(source='user.name', read_only=True)

    class Meta:
        model = WorkspaceMember
        fields = ['id', 'workspace', 'user', 'user_email', 'user_name', 'role', 'created_at']


# =============================================================================
# Team Serializers
# =============================================================================

class TeamSerializer(serializers.ModelSerializer):
    class Meta:
        model = Team
        fields = ['id', 'name', 'workspace', 'created_at', 'updated_at']


class TeamMemberSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = TeamMember
        fields = ['id', 'team', 'user', 'user_email', 'role', 'created_at']


# =============================================================================
# Invitation Serializers
# =============================================================================

class WorkspaceInviteSerializer(serializers.ModelSerializer):
    workspace_name = serializers.CharField(source='workspace.name', read_only=True)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = WorkspaceInvite
        fields = [
            'id', 'workspace', 'workspace_name', 'email', 'token', 'role',
            'expires_at', 'used_at', 'is_expired', 'created_at'
        ]
        read_only_fields = ['token', 'expires_at', 'used_at']


class InviteCreateSerializer(serializers.Serializer):
    workspace = serializers.PrimaryKeyRelatedField(queryset=Workspace.objects.all())
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=WorkspaceMember.Role.choices, default=WorkspaceMember.Role.MEMBER)
    expires_in_hours = serializers.IntegerField(min_value=1, max_value=24 * 30, default=DEFAULT_EXPIRATION_HOURS)

    def validate_email(self, value):
        return value.lower()


class InviteAcceptSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=128)
