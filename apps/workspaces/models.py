from django.db import models
from django.utils import timezone

from .tokens import generate_invitation_token, calculate_expiration_date, is_token_expired


class Workspace(models.Model):
    name = models.CharField(
        max_length=255,
        verbose_name='Name'
    )
    owner = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='owned_workspaces',
        verbose_name='Owner'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = 'Workspace'
        verbose_name_plural = 'Workspaces'

    def __str__(self):
        return self.name

    def is_owner(self, user):
        return user is not None and self.owner_id == user.pk

    def is_admin(self, user):
        """Owner or a member with the ADMIN role."""
        if self.is_owner(user):
            return True
        return self.members.filter(user=user, role=WorkspaceMember.Role.ADMIN).exists()

    def has_member(self, user):
        return self.is_owner(user) or self.members.filter(user=user).exists()


class WorkspaceMember(models.Model):

    class Role(models.TextChoices):
        ADMIN = 'ADMIN', 'Admin'
        MEMBER = 'MEMBER', 'Member'

    workspace = models.ForeignKey(
        Workspace,
        on_delete=models.CASCADE,
        related_name='members',
        verbose_name='Workspace'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='workspace_memberships',
        verbose_name='User'
    )
    role = models.CharField(
        max_length=10,
        choices=Role.choices,
        default=Role.MEMBER,
        verbose_name='Role'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['workspace', 'id']
        unique_together = ['workspace', 'user']
        verbose_name = 'Workspace member'
        verbose_name_plural = 'Workspace members'

    def __str__(self):
        return f"{self.user} @ {self.workspace} ({self.role})"


class Team(models.Model):
    name = models.CharField(
        max_length=255,
        verbose_name='Name'
    )
    workspace = models.ForeignKey(
        Workspace,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='teams',
        verbose_name='Workspace'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name', 'id']
        verbose_name = 'Team'
        verbose_name_plural = 'Teams'

    def __str__(self):
        return self.name


class TeamMember(models.Model):

    class Role(models.TextChoices):
        OWNER = 'OWNER', 'Owner'
        ADMIN = 'ADMIN', 'Admin'
        MEMBER = 'MEMBER', 'Member'

    team = models.ForeignKey(
        Team,
        on_delete=models.CASCADE,
        related_name='members',
        verbose_name='Team'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='team_memberships',
        verbose_name='User'
    )
    role = models.CharField(
        max_length=10,
        choices=Role.choices,
        default=Role.MEMBER,
        verbose_name='Role'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['team', 'id']
        unique_together = ['team', 'user']
        verbose_name = 'Team member'
        verbose_name_plural = 'Team members'

    def __str__(self):
        return f"{self.user} in {self.team} ({self.role})"


class WorkspaceInviteQuerySet(models.QuerySet):

    def validate_token(self, token):
        """
        Check an invitation token.
        Returns ``{'valid', 'message', 'invitation'}``.
        """
        invitation = self.select_related('workspace').filter(token=token).first()
        if invitation is None:
            return {'valid': False, 'message': 'Invalid invitation token', 'invitation': None}
        if invitation.used_at is not None:
            return {'valid': False, 'message': 'This invitation has already been used', 'invitation': invitation}
        if invitation.is_expired:
            return {'valid': False, 'message': 'This invitation has expired', 'invitation': invitation}
        return {'valid': True, 'message': 'Invitation is valid', 'invitation': invitation}


class WorkspaceInvite(models.Model):
    workspace = models.ForeignKey(
        Workspace,
        on_delete=models.CASCADE,
        related_name='invites',
        verbose_name='Workspace'
    )
    email = models.EmailField(
        verbose_name='Email'
    )
    token = models.CharField(
        max_length=128,
        unique=True,
        default=generate_invitation_token,
        verbose_name='Token'
    )
    role = models.CharField(
        max_length=10,
        choices=WorkspaceMember.Role.choices,
        default=WorkspaceMember.Role.MEMBER,
        verbose_name='Role'
    )
    expires_at = models.DateTimeField(
        default=calculate_expiration_date,
        verbose_name='Expires at'
    )
    used_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Used at'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = WorkspaceInviteQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = 'Workspace invite'
        verbose_name_plural = 'Workspace invites'

    def __str__(self):
        return f"{self.email} -> {self.workspace}"

    @property
    def is_expired(self):
        return is_token_expired(self.expires_at)

    def mark_used(self):
        self.used_at = timezone.now()
        self.save(update_fields=['used_at'])
