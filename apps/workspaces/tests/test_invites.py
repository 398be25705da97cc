import datetime

from django.conf import settings
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.accounts.models import User
from apps.workspaces.models import Team, Workspace, WorkspaceInvite, WorkspaceMember
from apps.workspaces.tokens import calculate_expiration_date, generate_invitation_token, is_token_expired


def make_user(name):
    return User.objects.create(clerk_id=f'user_{name}', email=f'{name}@example.com', name=name.title())


class TokenTests(SimpleTestCase):

    def test_token_is_hex_of_requested_length(self):
        token = generate_invitation_token()
        self.assertEqual(len(token), 64)
        int(token, 16)
        self.assertEqual(len(generate_invitation_token(8)), 16)
        self.assertNotEqual(generate_invitation_token(), generate_invitation_token())

    def test_expiration(self):
        self.assertFalse(is_token_expired(calculate_expiration_date(1)))
        self.assertTrue(is_token_expired(timezone.now() - datetime.timedelta(seconds=1)))


class ValidateTokenTests(TestCase):

    def setUp(self):
        self.workspace = Workspace.objects.create(name='Acme', owner=make_user('owner'))

    def test_states(self):
        invite = WorkspaceInvite.objects.create(workspace=self.workspace, email='new@example.com')
        self.assertEqual(WorkspaceInvite.objects.validate_token(invite.token)['message'], 'Invitation is valid')
        self.assertEqual(WorkspaceInvite.objects.validate_token('nope')['message'], 'Invalid invitation token')

        invite.expires_at = timezone.now() - datetime.timedelta(minutes=1)
        invite.save()
        self.assertEqual(WorkspaceInvite.objects.validate_token(invite.token)['message'], 'This invitation has expired')

        invite.mark_used()
        result = WorkspaceInvite.objects.validate_token(invite.token)
        self.assertFalse(result['valid'])
        self.assertEqual(result['message'], 'This invitation has already been used')


class InviteApiTests(APITestCase):
    url = '/api/v1/workspace-invites'

    def setUp(self):
        self.owner = make_user('owner')
        self.guest = make_user('guest')
        self.workspace = Workspace.objects.create(name='Acme', owner=self.owner)

    def test_requires_authentication(self):
        response = self.client.post(self.url, {'workspace': self.workspace.pk, 'email': 'x@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_owner_creates_invitation(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post(self.url, {
            'workspace': self.workspace.pk, 'email': 'Guest@Example.com', 'role': 'ADMIN',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Workspace invitation created successfully')
        invite = WorkspaceInvite.objects.get()
        self.assertEqual(invite.email, 'guest@example.com')
        self.assertEqual(
            response.data['data']['invitationUrl'],
            f'{settings.FRONTEND_URL}/workspace/invite?token={invite.token}'
        )

    def test_only_owner_invites(self):
        self.client.force_authenticate(self.guest)
        response = self.client.post(self.url, {'workspace': self.workspace.pk, 'email': 'x@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Only workspace owners can send invitations')

    def test_cannot_invite_self_or_members(self):
        WorkspaceMember.objects.create(workspace=self.workspace, user=self.guest)
        self.client.force_authenticate(self.owner)

        response = self.client.post(self.url, {'workspace': self.workspace.pk, 'email': 'owner@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'You cannot invite yourself to the workspace')

        response = self.client.post(self.url, {'workspace': self.workspace.pk, 'email': 'guest@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'This user is already a member of the workspace')

    def test_validate_is_public(self):
        invite = WorkspaceInvite.objects.create(workspace=self.workspace, email='guest@example.com')
        response = self.client.get(f'{self.url}/validate/{invite.token}')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], {
            'valid': True,
            'workspace': {'id': self.workspace.pk, 'name': 'Acme'},
            'role': 'MEMBER',
            'email': 'guest@example.com',
        })

        invite.mark_used()
        response = self.client.get(f'{self.url}/validate/{invite.token}')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'This invitation has already been used')

    def test_accept(self):
        invite = WorkspaceInvite.objects.create(
            workspace=self.workspace, email='guest@example.com', role=WorkspaceMember.Role.ADMIN
        )
        self.client.force_authenticate(self.guest)

        response = self.client.post(f'{self.url}/accept', {'token': invite.token}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Successfully joined workspace')
        membership = WorkspaceMember.objects.get(workspace=self.workspace, user=self.guest)
        self.assertEqual(membership.role, 'ADMIN')
        invite.refresh_from_db()
        self.assertIsNotNone(invite.used_at)

        response = self.client.post(f'{self.url}/accept', {'token': invite.token}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_accept_with_other_email(self):
        invite = WorkspaceInvite.objects.create(workspace=self.workspace, email='someone@example.com')
        self.client.force_authenticate(self.guest)
        response = self.client.post(f'{self.url}/accept', {'token': invite.token}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'This invitation was sent to a different email address')

    def test_accept_when_already_member(self):
        WorkspaceMember.objects.create(workspace=self.workspace, user=self.guest)
        invite = WorkspaceInvite.objects.create(workspace=self.workspace, email='guest@example.com')
        self.client.force_authenticate(self.guest)
        response = self.client.post(f'{self.url}/accept', {'token': invite.token}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'You are already a member of this workspace')

    def test_list_by_workspace(self):
        WorkspaceInvite.objects.create(workspace=self.workspace, email='a@example.com')
        url = f'{self.url}/workspace/{self.workspace.pk}'

        self.client.force_authenticate(self.guest)
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Only workspace owners and admins can view invitations')

        WorkspaceMember.objects.create(workspace=self.workspace, user=self.guest, role=WorkspaceMember.Role.ADMIN)
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 1)

    def test_delete(self):
        invite = WorkspaceInvite.objects.create(workspace=self.workspace, email='a@example.com')

        self.client.force_authenticate(self.guest)
        response = self.client.delete(f'{self.url}/{invite.pk}')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Only workspace owners can delete invitations')

        self.client.force_authenticate(self.owner)
        response = self.client.delete(f'{self.url}/{invite.pk}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(WorkspaceInvite.objects.exists())


class WorkspaceApiTests(APITestCase):

    def setUp(self):
        self.owner = make_user('owner')
        self.member = make_user('member')
        self.client.force_authenticate(self.owner)

    def test_create_sets_owner(self):
        response = self.client.post('/api/v1/workspaces', {'name': 'Acme'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Workspace.objects.get().owner, self.owner)

    def test_members_see_workspace_but_cannot_rename(self):
        workspace = Workspace.objects.create(name='Acme', owner=self.owner)
        Workspace.objects.create(name='Other', owner=make_user('stranger'))
        WorkspaceMember.objects.create(workspace=workspace, user=self.member)

        self.client.force_authenticate(self.member)
        response = self.client.get('/api/v1/workspaces')
        self.assertEqual([row['name'] for row in response.data['data']], ['Acme'])
        self.assertEqual(response.data['data'][0]['member_count'], 1)

        response = self.client.patch(f'/api/v1/workspaces/{workspace.pk}', {'name': 'Mine'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_team_creator_becomes_owner(self):
        workspace = Workspace.objects.create(name='Acme', owner=self.owner)
        response = self.client.post('/api/v1/teams', {'name': 'Design', 'workspace': workspace.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        team = Team.objects.get()
        self.assertEqual(team.members.get().user, self.owner)
        self.assertEqual(team.members.get().role, 'OWNER')

        response = self.client.get('/api/v1/team-members')
        self.assertEqual(response.data['meta']['total'], 1)
