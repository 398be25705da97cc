from unittest import mock

from django.test import TestCase
from rest_framework import exceptions
from rest_framework.test import APIRequestFactory

from apps.accounts.authentication import ClerkAuthentication, _find_key
from apps.accounts.history import get_history_user
from apps.accounts.models import User


class ClerkAuthenticationTests(TestCase):

    def setUp(self):
        self.auth = ClerkAuthentication()
        self.factory = APIRequestFactory()

    def test_no_header_is_anonymous(self):
        request = self.factory.get('/api/v1/products')
        self.assertIsNone(self.auth.authenticate(request))

    def test_other_scheme_is_ignored(self):
        request = self.factory.get('/api/v1/products', HTTP_AUTHORIZATION='Basic abc')
        self.assertIsNone(self.auth.authenticate(request))

    def test_malformed_bearer_header(self):
        request = self.factory.get('/api/v1/products', HTTP_AUTHORIZATION='Bearer a b')
        with self.assertRaises(exceptions.AuthenticationFailed):
            self.auth.authenticate(request)

    @mock.patch('apps.accounts.authentication.verify_clerk_token')
    def test_verified_token_creates_user(self, verify):
        verify.return_value = {'sub': 'user_123', 'email': 'Ana@Example.com', 'name': 'Ana'}
        request = self.factory.get('/api/v1/products', HTTP_AUTHORIZATION='Bearer token')

        user, claims = self.auth.authenticate(request)

        verify.assert_called_once_with('token')
        self.assertEqual(user.clerk_id, 'user_123')
        self.assertEqual(user.email, 'ana@example.com')
        self.assertEqual(claims['sub'], 'user_123')

    def test_existing_user_found_by_clerk_id(self):
        user = User.objects.create(clerk_id='user_1', email='a@example.com')
        self.assertEqual(self.auth.get_or_create_user({'sub': 'user_1'}), user)

    def test_existing_email_is_linked(self):
        user = User.objects.create(clerk_id='old', email='b@example.com')
        linked = self.auth.get_or_create_user({'sub': 'new', 'email': 'b@example.com'})
        self.assertEqual(linked.pk, user.pk)
        self.assertEqual(linked.clerk_id, 'new')

    def test_missing_subject(self):
        with self.assertRaises(exceptions.AuthenticationFailed):
            self.auth.get_or_create_user({'email': 'c@example.com'})

    def test_unknown_user_without_email(self):
        with self.assertRaises(exceptions.AuthenticationFailed):
            self.auth.get_or_create_user({'sub': 'user_x'})

    def test_find_key_by_kid(self):
        jwks = {'keys': [{'kid': 'a'}, {'kid': 'b', 'alg': 'RS256'}]}
        self.assertEqual(_find_key(jwks, 'b'), {'kid': 'b', 'alg': 'RS256'})
        self.assertIsNone(_find_key(jwks, 'c'))


class HistoryUserTests(TestCase):

    def test_only_clerk_users_are_recorded(self):
        user = User.objects.create(clerk_id='user_1', email='a@example.com')
        self.assertEqual(get_history_user(request=mock.Mock(user=user)), user)
        self.assertIsNone(get_history_user(request=mock.Mock(user=object())))
        self.assertIsNone(get_history_user())
