from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from apps.catalog.models import Locale, Store
from apps.core.responses import error_message, success_message


class EnvelopeTests(SimpleTestCase):

    def test_success_envelope_omits_empty_meta(self):
        body = success_message({'id': 1}, message='Store retrieved successfully')
        self.assertEqual(body, {
            'success': True,
            'statusCode': 200,
            'message': 'Store retrieved successfully',
            'data': {'id': 1},
        })

    def test_success_envelope_with_meta(self):
        meta = {'total': 1, 'page': 1, 'limit': 10, 'totalPages': 1}
        body = success_message([], meta=meta)
        self.assertEqual(body['meta'], meta)

    def test_error_envelope(self):
        body = error_message('Nope', 404)
        self.assertEqual(body, {'success': False, 'statusCode': 404, 'message': 'Nope'})
        self.assertIn('error', error_message('Nope', 400, {'name': 'ValidationError'}))


class ExceptionHandlerTests(APITestCase):

    def test_not_found_uses_failure_envelope(self):
        response = self.client.get('/api/v1/stores/999')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['statusCode'], 404)
        self.assertEqual(response.data['message'], 'Record not found.')

    def test_validation_error_lists_fields(self):
        response = self.client.post('/api/v1/stores', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['name'], 'ValidationError')
        self.assertIn('code', response.data['error']['message'])
        self.assertIn('name', response.data['error']['message'])

    def test_duplicate_code_is_conflict(self):
        Store.objects.create(code='main', name='Main')
        response = self.client.post('/api/v1/stores', {'code': 'main', 'name': 'Other'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Store with this code already exists')


class PaginationTests(APITestCase):

    def setUp(self):
        for value in ('de_DE', 'en_US', 'fr_FR'):
            Locale.objects.create(value=value, label=value)

    def test_limit_and_meta(self):
        response = self.client.get('/api/v1/locales', {'limit': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 2)
        self.assertEqual(response.data['meta'], {'total': 3, 'page': 1, 'limit': 2, 'totalPages': 2})
        self.assertEqual(response.data['message'], 'Locales retrieved successfully')

    def test_second_page(self):
        response = self.client.get('/api/v1/locales', {'limit': 2, 'page': 2})
        self.assertEqual([row['value'] for row in response.data['data']], ['fr_FR'])


class CsrfTests(APITestCase):

    def setUp(self):
        self.csrf_client = APIClient(enforce_csrf_checks=True)

    def test_token_endpoint_sets_cookie(self):
        response = self.csrf_client.get('/api/v1/csrf-token')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'CSRF token generated')
        self.assertTrue(response.data['data']['csrfToken'])
        self.assertIn('csrf-secret', response.cookies)

    def test_write_without_token_is_rejected(self):
        response = self.csrf_client.post('/api/v1/stores', {'code': 'main', 'name': 'Main'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Invalid CSRF token')
        self.assertFalse(Store.objects.exists())

    def test_write_with_token_is_accepted(self):
        token = self.csrf_client.get('/api/v1/csrf-token').data['data']['csrfToken']
        response = self.csrf_client.post(
            '/api/v1/stores', {'code': 'main', 'name': 'Main'},
            format='json', HTTP_CSRF_TOKEN=token
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Store created successfully')

    def test_reads_need_no_token(self):
        response = self.csrf_client.get('/api/v1/stores')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
