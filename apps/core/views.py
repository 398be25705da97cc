from django.middleware.csrf import get_token
from django.views.decorators.csrf import ensure_csrf_cookie
from rest_framework.decorators import api_view, authentication_classes

from .responses import success


@ensure_csrf_cookie
@api_view(['GET'])
@authentication_classes([])
def csrf_token(request):
    """
    Issue a CSRF token.

    The secret is stored in the ``csrf-secret`` cookie; clients send the
    returned token back in the ``csrf-token`` header on writes.
    """
    return success({'csrfToken': get_token(request)}, 'CSRF token generated')
