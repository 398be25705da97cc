"""
Clerk session authentication for DRF.

The bearer token is a Clerk session JWT. It is verified against the
instance JWKS and its ``sub`` claim is mapped to a local ``User``.
"""
import logging
import time

import httpx
from django.conf import settings
from jose import jwk, jwt
from jose.exceptions import JWTError, JWSError
from jose.utils import base64url_decode
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from .models import User

logger = logging.getLogger(__name__)


class _JWKSCache:
    def __init__(self, ttl_seconds=300):
        self.jwks = None
        self.cached_at = 0.0
        self.ttl_seconds = ttl_seconds

    def get(self):
        if self.jwks and (time.time() - self.cached_at) < self.ttl_seconds:
            return self.jwks
        return None

    def set(self, jwks):
        self.jwks = jwks
        self.cached_at = time.time()

    def clear(self):
        self.jwks = None
        self.cached_at = 0.0


_cache = _JWKSCache()


def fetch_jwks():
    cached = _cache.get()
    if cached:
        return cached
    if not settings.CLERK_JWKS_URL:
        raise exceptions.AuthenticationFailed('Clerk is not configured')
    try:
        resp = httpx.get(settings.CLERK_JWKS_URL, timeout=10)
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPError as exc:
        logger.exception('JWKS fetch failed from %s', settings.CLERK_JWKS_URL)
        raise exceptions.AuthenticationFailed('Unable to fetch Clerk JWKS') from exc
    _cache.set(data)
    return data


def _find_key(jwks, kid):
    for key in jwks.get('keys', []):
        if key.get('kid') == kid:
            return key
    return None


def get_public_key(token):
    try:
        headers = jwt.get_unverified_header(token)
    except JWTError as exc:
        raise exceptions.AuthenticationFailed('Invalid token') from exc

    kid = headers.get('kid')
    if not kid:
        raise exceptions.AuthenticationFailed('Missing kid in token')

    key = _find_key(fetch_jwks(), kid)
    if key is None:
        # Keys may have rotated since the last fetch
        _cache.clear()
        key = _find_key(fetch_jwks(), kid)
    if key is None:
        logger.warning('Signing key %s not found', kid)
        raise exceptions.AuthenticationFailed('Signing key not found')
    return key


def verify_clerk_token(token):
    """Verify a Clerk session JWT and return its claims."""
    public_key = get_public_key(token)
    try:
        key = jwk.construct(public_key)
        message, encoded_sig = token.rsplit('.', 1)
        if not key.verify(message.encode(), base64url_decode(encoded_sig.encode())):
            raise exceptions.AuthenticationFailed('Invalid token signature')

        options = {'verify_aud': settings.CLERK_AUDIENCE is not None}
        return jwt.decode(
            token,
            key=key.to_pem().decode(),
            algorithms=[public_key.get('alg', 'RS256')],
            audience=settings.CLERK_AUDIENCE,
            issuer=settings.CLERK_JWT_ISSUER,
            options=options,
        )
    except (JWTError, JWSError, ValueError) as exc:
        logger.warning('Token verification failed: %s', exc)
        raise exceptions.AuthenticationFailed('Invalid authentication token.') from exc


class ClerkAuthentication(BaseAuthentication):
    keyword = 'Bearer'

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None
        if len(auth) != 2:
            raise exceptions.AuthenticationFailed('Invalid authorization header.')

        token = auth[1].decode()
        claims = verify_clerk_token(token)
        return self.get_or_create_user(claims), claims

    def get_or_create_user(self, claims):
        clerk_id = claims.get('sub')
        if not clerk_id:
            raise exceptions.AuthenticationFailed('Token has no subject.')

        user = User.objects.filter(clerk_id=clerk_id).first()
        if user:
            return user

        email = claims.get('email') or claims.get('primary_email_address')
        if not email:
            raise exceptions.AuthenticationFailed('User not found. Please sign in first.')

        user, _ = User.objects.update_or_create(
            email=email.lower(),
            defaults={'clerk_id': clerk_id, 'name': claims.get('name') or ''},
        )
        logger.info('Linked Clerk user %s to %s', clerk_id, user.email)
        return user

    def authenticate_header(self, request):
        return self.keyword
