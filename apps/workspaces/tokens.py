"""Invitation token helpers."""
import datetime
import secrets

from django.utils import timezone

DEFAULT_EXPIRATION_HOURS = 168


def generate_invitation_token(length=32):
    """Random hex token built from ``length`` bytes (so twice as many characters)."""
    return secrets.token_hex(length)


def calculate_expiration_date(hours=DEFAULT_EXPIRATION_HOURS):
    return timezone.now() + datetime.timedelta(hours=hours)


def is_token_expired(expiration_date):
    return timezone.now() > expiration_date
