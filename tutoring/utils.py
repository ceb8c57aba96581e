"""
Utility functions for tutoring bookings.
"""
import re
import secrets

from django.conf import settings
from django.urls import reverse


BOOKING_TOKEN_BYTES = 32
BOOKING_TOKEN_PATTERN = re.compile(r'[0-9a-f]{64}')


def generate_booking_token():
    """
    Generate an opaque booking management token.

    Returns:
        str: 64 lowercase hexadecimal characters (32 random bytes)
    """
    return secrets.token_hex(BOOKING_TOKEN_BYTES)


def is_valid_booking_token(token):
    """
    Check the token shape before touching the database.
    Uppercase hex is rejected; tokens are always issued lowercase.
    """
    if not isinstance(token, str):
        return False
    return bool(BOOKING_TOKEN_PATTERN.fullmatch(token))


def build_management_url(token, base_url=None):
    """
    Absolute URL a parent can open to manage a booking.

    Example:
        >>> build_management_url('ab' * 32, 'https://edkonnect.example')
        'https://edkonnect.example/manage-booking/abab.../'
    """
    base = (base_url or settings.SITE_URL).rstrip('/')
    return f"{base}{reverse('marketplace:manage_booking', args=[token])}"
