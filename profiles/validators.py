"""
Validators for tutor profiles and course rates.

Centralized location for rate and account validation rules.
Modify constants below to adjust the requirements.
"""
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError


# Rate validation constants - modify these to change requirements
MAX_HOURLY_RATE = Decimal("1000")
MIN_PASSWORD_LETTERS = 1


def parse_rate(value):
    """
    Parse a user-entered hourly rate.
    Returns a Decimal for positive finite numbers, otherwise None.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        rate = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            rate = Decimal(text)
        except InvalidOperation:
            return None
    if not rate.is_finite() or rate <= 0:
        return None
    return rate


def validate_hourly_rate(value):
    """Reject rates that are not positive or exceed MAX_HOURLY_RATE."""
    rate = parse_rate(value)
    if rate is None:
        raise ValidationError("Hourly rate must be greater than 0.")
    if rate > MAX_HOURLY_RATE:
        raise ValidationError(f"Hourly rate must be at most {MAX_HOURLY_RATE}.")


class AccountPasswordValidator:
    """
    Require at least MIN_PASSWORD_LETTERS alphabetic characters.
    Registered alongside Django's stock validators for signup forms.
    """

    def validate(self, password, user=None):
        letter_count = sum(1 for char in password if char.isalpha())
        if letter_count < MIN_PASSWORD_LETTERS:
            raise ValidationError(
                f"Password must contain at least {MIN_PASSWORD_LETTERS} letter(s).",
                code='password_no_letters',
            )

    def get_help_text(self):
        return f"Your password must contain at least {MIN_PASSWORD_LETTERS} letter(s)."
