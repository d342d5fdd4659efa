import re
from django.core.exceptions import ValidationError
from django.utils import timezone


def validate_phone_number(value):
    """
    Contact numbers: digits only, with an optional leading +, 9 to 15 digits.
    """
    if not value:
        return
    digits = value[1:] if value.startswith('+') else value
    if not digits.isdigit():
        raise ValidationError("Contact number must contain digits only.")

    if not 9 <= len(digits) <= 15:
        raise ValidationError("Contact number must have between 9 and 15 digits.")


def validate_name(value):
    """
    Names: letters, spaces, hyphens, apostrophes and dots only, at least two characters.
    """
    if not re.match(r"^[^\W\d_]+(?:[\s'.-]+[^\W\d_]+)*\.?$", value.strip()):
        raise ValidationError("Name must contain letters only.")

    if len(value.strip()) < 2:
        raise ValidationError("Name is too short.")


def validate_past_date(value):
    """
    The date cannot be in the future.
    """
    if value > timezone.localdate():
        raise ValidationError("Date cannot be in the future.")
