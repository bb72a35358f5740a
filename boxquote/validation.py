"""
Input validation and normalization for quote requests.

Every check runs and every failure is collected, so callers get one
ValidationFailed listing all violated rules instead of the first one.
"""

import re

from .config import settings
from .errors import ValidationFailed

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PHONE_DIGITS = 8


def normalize_email(email):
    if not email:
        return None
    return email.strip().lower() or None


def normalize_digits(value):
    """Strip everything but digits. Phones and CUITs are stored this way."""
    if not value:
        return None
    digits = re.sub(r"\D", "", str(value))
    return digits or None


def clean_text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def contact_errors(name, email, phone) -> list:
    errors = []
    if not (name or "").strip():
        errors.append("Name is required")
    if not (email or "").strip():
        errors.append("Email is required")
    elif not EMAIL_RE.match(email.strip()):
        errors.append("Email is not valid")
    if not (phone or "").strip():
        errors.append("Phone is required")
    elif len(normalize_digits(phone) or "") < MIN_PHONE_DIGITS:
        errors.append(f"Phone must have at least {MIN_PHONE_DIGITS} digits")
    return errors


def public_box_errors(length_mm, width_mm, height_mm, quantity) -> list:
    """Range checks for the public quoter."""
    errors = []
    if not length_mm or not settings.PUBLIC_MIN_LENGTH_MM <= length_mm <= settings.PUBLIC_MAX_LENGTH_MM:
        errors.append(
            f"Length must be between {settings.PUBLIC_MIN_LENGTH_MM} and {settings.PUBLIC_MAX_LENGTH_MM} mm"
        )
    if not width_mm or not settings.PUBLIC_MIN_WIDTH_MM <= width_mm <= settings.PUBLIC_MAX_WIDTH_MM:
        errors.append(
            f"Width must be between {settings.PUBLIC_MIN_WIDTH_MM} and {settings.PUBLIC_MAX_WIDTH_MM} mm"
        )
    if not height_mm or not settings.PUBLIC_MIN_HEIGHT_MM <= height_mm <= settings.PUBLIC_MAX_HEIGHT_MM:
        errors.append(
            f"Height must be between {settings.PUBLIC_MIN_HEIGHT_MM} and {settings.PUBLIC_MAX_HEIGHT_MM} mm"
        )
    if not quantity or quantity < settings.PUBLIC_MIN_QUANTITY:
        errors.append(f"Minimum quantity is {settings.PUBLIC_MIN_QUANTITY} units")
    return errors


def validate_public_submission(submission) -> None:
    """Raise ValidationFailed with every problem in a public quote submission."""
    errors = contact_errors(
        submission.requester_name, submission.requester_email, submission.requester_phone,
    )
    errors += public_box_errors(
        submission.length_mm, submission.width_mm, submission.height_mm, submission.quantity,
    )
    if submission.distance_km is not None and submission.distance_km < 0:
        errors.append("Distance cannot be negative")
    if errors:
        raise ValidationFailed(errors)


def validate_lead_submission(submission) -> None:
    """Silent leads carry no contact promise: a valid email and a box in range are enough."""
    errors = []
    email = (submission.requester_email or "").strip()
    if not email:
        errors.append("Email is required")
    elif not EMAIL_RE.match(email):
        errors.append("Email is not valid")
    errors += public_box_errors(
        submission.length_mm, submission.width_mm, submission.height_mm, submission.quantity,
    )
    if errors:
        raise ValidationFailed(errors)


def validate_line_items(items) -> None:
    """Internal quotes: at least one item, every dimension and quantity a positive integer."""
    errors = []
    if not items:
        errors.append("At least one item is required")
    for index, item in enumerate(items or [], start=1):
        for field in ("length_mm", "width_mm", "height_mm"):
            if not _is_positive_int(getattr(item, field)):
                errors.append(f"Item {index}: {field} must be a positive integer in mm")
        if not _is_positive_int(item.quantity):
            errors.append(f"Item {index}: quantity must be a positive integer")
    if errors:
        raise ValidationFailed(errors)
