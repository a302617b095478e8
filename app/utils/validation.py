import re

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def validate_phone_number(phone: str) -> bool:
    """Validate phone number format (international or local)."""
    if not phone:
        return True  # Allow empty/null

    # Basic phone validation - accepts various formats
    phone_pattern = r'^[\+]?[1-9][\d\-\s\(\)\.]{6,18}$'
    return bool(re.match(phone_pattern, phone.strip()))


def validate_email_format(email: str) -> bool:
    """Validate email format."""
    if not email:
        return True  # Allow empty/null

    email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(email_pattern, email))
