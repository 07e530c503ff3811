import re


def format_phone_number(phone: str, default_country_code: str = "+91") -> str:
    """
    Normalise a stored phone number to E.164 for SMS delivery.

    Numbers already carrying a `+` prefix are kept; local numbers get the
    default country code (a single leading trunk `0` is dropped).
    """
    if not phone:  # catches None, empty string, etc.
        raise ValueError("Phone number is required")

    phone = str(phone).strip()
    has_plus = phone.startswith("+")

    # Remove any whitespace or special characters
    digits = ''.join(filter(str.isdigit, phone))

    if has_plus:
        phone = "+" + digits
    elif digits.startswith("00"):
        phone = "+" + digits[2:]
    else:
        if digits.startswith("0"):
            digits = digits[1:]
        phone = default_country_code + digits

    # Validate the final format
    if not re.fullmatch(r"^\+[1-9][0-9]{7,14}$", phone):
        raise ValueError(f"Invalid phone number: {phone}")

    return phone
