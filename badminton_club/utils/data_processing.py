import re


def clean_phone_number(phone):
    """
    Standardize Australian phone numbers to the local 0-prefixed form
    Examples:
        +61 412 345 678 -> 0412345678
        61412345678 -> 0412345678
        (07) 4092 1234 -> 0740921234
    """
    if not phone:
        return ""

    # Convert to string if not already
    phone = str(phone).strip()

    # Remove any non-digit characters except leading +
    digits_only = re.sub(r'[^\d+]', '', phone)

    # Handle +61 prefix
    if digits_only.startswith('+61'):
        return '0' + digits_only[3:]

    # Handle 61 prefix on a full-length number
    if digits_only.startswith('61') and len(digits_only) == 11:
        return '0' + digits_only[2:]

    # Already local, or something we can't classify
    return digits_only.replace('+', '')


def clean_email(email):
    """
    Clean and normalize email addresses
    - Convert to lowercase
    - Remove leading/trailing whitespace
    """
    if not email:
        return ""

    return str(email).strip().lower()


def normalize_name(name):
    """
    Normalize name formatting
    - Remove extra spaces
    - Proper capitalization
    """
    if not name:
        return ""

    # Remove extra spaces
    name = re.sub(r'\s+', ' ', str(name).strip())

    # Title case (capitalize first letter of each word)
    name = name.title()

    return name


def clean_player_id(player_id):
    """Player IDs are typed by hand: ignore case and surrounding spaces."""
    if not player_id:
        return ""

    return re.sub(r'\s+', '', str(player_id)).upper()


def clean_reference(reference):
    """Bank references come back with arbitrary spacing and case."""
    if not reference:
        return ""

    return re.sub(r'\s+', '', str(reference)).upper()
