"""
Chilean RUT (national id) cleaning, checksum validation and formatting.
"""

RUT_SEPARATORS = (".", "-")


def clean_rut(rut: str) -> str:
    """
    Strip separators and uppercase the check character.

    Only dots and hyphens are removed; any other character (spaces included)
    is kept so that it fails validation later.
    """
    cleaned = rut
    for separator in RUT_SEPARATORS:
        cleaned = cleaned.replace(separator, "")
    return cleaned.upper()


def compute_check_character(body: str) -> str:
    """
    Compute the modulo-11 check character for the numeric body of a RUT.

    Args:
        body: The digits of the RUT without the check character

    Returns:
        str: '0'-'9' or 'K'
    """
    total = 0
    multiplier = 2
    for digit in reversed(body):
        total += int(digit) * multiplier
        multiplier = 2 if multiplier == 7 else multiplier + 1

    remainder = 11 - (total % 11)
    if remainder == 11:
        return "0"
    if remainder == 10:
        return "K"
    return str(remainder)


def validate_rut(rut: str) -> bool:
    """
    Validate a RUT, formatted or not.

    Args:
        rut: RUT such as "12.345.678-5" or "123456785"

    Returns:
        bool: True if the check character matches the body
    """
    if not rut:
        return False

    cleaned = clean_rut(rut)
    if len(cleaned) < 2:
        return False

    body, check = cleaned[:-1], cleaned[-1]
    if not body.isdigit() or not body.isascii():
        return False
    if not (check.isdigit() or check == "K"):
        return False

    return compute_check_character(body) == check


def format_rut(rut: str) -> str:
    """
    Format a RUT as "XX.XXX.XXX-D".

    Inputs shorter than two characters after cleaning are returned unchanged.
    Formatting an already formatted RUT yields the same string.
    """
    cleaned = clean_rut(rut)
    if len(cleaned) < 2:
        return rut

    body, check = cleaned[:-1], cleaned[-1]
    groups = []
    while len(body) > 3:
        groups.insert(0, body[-3:])
        body = body[:-3]
    groups.insert(0, body)

    return f"{'.'.join(groups)}-{check}"
