import re

_NON_DIGIT = re.compile(r"\D")
_MOBILE_NUMBER = re.compile(r"^01[0-9]\d{7,8}$")

MIN_MASKABLE_DIGITS = 7


def digits_only(raw: str) -> str:
    return _NON_DIGIT.sub("", raw or "")


def is_valid_mobile_number(raw: str) -> bool:
    """010/011/016... followed by 7 or 8 digits; hyphens are allowed in the input."""
    return bool(_MOBILE_NUMBER.match((raw or "").replace("-", "")))


def format_phone_number(raw: str) -> str:
    """01012345678 -> 010-1234-5678. Anything that is not 11 digits comes back untouched."""
    digits = digits_only(raw)
    if len(digits) == 11:
        return f"{digits[:3]}-{digits[3:7]}-{digits[7:]}"
    return raw


def mask_phone_number(raw: str) -> str:
    """Keep the 3-digit prefix and last 4 digits: 010-****-5678.

    Fewer than 7 digits would make prefix and suffix overlap and reveal the
    whole number, so such input is rejected.
    """
    digits = digits_only(raw)
    if len(digits) < MIN_MASKABLE_DIGITS:
        raise ValueError(f"phone number needs at least {MIN_MASKABLE_DIGITS} digits to be masked")
    return f"{digits[:3]}-****-{digits[-4:]}"
