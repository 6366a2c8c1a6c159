import secrets
import string

SHORT_ID_ALPHABET = string.ascii_uppercase + string.digits
SHORT_ID_LENGTH = 6
SAFE_NUMBER_PREFIX = "050"


def generate_short_id() -> str:
    """Random 6-character code over A-Z0-9. Uniqueness is the caller's job."""
    return "".join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(SHORT_ID_LENGTH))


def is_short_id(value: str) -> bool:
    return len(value) == SHORT_ID_LENGTH and all(ch in SHORT_ID_ALPHABET for ch in value)


def generate_safe_number() -> str:
    """Mock proxy number in the form 050-XXXX-XXXX. Not checked for uniqueness."""
    first = secrets.randbelow(10000)
    second = secrets.randbelow(10000)
    return f"{SAFE_NUMBER_PREFIX}-{first:04d}-{second:04d}"
