"""Input checks run before any mutation.

Each check returns a ``ValidationResult`` instead of raising so callers can
collect or inspect failures; ``raise_for_error`` converts a failure into the
``ValidationError`` the HTTP layer renders as 400.
"""

import re
from dataclasses import dataclass
from typing import Any

from app.core.exceptions import ValidationError
from app.core.phone import is_valid_mobile_number

PASSWORD_PATTERN = re.compile(r"^\d{4}$")
MAX_VEHICLE_NUMBER_LENGTH = 20


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    message: str = ""

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, message: str) -> "ValidationResult":
        return cls(ok=False, message=message)

    def raise_for_error(self) -> None:
        if not self.ok:
            raise ValidationError(self.message)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_password(password: str | None, field: str = "password") -> ValidationResult:
    if _blank(password):
        return ValidationResult.failure(f"{field} is required")
    if not PASSWORD_PATTERN.match(password):
        return ValidationResult.failure(f"{field} must be exactly 4 digits")
    return ValidationResult.success()


def validate_phone_number(phone_number: str | None) -> ValidationResult:
    if _blank(phone_number):
        return ValidationResult.failure("phoneNumber is required")
    if not is_valid_mobile_number(phone_number.strip()):
        return ValidationResult.failure("phoneNumber must be a mobile number like 010-1234-5678")
    return ValidationResult.success()


def validate_vehicle_number(vehicle_number: str | None) -> ValidationResult:
    if _blank(vehicle_number):
        return ValidationResult.failure("vehicleNumber is required")
    if len(vehicle_number.strip()) > MAX_VEHICLE_NUMBER_LENGTH:
        return ValidationResult.failure(f"vehicleNumber must be at most {MAX_VEHICLE_NUMBER_LENGTH} characters")
    return ValidationResult.success()


def validate_registration(phone_number: str | None, vehicle_number: str | None, password: str | None) -> ValidationResult:
    missing = [
        name
        for name, value in (
            ("phoneNumber", phone_number),
            ("vehicleNumber", vehicle_number),
            ("password", password),
        )
        if _blank(value)
    ]
    if missing:
        return ValidationResult.failure(f"Missing required fields: {', '.join(missing)}")
    for result in (
        validate_phone_number(phone_number),
        validate_vehicle_number(vehicle_number),
        validate_password(password),
    ):
        if not result.ok:
            return result
    return ValidationResult.success()


def validate_batch_count(count: Any, maximum: int = 1000) -> ValidationResult:
    # bool is an int subclass; True must not pass as 1.
    if isinstance(count, bool) or not isinstance(count, int):
        return ValidationResult.failure(f"Invalid count. Must be between 1 and {maximum}.")
    if count < 1 or count > maximum:
        return ValidationResult.failure(f"Invalid count. Must be between 1 and {maximum}.")
    return ValidationResult.success()
