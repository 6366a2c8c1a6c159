"""Registration lifecycle of a QR code.

A code is either UNREGISTERED (no vehicle row) or REGISTERED (exactly one
vehicle row). Every owner-side change after registration is gated on the
4-digit password chosen at registration time.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import AlreadyRegistered, NotFound, NotRegistered, Unauthorized
from app.core.identifiers import generate_safe_number, is_short_id
from app.core.phone import format_phone_number, mask_phone_number
from app.core.security import hash_password, verify_password
from app.db.models import QRCode, QRStatus, Vehicle
from app.services.validation import (
    ValidationResult,
    validate_password,
    validate_phone_number,
    validate_registration,
    validate_vehicle_number,
)

logger = logging.getLogger(__name__)

UNREGISTERED_MESSAGE = "Vehicle registration required"


def normalize_short_id(short_id: str) -> str:
    return (short_id or "").strip().upper()


def normalize_vehicle_number(vehicle_number: str) -> str:
    return vehicle_number.strip().upper()


def get_qr_by_short_id(db: Session, short_id: str) -> QRCode:
    normalized = normalize_short_id(short_id)
    qr = db.query(QRCode).filter(QRCode.short_id == normalized).first() if is_short_id(normalized) else None
    if not qr:
        raise NotFound("QR code not found")
    return qr


def _authorize_owner(db: Session, short_id: str, password: str | None) -> tuple[QRCode, Vehicle]:
    if not password:
        ValidationResult.failure("password is required").raise_for_error()
    qr = get_qr_by_short_id(db, short_id)
    vehicle = qr.vehicle
    if vehicle is None:
        raise NotRegistered("QR code is not registered")
    if not verify_password(password, vehicle.password_hash):
        logger.info("Rejected owner password for QR %s", qr.short_id)
        raise Unauthorized("Password does not match")
    return qr, vehicle


def get_qr_info(db: Session, short_id: str) -> dict:
    qr = get_qr_by_short_id(db, short_id)
    vehicle = qr.vehicle
    if qr.status == QRStatus.UNREGISTERED or vehicle is None:
        return {
            "id": qr.id,
            "shortId": qr.short_id,
            "status": QRStatus.UNREGISTERED.value,
            "message": UNREGISTERED_MESSAGE,
        }
    return {
        "id": qr.id,
        "shortId": qr.short_id,
        "status": QRStatus.REGISTERED.value,
        "vehicle": {
            "vehicleNumber": vehicle.vehicle_number,
            "safeNumber": vehicle.safe_number,
            "maskedPhoneNumber": mask_phone_number(vehicle.phone_number),
            "registeredAt": vehicle.registered_at.isoformat() if vehicle.registered_at else None,
        },
    }


def register_vehicle(
    db: Session,
    short_id: str,
    phone_number: str | None,
    vehicle_number: str | None,
    password: str | None,
) -> dict:
    validate_registration(phone_number, vehicle_number, password).raise_for_error()

    qr = get_qr_by_short_id(db, short_id)
    if qr.is_registered or qr.vehicle is not None:
        raise AlreadyRegistered("QR code already registered")

    vehicle = Vehicle(
        qr_code_id=qr.id,
        phone_number=format_phone_number(phone_number.strip()),
        vehicle_number=normalize_vehicle_number(vehicle_number),
        safe_number=generate_safe_number(),
        password_hash=hash_password(password),
    )

    # Conditional flip plus the unique qr_code_id constraint guard against a
    # concurrent registration that passed the status check above.
    try:
        flipped = (
            db.query(QRCode)
            .filter(QRCode.id == qr.id, QRCode.status == QRStatus.UNREGISTERED)
            .update(
                {QRCode.status: QRStatus.REGISTERED, QRCode.updated_at: datetime.utcnow()},
                synchronize_session=False,
            )
        )
        if flipped != 1:
            raise AlreadyRegistered("QR code already registered")
        db.add(vehicle)
        db.commit()
    except AlreadyRegistered:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        raise AlreadyRegistered("QR code already registered") from exc

    db.refresh(vehicle)
    logger.info("Registered vehicle for QR %s", qr.short_id)
    return {
        "vehicleNumber": vehicle.vehicle_number,
        "safeNumber": vehicle.safe_number,
        "registeredAt": vehicle.registered_at.isoformat() if vehicle.registered_at else None,
    }


def verify_owner(db: Session, short_id: str, password: str | None) -> dict:
    _, vehicle = _authorize_owner(db, short_id, password)
    return {
        "vehicleNumber": vehicle.vehicle_number,
        "phoneNumber": vehicle.phone_number,
        "safeNumber": vehicle.safe_number,
    }


def update_vehicle(
    db: Session,
    short_id: str,
    password: str | None,
    phone_number: str | None = None,
    vehicle_number: str | None = None,
    new_password: str | None = None,
) -> dict:
    """Partial update; blank or omitted fields are left as they are."""
    qr, vehicle = _authorize_owner(db, short_id, password)

    has_phone = bool(phone_number and phone_number.strip())
    has_plate = bool(vehicle_number and vehicle_number.strip())
    if has_phone:
        validate_phone_number(phone_number).raise_for_error()
    if has_plate:
        validate_vehicle_number(vehicle_number).raise_for_error()
    if new_password:
        validate_password(new_password, field="newPassword").raise_for_error()

    updated: list[str] = []
    if has_phone:
        formatted = format_phone_number(phone_number.strip())
        if formatted != vehicle.phone_number:
            vehicle.phone_number = formatted
            updated.append("phoneNumber")

    if has_plate:
        normalized = normalize_vehicle_number(vehicle_number)
        if normalized != vehicle.vehicle_number:
            vehicle.vehicle_number = normalized
            updated.append("vehicleNumber")

    if new_password:
        if not verify_password(new_password, vehicle.password_hash):
            vehicle.password_hash = hash_password(new_password)
            updated.append("password")

    if updated:
        db.commit()
        logger.info("Updated %s for QR %s", ", ".join(updated), qr.short_id)
    return {"updated": updated}


def unregister_vehicle(db: Session, short_id: str, password: str | None) -> None:
    qr, vehicle = _authorize_owner(db, short_id, password)
    db.delete(vehicle)
    db.flush()
    qr.status = QRStatus.UNREGISTERED
    db.commit()
    logger.info("Unregistered vehicle for QR %s", qr.short_id)
