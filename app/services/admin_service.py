import logging
import math
from datetime import datetime, timezone

from qrcode.exceptions import DataOverflowError
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import ExhaustedRetries, InternalFailure, NotFound, ValidationError
from app.core.identifiers import generate_short_id
from app.core.phone import mask_phone_number
from app.db.models import QRCode, QRStatus, Vehicle
from app.services.qr_image_service import build_target_url, render_qr_data_url, render_qr_png
from app.services.registration_service import get_qr_by_short_id
from app.services.validation import validate_batch_count

logger = logging.getLogger(__name__)
settings = get_settings()

MAX_PAGE_SIZE = 100
SORT_COLUMNS = {
    "createdAt": QRCode.created_at,
    "shortId": QRCode.short_id,
    "status": QRCode.status,
    "vehicleNumber": Vehicle.vehicle_number,
}


def get_stats(db: Session) -> dict:
    total = db.query(func.count(QRCode.id)).scalar() or 0
    registered = db.query(func.count(QRCode.id)).filter(QRCode.status == QRStatus.REGISTERED).scalar() or 0
    return {
        "totalQRCodes": total,
        "registeredCount": registered,
        "unregisteredCount": total - registered,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def list_qr_codes(
    db: Session,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    sort_by: str = "createdAt",
    order: str = "desc",
) -> dict:
    if page < 1:
        raise ValidationError("page must be 1 or greater")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    if sort_by not in SORT_COLUMNS:
        raise ValidationError(f"sortBy must be one of: {', '.join(SORT_COLUMNS)}")
    if order not in {"asc", "desc"}:
        raise ValidationError("order must be 'asc' or 'desc'")

    query = db.query(QRCode, Vehicle).outerjoin(Vehicle, Vehicle.qr_code_id == QRCode.id)
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(or_(QRCode.short_id.ilike(term), Vehicle.vehicle_number.ilike(term)))

    total = query.count()

    column = SORT_COLUMNS[sort_by]
    ordering = [column.desc() if order == "desc" else column.asc()]
    if sort_by != "createdAt":
        ordering.append(QRCode.created_at.desc())
    ordering.append(QRCode.id)

    rows = query.order_by(*ordering).offset((page - 1) * limit).limit(limit).all()
    return {
        "qrCodes": [
            {
                "id": qr.id,
                "shortId": qr.short_id,
                "status": qr.status.value,
                "createdAt": qr.created_at.isoformat() if qr.created_at else None,
                "phoneNumber": mask_phone_number(vehicle.phone_number) if vehicle else None,
                "vehicleNumber": vehicle.vehicle_number if vehicle else None,
            }
            for qr, vehicle in rows
        ],
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if total else 0,
    }


def create_unique_qr_code(db: Session, max_attempts: int | None = None) -> QRCode:
    """Persist a new UNREGISTERED code under a short id nobody holds yet.

    A candidate is discarded when it is already taken, or when a concurrent
    insert wins the unique index first.
    """
    attempts = max_attempts or settings.SHORT_ID_MAX_ATTEMPTS
    for _ in range(attempts):
        candidate = generate_short_id()
        if db.query(QRCode.id).filter(QRCode.short_id == candidate).first():
            logger.debug("Short id %s already taken, retrying", candidate)
            continue
        code = QRCode(short_id=candidate, status=QRStatus.UNREGISTERED)
        db.add(code)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.debug("Short id %s taken concurrently, retrying", candidate)
            continue
        db.refresh(code)
        return code
    raise ExhaustedRetries(f"Could not allocate a unique short id after {attempts} attempts")


def generate_qr_codes(db: Session, count, base_url: str) -> dict:
    """Create count codes one commit at a time.

    Codes created before a failure stay persisted; the error reports how many.
    """
    validate_batch_count(count, settings.MAX_BATCH_SIZE).raise_for_error()

    created: list[dict] = []
    try:
        for _ in range(count):
            code = create_unique_qr_code(db)
            target_url = build_target_url(base_url, code.short_id)
            created.append(
                {
                    "id": code.id,
                    "shortId": code.short_id,
                    "dataUrl": render_qr_data_url(target_url),
                    "qrUrl": target_url,
                }
            )
    except ExhaustedRetries:
        logger.error("QR batch stopped after %s of %s codes: short id space exhausted", len(created), count)
        raise
    except (SQLAlchemyError, DataOverflowError) as exc:
        db.rollback()
        logger.error("QR batch failed after %s of %s codes", len(created), count, exc_info=exc)
        raise InternalFailure(f"Failed to generate QR codes ({len(created)} of {count} created)") from exc

    logger.info("Generated %s QR codes", len(created))
    return {"count": len(created), "qrCodes": created}


def delete_qr_code(db: Session, qr_code_id: str) -> None:
    qr = db.get(QRCode, qr_code_id)
    if not qr:
        raise NotFound("QR code not found")
    short_id = qr.short_id
    db.query(Vehicle).filter(Vehicle.qr_code_id == qr_code_id).delete(synchronize_session=False)
    db.delete(qr)
    db.commit()
    logger.info("Deleted QR %s", short_id)


def get_qr_png(db: Session, short_id: str, base_url: str) -> bytes:
    qr = get_qr_by_short_id(db, short_id)
    return render_qr_png(build_target_url(base_url, qr.short_id))
