import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.routes import api_router
from app.core.config import get_settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_logging
from app.core.security import hash_password
from app.db.base import Base
from app.db.models import QRCode, QRStatus, Vehicle
from app.db.session import SessionLocal, engine
from app.middleware.request_context import RequestContextMiddleware

settings = get_settings()
setup_logging(logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper(), settings.LOG_DIR)
logger = logging.getLogger(__name__)

DEMO_UNREGISTERED_CODES = ["J6UQDV", "ABC123", "XYZ789", "QWE456"]
DEMO_REGISTERED_CODE = "R5Q7UD"

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
app.include_router(api_router, prefix=settings.API_PREFIX)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)


def _seed_dev_data(db: Session) -> None:
    existing = {
        row[0]
        for row in db.query(QRCode.short_id)
        .filter(QRCode.short_id.in_(DEMO_UNREGISTERED_CODES + [DEMO_REGISTERED_CODE]))
        .all()
    }

    try:
        for short_id in DEMO_UNREGISTERED_CODES:
            if short_id not in existing:
                db.add(QRCode(short_id=short_id, status=QRStatus.UNREGISTERED))

        if DEMO_REGISTERED_CODE not in existing:
            qr = QRCode(short_id=DEMO_REGISTERED_CODE, status=QRStatus.REGISTERED)
            db.add(qr)
            db.flush()
            db.add(
                Vehicle(
                    qr_code_id=qr.id,
                    phone_number="010-1234-5678",
                    vehicle_number="12가1234",
                    safe_number="050-8940-3626",
                    password_hash=hash_password("1234"),
                )
            )
        db.commit()
    except IntegrityError:
        # Another worker already inserted the demo rows.
        db.rollback()


@app.on_event("startup")
async def on_startup():
    Base.metadata.create_all(bind=engine)
    if settings.should_seed:
        db = SessionLocal()
        try:
            _seed_dev_data(db)
        finally:
            db.close()
        logger.info("Demo QR codes seeded")
    logger.info("%s started (%s)", settings.APP_NAME, settings.ENVIRONMENT)
