import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SqlEnum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class QRStatus(str, Enum):
    UNREGISTERED = "UNREGISTERED"
    REGISTERED = "REGISTERED"


class QRCode(Base):
    __tablename__ = "qr_codes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    short_id: Mapped[str] = mapped_column(String(6), unique=True, index=True, nullable=False)
    status: Mapped[QRStatus] = mapped_column(
        SqlEnum(QRStatus), nullable=False, default=QRStatus.UNREGISTERED, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # No delete cascade: callers remove the vehicle row before the code.
    vehicle = relationship("Vehicle", back_populates="qr_code", uselist=False, passive_deletes="all")

    @property
    def is_registered(self) -> bool:
        return self.status == QRStatus.REGISTERED
