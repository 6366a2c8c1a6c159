from app.db.models.qr_code import QRCode, QRStatus
from app.db.models.vehicle import Vehicle

__all__ = [
    "QRCode",
    "QRStatus",
    "Vehicle",
]
