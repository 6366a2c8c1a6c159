import base64
import io

import qrcode
from qrcode.image.pure import PyPNGImage

from app.core.config import get_settings

settings = get_settings()

PNG_DATA_URL_PREFIX = "data:image/png;base64,"


def render_qr_png(target_url: str) -> bytes:
    """Encode target_url as a PNG QR code with high error correction."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=settings.QR_IMAGE_BOX_SIZE,
        border=settings.QR_IMAGE_BORDER,
        image_factory=PyPNGImage,
    )
    qr.add_data(target_url)
    qr.make(fit=True)

    img = qr.make_image()
    buffer = io.BytesIO()
    img.save(buffer)
    return buffer.getvalue()


def render_qr_data_url(target_url: str) -> str:
    png = render_qr_png(target_url)
    return PNG_DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")


def build_target_url(base_url: str, short_id: str) -> str:
    return f"{base_url.rstrip('/')}/qr/{short_id}"
