from fastapi import Request

from app.core.config import get_settings

settings = get_settings()


def get_public_base_url(request: Request) -> str:
    """Base for URLs printed into QR codes; the configured value wins over the request host."""
    if settings.PUBLIC_BASE_URL.strip():
        return settings.PUBLIC_BASE_URL.strip().rstrip("/")
    return str(request.base_url).rstrip("/")
