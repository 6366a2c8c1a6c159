from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.deps import get_public_base_url
from app.core.exceptions import ValidationError
from app.db.session import get_db
from app.schemas.admin import DeleteQRRequest, GenerateRequest
from app.services.admin_service import (
    MAX_PAGE_SIZE,
    delete_qr_code,
    generate_qr_codes,
    get_qr_png,
    get_stats,
    list_qr_codes,
)

router = APIRouter()


@router.get("/stats")
def admin_stats(db: Session = Depends(get_db)):
    return {"data": get_stats(db)}


@router.get("/qr")
def admin_list_qr(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(default=None),
    sortBy: str = Query(default="createdAt"),
    order: str = Query(default="desc"),
    db: Session = Depends(get_db),
):
    return {"data": list_qr_codes(db, page=page, limit=limit, search=search, sort_by=sortBy, order=order)}


@router.post("/qr/generate")
def admin_generate_qr(
    payload: GenerateRequest,
    db: Session = Depends(get_db),
    base_url: str = Depends(get_public_base_url),
):
    return {"data": generate_qr_codes(db, payload.count, base_url)}


@router.delete("/qr")
def admin_delete_qr(payload: DeleteQRRequest, db: Session = Depends(get_db)):
    if not payload.id:
        raise ValidationError("QR code id is required")
    delete_qr_code(db, payload.id)
    return {"data": {"success": True}}


@router.get("/qr/{short_id}/image")
def admin_qr_image(
    short_id: str,
    db: Session = Depends(get_db),
    base_url: str = Depends(get_public_base_url),
):
    png = get_qr_png(db, short_id, base_url)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="{short_id.upper()}.png"'},
    )
