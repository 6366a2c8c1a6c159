from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.qr import PasswordRequest, RegisterRequest, UpdateRequest
from app.services.registration_service import (
    get_qr_info,
    register_vehicle,
    unregister_vehicle,
    update_vehicle,
    verify_owner,
)

router = APIRouter()


@router.get("/info/{short_id}")
def qr_info(short_id: str, db: Session = Depends(get_db)):
    return {"data": get_qr_info(db, short_id)}


@router.get("/{short_id}")
def qr_info_alias(short_id: str, db: Session = Depends(get_db)):
    return {"data": get_qr_info(db, short_id)}


@router.post("/{short_id}/register")
def qr_register(short_id: str, payload: RegisterRequest, db: Session = Depends(get_db)):
    vehicle = register_vehicle(
        db,
        short_id,
        phone_number=payload.phoneNumber,
        vehicle_number=payload.vehicleNumber,
        password=payload.password,
    )
    return {"data": {"vehicle": vehicle}, "message": "Vehicle registered"}


@router.post("/{short_id}/verify")
def qr_verify(short_id: str, payload: PasswordRequest, db: Session = Depends(get_db)):
    return {"data": {"vehicle": verify_owner(db, short_id, payload.password)}}


@router.put("/{short_id}/update")
def qr_update(short_id: str, payload: UpdateRequest, db: Session = Depends(get_db)):
    result = update_vehicle(
        db,
        short_id,
        password=payload.password,
        phone_number=payload.phoneNumber,
        vehicle_number=payload.vehicleNumber,
        new_password=payload.newPassword,
    )
    return {"data": result, "message": "Vehicle information updated"}


@router.delete("/{short_id}/delete")
def qr_unregister(short_id: str, payload: PasswordRequest, db: Session = Depends(get_db)):
    unregister_vehicle(db, short_id, payload.password)
    return {"data": {"success": True}, "message": "Registration removed"}
