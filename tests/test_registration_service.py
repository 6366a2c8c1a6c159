"""Unit tests for the QR registration lifecycle."""

import re

import pytest
from sqlalchemy.orm import Session, sessionmaker

from app.core.exceptions import AlreadyRegistered, NotFound, NotRegistered, Unauthorized, ValidationError
from app.core.security import verify_password
from app.db.models import QRCode, QRStatus, Vehicle
from app.services.registration_service import (
    get_qr_info,
    register_vehicle,
    unregister_vehicle,
    update_vehicle,
    verify_owner,
)


def assert_status_matches_vehicle(db):
    db.expire_all()
    for qr in db.query(QRCode).all():
        has_vehicle = db.query(Vehicle).filter(Vehicle.qr_code_id == qr.id).count() == 1
        assert (qr.status == QRStatus.REGISTERED) == has_vehicle


class TestRegister:
    def test_register_unregistered_code(self, db, make_qr):
        make_qr("J6UQDV")

        result = register_vehicle(db, "J6UQDV", "01012345678", "12가1234", "1234")

        assert result["vehicleNumber"] == "12가1234"
        assert re.fullmatch(r"050-\d{4}-\d{4}", result["safeNumber"])
        assert result["registeredAt"]
        assert "password" not in result and "phoneNumber" not in result

        db.expire_all()
        qr = db.query(QRCode).filter(QRCode.short_id == "J6UQDV").one()
        assert qr.status == QRStatus.REGISTERED
        assert qr.vehicle.phone_number == "010-1234-5678"
        assert qr.vehicle.password_hash != "1234"
        assert verify_password("1234", qr.vehicle.password_hash)
        assert_status_matches_vehicle(db)

    def test_second_register_is_rejected(self, db, make_qr):
        make_qr("J6UQDV")
        register_vehicle(db, "J6UQDV", "01012345678", "12가1234", "1234")

        with pytest.raises(AlreadyRegistered):
            register_vehicle(db, "J6UQDV", "01099998888", "34나5678", "9999")

        db.expire_all()
        assert db.query(Vehicle).count() == 1
        assert_status_matches_vehicle(db)

    def test_plate_is_uppercased(self, db, make_qr):
        make_qr("ABC123")
        result = register_vehicle(db, "ABC123", "010-1111-2222", "ab12cd", "4321")
        assert result["vehicleNumber"] == "AB12CD"

    def test_short_id_lookup_is_case_insensitive(self, db, make_qr):
        make_qr("ABC123")
        register_vehicle(db, "abc123", "01011112222", "12가1234", "4321")
        assert get_qr_info(db, "ABC123")["status"] == "REGISTERED"

    def test_concurrent_registration_hits_unique_constraint(self, db, engine, make_qr):
        qr = make_qr("J6UQDV")
        assert qr.vehicle is None  # cached in this session, like a request that already checked

        other = sessionmaker(bind=engine, class_=Session)()
        other.add(
            Vehicle(
                qr_code_id=qr.id,
                phone_number="010-2222-3333",
                vehicle_number="11가1111",
                safe_number="050-0000-0001",
                password_hash="x",
            )
        )
        other.commit()
        other.close()

        with pytest.raises(AlreadyRegistered):
            register_vehicle(db, "J6UQDV", "01012345678", "12가1234", "1234")

        db.expire_all()
        vehicles = db.query(Vehicle).all()
        assert [v.vehicle_number for v in vehicles] == ["11가1111"]

    def test_unknown_code(self, db):
        with pytest.raises(NotFound):
            register_vehicle(db, "ZZZZZZ", "01012345678", "12가1234", "1234")

    @pytest.mark.parametrize(
        "phone, plate, password",
        [
            ("", "12가1234", "1234"),
            ("01012345678", "  ", "1234"),
            ("01012345678", "12가1234", None),
            ("01012345678", "12가1234", "12345"),
        ],
    )
    def test_invalid_input_changes_nothing(self, db, make_qr, phone, plate, password):
        make_qr("J6UQDV")
        with pytest.raises(ValidationError):
            register_vehicle(db, "J6UQDV", phone, plate, password)
        db.expire_all()
        assert db.query(Vehicle).count() == 0
        assert db.query(QRCode).one().status == QRStatus.UNREGISTERED

    def test_existing_vehicle_blocks_register_even_if_status_drifted(self, db, registered_qr):
        db.query(QRCode).filter(QRCode.id == registered_qr.id).update({QRCode.status: QRStatus.UNREGISTERED})
        db.commit()
        db.expire_all()

        with pytest.raises(AlreadyRegistered):
            register_vehicle(db, "R5Q7UD", "01012345678", "99가9999", "1111")
        db.expire_all()
        assert db.query(Vehicle).count() == 1


class TestVerify:
    def test_wrong_password(self, db, registered_qr):
        with pytest.raises(Unauthorized):
            verify_owner(db, "R5Q7UD", "0000")

    def test_correct_password_returns_raw_fields(self, db, make_qr):
        make_qr("J6UQDV")
        register_vehicle(db, "J6UQDV", "01012345678", "12가1234", "1234")

        vehicle = verify_owner(db, "J6UQDV", "1234")

        assert vehicle["vehicleNumber"] == "12가1234"
        assert vehicle["phoneNumber"].replace("-", "") == "01012345678"
        assert "****" not in vehicle["phoneNumber"]

    def test_unregistered_code(self, db, make_qr):
        make_qr("J6UQDV")
        with pytest.raises(NotRegistered):
            verify_owner(db, "J6UQDV", "1234")

    def test_missing_password(self, db, registered_qr):
        with pytest.raises(ValidationError):
            verify_owner(db, "R5Q7UD", "")

    def test_unknown_code(self, db):
        with pytest.raises(NotFound):
            verify_owner(db, "ZZZZZZ", "1234")


class TestUpdate:
    def test_partial_update_plate_only(self, db, registered_qr):
        result = update_vehicle(db, "R5Q7UD", "1234", vehicle_number="34나5678")

        assert result["updated"] == ["vehicleNumber"]
        db.expire_all()
        vehicle = db.query(Vehicle).one()
        assert vehicle.vehicle_number == "34나5678"
        assert vehicle.phone_number == "010-1234-5678"
        assert vehicle.safe_number == "050-8940-3626"

    def test_unchanged_values_are_not_reported(self, db, registered_qr):
        result = update_vehicle(db, "R5Q7UD", "1234", phone_number="01012345678", vehicle_number="12가1234")
        assert result["updated"] == []

    def test_new_password_replaces_old(self, db, registered_qr):
        result = update_vehicle(db, "R5Q7UD", "1234", new_password="5678")

        assert result["updated"] == ["password"]
        with pytest.raises(Unauthorized):
            verify_owner(db, "R5Q7UD", "1234")
        assert verify_owner(db, "R5Q7UD", "5678")["vehicleNumber"] == "12가1234"

    def test_all_three_fields(self, db, registered_qr):
        result = update_vehicle(
            db, "R5Q7UD", "1234", phone_number="010-9999-8888", vehicle_number="56다7890", new_password="0000"
        )
        assert sorted(result["updated"]) == ["password", "phoneNumber", "vehicleNumber"]
        assert verify_owner(db, "R5Q7UD", "0000")["phoneNumber"] == "010-9999-8888"

    def test_wrong_password_updates_nothing(self, db, registered_qr):
        with pytest.raises(Unauthorized):
            update_vehicle(db, "R5Q7UD", "9999", vehicle_number="34나5678")
        db.expire_all()
        assert db.query(Vehicle).one().vehicle_number == "12가1234"

    def test_invalid_new_password(self, db, registered_qr):
        with pytest.raises(ValidationError):
            update_vehicle(db, "R5Q7UD", "1234", vehicle_number="34나5678", new_password="12")
        db.expire_all()
        assert db.query(Vehicle).one().vehicle_number == "12가1234"

    def test_unregistered_code(self, db, make_qr):
        make_qr("J6UQDV")
        with pytest.raises(NotRegistered):
            update_vehicle(db, "J6UQDV", "1234", vehicle_number="34나5678")


class TestUnregister:
    def test_unregister_resets_code(self, db, registered_qr):
        unregister_vehicle(db, "R5Q7UD", "1234")

        info = get_qr_info(db, "R5Q7UD")
        assert info["status"] == "UNREGISTERED"
        assert "vehicle" not in info
        db.expire_all()
        assert db.query(Vehicle).count() == 0
        assert_status_matches_vehicle(db)

    def test_wrong_password_keeps_registration(self, db, registered_qr):
        with pytest.raises(Unauthorized):
            unregister_vehicle(db, "R5Q7UD", "0000")
        db.expire_all()
        assert db.query(Vehicle).count() == 1

    def test_code_can_be_registered_again(self, db, registered_qr):
        unregister_vehicle(db, "R5Q7UD", "1234")
        result = register_vehicle(db, "R5Q7UD", "01055556666", "78라1234", "2468")
        assert result["vehicleNumber"] == "78라1234"
        assert_status_matches_vehicle(db)

    def test_unregistered_code(self, db, make_qr):
        make_qr("J6UQDV")
        with pytest.raises(NotRegistered):
            unregister_vehicle(db, "J6UQDV", "1234")


class TestInfo:
    def test_unregistered_payload(self, db, make_qr):
        make_qr("J6UQDV")
        info = get_qr_info(db, "J6UQDV")
        assert info["status"] == "UNREGISTERED"
        assert info["shortId"] == "J6UQDV"
        assert "vehicle" not in info

    def test_registered_payload_is_masked(self, db, registered_qr):
        info = get_qr_info(db, "R5Q7UD")
        vehicle = info["vehicle"]
        assert info["status"] == "REGISTERED"
        assert vehicle["maskedPhoneNumber"] == "010-****-5678"
        assert vehicle["safeNumber"] == "050-8940-3626"
        assert "phoneNumber" not in vehicle
        assert "password" not in str(info).lower()

    def test_unknown_code(self, db):
        with pytest.raises(NotFound):
            get_qr_info(db, "ZZZZZZ")
