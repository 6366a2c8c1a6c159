from pydantic import BaseModel


class RegisterRequest(BaseModel):
    phoneNumber: str | None = None
    vehicleNumber: str | None = None
    password: str | None = None


class PasswordRequest(BaseModel):
    password: str | None = None


class UpdateRequest(BaseModel):
    password: str | None = None
    phoneNumber: str | None = None
    vehicleNumber: str | None = None
    newPassword: str | None = None
