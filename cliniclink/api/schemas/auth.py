from datetime import date

from pydantic import BaseModel, EmailStr, Field, field_validator

from cliniclink.core.clock import local_now


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    full_name: str | None = None
    name: str | None = None  # mobile client sends "name"; used when full_name is absent
    phone: str = Field(pattern=r"^[0-9]{10}$", description="Mobile number, 10 digits")
    date_of_birth: date

    @field_validator("date_of_birth")
    @classmethod
    def not_in_future(cls, v: date) -> date:
        if v > local_now().date():
            raise ValueError("Date of birth cannot be in the future")
        return v


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class ProfileUpdateRequest(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    date_of_birth: date | None = None
