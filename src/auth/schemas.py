"""
Account Schemas - Pydantic models for request validation and response serialization.
"""
import re
from typing import Optional, List, Any
from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from .models import UserRole
from ..core.rut import clean_rut, format_rut, validate_rut

# bcrypt only reads the first 72 bytes of its input
PASSWORD_MAX_BYTES = 72

def check_password_strength(password: str) -> str:
    """
    Validate password meets the platform requirements.

    Requirements:
    - At least 8 characters long, at most 72 bytes
    - Contains a lowercase letter
    - Contains an uppercase letter
    - Contains a number

    Raises:
        ValueError: With the first requirement that is not met
    """
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError("Password must be at most 72 bytes long")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain at least one number")
    return password

class RegisterRequest(BaseModel):
    """
    Registration Schema - Used when creating any account

    Fields:
    - name: Display name (2-100 characters)
    - email: Email address, stored lower-cased
    - password: Plain text password (hashed before storage)
    - rut: Chilean national id, stored formatted
    - role: Account role (defaults to patient)
    """
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str
    rut: str
    role: UserRole = UserRole.PATIENT

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return check_password_strength(value)

    @field_validator("rut")
    @classmethod
    def rut_checksum(cls, value: str) -> str:
        if not validate_rut(value):
            raise ValueError("RUT is not valid, expected format 12.345.678-9")
        return format_rut(clean_rut(value))

class UserLogin(BaseModel):
    """
    User Login Schema - Used for authentication

    Emails are not validated here so that a malformed address fails the same
    way as an unknown one.
    """
    email: str
    password: str

class ForgotPasswordRequest(BaseModel):
    """Password reset request - only the email is needed."""
    email: str

class ResetPasswordRequest(BaseModel):
    """
    Password reset redemption

    Fields:
    - token: Raw reset secret received by email
    - new_password: New password
    """
    token: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return check_password_strength(value)

class ProfileUpdate(BaseModel):
    """Clinical staff profile completion."""
    department: str = Field(..., min_length=1, max_length=100)
    license_number: str = Field(..., min_length=1, max_length=50)

class SearchHistoryCreate(BaseModel):
    patient_id: str
    patient_rut: str

class SearchHistoryEntry(BaseModel):
    patientId: str
    patientRut: str
    searchedAt: datetime

class RegisterResponse(BaseModel):
    id: str
    email: EmailStr
    role: UserRole

class LoginResponse(BaseModel):
    """
    Login Response Schema - Returned after successful authentication

    Fields:
    - access_token: Signed session token
    - token_type: Type of token (always "bearer")
    - role: Role of the authenticated account
    """
    access_token: str
    token_type: str = "bearer"
    role: UserRole

class MessageResponse(BaseModel):
    message: str

class ProfileResponse(BaseModel):
    """
    Profile returned to the account owner. The password hash and the reset
    token fields are never part of it.
    """
    id: str
    name: str
    email: EmailStr
    rut: str
    role: UserRole
    department: Optional[str] = None
    license_number: Optional[str] = None
    searchHistory: List[Any] = []
    assignedPatients: List[Any] = []
    patientIds: List[Any] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class TokenClaims(BaseModel):
    """Claims carried by a session token."""
    sub: str
    email: str
    role: UserRole
    iat: Optional[int] = None
    exp: int
