"""
Authentication-specific exceptions.
"""
from fastapi import HTTPException, status
import enum

class ConflictKind(str, enum.Enum):
    """Which unique account attribute a registration collided on."""
    EMAIL = "email"
    NATIONAL_ID = "national_id"

class AuthException(HTTPException):
    """Base class for authentication exceptions."""
    def __init__(self, status_code: int, detail: str, headers: dict = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)

class ValidationFailure(AuthException):
    """Exception raised when a request field is malformed."""
    def __init__(self, field: str, detail: str):
        self.field = field
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)

class ConflictFailure(AuthException):
    """Exception raised when the email or national id is already registered."""
    messages = {
        ConflictKind.EMAIL: "Email already registered",
        ConflictKind.NATIONAL_ID: "National id already registered",
    }

    def __init__(self, kind: ConflictKind):
        self.kind = ConflictKind(kind)
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=self.messages[self.kind])

class UnauthorizedFailure(AuthException):
    """Exception raised when credentials or tokens cannot be accepted."""
    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class InvalidCredentialsException(UnauthorizedFailure):
    """Exception raised by login, whatever part of the check failed."""
    def __init__(self):
        super().__init__("Invalid credentials")

class InvalidTokenException(UnauthorizedFailure):
    """Exception raised when a session token is invalid or expired."""
    def __init__(self):
        super().__init__("Invalid or expired token")

class InvalidOrExpiredResetToken(UnauthorizedFailure):
    """Exception raised when a reset secret is unknown, expired or already used."""
    def __init__(self):
        super().__init__("Invalid or expired reset token")

class NotFoundFailure(AuthException):
    """Exception raised when a requested record does not exist."""
    def __init__(self, detail: str = "User not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class PermissionDeniedFailure(AuthException):
    """Exception raised when the access policy denies an action."""
    def __init__(self, detail: str = "Permission denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
