"""
Authentication routes for the clinical records platform.
"""
from fastapi import APIRouter, Depends, status
import logging

from .dependencies import get_auth_service, get_current_claims
from .schemas import (
    ForgotPasswordRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    SearchHistoryCreate,
    SearchHistoryEntry,
    TokenClaims,
    UserLogin,
)
from .service import AuthService

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

FORGOT_PASSWORD_MESSAGE = "If the email is registered, a recovery link will be sent"

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """
    Register a new account.

    Returns 409 when the email or the RUT is already registered.
    """
    return await service.register(data.name, data.email, data.password, data.rut, data.role)

@router.post("/login", response_model=LoginResponse)
async def login(data: UserLogin, service: AuthService = Depends(get_auth_service)):
    """
    Authenticate with email and password and receive a session token.
    """
    return await service.login(data.email, data.password)

@router.get("/me", response_model=ProfileResponse)
async def get_me(
    claims: TokenClaims = Depends(get_current_claims),
    service: AuthService = Depends(get_auth_service),
):
    """Profile of the authenticated account."""
    return await service.get_profile(claims.sub)

@router.patch("/me/profile", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    claims: TokenClaims = Depends(get_current_claims),
    service: AuthService = Depends(get_auth_service),
):
    """Complete department and license of a doctor or nurse."""
    return await service.update_profile(claims.sub, data.department, data.license_number)

@router.post("/me/search-history", response_model=SearchHistoryEntry, status_code=status.HTTP_201_CREATED)
async def add_search_history(
    data: SearchHistoryCreate,
    claims: TokenClaims = Depends(get_current_claims),
    service: AuthService = Depends(get_auth_service),
):
    return await service.add_search_history(claims.sub, data.patient_id, data.patient_rut)

@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(data: ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)):
    """
    Request a password reset link.

    The response is the same whether or not the email is registered.
    """
    await service.request_password_reset(data.email)
    return {"message": FORGOT_PASSWORD_MESSAGE}

@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    """
    Set a new password with the secret received by email.
    """
    await service.reset_password(data.token, data.new_password)
    return {"message": "Password updated successfully"}
