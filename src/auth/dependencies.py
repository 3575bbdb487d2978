"""
FastAPI dependencies for authentication and authorization.
"""
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
import logging

from ..core.mailer import Mailer, get_mailer
from ..core.permissions import Action, ResourceCategory
from ..core.security import verify_token
from ..database import get_db
from .exceptions import InvalidTokenException, PermissionDeniedFailure
from .repository import UserRepository
from .schemas import TokenClaims
from .service import AuthService, authorize

logger = logging.getLogger(__name__)

# OAuth2 scheme for session token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

def get_auth_service(db: Session = Depends(get_db), mailer: Mailer = Depends(get_mailer)) -> AuthService:
    return AuthService(UserRepository(db), mailer)

def get_session_token(token: str = Depends(oauth2_scheme)) -> str:
    """
    Return the raw bearer token of the request.

    Raises:
        InvalidTokenException: If the Authorization header is missing
    """
    if not token:
        raise InvalidTokenException()
    return token

def get_current_claims(token: str = Depends(get_session_token)) -> TokenClaims:
    """
    Verify the bearer token and return its claims.

    Raises:
        InvalidTokenException: If the token is malformed, forged or expired
    """
    claims = verify_token(token)
    if claims is None:
        raise InvalidTokenException()
    return claims

def require_permission(action: Action, category: ResourceCategory):
    """
    Dependency factory to require an action on a resource category.

    Args:
        action: Action the route performs
        category: Resource category the route touches

    Returns:
        Function that checks the bearer's role and returns its claims
    """
    def permission_checker(
        token: str = Depends(get_session_token),
        claims: TokenClaims = Depends(get_current_claims),
    ) -> TokenClaims:
        if not authorize(token, action, category):
            logger.warning(f"Denied {action.value} on {category.value} for role {claims.role.value}")
            raise PermissionDeniedFailure()
        return claims
    return permission_checker
