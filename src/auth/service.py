"""
Authentication service layer for business logic.
"""
import asyncio
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Union

from pydantic import ValidationError

from ..config import settings
from ..core.json_fields import dump_list, parse_list
from ..core.mailer import Mailer
from ..core.permissions import Action, ResourceCategory, can_perform, is_in_scope
from ..core.security import (
    create_access_token,
    dummy_password_hash,
    generate_secure_reset_token,
    get_token_expiry_time,
    hash_password,
    hash_token,
    verify_and_update_password,
    verify_token,
)
from .exceptions import (
    ConflictFailure,
    ConflictKind,
    InvalidCredentialsException,
    InvalidOrExpiredResetToken,
    NotFoundFailure,
    ValidationFailure,
)
from .models import CLINICAL_STAFF_ROLES, User, UserRole
from .repository import UserRepository, classify_conflict
from .schemas import (
    ProfileResponse,
    RegisterRequest,
    SearchHistoryEntry,
    check_password_strength,
)

# Set up logging
logger = logging.getLogger(__name__)

SEARCH_HISTORY_LIMIT = 50

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def validation_failure_from(error: ValidationError) -> ValidationFailure:
    """Turn the first pydantic error into a field-specific ValidationFailure."""
    first = error.errors()[0]
    field = str(first["loc"][0]) if first.get("loc") else "body"
    message = first.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return ValidationFailure(field, f"{field}: {message}")


class AuthService:
    """
    Registration, login, profile and password-reset flows over an account store.

    Args:
        repository: Account store
        mailer: Outbound mail collaborator
        clock: Returns the current UTC time
        token_bytes: Cryptographically secure random byte source
    """

    def __init__(
        self,
        repository: UserRepository,
        mailer: Mailer,
        clock: Callable[[], datetime] = utc_now,
        token_bytes: Callable[[int], bytes] = secrets.token_bytes,
    ):
        self.repository = repository
        self.mailer = mailer
        self.clock = clock
        self.token_bytes = token_bytes

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        rut: str,
        role: Optional[Union[UserRole, str]] = None,
    ) -> Dict[str, Any]:
        """
        Register a new account.

        Returns:
            Dict with id, email and role of the created account

        Raises:
            ValidationFailure: If a field is malformed
            ConflictFailure: If the email, then the national id, is taken
        """
        try:
            data = RegisterRequest(
                name=name,
                email=email,
                password=password,
                rut=rut,
                role=role or UserRole.PATIENT,
            )
        except ValidationError as e:
            failure = validation_failure_from(e)
            logger.warning(f"Registration rejected: invalid {failure.field}")
            raise failure

        logger.info(f"Registration attempt for email: {data.email}")

        if self.repository.get_by_email(data.email):
            logger.warning(f"Registration failed: Email {data.email} already registered")
            raise ConflictFailure(ConflictKind.EMAIL)

        if self.repository.get_by_rut(data.rut):
            logger.warning(f"Registration failed: RUT already registered for {data.email}")
            raise ConflictFailure(ConflictKind.NATIONAL_ID)

        password_hash = await asyncio.to_thread(hash_password, data.password)

        user = User(
            name=data.name,
            email=data.email,
            password_hash=password_hash,
            rut=data.rut,
            role=data.role,
        )

        try:
            user = self.repository.create(user)
        except Exception as e:
            kind = classify_conflict(e)
            if kind is None:
                raise
            logger.warning(f"Registration failed at insert: duplicate {kind.value} for {data.email}")
            raise ConflictFailure(kind) from e

        logger.info(f"Account created: {user.id} ({user.role.value})")

        return {"id": user.id, "email": user.email, "role": user.role}

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate an account and issue a session token.

        An unknown email and a wrong password raise the same exception after
        the same amount of hashing work.

        Raises:
            InvalidCredentialsException: If credentials are invalid
        """
        user = self.repository.get_by_email((email or "").strip().lower())

        digest = user.password_hash if user else dummy_password_hash()
        password_ok, new_hash = await asyncio.to_thread(verify_and_update_password, password or "", digest)

        if not user or not password_ok:
            logger.warning(f"Login failed for {email}")
            raise InvalidCredentialsException()

        if new_hash:
            user.password_hash = new_hash
            self.repository.save(user)
            logger.info(f"Password digest of {user.id} rehashed at the current cost")

        access_token = create_access_token(
            {"sub": user.id, "email": user.email, "role": user.role.value}
        )

        logger.info(f"Login successful: User {user.id}")

        return {"access_token": access_token, "token_type": "bearer", "role": user.role}

    def _get_user(self, account_id: str) -> User:
        user = self.repository.get_by_id(account_id)
        if not user:
            raise NotFoundFailure()
        return user

    async def get_profile(self, account_id: str) -> ProfileResponse:
        """
        Load an account profile without credentials.

        Auxiliary JSON lists that cannot be decoded are returned empty.

        Raises:
            NotFoundFailure: If the account does not exist
        """
        user = self._get_user(account_id)

        return ProfileResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            rut=user.rut,
            role=user.role,
            department=user.department,
            license_number=user.license_number,
            searchHistory=parse_list(user.search_history, "search_history"),
            assignedPatients=parse_list(user.assigned_patients, "assigned_patients"),
            patientIds=parse_list(user.patient_ids, "patient_ids"),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    async def update_profile(self, account_id: str, department: str, license_number: str) -> ProfileResponse:
        """
        Complete the professional profile of a doctor or nurse.

        Raises:
            NotFoundFailure: If the account does not exist
            ValidationFailure: If the account is not clinical staff
        """
        user = self._get_user(account_id)
        if user.role not in CLINICAL_STAFF_ROLES:
            raise ValidationFailure("role", "Only doctors and nurses have a professional profile")

        user.department = department.strip()
        user.license_number = license_number.strip()
        user.updated_at = self.clock()
        self.repository.save(user)

        logger.info(f"Professional profile updated for {user.id}")
        return await self.get_profile(account_id)

    async def add_search_history(self, account_id: str, patient_id: str, patient_rut: str) -> SearchHistoryEntry:
        """
        Record a patient lookup made by a doctor or nurse, newest first.

        Raises:
            NotFoundFailure: If the account does not exist
            ValidationFailure: If the account is not clinical staff
        """
        user = self._get_user(account_id)
        if user.role not in CLINICAL_STAFF_ROLES:
            raise ValidationFailure("role", "Only doctors and nurses keep a search history")

        entry = SearchHistoryEntry(patientId=patient_id, patientRut=patient_rut, searchedAt=self.clock())

        history = parse_list(user.search_history, "search_history")
        history.insert(0, entry.model_dump(mode="json"))
        user.search_history = dump_list(history[:SEARCH_HISTORY_LIMIT])
        user.updated_at = entry.searchedAt
        self.repository.save(user)

        return entry

    async def request_password_reset(self, email: str) -> None:
        """
        Issue a reset secret and mail the link.

        Unknown emails are ignored so the caller always sees the same outcome.
        A mail failure is logged and leaves the issued secret valid.
        """
        user = self.repository.get_by_email((email or "").strip().lower())

        if not user:
            logger.info("Password reset requested for an unknown email")
            return

        raw_token = generate_secure_reset_token(self.token_bytes)
        user.password_reset_token = hash_token(raw_token)
        user.password_reset_expires = get_token_expiry_time(
            self.clock(), settings.password_reset_expires_minutes
        )
        user.updated_at = self.clock()
        self.repository.save(user)

        logger.info(f"Password reset token issued for {user.id}")

        link = f"{settings.app_url}/reset-password?token={raw_token}"
        try:
            await self.mailer.send_password_reset_link(user.email, link)
        except Exception as e:
            logger.error(f"Failed to send password reset email to {user.email}: {type(e).__name__}")

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Redeem a reset secret and set a new password.

        Raises:
            ValidationFailure: If the new password is too weak
            InvalidOrExpiredResetToken: If the secret is unknown, expired or already used
        """
        try:
            check_password_strength(new_password)
        except ValueError as e:
            raise ValidationFailure("new_password", f"new_password: {e}")

        token_hash = hash_token(token or "")
        now = self.clock()

        user = self.repository.get_by_reset_token_hash(token_hash, now)
        if not user:
            logger.warning("Password reset failed: invalid or expired token")
            raise InvalidOrExpiredResetToken()

        password_hash = await asyncio.to_thread(hash_password, new_password)

        if not self.repository.redeem_reset_token(user.id, token_hash, now, password_hash):
            logger.warning(f"Password reset failed: token for {user.id} already redeemed")
            raise InvalidOrExpiredResetToken()

        logger.info(f"Password reset successful for {user.id}")


def authorize(
    session_token: str,
    action: Union[Action, str],
    category: Union[ResourceCategory, str],
    resource: Any = None,
    field: Optional[str] = None,
) -> bool:
    """
    Decide whether the bearer of a session token may act on a resource.

    Args:
        session_token: Signed session token
        action: Requested action
        category: Resource category
        resource: Target record, checked against the role's scope when given
        field: Field being written, when the check is per field

    Returns:
        bool: True if allowed
    """
    claims = verify_token(session_token)
    if claims is None:
        return False

    if not can_perform(claims.role, action, category, field):
        return False

    if resource is not None and not is_in_scope(claims.role, claims.sub, resource, category):
        return False

    return True
