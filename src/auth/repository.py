"""
Account store backed by SQLAlchemy.
"""
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import User
from .exceptions import ConflictKind

logger = logging.getLogger(__name__)

# Fragments of the unique-constraint violation text that identify each column
CONFLICT_SIGNATURES = {
    ConflictKind.EMAIL: ("users.email", "ix_users_email", "users_email_key", "(email)"),
    ConflictKind.NATIONAL_ID: ("users.rut", "ix_users_rut", "users_rut_key", "(rut)"),
}

def classify_conflict(error: Exception) -> Optional[ConflictKind]:
    """
    Map a storage error to the unique attribute it violated.

    Args:
        error: Exception raised while flushing an account

    Returns:
        ConflictKind if the error is a recognized duplicate key, None otherwise
    """
    if not isinstance(error, IntegrityError):
        return None

    message = str(error.orig if error.orig is not None else error).lower()
    for kind, signatures in CONFLICT_SIGNATURES.items():
        if any(signature in message for signature in signatures):
            return kind
    return None


class UserRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_rut(self, rut: str) -> Optional[User]:
        return self.db.query(User).filter(User.rut == rut).first()

    def get_by_reset_token_hash(self, token_hash: str, now: datetime) -> Optional[User]:
        """Find the account holding this reset hash with an expiry after now."""
        return (
            self.db.query(User)
            .filter(User.password_reset_token == token_hash)
            .filter(User.password_reset_expires > now)
            .first()
        )

    def create(self, user: User) -> User:
        """
        Insert a new account.

        Raises:
            IntegrityError: If a unique constraint is violated (session rolled back)
        """
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        """Commit pending changes on an account as one update."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user

    def redeem_reset_token(self, user_id: str, token_hash: str, now: datetime, password_hash: str) -> bool:
        """
        Replace the password and clear the reset fields in a single UPDATE.

        The row only matches while it still holds this hash with a future
        expiry, so of two concurrent redemptions at most one changes it.

        Returns:
            bool: True if the account was updated
        """
        statement = (
            update(User)
            .where(User.id == user_id)
            .where(User.password_reset_token == token_hash)
            .where(User.password_reset_expires > now)
            .values(
                password_hash=password_hash,
                password_reset_token=None,
                password_reset_expires=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(statement)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return result.rowcount == 1
