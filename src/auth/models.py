"""
User Model - Stores every account of the clinical records platform.

Patients, doctors, nurses and guardians share one table; role-specific data
lives in optional columns interpreted according to the role.
"""
from sqlalchemy import Column, String, DateTime, Enum, Text
from sqlalchemy.sql import func
import enum
import uuid
from ..database import Base

class UserRole(str, enum.Enum):
    """
    Enumeration for user roles in the clinical records platform.

    Roles:
    - PATIENT: Patients who own their clinical record
    - DOCTOR: Physicians with full edit rights over clinical data
    - NURSE: Nursing staff with a restricted set of editable fields
    - GUARDIAN: Relatives or carers linked to one or more patients
    """
    PATIENT = "patient"
    DOCTOR = "doctor"
    NURSE = "nurse"
    GUARDIAN = "guardian"

CLINICAL_STAFF_ROLES = (UserRole.DOCTOR, UserRole.NURSE)

def generate_uuid() -> str:
    return str(uuid.uuid4())

class User(Base):
    """
    User Model - Stores all account information in the system

    Fields:
    - id: UUID primary key
    - name: Display name
    - email: Unique email address for login and communication
    - password_hash: bcrypt digest (never exposed outside the auth package)
    - rut: Unique national id, stored formatted ("12.345.678-5")
    - role: patient, doctor, nurse or guardian
    - department: Clinical staff department (optional)
    - license_number: Clinical staff license (optional)
    - password_reset_token: SHA-256 hash of the outstanding reset secret
    - password_reset_expires: Expiry of the outstanding reset secret
    - search_history: JSON list of patient lookups (doctors/nurses)
    - assigned_patients: JSON list of patient ids (doctors/nurses)
    - patient_ids: JSON list of patient ids (guardians)
    - created_at: Timestamp when user was created
    - updated_at: Timestamp when user was last updated
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    rut = Column(String, unique=True, index=True, nullable=False)
    role = Column(Enum(UserRole, values_callable=lambda e: [m.value for m in e]), nullable=False, default=UserRole.PATIENT)
    department = Column(String, nullable=True)
    license_number = Column(String, nullable=True)
    password_reset_token = Column(String, nullable=True, index=True)
    password_reset_expires = Column(DateTime(timezone=True), nullable=True)
    search_history = Column(Text, nullable=True)
    assigned_patients = Column(Text, nullable=True)
    patient_ids = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
