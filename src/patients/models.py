"""
Patient Models - Clinical record, notes and document metadata.

Only the fields gated by the access policy are modelled here.
"""
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base
from ..auth.models import generate_uuid

# Patient columns that hold JSON-encoded lists
LIST_FIELDS = ("allergies", "current_medications", "emergency_contacts", "operations")

class Patient(Base):
    """
    Patient Model - Clinical record of one patient

    Fields:
    - id: UUID primary key
    - user_id: Account of the patient, when the patient has one
    - name: Patient's full name
    - rut: National id, formatted
    - date_of_birth: Patient's date of birth
    - diagnosis, stage, cancer_type: Oncology diagnosis
    - allergies, current_medications, emergency_contacts, operations: JSON lists
    - treatment_summary: Free text summary
    """
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String, nullable=False)
    rut = Column(String, unique=True, index=True, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    diagnosis = Column(String, nullable=True)
    stage = Column(String, nullable=True)
    cancer_type = Column(String, nullable=True)
    allergies = Column(Text, nullable=True)
    current_medications = Column(Text, nullable=True)
    emergency_contacts = Column(Text, nullable=True)
    operations = Column(Text, nullable=True)
    treatment_summary = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    notes = relationship("PatientNote", back_populates="patient", cascade="all, delete-orphan")
    documents = relationship("PatientDocument", back_populates="patient", cascade="all, delete-orphan")

    def __repr__(self):
        """String representation of the Patient model"""
        return f"<Patient(id={self.id}, rut={self.rut})>"

class PatientNote(Base):
    """Clinical note written by a doctor or nurse."""
    __tablename__ = "patient_notes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    patient = relationship("Patient", back_populates="notes")

class PatientDocument(Base):
    """Metadata of a document attached to a patient record; the binary lives elsewhere."""
    __tablename__ = "patient_documents"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    uploader_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    title = Column(String, nullable=False)
    type = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    patient = relationship("Patient", back_populates="documents")
