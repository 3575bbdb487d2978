"""
Patient Schemas - Pydantic models for policy-gated clinical record operations.
"""
from datetime import date, datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

class PatientUpdate(BaseModel):
    """
    Patient field edits. Only the fields present in the request are applied,
    and each one must be editable by the actor's role.
    """
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    date_of_birth: Optional[date] = None
    diagnosis: Optional[str] = None
    stage: Optional[str] = None
    cancer_type: Optional[str] = None
    allergies: Optional[List[str]] = None
    current_medications: Optional[List[str]] = None
    emergency_contacts: Optional[List[Any]] = None
    operations: Optional[List[Any]] = None
    treatment_summary: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value: Optional[str]) -> str:
        # The column is required; the field may be omitted but not cleared
        if value is None:
            raise ValueError("name cannot be null")
        return value

class PatientResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    name: str
    rut: str
    date_of_birth: Optional[date] = None
    diagnosis: Optional[str] = None
    stage: Optional[str] = None
    cancer_type: Optional[str] = None
    allergies: List[Any] = []
    current_medications: List[Any] = []
    emergency_contacts: List[Any] = []
    operations: List[Any] = []
    treatment_summary: Optional[str] = None

class NoteCreate(BaseModel):
    content: str = Field(..., min_length=1)

class NoteUpdate(BaseModel):
    content: str = Field(..., min_length=1)

class NoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    author_id: Optional[str] = None
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class DocumentCreate(BaseModel):
    title: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    description: Optional[str] = None
    url: Optional[str] = None

class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    uploader_id: Optional[str] = None
    title: str
    type: str
    description: Optional[str] = None
    url: Optional[str] = None
    created_at: Optional[datetime] = None
