"""
Patient record routes. Each route is gated by the access policy.
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..auth.dependencies import require_permission
from ..auth.schemas import TokenClaims
from ..core.permissions import Action, ResourceCategory
from ..database import get_db
from .schemas import (
    DocumentCreate,
    DocumentResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
    PatientResponse,
    PatientUpdate,
)
from .service import PatientRecordsService

router = APIRouter(prefix="/api/v1/patients", tags=["Patients"])

def get_records_service(db: Session = Depends(get_db)) -> PatientRecordsService:
    return PatientRecordsService(db)

@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: str,
    claims: TokenClaims = Depends(require_permission(Action.READ, ResourceCategory.PATIENT_PROFILE)),
    service: PatientRecordsService = Depends(get_records_service),
):
    return service.get_patient(claims, patient_id)

@router.patch("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: str,
    data: PatientUpdate,
    claims: TokenClaims = Depends(require_permission(Action.UPDATE, ResourceCategory.PATIENT_PROFILE)),
    service: PatientRecordsService = Depends(get_records_service),
):
    """Edit patient fields; every field sent must be editable by the caller's role."""
    return service.update_patient(claims, patient_id, data.model_dump(exclude_unset=True))

@router.post("/{patient_id}/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
def create_note(
    patient_id: str,
    data: NoteCreate,
    claims: TokenClaims = Depends(require_permission(Action.CREATE, ResourceCategory.NOTES)),
    service: PatientRecordsService = Depends(get_records_service),
):
    return service.create_note(claims, patient_id, data.content)

@router.patch("/{patient_id}/notes/{note_id}", response_model=NoteResponse)
def update_note(
    patient_id: str,
    note_id: str,
    data: NoteUpdate,
    claims: TokenClaims = Depends(require_permission(Action.UPDATE, ResourceCategory.NOTES)),
    service: PatientRecordsService = Depends(get_records_service),
):
    return service.update_note(claims, patient_id, note_id, data.content)

@router.delete("/{patient_id}/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_note(
    patient_id: str,
    note_id: str,
    claims: TokenClaims = Depends(require_permission(Action.DELETE, ResourceCategory.NOTES)),
    service: PatientRecordsService = Depends(get_records_service),
):
    service.delete_note(claims, patient_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/{patient_id}/documents", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def create_document(
    patient_id: str,
    data: DocumentCreate,
    claims: TokenClaims = Depends(require_permission(Action.CREATE, ResourceCategory.DOCUMENTS)),
    service: PatientRecordsService = Depends(get_records_service),
):
    return service.create_document(claims, patient_id, data.model_dump())

@router.delete("/{patient_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    patient_id: str,
    document_id: str,
    claims: TokenClaims = Depends(require_permission(Action.DELETE, ResourceCategory.DOCUMENTS)),
    service: PatientRecordsService = Depends(get_records_service),
):
    service.delete_document(claims, patient_id, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
