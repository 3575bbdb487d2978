"""
Clinical record operations gated by the access policy.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..auth.exceptions import NotFoundFailure, PermissionDeniedFailure
from ..auth.schemas import TokenClaims
from ..core.json_fields import dump_list, parse_list
from ..core.permissions import Action, ResourceCategory, can_perform, is_in_scope
from .models import LIST_FIELDS, Patient, PatientDocument, PatientNote
from .schemas import PatientResponse

logger = logging.getLogger(__name__)


def require(
    actor: TokenClaims,
    action: Action,
    category: ResourceCategory,
    resource: Any = None,
    field: Optional[str] = None,
) -> None:
    """
    Raise PermissionDeniedFailure unless the policy allows the action.

    Args:
        actor: Claims of the authenticated account
        action: Requested action
        category: Resource category
        resource: Target record, checked against the role's scope when given
        field: Field being written
    """
    allowed = can_perform(actor.role, action, category, field)
    if allowed and resource is not None:
        allowed = is_in_scope(actor.role, actor.sub, resource, category)

    if not allowed:
        target = f"{category.value}.{field}" if field else category.value
        logger.warning(f"Denied {action.value} on {target} for {actor.role.value} {actor.sub}")
        raise PermissionDeniedFailure()


def to_patient_response(patient: Patient) -> PatientResponse:
    lists = {name: parse_list(getattr(patient, name), name) for name in LIST_FIELDS}
    return PatientResponse(
        id=patient.id,
        user_id=patient.user_id,
        name=patient.name,
        rut=patient.rut,
        date_of_birth=patient.date_of_birth,
        diagnosis=patient.diagnosis,
        stage=patient.stage,
        cancer_type=patient.cancer_type,
        treatment_summary=patient.treatment_summary,
        **lists,
    )


class PatientRecordsService:

    def __init__(self, db: Session):
        self.db = db

    def _get_patient(self, patient_id: str) -> Patient:
        patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise NotFoundFailure("Patient not found")
        return patient

    def _get_note(self, patient_id: str, note_id: str) -> PatientNote:
        note = (
            self.db.query(PatientNote)
            .filter(PatientNote.id == note_id, PatientNote.patient_id == patient_id)
            .first()
        )
        if not note:
            raise NotFoundFailure("Note not found")
        return note

    def _get_document(self, patient_id: str, document_id: str) -> PatientDocument:
        document = (
            self.db.query(PatientDocument)
            .filter(PatientDocument.id == document_id, PatientDocument.patient_id == patient_id)
            .first()
        )
        if not document:
            raise NotFoundFailure("Document not found")
        return document

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def get_patient(self, actor: TokenClaims, patient_id: str) -> PatientResponse:
        patient = self._get_patient(patient_id)
        require(actor, Action.READ, ResourceCategory.PATIENT_PROFILE, patient)
        return to_patient_response(patient)

    def update_patient(self, actor: TokenClaims, patient_id: str, changes: Dict[str, Any]) -> PatientResponse:
        """
        Apply field edits to a patient record.

        Every field is checked before anything is written, and all of them
        are committed together.

        Raises:
            NotFoundFailure: If the patient does not exist
            PermissionDeniedFailure: If any field is not editable by the actor
        """
        patient = self._get_patient(patient_id)

        for field in changes:
            require(actor, Action.UPDATE, ResourceCategory.PATIENT_PROFILE, patient, field)

        for field, value in changes.items():
            if field in LIST_FIELDS:
                value = dump_list(value or [])
            setattr(patient, field, value)

        self._commit()
        self.db.refresh(patient)
        logger.info(f"Patient {patient.id} updated by {actor.sub}: {sorted(changes)}")
        return to_patient_response(patient)

    def create_note(self, actor: TokenClaims, patient_id: str, content: str) -> PatientNote:
        require(actor, Action.CREATE, ResourceCategory.NOTES, field="content")
        patient = self._get_patient(patient_id)

        note = PatientNote(patient_id=patient.id, author_id=actor.sub, content=content)
        self.db.add(note)
        self._commit()
        self.db.refresh(note)
        logger.info(f"Note {note.id} created on patient {patient.id} by {actor.sub}")
        return note

    def update_note(self, actor: TokenClaims, patient_id: str, note_id: str, content: str) -> PatientNote:
        note = self._get_note(patient_id, note_id)
        require(actor, Action.UPDATE, ResourceCategory.NOTES, note, "content")

        note.content = content
        self._commit()
        self.db.refresh(note)
        return note

    def delete_note(self, actor: TokenClaims, patient_id: str, note_id: str) -> None:
        note = self._get_note(patient_id, note_id)
        require(actor, Action.DELETE, ResourceCategory.NOTES, note)

        self.db.delete(note)
        self._commit()
        logger.info(f"Note {note_id} deleted by {actor.sub}")

    def create_document(self, actor: TokenClaims, patient_id: str, data: Dict[str, Any]) -> PatientDocument:
        for field in data:
            require(actor, Action.CREATE, ResourceCategory.DOCUMENTS, field=field)
        patient = self._get_patient(patient_id)

        document = PatientDocument(patient_id=patient.id, uploader_id=actor.sub, **data)
        self.db.add(document)
        self._commit()
        self.db.refresh(document)
        logger.info(f"Document {document.id} attached to patient {patient.id} by {actor.sub}")
        return document

    def delete_document(self, actor: TokenClaims, patient_id: str, document_id: str) -> None:
        document = self._get_document(patient_id, document_id)
        require(actor, Action.DELETE, ResourceCategory.DOCUMENTS, document)

        self.db.delete(document)
        self._commit()
        logger.info(f"Document {document_id} deleted by {actor.sub}")
