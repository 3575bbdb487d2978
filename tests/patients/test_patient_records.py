"""
Tests for the policy-gated patient record endpoints.
"""
import pytest

from src.patients.models import Patient, PatientNote


@pytest.fixture
def patient(db):
    record = Patient(name="Pedro Soto", rut="22.222.222-2", diagnosis="Pending")
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def doctor(make_account):
    return make_account("Ana", "ana@x.cl", "11.111.111-1", "doctor")


@pytest.fixture
def nurse(make_account):
    return make_account("Nora", "nora@x.cl", "33.333.333-3", "nurse")


def url(patient, suffix=""):
    return f"/api/v1/patients/{patient.id}{suffix}"


def test_requires_token(client, patient):
    assert client.get(url(patient)).status_code == 401


def test_doctor_reads_patient(client, patient, doctor):
    _, headers = doctor
    response = client.get(url(patient), headers=headers)
    assert response.status_code == 200
    assert response.json()["rut"] == "22.222.222-2"
    assert response.json()["allergies"] == []


def test_unknown_patient(client, doctor):
    _, headers = doctor
    response = client.get("/api/v1/patients/no-such-patient", headers=headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Patient not found"


def test_doctor_edits_diagnosis(client, patient, doctor):
    _, headers = doctor

    response = client.patch(url(patient), json={"diagnosis": "Lymphoma", "stage": "II"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["diagnosis"] == "Lymphoma"
    assert response.json()["stage"] == "II"


def test_nurse_cannot_edit_diagnosis(client, db, patient, nurse):
    _, headers = nurse

    response = client.patch(url(patient), json={"diagnosis": "Lymphoma"}, headers=headers)

    assert response.status_code == 403
    db.refresh(patient)
    assert patient.diagnosis == "Pending"


def test_nurse_edits_allergies(client, patient, nurse):
    _, headers = nurse

    response = client.patch(url(patient), json={"allergies": ["penicillin"]}, headers=headers)

    assert response.status_code == 200
    assert response.json()["allergies"] == ["penicillin"]


def test_denied_field_blocks_whole_update(client, db, patient, nurse):
    _, headers = nurse

    response = client.patch(
        url(patient),
        json={"allergies": ["penicillin"], "diagnosis": "Lymphoma"},
        headers=headers,
    )

    assert response.status_code == 403
    db.refresh(patient)
    assert patient.allergies is None


def test_patient_reads_own_record_only(client, db, make_account):
    account_id, headers = make_account("Pedro", "pedro@x.cl", "22.222.222-2", "patient")
    own = Patient(user_id=account_id, name="Pedro Soto", rut="22.222.222-2")
    other = Patient(name="Rosa Diaz", rut="44.444.444-4")
    db.add_all([own, other])
    db.commit()

    assert client.get(url(own), headers=headers).status_code == 200
    assert client.get(url(other), headers=headers).status_code == 403
    assert client.patch(url(own), json={"diagnosis": "None"}, headers=headers).status_code == 403


def test_guardian_is_denied(client, patient, make_account):
    _, headers = make_account("Gabriela", "gabi@x.cl", "55.555.555-5", "guardian")
    assert client.get(url(patient), headers=headers).status_code == 403


def test_nurse_manages_own_notes(client, patient, nurse):
    _, headers = nurse

    response = client.post(url(patient, "/notes"), json={"content": "Stable overnight"}, headers=headers)
    assert response.status_code == 201
    note_id = response.json()["id"]

    response = client.patch(url(patient, f"/notes/{note_id}"), json={"content": "Stable"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["content"] == "Stable"

    response = client.delete(url(patient, f"/notes/{note_id}"), headers=headers)
    assert response.status_code == 204


def test_nurse_cannot_delete_another_nurses_note(client, db, patient, nurse, make_account):
    other_id, _ = make_account("Olga", "olga@x.cl", "66.666.666-6", "nurse")
    note = PatientNote(patient_id=patient.id, author_id=other_id, content="Written by Olga")
    db.add(note)
    db.commit()
    _, headers = nurse

    response = client.delete(url(patient, f"/notes/{note.id}"), headers=headers)

    assert response.status_code == 403
    assert db.query(PatientNote).count() == 1


def test_doctor_deletes_any_note(client, db, patient, doctor, make_account):
    other_id, _ = make_account("Olga", "olga@x.cl", "66.666.666-6", "nurse")
    note = PatientNote(patient_id=patient.id, author_id=other_id, content="Written by Olga")
    db.add(note)
    db.commit()
    _, headers = doctor

    response = client.delete(url(patient, f"/notes/{note.id}"), headers=headers)

    assert response.status_code == 204


def test_unknown_note(client, patient, doctor):
    _, headers = doctor
    response = client.delete(url(patient, "/notes/no-such-note"), headers=headers)
    assert response.status_code == 404


def test_documents(client, patient, nurse, make_account):
    _, headers = nurse
    _, other_headers = make_account("Olga", "olga@x.cl", "66.666.666-6", "nurse")

    response = client.post(
        url(patient, "/documents"),
        json={"title": "Biopsy", "type": "lab", "url": "https://files.example.cl/biopsy.pdf"},
        headers=headers,
    )
    assert response.status_code == 201
    document_id = response.json()["id"]

    assert client.delete(url(patient, f"/documents/{document_id}"), headers=other_headers).status_code == 403
    assert client.delete(url(patient, f"/documents/{document_id}"), headers=headers).status_code == 204


def test_patient_cannot_write_notes(client, patient, make_account):
    _, headers = make_account("Pedro", "pedro@x.cl", "77.777.777-7", "patient")
    response = client.post(url(patient, "/notes"), json={"content": "Hello"}, headers=headers)
    assert response.status_code == 403


def test_clearing_patient_name_is_rejected(client, db, patient, doctor):
    _, headers = doctor

    response = client.patch(url(patient), json={"name": None}, headers=headers)

    assert response.status_code == 422
    assert response.json()["errors"][0]["loc"][-1] == "name"
    db.refresh(patient)
    assert patient.name == "Pedro Soto"


def test_doctor_renames_patient(client, patient, doctor):
    _, headers = doctor

    response = client.patch(url(patient), json={"name": "Pedro Soto Rojas"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["name"] == "Pedro Soto Rojas"


def test_clearing_a_list_field_stores_an_empty_list(client, patient, doctor):
    _, headers = doctor

    response = client.patch(url(patient), json={"allergies": None}, headers=headers)

    assert response.status_code == 200
    assert response.json()["allergies"] == []
