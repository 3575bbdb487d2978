"""
Tests for session-token authorization decisions.
"""
from datetime import timedelta

from src.auth.service import authorize
from src.core.security import create_access_token


def token_for(role, sub="account-1", **kwargs):
    return create_access_token({"sub": sub, "email": f"{sub}@x.cl", "role": role}, **kwargs)


def test_doctor_may_edit_diagnosis():
    assert authorize(token_for("doctor"), "update", "patient_profile", field="diagnosis") is True


def test_nurse_may_not_edit_diagnosis():
    assert authorize(token_for("nurse"), "update", "patient_profile", field="diagnosis") is False


def test_nurse_may_edit_own_note_only():
    token = token_for("nurse", sub="nurse-1")
    assert authorize(token, "update", "notes", {"author_id": "nurse-1"}, "content") is True
    assert authorize(token, "delete", "notes", {"author_id": "nurse-2"}) is False


def test_doctor_may_delete_any_note():
    assert authorize(token_for("doctor"), "delete", "notes", {"author_id": "nurse-2"}) is True


def test_patient_reads_only_own_record():
    token = token_for("patient", sub="patient-1")
    assert authorize(token, "read", "patient_profile", {"user_id": "patient-1"}) is True
    assert authorize(token, "read", "patient_profile", {"user_id": "patient-2"}) is False


def test_guardian_is_denied():
    assert authorize(token_for("guardian"), "read", "patient_profile") is False


def test_invalid_or_expired_token_is_denied():
    assert authorize("garbage", "read", "patient_profile") is False
    expired = token_for("doctor", expires_delta=timedelta(seconds=-5))
    assert authorize(expired, "read", "patient_profile") is False


def test_unknown_action_or_category_is_denied():
    token = token_for("doctor")
    assert authorize(token, "archive", "patient_profile") is False
    assert authorize(token, "read", "billing") is False
