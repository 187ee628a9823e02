import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from eclinic.auth import jwt_handler
from eclinic.auth.dependencies import get_current_user, require_role


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_carries_subject_and_role() -> None:
    payload = jwt_handler.decode_access_token(jwt_handler.create_access_token('pat-1', 'patient'))

    assert payload['sub'] == 'pat-1'
    assert payload['role'] == 'patient'
    assert payload['exp'] > payload['iat']


def test_get_current_user_without_credentials_is_unauthorized(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=None, db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Authentication required'


def test_get_current_user_with_garbage_token_is_unauthorized(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_bearer('not-a-jwt'), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_for_unknown_user_is_unauthorized(db) -> None:
    token = jwt_handler.create_access_token('ghost', 'patient')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_bearer(token), db=db)

    assert exception_info.value.detail == 'User not found'


def test_get_current_user_resolves_token_subject(db, patient_user) -> None:
    token = jwt_handler.create_access_token(patient_user.id, patient_user.role)

    assert get_current_user(credentials=_bearer(token), db=db).id == patient_user.id


def test_get_current_user_rejects_token_with_stale_role(db, patient_user) -> None:
    token = jwt_handler.create_access_token(patient_user.id, 'doctor')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_bearer(token), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Token role does not match account'


def test_require_role_rejects_other_roles(patient_user, doctor_user) -> None:
    doctors_only = require_role('doctor')

    assert doctors_only(current_user=doctor_user) is doctor_user
    with pytest.raises(HTTPException) as exception_info:
        doctors_only(current_user=patient_user)

    assert exception_info.value.status_code == 403
