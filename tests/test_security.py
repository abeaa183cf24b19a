from datetime import timedelta
from jose import jwt
import pytest

from bizdesk.core.security import (
    Err, Identity, Ok, VerificationError,
    create_access_token, hash_password, verify_password, verify_token
)

SECRET = "unit-secret"

@pytest.fixture
def identity():
    return Identity(id=7, role="admin", username="boss", role_id=1)

def test_valid_token_yields_identity(identity):
    token = create_access_token(identity, SECRET)
    result = verify_token(token, SECRET)
    assert isinstance(result, Ok)
    assert result.identity == identity

def test_verification_is_idempotent(identity):
    token = create_access_token(identity, SECRET)
    assert verify_token(token, SECRET) == verify_token(token, SECRET)

def test_expired_token_is_reported_separately(identity):
    token = create_access_token(identity, SECRET, expires_delta=timedelta(seconds=-30))
    result = verify_token(token, SECRET)
    assert isinstance(result, Err)
    assert result.error == VerificationError.EXPIRED_TOKEN

def test_wrong_secret_is_invalid(identity):
    token = create_access_token(identity, "another-secret")
    result = verify_token(token, SECRET)
    assert isinstance(result, Err)
    assert result.error == VerificationError.INVALID_TOKEN

def test_tampered_payload_is_invalid(identity):
    header, payload, signature = create_access_token(identity, SECRET).split(".")
    forged = create_access_token(Identity(id=1, role="admin", username="x"), SECRET).split(".")[1]
    result = verify_token(".".join([header, forged, signature]), SECRET)
    assert isinstance(result, Err)
    assert result.error == VerificationError.INVALID_TOKEN

@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c", None])
def test_garbage_is_invalid(token):
    result = verify_token(token, SECRET)
    assert isinstance(result, Err)
    assert result.error == VerificationError.INVALID_TOKEN

def test_token_without_identity_claims_is_invalid():
    token = jwt.encode({"username": "ghost"}, SECRET, algorithm="HS256")
    result = verify_token(token, SECRET)
    assert isinstance(result, Err)
    assert result.error == VerificationError.INVALID_TOKEN

def test_password_hashing():
    hashed = hash_password("hunter22")
    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)
    assert not verify_password("hunter22", "not-a-hash")

def test_empty_password_rejected():
    with pytest.raises(ValueError):
        hash_password("")
