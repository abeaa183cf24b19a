# bizdesk/core/security.py
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.hash import pbkdf2_sha256

@dataclass(frozen=True)
class Identity:
    """Claims of a verified bearer token, attached to request.state.user."""
    id: int
    role: str
    username: str
    role_id: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)

class VerificationError(str, Enum):
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"

@dataclass(frozen=True)
class Ok:
    identity: Identity

@dataclass(frozen=True)
class Err:
    error: VerificationError
    detail: str = ""

VerificationResult = Union[Ok, Err]

def verify_token(token: str, secret: str, algorithm: str = "HS256") -> VerificationResult:
    """
    Verify a JWT and extract the identity claims.

    Pure: no logging and no I/O, so verifying the same token twice
    gives the same result. Expiry is reported separately from every
    other failure.
    """
    if not isinstance(token, str) or not token:
        return Err(VerificationError.INVALID_TOKEN, "empty token")

    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
    except ExpiredSignatureError as e:
        return Err(VerificationError.EXPIRED_TOKEN, str(e))
    except JWTError as e:
        return Err(VerificationError.INVALID_TOKEN, str(e))

    if claims.get("id") is None or not claims.get("role"):
        return Err(VerificationError.INVALID_TOKEN, "missing identity claims")

    return Ok(Identity(
        id=claims["id"],
        role=claims["role"],
        username=claims.get("username", ""),
        role_id=claims.get("role_id"),
    ))

def create_access_token(
    identity: Identity,
    secret: str,
    algorithm: str = "HS256",
    expires_delta: Optional[timedelta] = None
) -> str:
    """Sign a token carrying the identity claims."""
    now = datetime.now(timezone.utc)
    expiration = now + (expires_delta if expires_delta is not None else timedelta(hours=1))
    to_encode = identity.to_dict()
    to_encode.update({"exp": expiration, "iat": now})
    return jwt.encode(to_encode, secret, algorithm=algorithm)

def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    return pbkdf2_sha256.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pbkdf2_sha256.verify(password, password_hash)
    except ValueError:
        # Malformed hash in the database
        return False
