"""
utils/auth.py

Password hashing (passlib / bcrypt) and the signed token codec (PyJWT).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, FrozenSet, Iterable, Optional

import jwt
from passlib.context import CryptContext

from domus.core.config import settings
from domus.core.exceptions import InvalidSignature, MalformedToken, TokenExpired

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

RECOVERY_KEY_SUFFIX = ":password-reset"


# ─── Passwords ────────────────────────────────────────────────────────────────

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Check a password against its bcrypt hash.

    With no hash (unknown account) a dummy verification still runs so the
    response time does not reveal whether the account exists.
    """
    if not hashed_password:
        pwd_context.dummy_verify()
        return False
    return pwd_context.verify(plain_password, hashed_password)


# ─── Tokens ───────────────────────────────────────────────────────────────────

class TokenCodec:
    """Issues and verifies HMAC-signed JWTs with a fixed validity window."""

    REQUIRED_CLAIMS = ["exp", "iat", "sub"]

    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(days=7)):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, claims: Dict[str, Any]) -> str:
        payload = dict(claims)
        if "sub" in payload:
            payload["sub"] = str(payload["sub"])
        now = datetime.now(timezone.utc)
        payload.setdefault("iat", int(now.timestamp()))
        payload.setdefault("exp", int((now + self.ttl).timestamp()))
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def issue_session(self, subject: Any, email: str, roles: Iterable[str]) -> str:
        return self.issue({"sub": str(subject), "email": email, "roles": sorted(roles)})

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Decode ``token`` and return its claims.

        Raises InvalidSignature, TokenExpired or MalformedToken.
        """
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": self.REQUIRED_CLAIMS},
            )
        except jwt.InvalidSignatureError:
            raise InvalidSignature()
        except jwt.ExpiredSignatureError:
            raise TokenExpired()
        except jwt.InvalidTokenError:
            raise MalformedToken()


session_codec = TokenCodec(
    settings.SECRET_KEY,
    settings.ALGORITHM,
    timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
)

# Derived key: recovery tokens never verify as session tokens
recovery_codec = TokenCodec(
    settings.SECRET_KEY + RECOVERY_KEY_SUFFIX,
    settings.ALGORITHM,
    timedelta(minutes=settings.RECOVERY_TOKEN_EXPIRE_MINUTES),
)


def create_access_token(subject: Any, email: str, roles: Iterable[str]) -> str:
    return session_codec.issue_session(subject, email, roles)


def create_recovery_token(subject: Any, email: str) -> str:
    return recovery_codec.issue({"sub": str(subject), "email": email})


def decode_token(token: str) -> Dict[str, Any]:
    return session_codec.verify(token)


# ─── Principal ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Principal:
    """The authenticated caller, rebuilt from a verified session token."""

    subject_id: str
    email: str
    roles: FrozenSet[str]
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Principal":
        roles = claims.get("roles") or []
        if not isinstance(roles, list):
            raise MalformedToken()
        return cls(
            subject_id=str(claims["sub"]),
            email=claims.get("email", ""),
            roles=frozenset(str(role) for role in roles),
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles
