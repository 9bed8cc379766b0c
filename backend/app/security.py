"""
FinSight Backend — Credential Hashing & Token Issuance
========================================================

What:  The two pure building blocks of authentication:
       1. Salted HMAC-SHA256 password digests (hash + verify)
       2. Signed, time-limited bearer tokens (issue + verify)
Why:   Kept free of I/O and global state so they are safe to call from any
       number of concurrent requests and trivial to unit test.
Who:   The User model's pre-save hook hashes; UserService verifies and issues;
       the auth dependency verifies tokens on every protected request.

Password storage:
    digest = HMAC-SHA256(key=salt, msg=plaintext), hex-encoded.
    The salt is 16 random bytes rendered as hex text, so it can live in a
    plain text column.

Token outcome:
    verify() never raises. It returns a TokenResult whose status is one of
    VALID / EXPIRED / INVALID, so callers branch on the status instead of
    catching library exceptions or comparing against a sentinel string.
"""

import enum
import hashlib
import hmac
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from jose.utils import base64url_decode, base64url_encode

from app.config import Settings

SALT_BYTES = 16

# Claims the issuer owns; callers cannot override them through `claims`
_RESERVED_CLAIMS = ("iat", "exp")


# ══════════════════════════════════════════════════════════════════════════
# Credential Hasher
# ══════════════════════════════════════════════════════════════════════════

def _digest(salt: str, plaintext: str) -> str:
    return hmac.new(salt.encode("utf-8"), plaintext.encode("utf-8"), hashlib.sha256).hexdigest()


def hash_password(plaintext: str) -> Tuple[str, str]:
    """
    Hash a plaintext secret under a fresh random salt.

    Returns:
        (salt, digest): both text. A new salt is drawn on every call, so two
        hashes of the same plaintext differ.
    """
    salt = secrets.token_hex(SALT_BYTES)
    return salt, _digest(salt, plaintext)


def verify_password(plaintext: Optional[str], salt: Optional[str], digest: Optional[str]) -> bool:
    """
    Check a plaintext secret against a stored salt + digest pair.

    Any missing piece yields False rather than an exception. The comparison
    runs in constant time.
    """
    if not plaintext or not salt or not digest:
        return False
    return hmac.compare_digest(_digest(salt, plaintext), digest)


# ══════════════════════════════════════════════════════════════════════════
# Token Issuer / Verifier
# ══════════════════════════════════════════════════════════════════════════

def _has_canonical_signature(token: str) -> bool:
    """
    True when the signature segment is the exact base64url encoding of its
    bytes.

    The final character of an HS256 signature carries two padding bits that
    a lenient decoder ignores, so several spellings map to the same bytes.
    Only the spelling the issuer produced is accepted.
    """
    segment = token.rsplit(".", 1)[-1]
    try:
        raw = segment.encode("ascii")
        return base64url_encode(base64url_decode(raw)) == raw
    except (ValueError, TypeError):
        return False


class TokenStatus(str, enum.Enum):
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"


@dataclass(frozen=True)
class TokenResult:
    """Outcome of a token verification. `claims` is only populated when VALID."""

    status: TokenStatus
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return self.status is TokenStatus.VALID


class TokenService:
    """
    Issues and verifies HS256 JWTs with a shared secret.

    Lifecycle of a token:
        issued → valid (before exp) → expired / invalid → never valid again

    There is no revocation list; expiry is the only invalidation mechanism.
    """

    def __init__(self, secret: str, ttl_seconds: int, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            ttl_seconds=settings.jwt_expires_in,
            algorithm=settings.jwt_algorithm,
        )

    def issue(self, claims: Dict[str, Any], ttl_seconds: Optional[int] = None) -> str:
        """
        Sign `claims` plus issued-at and expiration timestamps.

        Args:
            claims: JSON-serializable user claims (e.g. sub, email, role).
            ttl_seconds: Override of the configured lifetime.
        """
        issued_at = int(time.time())
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        payload = {k: v for k, v in claims.items() if k not in _RESERVED_CLAIMS}
        payload["iat"] = issued_at
        payload["exp"] = issued_at + ttl
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> TokenResult:
        """Decode `token`, checking signature and expiry. Never raises."""
        if not token or not isinstance(token, str):
            return TokenResult(TokenStatus.INVALID)
        if not _has_canonical_signature(token):
            return TokenResult(TokenStatus.INVALID)
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            return TokenResult(TokenStatus.EXPIRED)
        except JWTError:
            return TokenResult(TokenStatus.INVALID)
        return TokenResult(TokenStatus.VALID, claims)
