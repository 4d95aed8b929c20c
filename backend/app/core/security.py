"""Security helpers for password hashing, field encryption, and bearer tokens."""
from __future__ import annotations

import hashlib
import hmac
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from .config import Settings
from .errors import AuthHeaderMissing, CryptoError, InvalidTokenError, TokenMissing
from app.schemas.auth import PrincipalKind, TokenClaims

logger = logging.getLogger(__name__)

# Argon2id time cost; memory and parallelism stay at passlib defaults.
PASSWORD_HASH_ROUNDS = 10

_password_context = CryptContext(schemes=["argon2"], deprecated="auto", argon2__rounds=PASSWORD_HASH_ROUNDS)

KEY_LENGTH = 32
IV_LENGTH = 16
FIELD_DELIMITER = ":"

# Used only when ENCRYPTION_KEY is unset; anyone with the source can derive it.
_FALLBACK_PASSPHRASE = b"payments-portal-insecure-default"
_FALLBACK_SALT = b"account-number"
_INDEX_LABEL = b"account-number-blind-index"


class PasswordHasher:
    """Hash and verify credentials with Argon2id.

    Both operations are CPU bound and run in the threadpool so request
    dispatch is not blocked. Each hash string embeds its own random salt.
    """

    def __init__(self, context: CryptContext | None = None) -> None:
        self._context = context or _password_context

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self._context.hash, password)

    async def compare(self, password: str, hashed: str) -> bool:
        try:
            return await run_in_threadpool(self._context.verify, password, hashed)
        except (ValueError, TypeError):
            logger.warning("Stored password hash is not in a recognised format")
            return False


def derive_fallback_key() -> bytes:
    kdf = Scrypt(salt=_FALLBACK_SALT, length=KEY_LENGTH, n=2**14, r=8, p=1)
    return kdf.derive(_FALLBACK_PASSPHRASE)


class AccountNumberCipher:
    """Reversible AES-256-CBC encryption for account numbers at rest.

    Ciphertexts are serialised as ``<ivHex>:<ciphertextHex>`` with a fresh
    random IV per call, so equal plaintexts never produce equal ciphertexts.
    Use :meth:`blind_index` for equality lookups.
    """

    def __init__(self, settings: Settings) -> None:
        if settings.encryption_key:
            self._key = bytes.fromhex(settings.encryption_key)
        else:
            logger.warning("ENCRYPTION_KEY is not set; using the insecure built-in fallback key")
            self._key = derive_fallback_key()
        self._index_key = hmac.new(self._key, _INDEX_LABEL, hashlib.sha256).digest()

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}{FIELD_DELIMITER}{ciphertext.hex()}"

    def decrypt(self, blob: str) -> str:
        parts = blob.split(FIELD_DELIMITER)
        if len(parts) != 2:
            raise CryptoError(detail="Encrypted value must contain exactly one delimiter")
        iv_hex, ciphertext_hex = parts
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
        except ValueError as exc:
            raise CryptoError(detail="Encrypted value is not valid hex") from exc
        if len(iv) != IV_LENGTH:
            raise CryptoError(detail="Initialization vector has the wrong length")
        block_bytes = algorithms.AES.block_size // 8
        if not ciphertext or len(ciphertext) % block_bytes:
            raise CryptoError(detail="Ciphertext is not a whole number of blocks")

        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        try:
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            raise CryptoError(detail="Decryption failed") from exc

    def blind_index(self, plaintext: str) -> str:
        """Deterministic keyed digest used for uniqueness checks and lookups."""
        return hmac.new(self._index_key, plaintext.encode("utf-8"), hashlib.sha256).hexdigest()


class TokenService:
    """Issue and verify HMAC-signed JWT bearer tokens.

    Verification is stateless: signature and expiry only, no store lookup.
    """

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self.customer_ttl = timedelta(minutes=settings.customer_token_expire_minutes)
        self.employee_ttl = timedelta(minutes=settings.employee_token_expire_minutes)

    def issue(self, claims: dict[str, Any], expires_in: timedelta, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = dict(claims)
        payload["iat"] = int(issued_at.timestamp())
        payload["exp"] = int((issued_at + expires_in).timestamp())
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require_exp": True},
            )
            return TokenClaims.model_validate(payload)
        except (JWTError, ValidationError) as exc:
            logger.debug("Token verification failed: %s", exc)
            raise InvalidTokenError() from exc

    def issue_customer(self, customer_id: str, username: str) -> str:
        claims = {
            "principalId": customer_id,
            "principalKind": PrincipalKind.CUSTOMER.value,
            "username": username,
        }
        return self.issue(claims, self.customer_ttl)

    def issue_employee(self, employee_id: str, role: str) -> str:
        claims = {
            "principalId": employee_id,
            "principalKind": PrincipalKind.EMPLOYEE.value,
            "role": role,
        }
        return self.issue(claims, self.employee_ttl)


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.strip():
        raise AuthHeaderMissing()
    parts = authorization.split()
    if parts[0].lower() != "bearer" or len(parts) > 2:
        raise AuthHeaderMissing()
    if len(parts) == 1:
        raise TokenMissing()
    return parts[1]
