"""
Credential hashing primitives.

Passwords are derived with PBKDF2-HMAC-SHA256 and a per-user random salt,
stored as ``pbkdf2_sha256$<iterations>$<salt b64>$<hash b64>`` so the
iteration count can be raised later without invalidating existing hashes.

Session and password-reset tokens are random hex strings handed to the
client once; only their sha256 digest is ever stored.

This is a pure crypto library with no database dependencies.
"""

import base64
import hashlib
import logging
import os
import secrets

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

import config

logger = logging.getLogger(__name__)


class EncryptionService:
    HASH_SCHEME = "pbkdf2_sha256"
    SALT_BYTES = 16
    KEY_LENGTH = 32

    @staticmethod
    def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
        return PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=EncryptionService.KEY_LENGTH,
            salt=salt,
            iterations=iterations,
        )

    @staticmethod
    def hash_password(password: str) -> str:
        iterations = config.PASSWORD_HASH_ITERATIONS
        salt = os.urandom(EncryptionService.SALT_BYTES)
        derived = EncryptionService._kdf(salt, iterations).derive(password.encode("utf-8"))
        return "$".join([
            EncryptionService.HASH_SCHEME,
            str(iterations),
            base64.b64encode(salt).decode("ascii"),
            base64.b64encode(derived).decode("ascii"),
        ])

    @staticmethod
    def verify_password(password: str, stored_hash: str | None) -> bool:
        """
        Check a password against a stored hash.

        Returns False for malformed hashes instead of raising, so a corrupt
        row behaves like a wrong password.
        """
        if not stored_hash:
            return False
        try:
            scheme, iterations, salt_b64, hash_b64 = stored_hash.split("$")
            if scheme != EncryptionService.HASH_SCHEME:
                return False
            salt = base64.b64decode(salt_b64)
            expected = base64.b64decode(hash_b64)
            kdf = EncryptionService._kdf(salt, int(iterations))
        except ValueError:
            logger.warning("Malformed password hash encountered")
            return False

        try:
            kdf.verify(password.encode("utf-8"), expected)
            return True
        except InvalidKey:
            return False

    @staticmethod
    def generate_token(num_bytes: int = 32) -> str:
        return secrets.token_hex(num_bytes)

    @staticmethod
    def hash_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
