# cipherdrop/security.py
import base64
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from cipherdrop.config import settings

SCHEME = "pbkdf2_sha256"


class PasswordHasher:
    """PBKDF2-HMAC-SHA256 hashes encoded as ``scheme$iterations$salt$hash``."""

    def __init__(self, iterations: int | None = None, salt_size: int = 16):
        self.iterations = iterations or settings.PASSWORD_HASH_ITERATIONS
        self.salt_size = salt_size

    def _kdf(self, salt: bytes, iterations: int) -> PBKDF2HMAC:
        return PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=iterations,
        )

    def hash(self, password: str) -> str:
        salt = os.urandom(self.salt_size)
        digest = self._kdf(salt, self.iterations).derive(password.encode("utf-8"))
        return "$".join(
            [
                SCHEME,
                str(self.iterations),
                base64.b64encode(salt).decode("ascii"),
                base64.b64encode(digest).decode("ascii"),
            ]
        )

    def verify(self, password: str, hashed: str) -> bool:
        """Never raises on a malformed hash; it simply does not match."""
        try:
            scheme, iterations, salt_b64, digest_b64 = hashed.split("$")
            if scheme != SCHEME:
                return False
            salt = base64.b64decode(salt_b64)
            expected = base64.b64decode(digest_b64)
            self._kdf(salt, int(iterations)).verify(password.encode("utf-8"), expected)
            return True
        except (ValueError, InvalidKey):
            return False
