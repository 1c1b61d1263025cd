"""
Password Hasher — Argon2id hashing for the local login gate.

Encoded format (five ``$``-separated fields, the first empty)::

    $argon2id$v=19$<salt b64, unpadded>$<digest b64, unpadded>

Cost parameters are not part of the encoding; they are fixed module
constants, so changing them invalidates every stored hash.

Security Note:
    Never log passwords or digests.
"""
import re
import hmac
import base64
import logging

from argon2.exceptions import HashingError
from argon2.low_level import ARGON2_VERSION, Type, hash_secret_raw

from ..exceptions import HashFormatError
from .entropy import random_bytes

logger = logging.getLogger("viscue.vault")

ARGON2_ALGORITHM = "argon2id"
ARGON2_ITERATIONS = 12
ARGON2_MEMORY_KIB = 64 * 1024
ARGON2_PARALLELISM = 4
ARGON2_KEY_LENGTH = 32
ARGON2_SALT_LENGTH = 16

_VERSION_FIELD = re.compile(r"^v=(\d+)$")


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii").rstrip("=")


def _b64decode(data: str) -> bytes:
    padded = data + "=" * (-len(data) % 4)
    return base64.b64decode(padded.encode("ascii"), validate=True)


class PasswordHasher:
    """Argon2id hasher with fixed cost parameters.

    The cost arguments exist so tests can run a cheaper hasher; the
    defaults are the production values and must not change.
    """

    def __init__(
        self,
        iterations: int = ARGON2_ITERATIONS,
        memory_kib: int = ARGON2_MEMORY_KIB,
        parallelism: int = ARGON2_PARALLELISM,
    ):
        self.iterations = iterations
        self.memory_kib = memory_kib
        self.parallelism = parallelism

    def _digest(self, password: str, salt: bytes) -> bytes:
        try:
            return hash_secret_raw(
                secret=password.encode("utf-8"),
                salt=salt,
                time_cost=self.iterations,
                memory_cost=self.memory_kib,
                parallelism=self.parallelism,
                hash_len=ARGON2_KEY_LENGTH,
                type=Type.ID,
                version=ARGON2_VERSION,
            )
        except HashingError as err:
            raise HashFormatError("argon2 hashing failed") from err

    def hash(self, password: str) -> str:
        """Hash ``password`` with a fresh 16-byte salt.

        Returns:
            Self-describing encoded hash string.

        Raises:
            EntropyError: If no salt could be generated.
        """
        salt = random_bytes(ARGON2_SALT_LENGTH)
        digest = self._digest(password, salt)
        return (
            f"${ARGON2_ALGORITHM}$v={ARGON2_VERSION}"
            f"${_b64encode(salt)}${_b64encode(digest)}"
        )

    def verify(self, password: str, encoded: str) -> bool:
        """Check ``password`` against an encoded hash in constant time.

        Returns:
            True on match, False on a well-formed hash that does not match.

        Raises:
            HashFormatError: If the encoding, algorithm, version or digest
                length is not what this hasher produces.
        """
        salt, expected = self._parse(encoded)
        candidate = self._digest(password, salt)
        return hmac.compare_digest(candidate, expected)

    @staticmethod
    def _parse(encoded: str) -> tuple[bytes, bytes]:
        if not isinstance(encoded, str):
            raise HashFormatError("encoded hash must be a string")
        fields = encoded.split("$")
        if len(fields) != 5 or fields[0] != "":
            raise HashFormatError("invalid password hash")
        if fields[1] != ARGON2_ALGORITHM:
            raise HashFormatError(f"unsupported hash algorithm {fields[1]!r}")
        match = _VERSION_FIELD.match(fields[2])
        if match is None:
            raise HashFormatError("failed to parse version from argon string")
        if int(match.group(1)) != ARGON2_VERSION:
            raise HashFormatError("incompatible password hash version")
        try:
            salt = _b64decode(fields[3])
        except ValueError as err:
            raise HashFormatError("failed to decode salt from argon string") from err
        try:
            digest = _b64decode(fields[4])
        except ValueError as err:
            raise HashFormatError("failed to decode hash from argon string") from err
        if not salt:
            raise HashFormatError("empty salt in argon string")
        if len(digest) != ARGON2_KEY_LENGTH:
            raise HashFormatError(
                f"digest must be {ARGON2_KEY_LENGTH} bytes, got {len(digest)}"
            )
        return salt, digest
