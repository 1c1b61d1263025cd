"""
Random string generation over fixed alphabets.

Every character is drawn with ``secrets.randbelow`` which samples the OS
CSPRNG without modulo bias. There is no fallback to ``random``.
"""
import os
import secrets
import string

from ..exceptions import EntropyError

PUNCTUATION = "~!@#%^&*-_+={}|"

SECRET_KEY_ALPHABET = string.ascii_uppercase + string.digits
SALT_ALPHABET = string.ascii_letters + string.digits
PASSWORD_ALPHABET = string.ascii_letters + string.digits + PUNCTUATION

SECRET_KEY_LENGTH = 36
SALT_LENGTH = 32


def random_bytes(size: int) -> bytes:
    """Read ``size`` bytes from the OS randomness source.

    Raises:
        EntropyError: If the source is unavailable.
    """
    try:
        return os.urandom(size)
    except (OSError, NotImplementedError) as err:
        raise EntropyError("OS randomness source unavailable") from err


def generate(alphabet: str, length: int) -> str:
    """Return ``length`` characters drawn uniformly from ``alphabet``.

    Raises:
        ValueError: On an empty alphabet or negative length.
        EntropyError: If the OS randomness source is unavailable.
    """
    if not alphabet:
        raise ValueError("alphabet cannot be empty")
    if length < 0:
        raise ValueError("length cannot be negative")
    size = len(alphabet)
    try:
        return "".join(alphabet[secrets.randbelow(size)] for _ in range(length))
    except (OSError, NotImplementedError) as err:
        raise EntropyError("OS randomness source unavailable") from err


def generate_secret_key() -> str:
    return generate(SECRET_KEY_ALPHABET, SECRET_KEY_LENGTH)


def generate_salt() -> str:
    return generate(SALT_ALPHABET, SALT_LENGTH)


def generate_password(length: int) -> str:
    """Generate a password from letters, digits and punctuation."""
    if length < 1:
        raise ValueError("password length must be positive")
    return generate(PASSWORD_ALPHABET, length)
