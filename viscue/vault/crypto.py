"""
Vault Crypto Core — Account Unlock Key derivation and private key wrapping.

Key hierarchy:
- AUC: HKDF(salt, username) → PBKDF2(password) → XOR secret key → 32 bytes
- Vault key pair: RSA-3072, private half wrapped as AES-256-GCM(AUC, PEM)
  stored as [nonce 12B][ciphertext + GCM tag 16B]

Security Note:
    Never log plaintext, AUC bytes or key material.
    The XOR combiner is part of the stored format: changing it changes the
    AUC of every existing vault.
"""
import logging

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import DerivationError, EntropyError, UnwrapError, WrapError
from .entropy import random_bytes

logger = logging.getLogger("viscue.vault")

KEY_LENGTH = 32  # AES-256, also the AUC length
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
PBKDF2_ITERATIONS = 100_000
HKDF_INFO = b"viscue-client"
RSA_KEY_SIZE = 3072
RSA_PUBLIC_EXPONENT = 65537


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def expand_salt(salt: str, username: str) -> bytes:
    """Expand the keyring salt into 32 bytes bound to ``username``.

    HKDF-SHA256 with the salt as input key material, the username as the
    HKDF salt and a fixed application context as info.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=username.encode("utf-8"),
        info=HKDF_INFO,
    )
    return hkdf.derive(salt.encode("utf-8"))


def stretch_password(
    password: str, expanded_salt: bytes, iterations: int = PBKDF2_ITERATIONS,
) -> bytes:
    """PBKDF2-HMAC-SHA256 over the master password."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=expanded_salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def derive_auc(
    password: str,
    secret_key: str,
    salt: str,
    username: str,
    iterations: int = PBKDF2_ITERATIONS,
) -> bytes:
    """Derive the 32-byte Account Unlock Key.

    Pure function of its arguments: the same inputs always give the same key.

    Args:
        password: Master password.
        secret_key: Device secret from the OS credential store; at least its
            first 32 bytes are used.
        salt: Per-account salt from the OS credential store.
        username: Account name, binds the key to this identity.
        iterations: PBKDF2 iteration count. Only tests lower this.

    Returns:
        32-byte AUC.

    Raises:
        ValueError: If the secret key is shorter than 32 bytes.
        DerivationError: If the primitives fail underneath.
    """
    secret = secret_key.encode("utf-8")
    if len(secret) < KEY_LENGTH:
        raise ValueError(
            f"secret key must be at least {KEY_LENGTH} bytes, got {len(secret)}"
        )
    try:
        stretched = stretch_password(
            password, expand_salt(salt, username), iterations,
        )
    except (OSError, UnsupportedAlgorithm) as err:
        raise DerivationError("failed generating account unlock key") from err
    return bytes(a ^ b for a, b in zip(stretched, secret[:KEY_LENGTH]))


# ---------------------------------------------------------------------------
# Vault key pair
# ---------------------------------------------------------------------------

def generate_key_pair() -> tuple[rsa.RSAPublicKey, rsa.RSAPrivateKey]:
    """Generate the vault RSA-3072 key pair.

    Returns:
        (public_key, private_key)
    """
    try:
        private_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT, key_size=RSA_KEY_SIZE,
        )
    except OSError as err:
        raise EntropyError("failed generating private key") from err
    return private_key.public_key(), private_key


def private_key_to_pem(private_key: rsa.RSAPrivateKey) -> bytes:
    """Serialize to PKCS#1 PEM ("RSA PRIVATE KEY"), unencrypted."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


def pem_to_private_key(pem: bytes) -> rsa.RSAPrivateKey:
    """Parse PEM bytes back into an RSA private key.

    Raises:
        UnwrapError: If the PEM is malformed or not an RSA key.
    """
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as err:
        raise UnwrapError("malformed private key PEM") from err
    if not isinstance(key, rsa.RSAPrivateKey):
        raise UnwrapError("wrapped key is not an RSA private key")
    return key


def _require_auc(auc: bytes) -> None:
    # Programmer error, never a recoverable condition.
    if len(auc) != KEY_LENGTH:
        raise ValueError(
            f"account unlock key must be {KEY_LENGTH} bytes, got {len(auc)}"
        )


def wrap_private_key(private_key: rsa.RSAPrivateKey, auc: bytes) -> bytes:
    """Encrypt the private key PEM under the AUC.

    Format: [nonce 12B][encrypted PEM + GCM tag 16B], no associated data.

    Raises:
        ValueError: If ``auc`` is not 32 bytes.
        EntropyError: If no nonce could be generated.
        WrapError: If serialization or encryption fails.
    """
    _require_auc(auc)
    nonce = random_bytes(NONCE_SIZE)
    try:
        pem = private_key_to_pem(private_key)
        ct = AESGCM(auc).encrypt(nonce, pem, None)
    except (ValueError, TypeError, OverflowError) as err:
        raise WrapError("failed encrypting private key") from err
    return nonce + ct


def unwrap_private_key(wrapped: bytes, auc: bytes) -> rsa.RSAPrivateKey:
    """Decrypt a wrapped private key with the AUC.

    The GCM tag check runs before any PEM parsing, so a wrong AUC (wrong
    master password) fails here deterministically.

    Raises:
        ValueError: If ``auc`` is not 32 bytes.
        UnwrapError: On a short blob, tag mismatch or malformed PEM.
    """
    _require_auc(auc)
    _min = NONCE_SIZE + TAG_SIZE
    if len(wrapped) < _min:
        raise UnwrapError(
            f"wrapped key too short: {len(wrapped)} bytes (minimum {_min})"
        )
    nonce = wrapped[:NONCE_SIZE]
    ct = wrapped[NONCE_SIZE:]
    try:
        pem = AESGCM(auc).decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise UnwrapError("failed decrypting private key") from err
    return pem_to_private_key(pem)
