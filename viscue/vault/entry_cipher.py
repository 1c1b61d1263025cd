"""
Entry Cipher — field-level RSA-OAEP encryption of vault entries.

Only ``email`` and ``password`` are encrypted. Each is sealed with
RSA-OAEP(SHA-256) under the vault public key, labelled with the entry
``name``, and stored hex-encoded. Everything else stays in cleartext so
entries can be listed and filtered without the private key.

The two fields are processed by two concurrent tasks. The call either
returns both results or raises the first reported failure; a half
encrypted (or decrypted) entry is never handed back.

Security Note:
    Renaming an entry changes its OAEP label. Stored ciphertext must be
    re-encrypted on rename or it will no longer decrypt.
"""
import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..exceptions import DecryptError, EncryptError
from ..models import PasswordEntry

logger = logging.getLogger("viscue.vault")

ENCRYPTED_FIELDS = ("email", "password")


def _oaep(label: str) -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=label.encode("utf-8"),
    )


def encrypt_field(value: str, label: str, public_key: rsa.RSAPublicKey) -> str:
    """Encrypt one field value; returns hex ciphertext."""
    try:
        ct = public_key.encrypt(value.encode("utf-8"), _oaep(label))
    except ValueError as err:
        # plaintext longer than the OAEP limit for the key size
        raise EncryptError("failed encrypting entry field") from err
    return ct.hex()


def decrypt_field(value: str, label: str, private_key: rsa.RSAPrivateKey) -> str:
    """Decrypt one hex ciphertext field back to text."""
    try:
        ct = bytes.fromhex(value)
    except ValueError as err:
        raise DecryptError("entry field is not valid hex") from err
    try:
        plaintext = private_key.decrypt(ct, _oaep(label))
    except ValueError as err:
        # wrong key, wrong label or corrupted ciphertext
        raise DecryptError("failed decrypting entry field") from err
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as err:
        raise DecryptError("decrypted entry field is not utf-8") from err


def _run_fields(
    entry: PasswordEntry,
    transform: Callable[[str, str], str],
    error_cls: type,
) -> dict[str, str]:
    """Apply ``transform(value, label)`` to both fields concurrently.

    Raises the first failure as ``error_cls``; pending work is cancelled and
    any finished result is discarded.
    """
    with ThreadPoolExecutor(max_workers=len(ENCRYPTED_FIELDS)) as pool:
        futures: dict[Future, str] = {
            pool.submit(transform, getattr(entry, field), entry.name): field
            for field in ENCRYPTED_FIELDS
        }
        results = {}
        # completion order, so the earliest failure wins
        for future in as_completed(futures):
            field = futures[future]
            err = future.exception()
            if err is not None:
                for other in futures:
                    other.cancel()
                if isinstance(err, error_cls):
                    raise err
                raise error_cls(f"failed processing entry field {field}") from err
            results[field] = future.result()
        return results


def encrypt_entry(entry: PasswordEntry, public_key: rsa.RSAPublicKey) -> PasswordEntry:
    """Return a copy of ``entry`` with ``email`` and ``password`` encrypted.

    Raises:
        EncryptError: If either field fails to encrypt.
    """
    def seal(value: str, label: str) -> str:
        return encrypt_field(value, label, public_key)

    fields = _run_fields(entry, seal, EncryptError)
    return entry.model_copy(update=fields)


def decrypt_entry(entry: PasswordEntry, private_key: rsa.RSAPrivateKey) -> PasswordEntry:
    """Return a copy of ``entry`` with ``email`` and ``password`` decrypted.

    Raises:
        DecryptError: If either field fails to decrypt, including when the
            entry was renamed without re-encryption.
    """
    def open_(value: str, label: str) -> str:
        return decrypt_field(value, label, private_key)

    fields = _run_fields(entry, open_, DecryptError)
    return entry.model_copy(update=fields)
