"""
Vault errors — one exception type per failure kind.

Every error carries a coarse ``category`` which is the only thing the UI
layer is allowed to branch on. Internal causes are chained with
``raise ... from err`` and only reach the diagnostic log, never the user.
"""
from enum import Enum


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    INTERNAL = "internal"


class VaultError(Exception):
    """Base class for every error raised by viscue."""

    category: ErrorCategory = ErrorCategory.INTERNAL
    public_message: str = "something went wrong"


class ValidationError(VaultError):
    """Required input is missing or malformed. Recoverable by re-prompting."""

    category = ErrorCategory.VALIDATION

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__(" and ".join(self.messages))

    @property
    def public_message(self) -> str:  # type: ignore[override]
        return str(self)


class EntropyError(VaultError):
    """The OS randomness source is unavailable. Fatal for the process."""


class HashFormatError(VaultError):
    """An encoded password hash could not be parsed or is incompatible."""

    category = ErrorCategory.AUTHENTICATION
    public_message = "authentication failed"


class AuthenticationError(VaultError):
    category = ErrorCategory.AUTHENTICATION
    public_message = "authentication failed"


class DerivationError(VaultError):
    """Account Unlock Key derivation failed."""


class ConfigurationError(VaultError):
    """The account is unusable, e.g. its secret key is gone from the keyring."""


class WrapError(VaultError):
    """The vault private key could not be encrypted."""


class UnwrapError(VaultError):
    """The wrapped private key failed authentication or parsing.

    Usually means the Account Unlock Key is wrong, i.e. wrong master password.
    """

    category = ErrorCategory.AUTHENTICATION
    public_message = "authentication failed"


class EncryptError(VaultError):
    """A vault entry could not be encrypted."""


class DecryptError(VaultError):
    """A vault entry could not be decrypted (wrong key, label or data)."""


class SQLError(VaultError):
    """Relational store failure."""


class CredentialStoreError(VaultError):
    """OS credential store failure."""


class SecretNotFoundError(CredentialStoreError):
    """No value stored for the requested (namespace, account)."""


def public_message(err: BaseException) -> str:
    """Return the text the UI may show for ``err``.

    Anything that is not a VaultError is reported as a generic failure.
    """
    if isinstance(err, VaultError):
        return err.public_message
    return VaultError.public_message
