"""
OS credential store adapter over ``keyring``.

Values are addressed by ``(namespace, account)``: the namespace is a keyring
service name (one for the secret key, one for the salt) and the account is
the vault username.

Security Note:
    Never log values read from or written to the keyring.
"""
import logging
from typing import Optional

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from ..exceptions import CredentialStoreError, SecretNotFoundError
from .config import VaultConfig
from .entropy import generate_salt

logger = logging.getLogger("viscue.vault")


class CredentialStore:
    """Key/value secret service keyed by ``(namespace, account)``."""

    def __init__(self, backend: Optional[KeyringBackend] = None):
        self._backend = backend or keyring.get_keyring()

    def get(self, namespace: str, account: str) -> str:
        """Read a secret.

        Raises:
            SecretNotFoundError: If nothing is stored for the pair.
            CredentialStoreError: On keyring backend failure.
        """
        try:
            value = self._backend.get_password(namespace, account)
        except KeyringError as err:
            raise CredentialStoreError(
                f"failed reading {namespace!r} from keyring"
            ) from err
        if value is None:
            raise SecretNotFoundError(f"{namespace!r} not found for {account!r}")
        return value

    def set(self, namespace: str, account: str, value: str) -> None:
        try:
            self._backend.set_password(namespace, account, value)
        except KeyringError as err:
            raise CredentialStoreError(
                f"failed saving {namespace!r} in keyring"
            ) from err

    def delete(self, namespace: str, account: str) -> None:
        """Remove a secret.

        Raises:
            SecretNotFoundError: If nothing is stored for the pair.
            CredentialStoreError: On keyring backend failure.
        """
        try:
            self._backend.delete_password(namespace, account)
        except PasswordDeleteError as err:
            raise SecretNotFoundError(
                f"{namespace!r} not found for {account!r}"
            ) from err
        except KeyringError as err:
            raise CredentialStoreError(
                f"failed deleting {namespace!r} from keyring"
            ) from err


class AccountSecrets:
    """Secret key and salt of one vault account, as kept in the keyring."""

    def __init__(self, store: CredentialStore, config: VaultConfig):
        self._store = store
        self._config = config

    def get_secret_key(self, username: str) -> str:
        return self._store.get(self._config.secret_key_service, username)

    def set_secret_key(self, username: str, secret_key: str) -> None:
        self._store.set(self._config.secret_key_service, username, secret_key)

    def find_or_make_salt(self, username: str) -> str:
        """Return the account salt, generating and storing it on first use."""
        try:
            return self._store.get(self._config.salt_service, username)
        except SecretNotFoundError:
            salt = generate_salt()
            self._store.set(self._config.salt_service, username, salt)
            logger.debug("Generated AUC salt for user=%s", username)
            return salt

    def purge(self, username: str) -> list[str]:
        """Delete the secret key and salt of ``username``.

        Absent entries are fine; every other failure is collected so the
        caller can report it after attempting both deletions.

        Returns:
            Namespaces that could not be deleted.
        """
        failed = []
        for namespace in (self._config.secret_key_service, self._config.salt_service):
            try:
                self._store.delete(namespace, username)
            except SecretNotFoundError:
                logger.debug("Nothing to purge in %r for user=%s", namespace, username)
            except CredentialStoreError as err:
                logger.error(
                    "Failed purging %r for user=%s: %s", namespace, username, err,
                )
                failed.append(namespace)
        return failed
