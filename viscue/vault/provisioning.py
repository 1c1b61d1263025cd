"""
Provisioning — account signup and unlock across the three stores.

Signup writes to the relational store (one transaction), the OS keyring
(secret key and salt) and finally the in-process session. Any failure after
the keyring was touched rolls the transaction back and purges the keyring
entries, so neither store outlives the other.

Unlock never tells the caller which step failed: wrong password, unknown
user, broken stores and a failed unwrap all surface as AuthenticationError.
The one exception is a missing secret key for a verified account, which is
unrecoverable and surfaces as ConfigurationError.

Security Note:
    Never log passwords, the AUC, the secret key or key material.
    Only usernames, states and error descriptions are logged.
"""
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from ..exceptions import (
    AuthenticationError,
    ConfigurationError,
    SecretNotFoundError,
    SQLError,
    UnwrapError,
    ValidationError,
    VaultError,
)
from ..models import Credentials
from ..session import SessionContext
from . import crypto
from .credentials import AccountSecrets
from .database import Transaction, VaultDatabase
from .entropy import generate_secret_key
from .hashing import PasswordHasher

logger = logging.getLogger("viscue.vault")


class AuthEvent(str, Enum):
    USER_LOGGED_IN = "user_logged_in"


class SignupState(str, Enum):
    START = "start"
    CREDENTIALS_VALIDATED = "credentials_validated"
    ACCOUNT_PERSISTED = "account_persisted"
    SECRET_PROVISIONED = "secret_provisioned"
    KEY_PAIR_PROTECTED = "key_pair_protected"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class UnlockState(str, Enum):
    START = "start"
    PASSWORD_VERIFIED = "password_verified"
    SECRET_RETRIEVED = "secret_retrieved"
    AUC_DERIVED = "auc_derived"
    KEY_UNWRAPPED = "key_unwrapped"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class ProvisioningCoordinator:
    """Runs the signup and unlock flows for the single vault account.

    Flows are serialized: one signup or unlock runs at a time, and the
    session is written only once the flow has fully succeeded.
    """

    def __init__(
        self,
        db: VaultDatabase,
        secrets: AccountSecrets,
        session: SessionContext,
        hasher: Optional[PasswordHasher] = None,
        on_authenticated: Optional[Callable[[AuthEvent], None]] = None,
    ):
        self._db = db
        self._secrets = secrets
        self._session = session
        self._hasher = hasher or PasswordHasher()
        self._on_authenticated = on_authenticated
        self._flow_lock = threading.Lock()
        self.state: Enum = SignupState.START

    def _transition(self, state: Enum, username: str) -> None:
        self.state = state
        logger.debug("Provisioning user=%s -> %s", username, state.value)

    def _authenticated(self, username: str, auc: bytes, private_key) -> AuthEvent:
        self._session.populate(username, auc, private_key)
        if self._on_authenticated is not None:
            self._on_authenticated(AuthEvent.USER_LOGGED_IN)
        return AuthEvent.USER_LOGGED_IN

    # ------------------------------------------------------------------
    # Signup
    # ------------------------------------------------------------------

    def signup(self, username: str, password: str) -> AuthEvent:
        """Create the vault account.

        Steps: hash password and insert it, store a fresh secret key in the
        keyring, derive the AUC, generate and wrap the RSA key pair, insert
        the wrapped key, commit, then populate the session.

        Returns:
            AuthEvent.USER_LOGGED_IN on success.

        Raises:
            ValidationError: On empty fields or an already initialised vault.
            SQLError, CredentialStoreError, EntropyError, WrapError: On
                infrastructure failure, after compensation has run.
        """
        with self._flow_lock:
            self._transition(SignupState.START, username)
            creds = Credentials.parse(username, password)
            self._transition(SignupState.CREDENTIALS_VALIDATED, username)
            if self._db.is_initialized():
                raise ValidationError("an account already exists for this vault")

            hashed = self._hasher.hash(creds.password)
            tx = self._db.begin()
            keyring_touched = False
            try:
                VaultDatabase.insert_configuration(tx, "username", creds.username)
                VaultDatabase.insert_configuration(tx, "password", hashed)
                self._transition(SignupState.ACCOUNT_PERSISTED, username)

                secret_key = generate_secret_key()
                keyring_touched = True
                self._secrets.set_secret_key(creds.username, secret_key)
                self._transition(SignupState.SECRET_PROVISIONED, username)

                salt = self._secrets.find_or_make_salt(creds.username)
                auc = crypto.derive_auc(
                    creds.password, secret_key, salt, creds.username,
                )
                _, private_key = crypto.generate_key_pair()
                wrapped = crypto.wrap_private_key(private_key, auc)
                VaultDatabase.insert_configuration(
                    tx, "encrypted_private_key", wrapped.hex(),
                )
                self._transition(SignupState.KEY_PAIR_PROTECTED, username)

                tx.commit()
            except Exception as err:
                logger.error("Signup failed for user=%s: %s", username, err)
                self._compensate(tx, creds.username, keyring_touched)
                raise
            self._transition(SignupState.COMMITTED, username)
            logger.info("Vault account created for user=%s", username)
            return self._authenticated(creds.username, auc, private_key)

    def _compensate(self, tx: Transaction, username: str, keyring_touched: bool) -> None:
        try:
            tx.rollback()
        except SQLError as err:
            logger.error("Rollback failed for user=%s: %s", username, err)
        if keyring_touched:
            failed = self._secrets.purge(username)
            if failed:
                logger.error(
                    "Keyring material left behind for user=%s: %s", username, failed,
                )
        self._transition(SignupState.ROLLED_BACK, username)

    # ------------------------------------------------------------------
    # Unlock
    # ------------------------------------------------------------------

    def unlock(self, username: str, password: str) -> AuthEvent:
        """Unlock the vault for an existing account.

        Returns:
            AuthEvent.USER_LOGGED_IN on success.

        Raises:
            ValidationError: On empty fields.
            AuthenticationError: On any credential or store failure.
            ConfigurationError: If the account's secret key is missing.
        """
        with self._flow_lock:
            self._transition(UnlockState.START, username)
            creds = Credentials.parse(username, password)
            try:
                self._verify_password(creds)
                self._transition(UnlockState.PASSWORD_VERIFIED, username)

                secret_key = self._read_secret_key(creds.username)
                self._transition(UnlockState.SECRET_RETRIEVED, username)

                salt = self._secrets.find_or_make_salt(creds.username)
                auc = crypto.derive_auc(
                    creds.password, secret_key, salt, creds.username,
                )
                self._transition(UnlockState.AUC_DERIVED, username)

                private_key = crypto.unwrap_private_key(self._read_wrapped_key(), auc)
                self._transition(UnlockState.KEY_UNWRAPPED, username)
            except ConfigurationError:
                self._transition(UnlockState.FAILED, username)
                raise
            except (VaultError, ValueError) as err:
                self._transition(UnlockState.FAILED, username)
                logger.error("Unlock failed for user=%s: %s", username, err)
                raise AuthenticationError("authentication failed") from err
            self._transition(UnlockState.AUTHENTICATED, username)
            logger.info("Vault unlocked for user=%s", username)
            return self._authenticated(creds.username, auc, private_key)

    def _verify_password(self, creds: Credentials) -> None:
        stored_user = self._db.get_configuration("username")
        stored_hash = self._db.get_configuration("password")
        if stored_user is None or stored_hash is None:
            raise AuthenticationError("no account provisioned")
        # Run the hash even for an unknown user so timing does not tell.
        matched = self._hasher.verify(creds.password, stored_hash)
        if stored_user != creds.username or not matched:
            raise AuthenticationError("authentication failed password mismatched")

    def _read_secret_key(self, username: str) -> str:
        try:
            return self._secrets.get_secret_key(username)
        except SecretNotFoundError as err:
            logger.error("Secret key for user=%s not found in keyring", username)
            raise ConfigurationError("secret key was not found") from err

    def _read_wrapped_key(self) -> bytes:
        encoded = self._db.get_configuration("encrypted_private_key")
        if encoded is None:
            raise UnwrapError("encrypted private key missing from database")
        try:
            return bytes.fromhex(encoded)
        except ValueError as err:
            raise UnwrapError("failed decoding encrypted private key") from err


__all__ = (
    "AuthEvent",
    "ProvisioningCoordinator",
    "SignupState",
    "UnlockState",
)
