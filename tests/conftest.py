"""Shared fixtures for the viscue test-suite."""
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from viscue.session import SessionContext
from viscue.vault.config import VaultConfig
from viscue.vault.credentials import AccountSecrets, CredentialStore
from viscue.vault.database import VaultDatabase
from viscue.vault.hashing import PasswordHasher


class MemoryKeyring(KeyringBackend):
    """Process-local keyring backend; never touches the real OS store."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.store: dict[tuple[str, str], str] = {}
        self.fail_on_set: set[str] = set()
        self.fail_on_delete: set[str] = set()

    def get_password(self, service, username):
        return self.store.get((service, username))

    def set_password(self, service, username, password):
        if service in self.fail_on_set:
            raise KeyringError(f"cannot write {service}")
        self.store[(service, username)] = password

    def delete_password(self, service, username):
        if service in self.fail_on_delete:
            raise KeyringError(f"cannot delete {service}")
        try:
            del self.store[(service, username)]
        except KeyError:
            raise PasswordDeleteError("not found") from None


@pytest.fixture(scope="session")
def private_key() -> rsa.RSAPrivateKey:
    """One RSA-3072 key for the whole run; generation is slow."""
    return rsa.generate_private_key(public_exponent=65537, key_size=3072)


@pytest.fixture(scope="session")
def other_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=3072)


@pytest.fixture
def keyring_backend() -> MemoryKeyring:
    return MemoryKeyring()


@pytest.fixture
def config(tmp_path) -> VaultConfig:
    return VaultConfig(db_path=tmp_path / "vault.db")


@pytest.fixture
def db(config):
    database = VaultDatabase(config.db_path)
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def secrets(keyring_backend, config) -> AccountSecrets:
    return AccountSecrets(CredentialStore(keyring_backend), config)


@pytest.fixture
def fast_hasher() -> PasswordHasher:
    """Argon2id with minimal cost, same encoding."""
    return PasswordHasher(iterations=1, memory_kib=8, parallelism=1)


@pytest.fixture
def session() -> SessionContext:
    return SessionContext()


@pytest.fixture
def unlocked_session(private_key) -> SessionContext:
    ctx = SessionContext()
    ctx.populate("alice", b"\x01" * 32, private_key)
    return ctx
