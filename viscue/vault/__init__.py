"""Vault — key derivation, key protection and encrypted entry storage.

Security Note (Threat Model):
    The AUC and the unwrapped private key live in process memory for the
    lifetime of an unlocked session. A memory dump of the application
    process exposes them. The on-disk vault alone is useless without both
    the master password and the secret key held in the OS keyring.
"""

from .config import VaultConfig
from .credentials import AccountSecrets, CredentialStore
from .database import VaultDatabase
from .hashing import PasswordHasher
from .library import PasswordListing, VaultLibrary
from .provisioning import AuthEvent, ProvisioningCoordinator

__all__ = [
    "AccountSecrets",
    "AuthEvent",
    "CredentialStore",
    "PasswordHasher",
    "PasswordListing",
    "ProvisioningCoordinator",
    "VaultConfig",
    "VaultDatabase",
    "VaultLibrary",
]
