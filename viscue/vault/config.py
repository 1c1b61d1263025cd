"""
Vault Configuration — validated settings loaded from the environment.

Environment variables:
    VISCUE_DB_PATH             = <path to the sqlite vault>
    VISCUE_SECRET_KEY_SERVICE  = <keyring service holding the secret key>
    VISCUE_SALT_SERVICE        = <keyring service holding the AUC salt>
    VISCUE_PASSWORD_LENGTH     = <default generated password length>
    VISCUE_SQL_TRACE           = <"1"/"true" to log SQL statements>

Cryptographic parameters are not configurable; they are constants of
``viscue.vault.crypto`` and ``viscue.vault.hashing``.
"""
import os
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("viscue.vault")

DEFAULT_DB_PATH = "sqlite.db"
SECRET_KEY_SERVICE = "Viscue Secret Key"
SALT_SERVICE = "Viscue AUC Salt"
DEFAULT_PASSWORD_LENGTH = 20

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def get_password_length() -> int:
    """Read VISCUE_PASSWORD_LENGTH.

    Raises:
        ValueError: If the value is not a valid integer.
    """
    raw = os.environ.get("VISCUE_PASSWORD_LENGTH")
    if raw is None:
        return DEFAULT_PASSWORD_LENGTH
    return int(raw)


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    db_path: Path = Field(default=Path(DEFAULT_DB_PATH))
    secret_key_service: str = Field(default=SECRET_KEY_SERVICE, min_length=1)
    salt_service: str = Field(default=SALT_SERVICE, min_length=1)
    generated_password_length: int = Field(
        default=DEFAULT_PASSWORD_LENGTH, ge=8, le=128,
    )
    sql_trace: bool = False

    @field_validator("db_path")
    @classmethod
    def expand_db_path(cls, v: Path) -> Path:
        """Expand ``~`` so the store never opens a literal tilde directory."""
        return v.expanduser()

    @model_validator(mode="after")
    def validate_distinct_services(self) -> "VaultConfig":
        """Secret key and salt must live under different keyring services."""
        if self.secret_key_service == self.salt_service:
            raise ValueError(
                "secret_key_service and salt_service must differ "
                f"(both are {self.salt_service!r})"
            )
        return self

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        config = cls(
            db_path=Path(os.environ.get("VISCUE_DB_PATH", DEFAULT_DB_PATH)),
            secret_key_service=os.environ.get(
                "VISCUE_SECRET_KEY_SERVICE", SECRET_KEY_SERVICE,
            ),
            salt_service=os.environ.get("VISCUE_SALT_SERVICE", SALT_SERVICE),
            generated_password_length=get_password_length(),
            sql_trace=env_flag("VISCUE_SQL_TRACE"),
        )
        logger.debug(
            "Loaded vault config: db=%s trace=%s", config.db_path, config.sql_trace,
        )
        return config
