"""
Vault Library — category and entry operations of an unlocked vault.

Every call requires an authenticated SessionContext: entries are encrypted
with the session public key on save and decrypted with the session private
key on load.
"""
import logging
from typing import Optional, Union, assert_never

from pydantic import BaseModel, Field

from ..exceptions import AuthenticationError, DecryptError, ValidationError
from ..models import (
    ALL_CATEGORY_ID,
    UNCATEGORIZED_ID,
    Category,
    CategoryPayload,
    PasswordEntry,
    PasswordPayload,
    parse_payload,
)
from ..session import SessionContext
from .config import VaultConfig
from .database import VaultDatabase
from .entropy import generate_password
from .entry_cipher import decrypt_entry, encrypt_entry

logger = logging.getLogger("viscue.vault")

_SELECT_CATEGORIES = """
WITH results AS (
    SELECT 0 AS id, 'All' AS name, 1 AS sort_order
    UNION ALL
    SELECT id, name, 2 AS sort_order FROM categories
    UNION ALL
    SELECT -1 AS id, 'Uncategorized' AS name, 3 AS sort_order
)
SELECT id, name FROM results ORDER BY sort_order, name
"""

_UPSERT_CATEGORY = """
INSERT INTO categories (name) VALUES (:name)
ON CONFLICT (name) DO UPDATE SET name = :name
"""

_SELECT_CATEGORY_ID = "SELECT id FROM categories WHERE name = ?"

_UPDATE_CATEGORY = "UPDATE categories SET name = :name WHERE id = :id"

_DELETE_CATEGORY = "DELETE FROM categories WHERE id = ?"

_SELECT_PASSWORDS = """
SELECT id, category_id, name, email, username, password FROM passwords
"""

_INSERT_PASSWORD = """
INSERT INTO passwords (category_id, name, email, username, password)
VALUES (:category_id, :name, :email, :username, :password)
"""

_UPDATE_PASSWORD = """
UPDATE passwords SET
    category_id = :category_id,
    name = :name,
    email = :email,
    username = :username,
    password = :password
WHERE id = :id
"""

_DELETE_PASSWORD = "DELETE FROM passwords WHERE id = ?"


class PasswordListing(BaseModel):
    """Decrypted entries plus the ``(id, name)`` of those that failed."""

    entries: list[PasswordEntry] = Field(default_factory=list)
    undecryptable: list[tuple[int, str]] = Field(default_factory=list)


class VaultLibrary:
    """Read and write categories and password entries."""

    def __init__(
        self,
        db: VaultDatabase,
        session: SessionContext,
        config: Optional[VaultConfig] = None,
    ):
        self._db = db
        self._session = session
        self._config = config or VaultConfig()

    def _require_unlocked(self) -> None:
        if not self._session.authenticated:
            raise AuthenticationError("vault is locked")

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def load_categories(self) -> list[Category]:
        """List categories, framed by the synthetic All and Uncategorized rows."""
        self._require_unlocked()
        rows = self._db.query_all(_SELECT_CATEGORIES)
        return [Category(id=row["id"], name=row["name"]) for row in rows]

    def save_category(self, category: Category) -> Category:
        self._require_unlocked()
        payload = parse_payload({"kind": "category", **category.model_dump()})
        if payload.id > 0:
            cursor = self._db.execute_named(
                _UPDATE_CATEGORY, {"id": payload.id, "name": payload.name},
            )
            if cursor.rowcount == 0:
                raise ValidationError("category not found")
            return payload.to_entity()
        self._db.execute_named(_UPSERT_CATEGORY, {"name": payload.name})
        row = self._db.query_row(_SELECT_CATEGORY_ID, (payload.name,))
        return Category(id=row["id"], name=payload.name)

    def delete_category(self, category_id: int) -> None:
        """Delete a category; its entries become uncategorized."""
        self._require_unlocked()
        if category_id in (ALL_CATEGORY_ID, UNCATEGORIZED_ID):
            raise ValidationError("built-in categories cannot be deleted")
        self._db.execute(_DELETE_CATEGORY, (category_id,))

    # ------------------------------------------------------------------
    # Password entries
    # ------------------------------------------------------------------

    def load_passwords(self, category_id: int = ALL_CATEGORY_ID) -> PasswordListing:
        """Load and decrypt the entries of one category.

        Args:
            category_id: ``0`` for every entry, ``-1`` for entries without a
                category, otherwise a category id.

        Returns:
            PasswordListing. Entries that fail to decrypt are left out of
            ``entries`` and reported in ``undecryptable``.
        """
        self._require_unlocked()
        if category_id == ALL_CATEGORY_ID:
            rows = self._db.query_all(_SELECT_PASSWORDS + " ORDER BY name")
        elif category_id == UNCATEGORIZED_ID:
            rows = self._db.query_all(
                _SELECT_PASSWORDS + " WHERE category_id IS NULL ORDER BY name",
            )
        else:
            rows = self._db.query_all(
                _SELECT_PASSWORDS + " WHERE category_id = ? ORDER BY name",
                (category_id,),
            )

        listing = PasswordListing()
        private_key = self._session.private_key
        for row in rows:
            stored = PasswordEntry(**dict(row))
            try:
                listing.entries.append(decrypt_entry(stored, private_key))
            except DecryptError as err:
                logger.error(
                    "Failed decrypting password id=%s name=%s: %s",
                    stored.id, stored.name, err,
                )
                listing.undecryptable.append((stored.id, stored.name))
        return listing

    def save_password(self, entry: PasswordEntry) -> PasswordEntry:
        """Validate, encrypt and store an entry.

        The stored copy is always re-encrypted, so renaming an entry keeps
        its ciphertext labelled with the current name.

        Returns:
            The plaintext entry, with its id set.

        Raises:
            ValidationError: If name, email or password is blank, or no entry
                has the given id.
            EncryptError: If a field cannot be encrypted.
        """
        self._require_unlocked()
        payload = parse_payload({"kind": "password", **entry.model_dump()})
        plain = payload.to_entity()
        sealed = encrypt_entry(plain, self._session.public_key)
        params = sealed.model_dump()
        if plain.id > 0:
            cursor = self._db.execute_named(_UPDATE_PASSWORD, params)
            if cursor.rowcount == 0:
                raise ValidationError("password entry not found")
            return plain
        cursor = self._db.execute_named(
            _INSERT_PASSWORD, {k: v for k, v in params.items() if k != "id"},
        )
        return plain.model_copy(update={"id": cursor.lastrowid})

    def delete_password(self, password_id: int) -> None:
        self._require_unlocked()
        self._db.execute(_DELETE_PASSWORD, (password_id,))

    def generate_password(self, length: Optional[int] = None) -> str:
        """Random password for a new entry, at the configured default length."""
        return generate_password(length or self._config.generated_password_length)

    # ------------------------------------------------------------------
    # Prompt submission
    # ------------------------------------------------------------------

    def submit(
        self, payload: Union[CategoryPayload, PasswordPayload],
    ) -> Union[Category, PasswordEntry]:
        """Save whatever the prompt produced."""
        match payload:
            case CategoryPayload():
                return self.save_category(payload.to_entity())
            case PasswordPayload():
                return self.save_password(payload.to_entity())
            case _:
                assert_never(payload)
