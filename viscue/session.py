"""
SessionContext — in-process key cache for one unlocked vault session.

Owned by the application root and passed explicitly to the provisioning
coordinator and the vault library; nothing here is global.

Security Note:
    Values live in process memory only and are never serialized.
    Never log the values held here, only key names.
"""
import uuid
import logging
import threading
from enum import Enum
from typing import Any, Optional
from datetime import datetime, timezone
from collections.abc import Iterator, MutableMapping

from cryptography.hazmat.primitives.asymmetric import rsa

logger = logging.getLogger("viscue.session")


class SessionKey(str, Enum):
    ACCOUNT_UNLOCK_KEY = "account_unlock_key"
    PRIVATE_KEY = "private_key"
    PUBLIC_KEY = "public_key"


class SessionContext(MutableMapping[str, Any]):
    """Session dict-like object holding unlocked key material.

    Population after signup or unlock goes through ``populate()``, which
    writes the AUC and both halves of the key pair under one lock so readers
    never see a half-filled session.
    """

    _internal_attrs = frozenset({
        '_objects', '_lock', '_id_', '_identity', '_created', '__created__',
    })

    def __init__(self, *, id: Optional[str] = None) -> None:
        object.__setattr__(self, '_objects', {})
        object.__setattr__(self, '_lock', threading.RLock())
        self._id_ = id or uuid.uuid4().hex
        self._identity: Optional[str] = None
        self.__created__ = datetime.now(timezone.utc)
        self._created = int(self.__created__.timestamp())

    def __repr__(self) -> str:
        return (
            f'<Viscue-Session [identity:{self.identity}, '
            f'authenticated:{self.authenticated}] '
            f'keys={sorted(self._objects.keys())}>'
        )

    # --- Properties ---

    @property
    def session_id(self) -> str:
        return self._id_

    @property
    def identity(self) -> Optional[str]:
        return self._identity

    @property
    def created(self) -> int:
        return self._created

    @property
    def logon_time(self) -> datetime:
        return self.__created__

    @property
    def empty(self) -> bool:
        return not bool(self._objects)

    @property
    def authenticated(self) -> bool:
        with self._lock:
            return all(key.value in self._objects for key in SessionKey)

    @property
    def account_unlock_key(self) -> bytes:
        return self._get_value(SessionKey.ACCOUNT_UNLOCK_KEY.value)

    @property
    def private_key(self) -> rsa.RSAPrivateKey:
        return self._get_value(SessionKey.PRIVATE_KEY.value)

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self._get_value(SessionKey.PUBLIC_KEY.value)

    # --- Lifecycle ---

    def populate(
        self, identity: str, auc: bytes, private_key: rsa.RSAPrivateKey,
    ) -> None:
        """Store the session key material in one critical section.

        Args:
            identity: Username the keys belong to.
            auc: 32-byte Account Unlock Key.
            private_key: Unwrapped vault private key; the public key is
                derived from it.
        """
        with self._lock:
            self._objects = {
                SessionKey.ACCOUNT_UNLOCK_KEY.value: auc,
                SessionKey.PRIVATE_KEY.value: private_key,
                SessionKey.PUBLIC_KEY.value: private_key.public_key(),
            }
            self._identity = identity
        logger.debug("Session %s populated for user=%s", self._id_, identity)

    def invalidate(self) -> None:
        """Drop all key material (lock the vault)."""
        with self._lock:
            self._objects = {}
            self._identity = None
        logger.debug("Session %s invalidated", self._id_)

    # --- Storage helpers ---

    @staticmethod
    def _key(key: object) -> str:
        if isinstance(key, SessionKey):
            return key.value
        return str(key)

    def _get_value(self, key: str) -> Any:
        with self._lock:
            return self._objects[key]

    def _set_value(self, key: str, value: Any) -> None:
        with self._lock:
            self._objects[key] = value

    def _del_value(self, key: str) -> None:
        with self._lock:
            del self._objects[key]

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            keys = list(self._objects)
        return iter(keys)

    def __contains__(self, key: object) -> bool:
        return self._key(key) in self._objects

    def __getitem__(self, key: str) -> Any:
        return self._get_value(self._key(key))

    def __setitem__(self, key: str, value: Any) -> None:
        self._set_value(self._key(key), value)

    def __delitem__(self, key: str) -> None:
        self._del_value(self._key(key))

    def __getattr__(self, key: str) -> Any:
        if key.startswith('_'):
            raise AttributeError(key)
        try:
            return self._get_value(key)
        except KeyError:
            raise AttributeError(key) from None

    def __setattr__(self, key: str, value: Any) -> None:
        if key in self._internal_attrs or key.startswith('_'):
            object.__setattr__(self, key, value)
        else:
            self._set_value(key, value)
