"""
Tests for SessionContext.

Tests cover:
- Session properties and lifecycle
- Key material population and invalidation
- Magic methods (__getitem__, __setitem__, __getattr__, __setattr__, etc.)
- Concurrent readers during population
"""
import threading
from datetime import datetime, timezone

import pytest

from viscue.session import SessionContext, SessionKey


AUC = b"\x07" * 32


# --- Test Session Initialization ---

class TestSessionInitialization:
    """Tests for SessionContext initialization."""

    def test_empty_session_creation(self, session):
        assert session.empty is True
        assert len(session) == 0
        assert session.authenticated is False
        assert session.identity is None

    def test_session_id_is_generated(self, session):
        assert session.session_id is not None
        assert len(session.session_id) > 0

    def test_session_with_custom_id(self):
        session = SessionContext(id="my-custom-session-id")
        assert session.session_id == "my-custom-session-id"

    def test_unique_session_ids(self):
        assert SessionContext().session_id != SessionContext().session_id

    def test_session_created_timestamp(self, session):
        now = int(datetime.now(timezone.utc).timestamp())
        assert abs(session.created - now) < 5

    def test_session_logon_time(self, session):
        assert isinstance(session.logon_time, datetime)
        assert session.logon_time.tzinfo is not None


# --- Test Key Material ---

class TestKeyMaterial:
    """Tests for populate() and invalidate()."""

    def test_populate(self, session, private_key):
        session.populate("alice", AUC, private_key)
        assert session.authenticated is True
        assert session.identity == "alice"
        assert session.account_unlock_key == AUC
        assert session.private_key is private_key
        assert (
            session.public_key.public_numbers()
            == private_key.public_key().public_numbers()
        )

    def test_keys_match_enum(self, session, private_key):
        session.populate("alice", AUC, private_key)
        assert sorted(session) == sorted(key.value for key in SessionKey)
        assert SessionKey.PRIVATE_KEY in session
        assert session[SessionKey.ACCOUNT_UNLOCK_KEY] == AUC

    def test_partial_session_not_authenticated(self, session):
        session[SessionKey.ACCOUNT_UNLOCK_KEY] = AUC
        assert session.authenticated is False

    def test_missing_key_raises(self, session):
        with pytest.raises(KeyError):
            _ = session.private_key

    def test_invalidate(self, unlocked_session):
        unlocked_session.invalidate()
        assert unlocked_session.empty is True
        assert unlocked_session.authenticated is False
        assert unlocked_session.identity is None

    def test_repr_hides_values(self, unlocked_session):
        text = repr(unlocked_session)
        assert "alice" in text
        assert repr(AUC) not in text
        assert "\\x01" not in text

    def test_readers_never_see_partial_population(self, private_key):
        session = SessionContext()
        seen = []
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                keys = set(session)
                if keys:
                    seen.append(len(keys))

        thread = threading.Thread(target=reader)
        thread.start()
        for _ in range(50):
            session.populate("alice", AUC, private_key)
            session.invalidate()
        stop.set()
        thread.join()
        assert all(count == len(SessionKey) for count in seen)


# --- Test Magic Methods ---

class TestMagicMethods:
    """Tests for mapping and attribute access."""

    def test_setitem_getitem(self, session):
        session["color"] = "blue"
        assert session["color"] == "blue"

    def test_getitem_keyerror(self, session):
        with pytest.raises(KeyError):
            _ = session["nonexistent"]

    def test_delitem(self, session):
        session["color"] = "blue"
        del session["color"]
        assert "color" not in session

    def test_delitem_keyerror(self, session):
        with pytest.raises(KeyError):
            del session["nonexistent"]

    def test_set_via_attribute(self, session):
        session.color = "blue"
        assert session["color"] == "blue"

    def test_get_via_attribute(self, session):
        session["color"] = "blue"
        assert session.color == "blue"

    def test_attribute_error_for_missing(self, session):
        with pytest.raises(AttributeError):
            _ = session.nonexistent

    def test_internal_attributes_not_stored(self, session):
        assert "_id_" not in session
        assert "_lock" not in session

    def test_mapping_helpers(self, session):
        session["a"] = 1
        session["b"] = 2
        assert session.get("a") == 1
        assert session.get("missing", "default") == "default"
        assert set(session.keys()) == {"a", "b"}
        assert sorted(session.values()) == [1, 2]
        assert dict(session.items()) == {"a": 1, "b": 2}
