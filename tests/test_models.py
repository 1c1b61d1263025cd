"""Tests for entities and prompt payload validation."""
import pytest

from viscue.exceptions import ErrorCategory, ValidationError
from viscue.models import (
    CategoryPayload,
    Credentials,
    PasswordEntry,
    PasswordPayload,
    parse_payload,
)


class TestCredentials:

    def test_valid(self):
        creds = Credentials.parse("alice", "hunter2")
        assert creds.username == "alice"
        assert creds.password == "hunter2"

    def test_blank_username(self):
        with pytest.raises(ValidationError) as exc:
            Credentials.parse("", "hunter2")
        assert str(exc.value) == "username cannot be blank"
        assert exc.value.category is ErrorCategory.VALIDATION

    def test_both_blank(self):
        with pytest.raises(ValidationError) as exc:
            Credentials.parse("  ", "")
        assert exc.value.messages == [
            "username cannot be blank", "password cannot be blank",
        ]
        assert exc.value.public_message == (
            "username cannot be blank and password cannot be blank"
        )


class TestPayloads:

    def test_category_payload(self):
        payload = parse_payload({"kind": "category", "name": "Work"})
        assert isinstance(payload, CategoryPayload)
        assert payload.to_entity().name == "Work"

    def test_category_name_required(self):
        with pytest.raises(ValidationError) as exc:
            parse_payload({"kind": "category", "name": ""})
        assert str(exc.value) == "name cannot be blank"

    def test_password_payload(self):
        payload = parse_payload({
            "kind": "password",
            "name": "GitHub",
            "email": "alice@example.com",
            "password": "pw",
            "category_id": 3,
        })
        assert isinstance(payload, PasswordPayload)
        entity = payload.to_entity()
        assert isinstance(entity, PasswordEntry)
        assert entity.category_id == 3
        assert entity.username == ""

    def test_password_required_fields_joined(self):
        with pytest.raises(ValidationError) as exc:
            parse_payload({"kind": "password", "name": "GitHub"})
        assert str(exc.value) == (
            "email cannot be blank and password cannot be blank"
        )

    @pytest.mark.parametrize("category_id", [0, -1, None])
    def test_synthetic_category_means_none(self, category_id):
        payload = PasswordPayload(
            name="n", email="e", password="p", category_id=category_id,
        )
        assert payload.category_id is None

    def test_unknown_kind(self):
        with pytest.raises(ValidationError):
            parse_payload({"kind": "note", "name": "x"})


class TestEntities:

    def test_entry_accepts_stored_values(self):
        entry = PasswordEntry(id=1, name="x", email="ab" * 10, password="cd" * 10)
        assert entry.category_id is None
