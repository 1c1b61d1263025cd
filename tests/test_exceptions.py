"""Tests for the error taxonomy and user-facing messages."""
import pytest

from viscue.exceptions import (
    AuthenticationError,
    DecryptError,
    ErrorCategory,
    HashFormatError,
    SQLError,
    UnwrapError,
    ValidationError,
    public_message,
)


class TestPublicMessage:

    def test_validation_message_is_shown(self):
        err = ValidationError(["name cannot be blank", "email cannot be blank"])
        assert public_message(err) == "name cannot be blank and email cannot be blank"

    @pytest.mark.parametrize("err", [
        AuthenticationError("authentication failed password mismatched"),
        HashFormatError("failed to decode salt from argon string"),
        UnwrapError("failed decrypting private key"),
    ])
    def test_authentication_details_hidden(self, err):
        assert err.category is ErrorCategory.AUTHENTICATION
        assert public_message(err) == "authentication failed"

    def test_internal_details_hidden(self):
        err = SQLError("no such table: configurations")
        assert err.category is ErrorCategory.INTERNAL
        assert public_message(err) == "something went wrong"
        assert public_message(DecryptError("bad label")) == "something went wrong"

    def test_foreign_exception(self):
        assert public_message(RuntimeError("boom")) == "something went wrong"
