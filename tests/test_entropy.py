"""Tests for random string generation."""
import pytest

from viscue.exceptions import EntropyError
from viscue.vault import entropy
from viscue.vault.entropy import (
    PASSWORD_ALPHABET,
    SALT_ALPHABET,
    SECRET_KEY_ALPHABET,
    generate,
    generate_password,
    generate_salt,
    generate_secret_key,
    random_bytes,
)


class TestGenerate:

    def test_length_and_alphabet(self):
        value = generate("abc", 64)
        assert len(value) == 64
        assert set(value) <= set("abc")

    def test_zero_length(self):
        assert generate("abc", 0) == ""

    def test_single_symbol_alphabet(self):
        assert generate("x", 5) == "xxxxx"

    def test_empty_alphabet_rejected(self):
        with pytest.raises(ValueError):
            generate("", 4)

    def test_negative_length_rejected(self):
        with pytest.raises(ValueError):
            generate("abc", -1)

    def test_values_differ(self):
        assert generate(SALT_ALPHABET, 32) != generate(SALT_ALPHABET, 32)

    def test_every_symbol_reachable(self):
        value = generate("ab", 500)
        assert set(value) == {"a", "b"}

    def test_entropy_failure(self, monkeypatch):
        def broken(_):
            raise OSError("no entropy")

        monkeypatch.setattr(entropy.secrets, "randbelow", broken)
        with pytest.raises(EntropyError):
            generate("abc", 3)


class TestNamedGenerators:

    def test_secret_key(self):
        key = generate_secret_key()
        assert len(key) == 36
        assert set(key) <= set(SECRET_KEY_ALPHABET)
        assert len(key.encode("utf-8")) >= 32

    def test_salt(self):
        salt = generate_salt()
        assert len(salt) == 32
        assert set(salt) <= set(SALT_ALPHABET)

    def test_password(self):
        password = generate_password(20)
        assert len(password) == 20
        assert set(password) <= set(PASSWORD_ALPHABET)

    def test_password_length_must_be_positive(self):
        with pytest.raises(ValueError):
            generate_password(0)


class TestRandomBytes:

    def test_size(self):
        assert len(random_bytes(12)) == 12

    def test_source_unavailable(self, monkeypatch):
        def broken(_):
            raise NotImplementedError

        monkeypatch.setattr(entropy.os, "urandom", broken)
        with pytest.raises(EntropyError):
            random_bytes(12)
