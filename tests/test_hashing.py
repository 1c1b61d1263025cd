"""Tests for the Argon2id password hasher."""
import pytest

from viscue.exceptions import HashFormatError
from viscue.vault.hashing import PasswordHasher, _b64encode


class TestHash:

    def test_encoded_format(self, fast_hasher):
        encoded = fast_hasher.hash("correct horse")
        fields = encoded.split("$")
        assert len(fields) == 5
        assert fields[0] == ""
        assert fields[1] == "argon2id"
        assert fields[2] == "v=19"
        assert "=" not in fields[3] and "=" not in fields[4]

    def test_fresh_salt_per_hash(self, fast_hasher):
        assert fast_hasher.hash("pw") != fast_hasher.hash("pw")

    def test_default_parameters(self):
        hasher = PasswordHasher()
        assert hasher.iterations == 12
        assert hasher.memory_kib == 64 * 1024
        assert hasher.parallelism == 4


class TestVerify:

    def test_round_trip(self, fast_hasher):
        encoded = fast_hasher.hash("correct horse")
        assert fast_hasher.verify("correct horse", encoded) is True

    def test_wrong_password(self, fast_hasher):
        encoded = fast_hasher.hash("correct horse")
        assert fast_hasher.verify("battery staple", encoded) is False

    def test_unicode_password(self, fast_hasher):
        encoded = fast_hasher.hash("pässwörd ✓")
        assert fast_hasher.verify("pässwörd ✓", encoded) is True

    @pytest.mark.parametrize("encoded", [
        "",
        "not a hash",
        "$argon2id$v=19$c2FsdA",
        "argon2id$v=19$c2FsdA$aGFzaA$",
        "$argon2i$v=19$c2FsdA$" + "A" * 43,
        "$argon2id$v=16$c2FsdA$" + "A" * 43,
        "$argon2id$version$c2FsdA$" + "A" * 43,
        "$argon2id$v=19$!!!$" + "A" * 43,
        "$argon2id$v=19$c2FsdA$!!!",
        "$argon2id$v=19$$" + "A" * 43,
        "$argon2id$v=19$c2FsdA$aGFzaA",
    ])
    def test_malformed_hash(self, fast_hasher, encoded):
        with pytest.raises(HashFormatError):
            fast_hasher.verify("pw", encoded)

    def test_tampered_digest_does_not_match(self, fast_hasher):
        encoded = fast_hasher.hash("pw")
        head, digest = encoded.rsplit("$", 1)
        tampered = head + "$" + _b64encode(bytes(32))
        assert fast_hasher.verify("pw", tampered) is False
