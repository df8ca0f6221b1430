"""Unit tests for content fingerprinting.

Tests cover:
- Digest format and determinism
- Line-ending / outer-whitespace normalization
- Model and prompt-version namespacing
"""

import hashlib

import pytest

from sqlshift.core.conversion.fingerprint import fingerprint, make_cache_key, normalize


class TestNormalize:

    def test_crlf_becomes_lf(self):
        assert normalize("a\r\nb\r\n") == "a\nb"

    def test_lone_cr_becomes_lf(self):
        assert normalize("a\rb") == "a\nb"

    def test_outer_whitespace_trimmed(self):
        assert normalize("\n\n  SELECT 1  \n\t") == "SELECT 1"

    def test_inner_whitespace_kept(self):
        assert normalize("SELECT  1\n\nFROM t") == "SELECT  1\n\nFROM t"


class TestFingerprint:

    def test_known_digest(self):
        expected = hashlib.sha256(b"m1:SELECT * FROM T").hexdigest()
        assert fingerprint("SELECT * FROM T", "m1") == expected

    def test_lowercase_hex_256_bit(self):
        digest = fingerprint("SELECT 1", "m1")
        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)

    def test_deterministic(self):
        assert fingerprint("SELECT 1", "m1") == fingerprint("SELECT 1", "m1")

    @pytest.mark.parametrize("variant", [
        "SELECT *\r\nFROM T",
        "  SELECT *\nFROM T\n\n",
        "\r\nSELECT *\r\nFROM T\r\n",
    ])
    def test_cosmetic_variants_share_digest(self, variant):
        assert fingerprint(variant, "m1") == fingerprint("SELECT *\nFROM T", "m1")
        assert fingerprint(variant, "m1") == fingerprint(normalize(variant), "m1")

    def test_model_is_part_of_namespace(self):
        assert fingerprint("SELECT 1", "m1") != fingerprint("SELECT 1", "m2")

    def test_empty_text_allowed(self):
        assert fingerprint("", "m1") == hashlib.sha256(b"m1:").hexdigest()

    def test_empty_model_rejected(self):
        with pytest.raises(ValueError):
            fingerprint("SELECT 1", "")

    def test_prompt_version_changes_digest(self):
        plain = fingerprint("SELECT 1", "m1")
        versioned = fingerprint("SELECT 1", "m1", prompt_version="v2")
        assert plain != versioned
        assert versioned == hashlib.sha256(b"m1:v2:SELECT 1").hexdigest()

    def test_make_cache_key_wraps_digest(self):
        key = make_cache_key("SELECT 1", "m1")
        assert key.digest == fingerprint("SELECT 1", "m1")
