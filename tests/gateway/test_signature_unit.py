"""Unit tests for signature header parsing and HMAC verification."""

import json

import pytest

from src.gateway.signature import (
    MalformedSignatureError,
    SignatureError,
    SignatureHeader,
    SignatureKeyError,
    SignatureVerifier,
    compute_signature,
    verify,
)


# Example delivery from GitHub's "Validating webhook deliveries" guide
GITHUB_DOC_SECRET = "It's a Secret to Everybody"
GITHUB_DOC_PAYLOAD = b"Hello, World!"
GITHUB_DOC_SIGNATURE = (
    "sha256=757107ea0eb2509fc211221cce984b8a37570b6d7586c22c46f4379c8b043e17"
)


class TestSignatureHeader:
    def test_parse_splits_algorithm_and_digest(self):
        header = SignatureHeader.parse("sha256=00ff")
        assert header.algorithm == "sha256"
        assert header.digest == b"\x00\xff"

    def test_parse_splits_on_first_separator_only(self):
        with pytest.raises(MalformedSignatureError):
            SignatureHeader.parse("sha256=ab=cd")

    def test_parse_lowercases_algorithm(self):
        assert SignatureHeader.parse("SHA256=ab").algorithm == "sha256"

    def test_parse_ignores_surrounding_whitespace(self):
        header = SignatureHeader.parse("  sha256=00ff\t")
        assert header == SignatureHeader(algorithm="sha256", digest=b"\x00\xff")

    @pytest.mark.parametrize(
        "value",
        ["", "sha256", "sha256=", "=abcd", "sha256=abc", "sha256=zz", "sha256=ab cd"],
    )
    def test_parse_rejects_malformed_values(self, value):
        with pytest.raises(MalformedSignatureError):
            SignatureHeader.parse(value)

    def test_malformed_error_is_a_signature_error(self):
        with pytest.raises(SignatureError) as exc_info:
            SignatureHeader.parse("no-separator")
        assert exc_info.value.reason == "malformed_signature"


class TestVerify:
    def test_known_github_vector(self):
        assert verify(GITHUB_DOC_SECRET, GITHUB_DOC_SIGNATURE, GITHUB_DOC_PAYLOAD) is True

    def test_compute_signature_matches_known_vector(self):
        assert compute_signature(GITHUB_DOC_SECRET, GITHUB_DOC_PAYLOAD) == GITHUB_DOC_SIGNATURE

    def test_str_and_bytes_secret_are_equivalent(self):
        assert verify(
            GITHUB_DOC_SECRET.encode("utf-8"), GITHUB_DOC_SIGNATURE, GITHUB_DOC_PAYLOAD
        ) is True

    def test_mismatched_digest_returns_false(self):
        header = compute_signature("secret", b'{"a": 1}')
        assert verify("secret", header, b'{"a": 2}') is False

    def test_reserialized_json_does_not_verify(self):
        raw = b'{"b": 1,   "a": 2}'
        header = compute_signature("secret", raw)
        reserialized = json.dumps(json.loads(raw)).encode("utf-8")
        assert reserialized != raw
        assert verify("secret", header, reserialized) is False

    def test_short_digest_returns_false(self):
        assert verify("secret", "sha256=abcd", b"{}") is False

    def test_other_algorithm_prefix_is_malformed(self):
        header = compute_signature("secret", b"{}", algorithm="sha1")
        with pytest.raises(MalformedSignatureError):
            verify("secret", header, b"{}")

    def test_configured_algorithm_is_honoured(self):
        header = compute_signature("secret", b"{}", algorithm="sha512")
        assert verify("secret", header, b"{}", algorithm="sha512") is True

    def test_empty_secret_raises_key_error(self):
        with pytest.raises(SignatureKeyError) as exc_info:
            verify(b"", "sha256=" + "00" * 32, b"{}")
        assert exc_info.value.reason == "signature_key_error"

    def test_non_bytes_secret_raises_key_error(self):
        with pytest.raises(SignatureKeyError):
            verify(12345, "sha256=" + "00" * 32, b"{}")

    def test_unsupported_algorithm_raises_value_error(self):
        with pytest.raises(ValueError):
            verify("secret", "md5=00", b"{}", algorithm="md5")


class TestSignatureVerifier:
    def test_verifier_binds_secret(self):
        verifier = SignatureVerifier(GITHUB_DOC_SECRET)
        assert verifier.algorithm == "sha256"
        assert verifier.verify(GITHUB_DOC_SIGNATURE, GITHUB_DOC_PAYLOAD) is True
        assert verifier.verify(GITHUB_DOC_SIGNATURE, b"Hello, World?") is False

    def test_repr_does_not_leak_secret(self):
        verifier = SignatureVerifier("super-secret-value")
        assert "super-secret-value" not in repr(verifier)

    def test_rejects_unsupported_algorithm(self):
        with pytest.raises(ValueError):
            SignatureVerifier("secret", algorithm="md5")
