"""HMAC signature verification for webhook deliveries.

The digest is always computed over the exact raw request body as it was
received. Parsing the JSON and re-serializing it would produce different
bytes than the sender signed, so callers must pass the captured body
unchanged.
"""

import hashlib
import hmac
import logging
from typing import Union

from src.gateway.signature.errors import (
    MalformedSignatureError,
    SignatureKeyError,
)
from src.gateway.signature.models import SignatureHeader


logger = logging.getLogger(__name__)


HASH_FUNCTIONS = {
    "sha256": hashlib.sha256,
    "sha1": hashlib.sha1,
    "sha512": hashlib.sha512,
}

DEFAULT_ALGORITHM = "sha256"

Secret = Union[bytes, bytearray, str]


def _key_bytes(secret: Secret) -> bytes:
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    if not isinstance(secret, (bytes, bytearray)):
        raise SignatureKeyError(
            f"secret must be bytes or str, got {type(secret).__name__}"
        )
    if not secret:
        raise SignatureKeyError("secret is empty")
    return bytes(secret)


def compute_signature(
    secret: Secret,
    raw_body: bytes,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Build the ``algorithm=hexdigest`` header value for a body.

    This is what the sender puts in the signature header; it is used by
    tests and local tooling to sign sample deliveries.

    Raises:
        SignatureKeyError: If the secret is empty or of the wrong type.
        ValueError: If the algorithm is not supported.
    """
    if algorithm not in HASH_FUNCTIONS:
        raise ValueError(f"Unsupported signature algorithm: {algorithm}")
    mac = hmac.new(_key_bytes(secret), raw_body, HASH_FUNCTIONS[algorithm])
    return f"{algorithm}={mac.hexdigest()}"


def verify(
    secret: Secret,
    header_value: str,
    raw_body: bytes,
    algorithm: str = DEFAULT_ALGORITHM,
) -> bool:
    """Verify a signature header against the raw request body.

    Args:
        secret: Shared webhook secret used as the HMAC key.
        header_value: Signature header value, e.g. ``sha256=<hex>``.
        raw_body: The request body exactly as transmitted.
        algorithm: Expected algorithm prefix.

    Returns:
        True if the digest matches, False otherwise. A digest of the wrong
        length never matches.

    Raises:
        MalformedSignatureError: If the header is not ``algorithm=hex`` or
            names a different algorithm.
        SignatureKeyError: If the secret cannot be used as an HMAC key.
    """
    if algorithm not in HASH_FUNCTIONS:
        raise ValueError(f"Unsupported signature algorithm: {algorithm}")

    header = SignatureHeader.parse(header_value)
    if header.algorithm != algorithm:
        raise MalformedSignatureError(
            f"expected {algorithm} signature, got {header.algorithm}"
        )

    key = _key_bytes(secret)
    expected = hmac.new(key, raw_body, HASH_FUNCTIONS[algorithm]).digest()

    if len(header.digest) != len(expected):
        logger.debug(
            "Signature digest length mismatch: expected %d bytes, got %d",
            len(expected),
            len(header.digest),
        )
        return False

    return hmac.compare_digest(expected, header.digest)


class SignatureVerifier:
    """Verifier bound to one secret and algorithm.

    The secret is supplied once at startup and reused for every request;
    it is never logged or exposed through this object's repr.

    Example:
        >>> verifier = SignatureVerifier(b"s3cret")
        >>> verifier.verify(compute_signature(b"s3cret", b"{}"), b"{}")
        True
    """

    def __init__(self, secret: Secret, algorithm: str = DEFAULT_ALGORITHM):
        if algorithm not in HASH_FUNCTIONS:
            raise ValueError(f"Unsupported signature algorithm: {algorithm}")
        self._secret = secret
        self._algorithm = algorithm

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def verify(self, header_value: str, raw_body: bytes) -> bool:
        """Verify ``header_value`` against ``raw_body``.

        See :func:`verify` for the error contract.
        """
        return verify(self._secret, header_value, raw_body, self._algorithm)

    def __repr__(self) -> str:
        return f"SignatureVerifier(algorithm={self._algorithm!r})"
