"""Exceptions raised by signature verification."""

from typing import Optional


class SignatureError(Exception):
    """Base class for signature verification failures.

    A SignatureError means verification could not be carried out at all,
    which is distinct from a clean digest mismatch (``verify`` returning
    False).

    Attributes:
        reason: Short machine-readable failure reason.
        message: Human-readable error message.
    """

    reason = "signature_error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or "signature verification failed"
        super().__init__(self.message)


class MalformedSignatureError(SignatureError):
    """Raised when the signature header cannot be parsed."""

    reason = "malformed_signature"


class SignatureKeyError(SignatureError):
    """Raised when the HMAC key cannot be built from the secret."""

    reason = "signature_key_error"
