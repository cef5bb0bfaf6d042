"""Webhook signature verification.

Senders sign every delivery with HMAC over the raw body using a shared
secret and send the result as ``algorithm=hexdigest``. This package parses
that header and checks it in constant time.
"""

from .errors import MalformedSignatureError, SignatureError, SignatureKeyError
from .models import SignatureHeader
from .verifier import SignatureVerifier, compute_signature, verify

__all__ = [
    "MalformedSignatureError",
    "SignatureError",
    "SignatureHeader",
    "SignatureKeyError",
    "SignatureVerifier",
    "compute_signature",
    "verify",
]
