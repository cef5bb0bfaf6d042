"""Parsed form of a webhook signature header.

GitHub signs each delivery and sends the digest in the form
``algorithm=hexdigest``, for example::

    X-Hub-Signature-256: sha256=757107ea0eb2509fc211221cce984b8a37570b6d7586c22c46f4379c8b043e17
"""

import string
from dataclasses import dataclass

from src.gateway.signature.errors import MalformedSignatureError


_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class SignatureHeader:
    """A signature header split into algorithm and decoded digest.

    Attributes:
        algorithm: Lowercase algorithm prefix (e.g. "sha256").
        digest: Raw digest bytes decoded from the hex part.
    """

    algorithm: str
    digest: bytes

    @classmethod
    def parse(cls, header_value: str) -> "SignatureHeader":
        """Parse ``algorithm=hexdigest`` into a SignatureHeader.

        Only the first ``=`` separates the two parts. Hex is accepted in
        either case.

        Raises:
            MalformedSignatureError: If the separator is missing, either
                side is empty, or the digest is not valid even-length hex.
        """
        if not isinstance(header_value, str):
            raise MalformedSignatureError("signature header is not a string")

        algorithm, sep, hex_digest = header_value.strip().partition("=")
        if not sep:
            raise MalformedSignatureError("missing '=' separator")

        algorithm = algorithm.strip().lower()
        if not algorithm:
            raise MalformedSignatureError("missing algorithm prefix")
        if not hex_digest:
            raise MalformedSignatureError("empty digest")
        if len(hex_digest) % 2:
            raise MalformedSignatureError("odd-length hex digest")
        if not _HEX_DIGITS.issuperset(hex_digest):
            raise MalformedSignatureError("digest contains non-hex characters")

        return cls(algorithm=algorithm, digest=bytes.fromhex(hex_digest))
