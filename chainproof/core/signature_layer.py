# chainproof/core/signature_layer.py
# Version: 1.0.0
# Ed25519 detached-signature verification.
#
# Canonical import:
#   from chainproof.core.signature_layer import verify_signature, verify_signature_hex
#
# Contract:
#   Verification failure is a normal outcome, not an exceptional one.
#   Malformed hex, wrong key or signature length, an invalid curve point, or
#   a cryptographic mismatch all return False. Nothing in this module raises
#   on adversarial input.
#
# No key generation. No key storage. No logging.

from __future__ import annotations

import re

from cryptography.exceptions import InvalidSignature as _CryptoInvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from chainproof.utils.constants import ED25519_PUBLIC_KEY_BYTES, ED25519_SIGNATURE_BYTES

# bytes.fromhex() tolerates embedded whitespace; the wire format does not.
_HEX_RE = re.compile(r"\A(?:[0-9a-fA-F]{2})*\Z")


def decode_hex(value: object) -> bytes | None:
    """
    Strictly decode an even-length hex string.

    Returns None for anything that is not a str of hex digit pairs.
    """
    if not isinstance(value, str) or not _HEX_RE.match(value):
        return None
    return bytes.fromhex(value)


def verify_signature(message: bytes, signature: bytes, public_key: bytes) -> bool:
    """
    Verify a detached Ed25519 signature over the raw message bytes.

    Parameters
    ----------
    message : bytes
        Exact bytes that were signed.
    signature : bytes
        64-byte detached signature.
    public_key : bytes
        32-byte raw Ed25519 public key.

    Returns
    -------
    bool
        True only if the signature is valid for message under public_key.
    """
    if not isinstance(message, (bytes, bytearray)):
        return False
    if not isinstance(signature, (bytes, bytearray)) or len(signature) != ED25519_SIGNATURE_BYTES:
        return False
    if not isinstance(public_key, (bytes, bytearray)) or len(public_key) != ED25519_PUBLIC_KEY_BYTES:
        return False
    try:
        key = Ed25519PublicKey.from_public_bytes(bytes(public_key))
        key.verify(bytes(signature), bytes(message))
    except (_CryptoInvalidSignature, ValueError):
        return False
    return True


def verify_signature_hex(message: bytes, signature_hex: str, public_key_hex: str) -> bool:
    """Hex-decoding wrapper around verify_signature(). Undecodable input -> False."""
    signature = decode_hex(signature_hex)
    public_key = decode_hex(public_key_hex)
    if signature is None or public_key is None:
        return False
    return verify_signature(message, signature, public_key)


__all__ = ["decode_hex", "verify_signature", "verify_signature_hex"]
