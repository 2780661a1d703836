# tests/unit/core/test_signature_layer.py
# Target: chainproof/core/signature_layer.py
# Every malformed input must yield False, never an exception.

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from chainproof.core.signature_layer import (
    decode_hex,
    verify_signature,
    verify_signature_hex,
)

_MESSAGE = b'{"index":0,"chunkHash":"00","sensorFingerprint":"s","prevHash":"0","timestamp":"t"}'


def _raw_public(key) -> bytes:
    return key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


class TestDecodeHex:
    def test_valid_lower_and_upper(self):
        assert decode_hex("0aFF") == b"\x0a\xff"

    def test_empty_string_is_empty_bytes(self):
        assert decode_hex("") == b""

    @pytest.mark.parametrize("value", ["abc", "zz", "0a 0b", " 0a", "0x0a", None, 12, b"0a"])
    def test_rejects_malformed(self, value):
        assert decode_hex(value) is None


class TestVerifySignature:
    def test_valid_signature(self, private_key):
        sig = private_key.sign(_MESSAGE)
        assert verify_signature(_MESSAGE, sig, _raw_public(private_key)) is True

    def test_modified_message(self, private_key):
        sig = private_key.sign(_MESSAGE)
        assert verify_signature(_MESSAGE + b" ", sig, _raw_public(private_key)) is False

    def test_wrong_public_key(self, private_key, other_private_key):
        sig = private_key.sign(_MESSAGE)
        assert verify_signature(_MESSAGE, sig, _raw_public(other_private_key)) is False

    def test_single_bit_flip(self, private_key):
        sig = bytearray(private_key.sign(_MESSAGE))
        sig[10] ^= 0x01
        assert verify_signature(_MESSAGE, bytes(sig), _raw_public(private_key)) is False

    @pytest.mark.parametrize("length", [0, 31, 33, 64])
    def test_wrong_key_length(self, private_key, length):
        sig = private_key.sign(_MESSAGE)
        assert verify_signature(_MESSAGE, sig, b"\x01" * length) is False

    @pytest.mark.parametrize("length", [0, 63, 65])
    def test_wrong_signature_length(self, private_key, length):
        assert verify_signature(_MESSAGE, b"\x00" * length, _raw_public(private_key)) is False

    def test_non_bytes_inputs(self, private_key):
        sig = private_key.sign(_MESSAGE)
        assert verify_signature("text", sig, _raw_public(private_key)) is False  # type: ignore[arg-type]
        assert verify_signature(_MESSAGE, sig.hex(), _raw_public(private_key)) is False  # type: ignore[arg-type]


class TestVerifySignatureHex:
    def test_valid(self, private_key):
        sig = private_key.sign(_MESSAGE).hex()
        assert verify_signature_hex(_MESSAGE, sig, _raw_public(private_key).hex()) is True

    def test_uppercase_hex_accepted(self, private_key):
        sig = private_key.sign(_MESSAGE).hex().upper()
        assert verify_signature_hex(_MESSAGE, sig, _raw_public(private_key).hex().upper()) is True

    @pytest.mark.parametrize("bad", ["", "zz", "abc", "not hex at all"])
    def test_malformed_signature_hex(self, private_key, bad):
        assert verify_signature_hex(_MESSAGE, bad, _raw_public(private_key).hex()) is False

    @pytest.mark.parametrize("bad", ["", "zz", "00" * 31, "00" * 33])
    def test_malformed_public_key_hex(self, private_key, bad):
        sig = private_key.sign(_MESSAGE).hex()
        assert verify_signature_hex(_MESSAGE, sig, bad) is False
