# tests/conftest.py
# Shared fixtures: deterministic Ed25519 keys, a registered device, a store,
# and factories for signed blocks and pre-built chains.
#
# Keys are derived from fixed 32-byte seeds so every run signs identically.

from __future__ import annotations

import dataclasses
from typing import Callable, List

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from chainproof.core.append_validator import ChainAppendValidator
from chainproof.core.domain import Block, Device
from chainproof.core.integrity_layer import (
    canonical_digest,
    content_fingerprint,
    signed_message,
)
from chainproof.storage import InMemoryChainStore

DEVICE_ID: str = "cam-001"
OTHER_DEVICE_ID: str = "cam-002"
REGISTERED_AT: str = "2024-01-01T00:00:00+00:00"


def _key_from_seed(first: int) -> Ed25519PrivateKey:
    return Ed25519PrivateKey.from_private_bytes(bytes(range(first, first + 32)))


def _public_hex(key: Ed25519PrivateKey) -> str:
    return key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()


def chunk_content(index: int) -> bytes:
    """Deterministic stand-in for the video segment recorded at index."""
    return ("video-segment-" + str(index)).encode("ascii") * 8


@pytest.fixture
def chunk() -> Callable[[int], bytes]:
    return chunk_content


@pytest.fixture
def private_key() -> Ed25519PrivateKey:
    return _key_from_seed(0)


@pytest.fixture
def other_private_key() -> Ed25519PrivateKey:
    return _key_from_seed(32)


@pytest.fixture
def device(private_key) -> Device:
    return Device(
        device_id=DEVICE_ID,
        public_key=_public_hex(private_key),
        registered_at=REGISTERED_AT,
    )


@pytest.fixture
def other_device(other_private_key) -> Device:
    return Device(
        device_id=OTHER_DEVICE_ID,
        public_key=_public_hex(other_private_key),
        registered_at=REGISTERED_AT,
    )


@pytest.fixture
def store(device) -> InMemoryChainStore:
    s = InMemoryChainStore()
    s.put_device(device)
    return s


@pytest.fixture
def make_block(private_key) -> Callable[..., Block]:
    """
    Factory: make_block(index, prev_hash, content=..., sensor=..., ...) -> Block

    The block is signed with key (default: private_key) over its own
    signed message.
    """

    def _make(
        index: int,
        prev_hash: str,
        content: bytes = b"",
        sensor: str = "sensor-A1",
        timestamp: str = "",
        device_id: str = DEVICE_ID,
        key: Ed25519PrivateKey = None,
    ) -> Block:
        unsigned = Block(
            index=index,
            chunk_hash=content_fingerprint(content or chunk_content(index)),
            sensor_fingerprint=sensor,
            prev_hash=prev_hash,
            timestamp=timestamp or "2024-01-01T00:00:%02d.000Z" % (index % 60),
            signature="00",
            device_id=device_id,
        )
        signer = key if key is not None else private_key
        signature = signer.sign(signed_message(unsigned)).hex()
        return dataclasses.replace(unsigned, signature=signature)

    return _make


@pytest.fixture
def build_chain(make_block) -> Callable[[InMemoryChainStore, int], List[Block]]:
    """Factory: build_chain(store, n) appends n valid blocks and returns them."""

    def _build(target: InMemoryChainStore, n: int) -> List[Block]:
        validator = ChainAppendValidator(target)
        blocks: List[Block] = []
        prev = "0"
        for i in range(n):
            block = validator.append(make_block(i, prev))
            blocks.append(block)
            prev = canonical_digest(block)
        return blocks

    return _build


@pytest.fixture
def flip_bit() -> Callable[[str], str]:
    """Flip the lowest bit of the first byte of a hex string."""

    def _flip(hex_value: str) -> str:
        raw = bytearray(bytes.fromhex(hex_value))
        raw[0] ^= 0x01
        return raw.hex()

    return _flip
