# chainproof/core/integrity_layer.py
# Version: 1.0.0
# Integrity / Hash-Chain Layer
#
# =============================================================================
# SCOPE
# =============================================================================
#
# Canonical encoder and hasher for chain blocks, content fingerprinting, and
# the full-chain audit.
#
# Two DIFFERENT canonical encodings are defined here and must never be
# conflated:
#
#   digest pre-image  {index, chunkHash, sensorFingerprint, prevHash,
#                      timestamp, deviceId}
#                     -> canonical_digest(); links block i+1 to block i.
#
#   signed message    {index, chunkHash, sensorFingerprint, prevHash,
#                      timestamp}
#                     -> signed_message(); what the device signs.
#
# signature is part of neither.
#
# ENCODING
# --------
# Compact JSON object text, keys in the fixed order given by
# DIGEST_FIELD_ORDER / SIGNED_FIELD_ORDER, no whitespace, non-ASCII kept
# verbatim (ensure_ascii=False), UTF-8 bytes. The key order is taken from
# the constant tuples, never from a mapping. This is byte-identical to
# JSON.stringify() over an object literal with the same key order, which is
# what deployed capture devices sign.
#
# DETERMINISM GUARANTEES
# ----------------------
#   DET-01  No stochastic operations.
#   DET-02  All inputs passed explicitly. No module-level mutable reads.
#   DET-03  fingerprint_file() reads a file -- the sole IO in this module.
#           All other functions are pure.
#   DET-04  All hashing is SHA-256 over canonical byte sequences.
#
# PROHIBITED ACTIONS CONFIRMED ABSENT
# -----------------------------------
#   - No logging calls
#   - No module-level mutable containers
#   - No reliance on dict iteration order for canonical encoding
#
# =============================================================================

from __future__ import annotations

import json
from dataclasses import dataclass
from hashlib import sha256
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from chainproof.utils.constants import (
    DIGEST_FIELD_ORDER,
    GENESIS_PREV_HASH,
    HASH_READ_CHUNK_BYTES,
    SIGNED_FIELD_ORDER,
)
from .domain import Block, Device
from .signature_layer import verify_signature_hex


# =============================================================================
# SECTION 1: RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class HashResult:
    """
    Result of a single file fingerprint computation.

    Attributes
    ----------
    file_path : str
        Path string of the hashed file.
    hash_value : str
        Lowercase 64-character hexadecimal SHA-256 digest.
    file_size : int
        Total bytes read from the file.
    """

    file_path: str
    hash_value: str
    file_size: int


@dataclass(frozen=True)
class ChainAuditResult:
    """
    Result of a full canonical-chain audit.

    Attributes
    ----------
    valid : bool
        True only when every block satisfies sequencing, genesis, linkage
        and authenticity.
    broken_at : Optional[int]
        Zero-based position of the first failing block, or None if valid.
    error_message : Optional[str]
        Human-readable description of the first failure, or None if valid.
    """

    valid: bool
    broken_at: Optional[int]
    error_message: Optional[str]


# =============================================================================
# SECTION 2: INTERNAL PURE HELPERS
# =============================================================================

def _sha256_hex(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of the given bytes."""
    return sha256(data).hexdigest()


def _encode_ordered(fields: Mapping[str, Any], order: Sequence[str]) -> bytes:
    """
    Serialize the named fields as a compact JSON object in the given order.

    Only keys listed in order are emitted, in exactly that order. The
    mapping's own iteration order is never consulted.

    Parameters
    ----------
    fields : Mapping[str, Any]
        Logical field values keyed by interop name.
    order : Sequence[str]
        Keys to emit, in emission order.

    Returns
    -------
    bytes
        UTF-8 encoded JSON object text.
    """
    members = [
        json.dumps(key, ensure_ascii=False) + ":" + json.dumps(fields[key], ensure_ascii=False)
        for key in order
    ]
    return ("{" + ",".join(members) + "}").encode("utf-8")


def logical_fields(block: Block) -> Dict[str, Any]:
    """Interop-named view of every block field except signature."""
    return {
        "index": block.index,
        "chunkHash": block.chunk_hash,
        "sensorFingerprint": block.sensor_fingerprint,
        "prevHash": block.prev_hash,
        "timestamp": block.timestamp,
        "deviceId": block.device_id,
    }


# =============================================================================
# SECTION 3: CANONICAL ENCODER & HASHER
# =============================================================================

def digest_preimage(block: Block) -> bytes:
    """Canonical byte encoding hashed by canonical_digest()."""
    return _encode_ordered(logical_fields(block), DIGEST_FIELD_ORDER)


def canonical_digest(block: Block) -> str:
    """
    Canonical SHA-256 digest of a block's logical fields (signature excluded).

    The next block's prev_hash must equal this value.
    """
    return _sha256_hex(digest_preimage(block))


def signed_message(block: Block) -> bytes:
    """Canonical bytes a device signs for this block (deviceId excluded)."""
    return _encode_ordered(logical_fields(block), SIGNED_FIELD_ORDER)


def content_fingerprint(data: bytes) -> str:
    """SHA-256 fingerprint of raw chunk content, lowercase hex."""
    return _sha256_hex(bytes(data))


def next_link(tail: Optional[Block]) -> Tuple[int, str]:
    """
    Return the (index, prev_hash) the chain will accept next.

    (0, "0") for an empty chain, otherwise
    (tail.index + 1, canonical_digest(tail)).
    """
    if tail is None:
        return 0, GENESIS_PREV_HASH
    return tail.index + 1, canonical_digest(tail)


def block_signature_valid(block: Block, device: Device) -> bool:
    """True if block.signature verifies over signed_message(block) under device's key."""
    return verify_signature_hex(signed_message(block), block.signature, device.public_key)


# =============================================================================
# SECTION 4: INTEGRITY LAYER
# =============================================================================

class IntegrityLayer:
    """
    File fingerprinting and full-chain audit.

    This class is stateless. All state is passed in and returned explicitly.
    A new instance may be created freely at any call site.

    Methods
    -------
    fingerprint_file(path)
        SHA-256 of a chunk file on disk. Only method that performs file IO.
    verify_file(path, expected_hash)
        Check a single chunk file against an expected fingerprint.
    audit_chain(chain, devices)
        Re-check sequencing, genesis, linkage and authenticity of every
        block of a stored chain.
    """

    # -------------------------------------------------------------------------
    # SECTION 4.1: File fingerprinting
    # -------------------------------------------------------------------------

    def fingerprint_file(self, path: Path) -> HashResult:
        """
        Compute the SHA-256 fingerprint of a file.

        Reads in HASH_READ_CHUNK_BYTES chunks to bound memory usage on large
        video segments. The digest equals content_fingerprint() over the
        full file contents.

        Raises
        ------
        FileNotFoundError
            If the path does not exist.
        PermissionError
            If the file cannot be opened for reading.
        """
        hasher = sha256()
        file_size: int = 0

        with open(path, "rb") as fh:
            while True:
                chunk = fh.read(HASH_READ_CHUNK_BYTES)
                if not chunk:
                    break
                hasher.update(chunk)
                file_size += len(chunk)

        return HashResult(
            file_path=str(path),
            hash_value=hasher.hexdigest(),
            file_size=file_size,
        )

    def verify_file(self, path: Path, expected_hash: str) -> bool:
        """False if the file is missing or its fingerprint differs."""
        try:
            result = self.fingerprint_file(path)
        except FileNotFoundError:
            return False
        return result.hash_value == expected_hash

    # -------------------------------------------------------------------------
    # SECTION 4.2: Chain audit
    # -------------------------------------------------------------------------

    def audit_chain(
        self,
        chain: Sequence[Block],
        devices: Mapping[str, Device],
    ) -> ChainAuditResult:
        """
        Verify every block of a canonical chain.

        Four checks per block, in order (O(n) total):
          1. sequencing: block.index equals its position.
          2. linkage: prev_hash equals "0" at position 0, else the canonical
             digest of the preceding block.
          3. device: block.device_id is registered in devices.
          4. authenticity: the signature verifies under that device's key.

        An empty chain is valid by definition.

        Returns
        -------
        ChainAuditResult
            valid=False with broken_at set to the first failing position
            and error_message describing the failure.
        """
        previous: Optional[Block] = None
        for position, block in enumerate(chain):
            expected_index, expected_prev = next_link(previous)

            if block.index != expected_index:
                return ChainAuditResult(
                    valid=False,
                    broken_at=position,
                    error_message=(
                        "Sequence broken at position "
                        + str(position)
                        + ": expected index "
                        + str(expected_index)
                        + ", found "
                        + str(block.index)
                    ),
                )

            if block.prev_hash != expected_prev:
                return ChainAuditResult(
                    valid=False,
                    broken_at=position,
                    error_message=(
                        "Chain linkage broken at block "
                        + str(block.index)
                        + ": prevHash mismatch"
                    ),
                )

            device = devices.get(block.device_id)
            if device is None:
                return ChainAuditResult(
                    valid=False,
                    broken_at=position,
                    error_message=(
                        "Block "
                        + str(block.index)
                        + " references unregistered device "
                        + repr(block.device_id)
                    ),
                )

            if not block_signature_valid(block, device):
                return ChainAuditResult(
                    valid=False,
                    broken_at=position,
                    error_message=(
                        "Invalid signature at block "
                        + str(block.index)
                    ),
                )

            previous = block

        return ChainAuditResult(
            valid=True,
            broken_at=None,
            error_message=None,
        )
