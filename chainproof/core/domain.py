# =============================================================================
# chainproof -- CHAIN INTEGRITY & PROVENANCE ENGINE
# File:   chainproof/core/domain.py
# =============================================================================
#
# SCOPE
# -----
# Frozen domain dataclasses: Device and Block. Conversion between the
# camelCase interop record (as persisted and as received from callers) and
# the strongly-typed values used by the engine.
#
# No hashing. No signature logic. No chain rules.
#
# VALIDATION PHILOSOPHY
# ---------------------
# Validation is fail-fast, in declaration order per dataclass:
#
#   V1  Type   -- int / str checks. bool is never accepted as int. Strings
#              must encode to UTF-8 so the canonical encoder stays total.
#   V2  Range  -- index >= 0, required strings non-empty.
#
# Every violation raises ValidationError with the interop field name
# (e.g. "chunkHash", not "chunk_hash") so callers can map it back to the
# payload they sent.
#
# Content checks that belong to verification (hex well-formedness of
# signatures and keys, digest equality) are NOT performed here: malformed
# cryptographic material is a verification failure, not a parse failure.
#
# INVARIANTS ENFORCED
# -------------------
# Device
#   INV-DV-01  deviceId is a non-empty string.
#   INV-DV-02  publicKey is a non-empty string.
#   INV-DV-03  registeredAt is a non-empty string.
#
# Block
#   INV-BL-01  index is an int >= 0.
#   INV-BL-02  chunkHash, prevHash, timestamp, signature, deviceId are
#              non-empty strings.
#   INV-BL-03  sensorFingerprint is a string (may be empty; presence is a
#              verification verdict, not a parse rule).
#
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

from .exceptions import ValidationError


# =============================================================================
# SECTION 1 -- INTERNAL VALIDATION HELPERS
# =============================================================================

def _check_non_negative_int(field_name: str, value: Any) -> None:
    """V1/V2: value must be an int >= 0."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(
            field_name=field_name,
            value=value,
            constraint="must be a non-negative integer",
        )
    if value < 0:
        raise ValidationError(
            field_name=field_name,
            value=value,
            constraint="must be >= 0",
        )


def _check_string(field_name: str, value: Any) -> None:
    """V1: value must be a str that encodes to UTF-8 (no lone surrogates)."""
    if not isinstance(value, str):
        raise ValidationError(
            field_name=field_name,
            value=value,
            constraint="must be a string",
        )
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationError(
            field_name=field_name,
            value=value,
            constraint="must be valid UTF-8 text",
        ) from exc


def _check_non_empty_string(field_name: str, value: Any) -> None:
    """V1/V2: value must be a non-empty str."""
    _check_string(field_name, value)
    if not value:
        raise ValidationError(
            field_name=field_name,
            value=value,
            constraint="must be a non-empty string",
        )


def _require(record: Mapping[str, Any], key: str) -> Any:
    if key not in record:
        raise ValidationError(
            field_name=key,
            value=None,
            constraint="is required",
        )
    return record[key]


def _check_mapping(record: Any) -> None:
    if not isinstance(record, Mapping):
        raise ValidationError(
            field_name="record",
            value=type(record).__name__,
            constraint="must be a JSON object",
        )


# =============================================================================
# SECTION 2 -- DEVICE
# =============================================================================

@dataclass(frozen=True)
class Device:
    """
    A registered capture device and its Ed25519 public key.

    Immutable after construction. Created once at registration; there is no
    key rotation path.
    """

    device_id:     str
    """Unique device identifier; primary key of the registry."""

    public_key:    str
    """Hex-encoded raw Ed25519 public key (32 bytes -> 64 hex chars)."""

    registered_at: str
    """ISO-8601 registration timestamp. Informational only."""

    def __post_init__(self) -> None:
        _check_non_empty_string("deviceId", self.device_id)
        _check_non_empty_string("publicKey", self.public_key)
        _check_non_empty_string("registeredAt", self.registered_at)

    def to_record(self) -> Dict[str, Any]:
        return {
            "deviceId":     self.device_id,
            "publicKey":    self.public_key,
            "registeredAt": self.registered_at,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Device:
        """
        Build a Device from its camelCase interop record.

        Raises
        ------
        ValidationError
            If record is not a mapping, a key is missing, or a value
            violates INV-DV-*.
        """
        _check_mapping(record)
        return cls(
            device_id=_require(record, "deviceId"),
            public_key=_require(record, "publicKey"),
            registered_at=_require(record, "registeredAt"),
        )


# =============================================================================
# SECTION 3 -- BLOCK
# =============================================================================

@dataclass(frozen=True)
class Block:
    """
    One signed content chunk, linked to its predecessor by prev_hash.

    All fields are immutable after construction. Validation in __post_init__
    is fail-fast: first violation encountered raises ValidationError.
    """

    index:              int
    """Position in the chain. Genesis is 0."""

    chunk_hash:         str
    """SHA-256 hex fingerprint of the chunk content."""

    sensor_fingerprint: str
    """Opaque sensor identity string reported by the device."""

    prev_hash:          str
    """Canonical digest of block index-1, or "0" for genesis."""

    timestamp:          str
    """ISO-8601 capture timestamp, treated as an opaque string."""

    signature:          str
    """Hex-encoded Ed25519 signature over the signed message."""

    device_id:          str
    """Registered device that produced and signed this block."""

    def __post_init__(self) -> None:
        _check_non_negative_int("index", self.index)
        _check_non_empty_string("chunkHash", self.chunk_hash)
        _check_string("sensorFingerprint", self.sensor_fingerprint)
        _check_non_empty_string("prevHash", self.prev_hash)
        _check_non_empty_string("timestamp", self.timestamp)
        _check_non_empty_string("signature", self.signature)
        _check_non_empty_string("deviceId", self.device_id)

    def to_record(self) -> Dict[str, Any]:
        """Return the camelCase interop record (persisted representation)."""
        return {
            "index":             self.index,
            "chunkHash":         self.chunk_hash,
            "sensorFingerprint": self.sensor_fingerprint,
            "prevHash":          self.prev_hash,
            "timestamp":         self.timestamp,
            "signature":         self.signature,
            "deviceId":          self.device_id,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Block:
        """
        Build a Block from its camelCase interop record.

        Unknown keys are ignored. Every field of the record is required.

        Raises
        ------
        ValidationError
            If record is not a mapping, a key is missing, or a value
            violates INV-BL-*.
        """
        _check_mapping(record)
        return cls(
            index=_require(record, "index"),
            chunk_hash=_require(record, "chunkHash"),
            sensor_fingerprint=_require(record, "sensorFingerprint"),
            prev_hash=_require(record, "prevHash"),
            timestamp=_require(record, "timestamp"),
            signature=_require(record, "signature"),
            device_id=_require(record, "deviceId"),
        )


# =============================================================================
# SECTION 4 -- CLAIM PARSING
# =============================================================================

def parse_claim(records: Any) -> List[Block]:
    """
    Convert an externally supplied claim (list of block records) to Blocks.

    The claim must be a non-empty sequence. The first record that fails to
    parse aborts the whole claim; its position is reported in the error.

    Raises
    ------
    ValidationError
        field_name "claim" if the container is wrong or empty, otherwise
        "claim[<position>].<field>" for the offending record.
    """
    if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
        raise ValidationError(
            field_name="claim",
            value=type(records).__name__,
            constraint="must be an array of blocks",
        )
    if len(records) == 0:
        raise ValidationError(
            field_name="claim",
            value=[],
            constraint="must not be empty",
        )

    blocks: List[Block] = []
    for position, record in enumerate(records):
        try:
            blocks.append(Block.from_record(record))
        except ValidationError as exc:
            raise ValidationError(
                field_name="claim[" + str(position) + "]." + exc.field_name,
                value=exc.value,
                constraint=exc.constraint,
            ) from exc
    return blocks


__all__ = ["Device", "Block", "parse_claim"]
