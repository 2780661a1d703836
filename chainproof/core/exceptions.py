# =============================================================================
# chainproof -- CHAIN INTEGRITY & PROVENANCE ENGINE
# File:   chainproof/core/exceptions.py
# =============================================================================
#
# SCOPE
# -----
# Exception hierarchy for the chain engine. All exceptions are pure value
# objects: no side effects, no logging, no I/O of any kind.
#
# EXCEPTION HIERARCHY
# -------------------
#   ChainError(Exception)                     -- base; never raised directly
#     ValidationError(ChainError)             -- payload failed to parse into
#                                                a Block / Device
#     AppendRejected(ChainError)              -- base of append rejections
#       DeviceNotRegistered(AppendRejected)   -- unknown deviceId
#       IndexMismatch(AppendRejected)         -- index != expected next index
#       PrevHashMismatch(AppendRejected)      -- prevHash != digest of tail
#       InvalidSignature(AppendRejected)      -- signature does not verify
#     DeviceAlreadyRegistered(ChainError)     -- duplicate registration
#     StorageUnavailable(ChainError)          -- persistence collaborator failed
#
# The four AppendRejected subclasses are expected, user-facing outcomes of an
# append attempt. They are raised so the caller can branch on the type; they
# never indicate a fault in the engine.
#
# MESSAGE CONTRACT
# ----------------
# Every exception message is:
#   - Deterministic: identical inputs -> identical message string.
#   - Explicit: field name and offending value included where applicable.
#   - Non-empty.
#
# =============================================================================

from __future__ import annotations

from typing import Any, Dict


# =============================================================================
# BASE EXCEPTION
# =============================================================================

class ChainError(Exception):
    """
    Root of every error the chain engine raises. Never raised directly.

    ``field_name`` is the camelCase key of the offending record field
    ("prevHash", "claim[2].signature"), or "" when the error is not tied to
    a field, e.g. a storage failure. ``value`` is whatever the caller
    supplied for that field.
    """

    def __init__(self, message: str, field_name: str = "", value: Any = None) -> None:
        if not isinstance(message, str) or not message:
            raise ValueError("ChainError: message must be a non-empty string")
        if not isinstance(field_name, str):
            raise ValueError("ChainError: field_name must be a string")
        super().__init__(message)
        self.message = message
        self.field_name = field_name
        self.value = value

    @property
    def reason(self) -> str:
        """Stable reason code: the concrete class name."""
        return type(self).__name__

    def to_record(self) -> Dict[str, str]:
        """Flat, JSON-ready summary used in event payloads."""
        return {
            "reason":  self.reason,
            "field":   self.field_name,
            "message": self.message,
        }

    def __repr__(self) -> str:
        return "{}({!r}, field_name={!r})".format(self.reason, self.message, self.field_name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChainError):
            return NotImplemented
        return (type(self), self.field_name, self.value, self.message) == (
            type(other), other.field_name, other.value, other.message
        )


# =============================================================================
# INPUT VALIDATION
# =============================================================================

class ValidationError(ChainError):
    """
    Raised when a loosely-typed payload cannot be converted into a Block or
    Device value.

    Message format:
        "ValidationError: field '<field_name>' violates constraint
         '<constraint>': got <value>."

    Args:
        field_name:  Name of the offending field. Must be non-empty.
        value:       The offending value.
        constraint:  Human-readable constraint description, e.g.
                     "must be a non-negative integer". Must be non-empty.
    """

    def __init__(self, field_name: str, value: Any, constraint: str) -> None:
        if not field_name:
            raise ValueError(
                "ValidationError: field_name must be a non-empty string"
            )
        if not isinstance(constraint, str) or not constraint:
            raise ValueError(
                "ValidationError: constraint must be a non-empty string"
            )
        message = (
            "ValidationError: field '"
            + field_name
            + "' violates constraint '"
            + constraint
            + "': got "
            + repr(value)
            + "."
        )
        super().__init__(message=message, field_name=field_name, value=value)
        self.constraint: str = constraint


# =============================================================================
# APPEND REJECTIONS
# =============================================================================

class AppendRejected(ChainError):
    """Base class of the four reasons an append attempt can be refused."""


class DeviceNotRegistered(AppendRejected):
    """Raised when the candidate's deviceId has no registered Device."""

    def __init__(self, device_id: str) -> None:
        super().__init__(
            message="DeviceNotRegistered: device " + repr(device_id) + " is not registered.",
            field_name="deviceId",
            value=device_id,
        )
        self.device_id: str = device_id


class IndexMismatch(AppendRejected):
    """
    Raised when the candidate index is not the next index of the chain.

    Attributes:
        expected:  Index the chain will accept next (0 for an empty chain).
        got:       Index carried by the candidate.
    """

    def __init__(self, expected: int, got: int) -> None:
        super().__init__(
            message=(
                "IndexMismatch: invalid block index. Expected "
                + str(expected)
                + ", got "
                + str(got)
                + "."
            ),
            field_name="index",
            value=got,
        )
        self.expected: int = expected
        self.got:      int = got


class PrevHashMismatch(AppendRejected):
    """
    Raised when the candidate prevHash is not the digest of the chain tail.

    Attributes:
        expected:  Canonical digest of the tail block, or "0" for genesis.
        got:       prevHash carried by the candidate.
    """

    def __init__(self, expected: str, got: str) -> None:
        super().__init__(
            message=(
                "PrevHashMismatch: previous hash does not match. Expected "
                + expected
                + ", got "
                + str(got)
                + "."
            ),
            field_name="prevHash",
            value=got,
        )
        self.expected: str = expected
        self.got:      str = got


class InvalidSignature(AppendRejected):
    """Raised when the candidate signature does not verify against the device key."""

    def __init__(self, index: int, device_id: str) -> None:
        super().__init__(
            message=(
                "InvalidSignature: signature of block "
                + str(index)
                + " does not verify against the public key of device "
                + repr(device_id)
                + "."
            ),
            field_name="signature",
            value=index,
        )
        self.index:     int = index
        self.device_id: str = device_id


# =============================================================================
# REGISTRATION / STORAGE
# =============================================================================

class DeviceAlreadyRegistered(ChainError):
    """Raised when a deviceId is registered a second time."""

    def __init__(self, device_id: str) -> None:
        super().__init__(
            message="DeviceAlreadyRegistered: device " + repr(device_id) + " is already registered.",
            field_name="deviceId",
            value=device_id,
        )
        self.device_id: str = device_id


class StorageUnavailable(ChainError):
    """
    Raised when the persistence collaborator cannot read or write.

    The underlying exception is chained via ``raise ... from``; it is never
    swallowed.
    """

    def __init__(self, operation: str, reason: str) -> None:
        if not operation:
            raise ValueError(
                "StorageUnavailable: operation must be a non-empty string"
            )
        super().__init__(
            message="StorageUnavailable: " + operation + " failed: " + (reason or "unknown error"),
            field_name="",
            value=operation,
        )
        self.operation: str = operation
        self.reason:    str = reason


# =============================================================================
# MODULE __all__
# =============================================================================

__all__ = [
    "ChainError",
    "ValidationError",
    "AppendRejected",
    "DeviceNotRegistered",
    "IndexMismatch",
    "PrevHashMismatch",
    "InvalidSignature",
    "DeviceAlreadyRegistered",
    "StorageUnavailable",
]
