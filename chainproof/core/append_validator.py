# =============================================================================
# chainproof -- CHAIN INTEGRITY & PROVENANCE ENGINE
# File:   chainproof/core/append_validator.py
# =============================================================================
#
# PURPOSE
# -------
# Sole writer of the canonical chain. Admits exactly one next block after
# four ordered checks, each with its own rejection type:
#
#   A1  device registered          else DeviceNotRegistered
#   A2  index == tail.index + 1    else IndexMismatch(expected, got)
#       (0 on an empty chain)
#   A3  prevHash == digest(tail)   else PrevHashMismatch(expected, got)
#       ("0" on an empty chain)
#   A4  signature verifies         else InvalidSignature
#
# Validate-then-commit: the store's write lock is held from reading the tail
# until the append returns, so two concurrent candidates can never both
# validate against the same tail. A rejected candidate leaves the chain
# untouched.
#
# WHAT IS NOT IN THIS FILE
# ------------------------
#   No payload parsing (see domain.Block.from_record).
#   No logging (see engine.ProvenanceEngine).
#   No hashing or signature primitives of its own.
# =============================================================================

from __future__ import annotations

from typing import TYPE_CHECKING

from .domain import Block
from .exceptions import (
    DeviceNotRegistered,
    IndexMismatch,
    InvalidSignature,
    PrevHashMismatch,
)
from .integrity_layer import block_signature_valid, next_link

if TYPE_CHECKING:
    from chainproof.storage.base import ChainStore


class ChainAppendValidator:
    """
    Validates and commits candidate blocks against a ChainStore.

    Holds no chain state of its own; every call reads the store afresh.
    """

    def __init__(self, store: "ChainStore") -> None:
        self._store = store

    def append(self, candidate: Block) -> Block:
        """
        Append candidate as the new chain tail if checks A1-A4 pass.

        Returns
        -------
        Block
            The committed block (as returned by the store).

        Raises
        ------
        DeviceNotRegistered, IndexMismatch, PrevHashMismatch, InvalidSignature
            First failing check, in that order. Nothing is written.
        StorageUnavailable
            The store failed to read or persist.
        """
        with self._store.write_lock():
            device = self._store.get_device(candidate.device_id)
            if device is None:
                raise DeviceNotRegistered(candidate.device_id)

            expected_index, expected_prev = next_link(self._store.get_last_block())

            if candidate.index != expected_index:
                raise IndexMismatch(expected=expected_index, got=candidate.index)

            if candidate.prev_hash != expected_prev:
                raise PrevHashMismatch(expected=expected_prev, got=candidate.prev_hash)

            if not block_signature_valid(candidate, device):
                raise InvalidSignature(index=candidate.index, device_id=candidate.device_id)

            return self._store.append_block(candidate)


__all__ = ["ChainAppendValidator"]
