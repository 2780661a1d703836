# =============================================================================
# chainproof -- CHAIN INTEGRITY & PROVENANCE ENGINE
# File:   chainproof/core/continuity_verifier.py
# =============================================================================
#
# PURPOSE
# -------
# Decides whether a claim (externally supplied block records) accompanying
# some content is consistent with the canonical chain and with the content's
# fingerprint. Produces four independent verdicts and their conjunction:
#
#   V-FRAME   content fingerprint equals the canonical chunkHash of some
#             claimed index (first match in claim order).
#   V-CHAIN   claim, sorted by index, is a contiguous run of canonical
#             blocks, field-for-field (signature excluded), correctly linked.
#   V-SIG     every claimed block's signature verifies under its claimed
#             device's registered key (claim order, stop at first failure).
#   V-SENSOR  every claimed block carries a non-empty sensorFingerprint.
#             Presence only; no sensor registry cross-check.
#
# No verdict short-circuits another. All four are always computed.
#
# PURITY
# ------
# verify() is a pure function of (content, claim, chain snapshot, device
# registry snapshot). It never raises for a failed verdict, never mutates
# its inputs and never touches the store. The caller takes the snapshots.
#
# Detail strings are diagnostic only and never used for control flow.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from chainproof.utils.constants import (
    CONTINUITY_FIELD_ORDER,
    DETAIL_PREFIX_LENGTH,
    GENESIS_PREV_HASH,
)
from .domain import Block, Device
from .integrity_layer import (
    block_signature_valid,
    canonical_digest,
    content_fingerprint,
    logical_fields,
)


# =============================================================================
# SECTION 1 -- RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class CheckVerdict:
    """One independent verdict and its human-readable detail."""

    valid:   bool
    details: str


@dataclass(frozen=True)
class VerificationReport:
    """
    Outcome of verifying content plus claim against the canonical chain.

    overall_valid is the logical AND of the four verdicts.
    """

    frame_hash_match:            bool
    frame_hash_details:          str
    chain_continuity:            bool
    chain_continuity_details:    str
    signature_validity:          bool
    signature_validity_details:  str
    sensor_fingerprint_validity: bool
    sensor_fingerprint_details:  str
    overall_valid:               bool

    def to_dict(self) -> Dict[str, Any]:
        """camelCase report as returned to external callers."""
        return {
            "frameHashMatch":            self.frame_hash_match,
            "frameHashDetails":          self.frame_hash_details,
            "chainContinuity":           self.chain_continuity,
            "chainContinuityDetails":    self.chain_continuity_details,
            "signatureValidity":         self.signature_validity,
            "signatureValidityDetails":  self.signature_validity_details,
            "sensorFingerprintValidity": self.sensor_fingerprint_validity,
            "sensorFingerprintDetails":  self.sensor_fingerprint_details,
            "overallValid":              self.overall_valid,
        }


# =============================================================================
# SECTION 2 -- INTERNAL HELPERS
# =============================================================================

def _prefix(value: object) -> str:
    """Shorten a value for a detail string."""
    text = str(value)
    if len(text) <= DETAIL_PREFIX_LENGTH:
        return text
    return text[:DETAIL_PREFIX_LENGTH] + "..."


def _first_field_mismatch(claimed: Block, stored: Block) -> Optional[str]:
    """Name of the first differing field (signature excluded), or None."""
    claimed_fields = logical_fields(claimed)
    stored_fields = logical_fields(stored)
    for name in CONTINUITY_FIELD_ORDER:
        if claimed_fields[name] != stored_fields[name]:
            return name
    return None


# =============================================================================
# SECTION 3 -- INDIVIDUAL CHECKS
# =============================================================================

def check_frame_hash(
    content: bytes,
    claim: Sequence[Block],
    chain: Sequence[Block],
) -> CheckVerdict:
    """
    V-FRAME. Walk the claim in supplied order; the first claimed index that
    lies inside the chain and whose canonical chunkHash equals the content
    fingerprint is the match. Claimed chunkHash values are not consulted;
    only the canonical ones are trusted.
    """
    fingerprint = content_fingerprint(content)

    if not chain:
        return CheckVerdict(False, "No stored chain to verify against")
    if not claim:
        return CheckVerdict(False, "No blocks referenced by the claim")

    for block in claim:
        if block.index < len(chain) and chain[block.index].chunk_hash == fingerprint:
            return CheckVerdict(
                True,
                "Content hash matches block #"
                + str(block.index)
                + ": "
                + _prefix(fingerprint),
            )

    expected = ", ".join(
        _prefix(chain[block.index].chunk_hash) if block.index < len(chain) else "N/A"
        for block in claim
    )
    return CheckVerdict(
        False,
        "Content hash "
        + _prefix(fingerprint)
        + " doesn't match any referenced blocks. Expected: "
        + expected,
    )


def check_chain_continuity(
    claim: Sequence[Block],
    chain: Sequence[Block],
) -> CheckVerdict:
    """
    V-CHAIN. Sort the claim by index, then for each claimed block:

      C1  index exists in the chain;
      C2  index is exactly one past the previously claimed index
          (duplicates and gaps both fail);
      C3  every field except signature equals the canonical block;
      C4  prevHash is "0" for index 0, else the canonical digest of the
          canonical predecessor.

    First violation wins and is reported with its index.
    """
    if not claim:
        return CheckVerdict(True, "No blocks claimed; nothing to check against the stored chain")

    ordered = sorted(claim, key=lambda b: b.index)
    previous_index: Optional[int] = None

    for block in ordered:
        index = block.index

        if index >= len(chain):
            return CheckVerdict(
                False,
                "Block "
                + str(index)
                + " not found in stored chain (length "
                + str(len(chain))
                + ")",
            )

        if previous_index is not None:
            if index == previous_index:
                return CheckVerdict(False, "Block " + str(index) + " appears more than once in the claim")
            if index != previous_index + 1:
                return CheckVerdict(
                    False,
                    "Gap in claim: block "
                    + str(index)
                    + " follows block "
                    + str(previous_index),
                )

        stored = chain[index]
        mismatch = _first_field_mismatch(block, stored)
        if mismatch is not None:
            return CheckVerdict(
                False,
                "Block "
                + str(index)
                + " "
                + mismatch
                + " mismatch: expected "
                + _prefix(logical_fields(stored)[mismatch])
                + " got "
                + _prefix(logical_fields(block)[mismatch]),
            )

        expected_prev = GENESIS_PREV_HASH if index == 0 else canonical_digest(chain[index - 1])
        if block.prev_hash != expected_prev:
            return CheckVerdict(
                False,
                "Block "
                + str(index)
                + " prevHash does not link to its predecessor: expected "
                + _prefix(expected_prev)
                + " got "
                + _prefix(block.prev_hash),
            )

        previous_index = index

    return CheckVerdict(True, "All " + str(len(ordered)) + " blocks match stored chain")


def check_signatures(
    claim: Sequence[Block],
    devices: Mapping[str, Device],
) -> CheckVerdict:
    """
    V-SIG. Claim order; stops at the first block whose device is unknown or
    whose signature does not verify over its own claimed fields.
    """
    if not claim:
        return CheckVerdict(True, "No blocks to verify")

    for block in claim:
        device = devices.get(block.device_id)
        if device is None:
            return CheckVerdict(
                False,
                "Device "
                + repr(block.device_id)
                + " not registered (block "
                + str(block.index)
                + ")",
            )
        if not block_signature_valid(block, device):
            return CheckVerdict(False, "Invalid signature at block " + str(block.index))

    return CheckVerdict(True, "All " + str(len(claim)) + " signatures valid")


def check_sensor_fingerprints(claim: Sequence[Block]) -> CheckVerdict:
    """V-SENSOR. Presence check only."""
    if not claim:
        return CheckVerdict(True, "No blocks to verify")

    for block in claim:
        if not block.sensor_fingerprint:
            return CheckVerdict(False, "Block " + str(block.index) + " carries no sensor fingerprint")

    return CheckVerdict(True, "Sensor fingerprints present in all blocks")


# =============================================================================
# SECTION 4 -- VERIFIER
# =============================================================================

class ChainContinuityVerifier:
    """
    Stateless verifier. A single instance may be shared across threads.
    """

    def verify(
        self,
        content: bytes,
        claim: Sequence[Block],
        chain: Sequence[Block],
        devices: Mapping[str, Device],
    ) -> VerificationReport:
        """
        Compute all four verdicts for content + claim against a chain snapshot.

        Parameters
        ----------
        content : bytes
            Raw chunk content whose provenance is claimed.
        claim : Sequence[Block]
            Claimed blocks, any order.
        chain : Sequence[Block]
            Snapshot of the canonical chain (position == index).
        devices : Mapping[str, Device]
            Snapshot of the device registry keyed by device_id.

        Returns
        -------
        VerificationReport
            Never raises for a failed verdict.
        """
        claim_list: List[Block] = list(claim)

        frame = check_frame_hash(content, claim_list, chain)
        continuity = check_chain_continuity(claim_list, chain)
        signatures = check_signatures(claim_list, devices)
        sensors = check_sensor_fingerprints(claim_list)

        return VerificationReport(
            frame_hash_match=frame.valid,
            frame_hash_details=frame.details,
            chain_continuity=continuity.valid,
            chain_continuity_details=continuity.details,
            signature_validity=signatures.valid,
            signature_validity_details=signatures.details,
            sensor_fingerprint_validity=sensors.valid,
            sensor_fingerprint_details=sensors.details,
            overall_valid=(
                frame.valid
                and continuity.valid
                and signatures.valid
                and sensors.valid
            ),
        )


__all__ = [
    "CheckVerdict",
    "VerificationReport",
    "ChainContinuityVerifier",
    "check_frame_hash",
    "check_chain_continuity",
    "check_signatures",
    "check_sensor_fingerprints",
]
