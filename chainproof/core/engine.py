# chainproof/core/engine.py
# Version: 1.0.0
# Caller-facing facade over the append validator, the continuity verifier
# and the chain audit.
#
# Loosely-typed payloads are converted to Block values here (ValidationError
# on failure) before anything else runs. All chain rules live in
# append_validator.py and continuity_verifier.py; this module only parses,
# snapshots, delegates and logs.

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Tuple

from .append_validator import ChainAppendValidator
from .continuity_verifier import ChainContinuityVerifier, VerificationReport
from .domain import Block, Device, parse_claim
from .exceptions import AppendRejected, ValidationError
from .integrity_layer import ChainAuditResult, IntegrityLayer, canonical_digest
from .logging_layer import (
    APPEND_REJECTED,
    BLOCK_APPENDED,
    CONTENT_VERIFIED,
    DEVICE_REGISTERED,
    EventLogger,
)

if TYPE_CHECKING:
    from chainproof.storage.base import ChainStore


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProvenanceEngine:
    """
    Entry point for registering devices, appending blocks and verifying
    content provenance against one canonical chain.

    The engine holds no chain state; everything is read through the store.
    Events are recorded on the supplied EventLogger (a private one is
    created if none is given).
    """

    def __init__(
        self,
        store: "ChainStore",
        logger: Optional[EventLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._logger = logger if logger is not None else EventLogger()
        self._clock = clock if clock is not None else _utc_now
        self._validator = ChainAppendValidator(store)
        self._verifier = ChainContinuityVerifier()
        self._integrity = IntegrityLayer()

    @property
    def logger(self) -> EventLogger:
        return self._logger

    # -----------------------------------------------------------------------
    # Devices
    # -----------------------------------------------------------------------

    def register_device(self, device_id: str, public_key: str) -> Device:
        """
        Insert-if-absent registration.

        Raises
        ------
        ValidationError
            device_id or public_key is not a non-empty string.
        DeviceAlreadyRegistered
            device_id is already registered.
        """
        device = Device(
            device_id=device_id,
            public_key=public_key,
            registered_at=self._clock().isoformat(),
        )
        stored = self._store.put_device(device)
        self._logger.log_event(DEVICE_REGISTERED, {"device_id": stored.device_id}, self._clock())
        return stored

    # -----------------------------------------------------------------------
    # Append
    # -----------------------------------------------------------------------

    def try_append(self, fields: Mapping[str, Any]) -> Block:
        """
        Parse a block record and append it if the chain accepts it.

        Returns
        -------
        Block
            The committed block.

        Raises
        ------
        ValidationError
            The record does not describe a Block.
        DeviceNotRegistered, IndexMismatch, PrevHashMismatch, InvalidSignature
            The chain refused the block; nothing was written.
        StorageUnavailable
            The store failed.
        """
        try:
            candidate = Block.from_record(fields)
            block = self._validator.append(candidate)
        except (ValidationError, AppendRejected) as exc:
            payload = exc.to_record()
            payload["index"] = fields.get("index") if isinstance(fields, Mapping) else None
            payload["device_id"] = fields.get("deviceId") if isinstance(fields, Mapping) else None
            self._logger.log_event(APPEND_REJECTED, payload, self._clock())
            raise

        self._logger.log_event(
            BLOCK_APPENDED,
            {
                "index": block.index,
                "device_id": block.device_id,
                "digest": canonical_digest(block),
            },
            self._clock(),
        )
        return block

    # -----------------------------------------------------------------------
    # Verification
    # -----------------------------------------------------------------------

    def verify_content(self, content: bytes, claim: Any) -> VerificationReport:
        """
        Verify content and its claimed block records against the chain.

        The chain and device registry are snapshotted together under the
        store's write lock, then verified outside it.

        Raises
        ------
        ValidationError
            content is not bytes, or the claim is not a non-empty array of
            block records. Verdict failures never raise.
        """
        if not isinstance(content, (bytes, bytearray)):
            raise ValidationError(
                field_name="content",
                value=type(content).__name__,
                constraint="must be bytes",
            )
        blocks = parse_claim(claim)

        with self._store.write_lock():
            chain = self._store.get_chain()
            devices = self._store.get_devices()

        report = self._verifier.verify(bytes(content), blocks, chain, devices)

        self._logger.log_event(
            CONTENT_VERIFIED,
            {
                "claim_size": len(blocks),
                "chain_length": len(chain),
                "overall_valid": report.overall_valid,
                "frame_hash_match": report.frame_hash_match,
                "chain_continuity": report.chain_continuity,
                "signature_validity": report.signature_validity,
                "sensor_fingerprint_validity": report.sensor_fingerprint_validity,
            },
            self._clock(),
        )
        return report

    # -----------------------------------------------------------------------
    # Read-only views
    # -----------------------------------------------------------------------

    def list_blocks(self) -> Tuple[Block, ...]:
        return self._store.get_chain()

    def audit_chain(self) -> ChainAuditResult:
        """Re-check every stored block for sequencing, linkage and authenticity."""
        with self._store.write_lock():
            chain = self._store.get_chain()
            devices = self._store.get_devices()
        return self._integrity.audit_chain(chain, devices)


__all__ = ["ProvenanceEngine"]
