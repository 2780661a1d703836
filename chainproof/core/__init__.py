# chainproof/core/__init__.py
# Core chain engine types.
# Authoritative import source for Block / Device: chainproof.core.domain

from chainproof.core.exceptions import (
    ChainError,
    ValidationError,
    AppendRejected,
    DeviceNotRegistered,
    IndexMismatch,
    PrevHashMismatch,
    InvalidSignature,
    DeviceAlreadyRegistered,
    StorageUnavailable,
)
from chainproof.core.domain import Block, Device, parse_claim
from chainproof.core.signature_layer import verify_signature, verify_signature_hex
from chainproof.core.integrity_layer import (
    ChainAuditResult,
    HashResult,
    IntegrityLayer,
    canonical_digest,
    content_fingerprint,
    signed_message,
)
from chainproof.core.logging_layer import EventLogger, Event, EventFilter, LoggingError
from chainproof.core.append_validator import ChainAppendValidator
from chainproof.core.continuity_verifier import (
    ChainContinuityVerifier,
    VerificationReport,
)
from chainproof.core.engine import ProvenanceEngine
