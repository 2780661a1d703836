# tests/unit/core/test_provenance_engine.py
# Target: chainproof/core/engine.py

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from chainproof.core.engine import ProvenanceEngine
from chainproof.core.exceptions import (
    DeviceAlreadyRegistered,
    IndexMismatch,
    InvalidSignature,
    ValidationError,
)
from chainproof.core.integrity_layer import canonical_digest
from chainproof.core.logging_layer import (
    APPEND_REJECTED,
    BLOCK_APPENDED,
    CONTENT_VERIFIED,
    DEVICE_REGISTERED,
    EventFilter,
    EventLogger,
)
from chainproof.storage import InMemoryChainStore

_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _events(engine: ProvenanceEngine, event_type: str):
    return engine.logger.query_events(EventFilter(event_type=event_type))


@pytest.fixture
def engine(device) -> ProvenanceEngine:
    e = ProvenanceEngine(InMemoryChainStore(), clock=lambda: _NOW)
    e.register_device(device.device_id, device.public_key)
    return e


@pytest.fixture
def appended(engine, make_block):
    """Three blocks appended through the engine, as records."""
    records = []
    prev = "0"
    for i in range(3):
        block = engine.try_append(make_block(i, prev).to_record())
        records.append(block.to_record())
        prev = canonical_digest(block)
    return records


# =============================================================================
# SECTION 1 -- register_device
# =============================================================================

class TestRegisterDevice:

    def test_registration_stamped_by_clock(self, engine, device):
        registered = engine.register_device("cam-009", device.public_key)
        assert registered.registered_at == _NOW.isoformat()

    def test_logged(self, engine, device):
        events = _events(engine, DEVICE_REGISTERED)
        assert [e.data for e in events] == [{"device_id": device.device_id}]
        assert events[0].timestamp == _NOW

    def test_duplicate_rejected(self, engine, device):
        with pytest.raises(DeviceAlreadyRegistered):
            engine.register_device(device.device_id, "ff" * 32)
        assert len(_events(engine, DEVICE_REGISTERED)) == 1

    def test_empty_id_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.register_device("", "aa" * 32)

    def test_shared_logger(self, device):
        logger = EventLogger()
        engine = ProvenanceEngine(InMemoryChainStore(), logger=logger, clock=lambda: _NOW)
        engine.register_device(device.device_id, device.public_key)
        assert engine.logger is logger
        assert logger.event_count() == 1


# =============================================================================
# SECTION 2 -- try_append
# =============================================================================

class TestTryAppend:

    def test_accepts_record(self, engine, appended):
        assert [b.index for b in engine.list_blocks()] == [0, 1, 2]

    def test_accepted_logged_with_digest(self, engine, appended):
        events = _events(engine, BLOCK_APPENDED)
        assert len(events) == 3
        last = engine.list_blocks()[-1]
        assert events[-1].data == {
            "index": 2,
            "device_id": last.device_id,
            "digest": canonical_digest(last),
        }

    def test_rejection_raised_and_logged(self, engine, appended, make_block):
        with pytest.raises(IndexMismatch):
            engine.try_append(make_block(7, "0").to_record())
        events = _events(engine, APPEND_REJECTED)
        assert len(events) == 1
        assert events[0].data["reason"] == "IndexMismatch"
        assert events[0].data["index"] == 7
        assert len(engine.list_blocks()) == 3

    def test_invalid_signature_rejected(self, engine, appended, make_block, flip_bit):
        record = make_block(3, canonical_digest(engine.list_blocks()[-1])).to_record()
        record["signature"] = flip_bit(record["signature"])
        with pytest.raises(InvalidSignature):
            engine.try_append(record)

    def test_malformed_record_raises_validation_error(self, engine):
        with pytest.raises(ValidationError):
            engine.try_append({"index": 0})
        events = _events(engine, APPEND_REJECTED)
        assert events[0].data["reason"] == "ValidationError"
        assert events[0].data["device_id"] is None

    def test_unencodable_text_rejected_and_logged(self, engine, make_block):
        record = make_block(0, "0").to_record()
        record["timestamp"] = json.loads('"\\udc00"')
        with pytest.raises(ValidationError) as info:
            engine.try_append(record)
        assert info.value.field_name == "timestamp"
        events = _events(engine, APPEND_REJECTED)
        assert len(events) == 1
        assert events[0].data["reason"] == "ValidationError"
        assert events[0].data["field"] == "timestamp"
        assert engine.list_blocks() == ()


# =============================================================================
# SECTION 3 -- verify_content
# =============================================================================

class TestVerifyContent:

    def test_genuine_content(self, engine, appended, chunk):
        report = engine.verify_content(chunk(1), appended)
        assert report.overall_valid is True

    def test_bytearray_accepted(self, engine, appended, chunk):
        assert engine.verify_content(bytearray(chunk(0)), appended).frame_hash_match is True

    def test_tampered_claim(self, engine, appended, chunk):
        claim = [dict(r) for r in appended]
        claim[2]["sensorFingerprint"] = "sensor-SPOOFED"
        report = engine.verify_content(chunk(0), claim)
        assert report.chain_continuity is False
        assert report.signature_validity is False
        assert report.overall_valid is False

    def test_logged(self, engine, appended, chunk):
        engine.verify_content(chunk(0), appended)
        events = _events(engine, CONTENT_VERIFIED)
        assert len(events) == 1
        assert events[0].data["claim_size"] == 3
        assert events[0].data["chain_length"] == 3
        assert events[0].data["overall_valid"] is True

    def test_non_bytes_content_rejected(self, engine, appended):
        with pytest.raises(ValidationError) as info:
            engine.verify_content("text", appended)  # type: ignore[arg-type]
        assert info.value.field_name == "content"

    def test_empty_claim_rejected(self, engine, chunk):
        with pytest.raises(ValidationError, match="must not be empty"):
            engine.verify_content(chunk(0), [])

    def test_malformed_claim_record(self, engine, appended, chunk):
        claim = [dict(r) for r in appended]
        del claim[1]["timestamp"]
        with pytest.raises(ValidationError) as info:
            engine.verify_content(chunk(0), claim)
        assert info.value.field_name == "claim[1].timestamp"

    def test_unencodable_claim_text_is_a_validation_error(self, engine, appended, chunk):
        claim = [dict(r) for r in appended]
        claim[1]["sensorFingerprint"] = json.loads('"\\ud800"')
        with pytest.raises(ValidationError) as info:
            engine.verify_content(chunk(0), claim)
        assert info.value.field_name == "claim[1].sensorFingerprint"
        assert _events(engine, CONTENT_VERIFIED) == []

    def test_verify_against_empty_chain(self, engine, make_block, chunk):
        report = engine.verify_content(chunk(0), [make_block(0, "0").to_record()])
        assert report.frame_hash_match is False
        assert report.chain_continuity is False
        assert report.overall_valid is False


# =============================================================================
# SECTION 4 -- audit_chain / list_blocks
# =============================================================================

class TestAudit:

    def test_clean_chain(self, engine, appended):
        result = engine.audit_chain()
        assert result.valid is True
        assert result.broken_at is None

    def test_empty_chain(self, engine):
        assert engine.audit_chain().valid is True

    def test_list_blocks_is_snapshot(self, engine, appended, make_block):
        before = engine.list_blocks()
        engine.try_append(make_block(3, canonical_digest(before[-1])).to_record())
        assert len(before) == 3
        assert len(engine.list_blocks()) == 4
