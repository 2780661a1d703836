# chainproof/core/logging_layer.py
# Event log for chain operations.
#
# Scope: Event-sourced, in-memory audit log of registrations, append
# attempts and verifications. No file IO. No global mutable state.
# All timestamps are caller-supplied. All hashes are deterministic.
#
# Canonical import:
#   from chainproof.core.logging_layer import EventLogger, Event, EventFilter
#
# Event types emitted by ProvenanceEngine:
#   DEVICE_REGISTERED  {device_id}
#   BLOCK_APPENDED     {index, device_id, digest}
#   APPEND_REJECTED    {reason, field, message, index, device_id}
#   CONTENT_VERIFIED   {claim_size, chain_length, overall_valid, frame_hash_match,
#                       chain_continuity, signature_validity,
#                       sensor_fingerprint_validity}

# ===========================================================================
# SECTION 1 -- STDLIB IMPORTS
# ===========================================================================

import hashlib
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

# ===========================================================================
# SECTION 2 -- CONSTANTS
# ===========================================================================

DEVICE_REGISTERED: str = "DEVICE_REGISTERED"
BLOCK_APPENDED:    str = "BLOCK_APPENDED"
APPEND_REJECTED:   str = "APPEND_REJECTED"
CONTENT_VERIFIED:  str = "CONTENT_VERIFIED"

# Field separator inside the hash preimage.
_HASH_SEP: str = "|"

# ===========================================================================
# SECTION 3 -- DATACLASSES: Event, EventFilter
# ===========================================================================

@dataclass(frozen=True)
class Event:
    """
    Immutable record of a single engine event.

    Fields
    ------
    id        : Deterministic identifier derived from the logger's counter.
    type      : Category string (one of the event type constants above).
    timestamp : Caller-supplied datetime. Never generated internally.
    data      : Key-value payload (copied on entry).
    hash      : SHA-256 hex digest over (id, type, timestamp, data).
    """
    id: str
    type: str
    timestamp: datetime
    data: Dict[str, Any]
    hash: str


@dataclass
class EventFilter:
    """
    Filter specification for EventLogger.query_events().

    All fields are optional. Omitted fields apply no constraint.

    Fields
    ------
    event_type : Only events whose .type equals this value.
    start_time : Only events with timestamp >= start_time.
    end_time   : Only events with timestamp <= end_time.
    limit      : At most this many events, oldest first.
    """
    event_type: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    limit: Optional[int] = None


# ===========================================================================
# SECTION 4 -- INTERNAL HELPERS
# ===========================================================================

def _compute_hash(
    event_id: str,
    event_type: str,
    timestamp: datetime,
    data: Dict[str, Any],
) -> str:
    """
    Deterministic SHA-256 hex digest for an event.

    Preimage: id | type | timestamp.isoformat() | repr(sorted(data.items())).
    Sorting the items makes the digest independent of dict insertion order.
    """
    preimage: str = (
        event_id
        + _HASH_SEP
        + event_type
        + _HASH_SEP
        + timestamp.isoformat()
        + _HASH_SEP
        + repr(sorted(data.items()))
    )
    return hashlib.sha256(preimage.encode("utf-8")).hexdigest()


def _make_event_id(counter: int) -> str:
    """Format: "EVT-{counter:016d}"; zero-padded for lexicographic order."""
    return "EVT-{:016d}".format(counter)


# ===========================================================================
# SECTION 5 -- EventLogger
# ===========================================================================

class EventLogger:
    """
    Event-sourced logger with deterministic per-event hashes.

    Events are held in an instance-level list. Each EventLogger instance is
    fully independent. log_event() is serialized by an internal lock so
    counters stay monotonic when the engine is shared across threads.

    Zero lost events: log_event() raises LoggingError on any invalid input
    instead of discarding the event.
    """

    def __init__(self) -> None:
        self._store: List[Event] = []
        self._counter: int = 0
        self._lock = threading.Lock()

    # -----------------------------------------------------------------------
    # SECTION 5.1 -- log_event
    # -----------------------------------------------------------------------

    def log_event(self, event_type: str, data: Dict[str, Any], timestamp: datetime) -> str:
        """
        Record one event atomically. Return the assigned event ID.

        Raises
        ------
        LoggingError : If event_type is empty, data is not a dict, or
                       timestamp is not a datetime.
        """
        if not event_type:
            raise LoggingError("event_type must be a non-empty string")
        if not isinstance(data, dict):
            raise LoggingError("data must be a dict; got: {}".format(type(data)))
        if not isinstance(timestamp, datetime):
            raise LoggingError(
                "timestamp must be a datetime instance; got: {}".format(type(timestamp))
            )

        payload: Dict[str, Any] = dict(data)
        with self._lock:
            self._counter += 1
            event_id: str = _make_event_id(self._counter)
            event = Event(
                id=event_id,
                type=event_type,
                timestamp=timestamp,
                data=payload,
                hash=_compute_hash(event_id, event_type, timestamp, payload),
            )
            self._store.append(event)
        return event_id

    # -----------------------------------------------------------------------
    # SECTION 5.2 -- query_events
    # -----------------------------------------------------------------------

    def query_events(self, filter: EventFilter) -> List[Event]:
        """
        Return events matching filter, oldest first.

        Filtering order: event_type, start_time (inclusive), end_time
        (inclusive), then limit truncation.
        """
        if filter is None:
            raise LoggingError("filter must not be None")

        with self._lock:
            snapshot = list(self._store)

        results: List[Event] = []
        for event in snapshot:
            if filter.event_type is not None and event.type != filter.event_type:
                continue
            if filter.start_time is not None and event.timestamp < filter.start_time:
                continue
            if filter.end_time is not None and event.timestamp > filter.end_time:
                continue
            results.append(event)

        if filter.limit is not None:
            results = results[: filter.limit]

        return results

    # -----------------------------------------------------------------------
    # SECTION 5.3 -- get_event_stream
    # -----------------------------------------------------------------------

    def get_event_stream(self, start_time: datetime) -> Iterator[Event]:
        """Yield events with timestamp >= start_time in insertion order."""
        if not isinstance(start_time, datetime):
            raise LoggingError(
                "start_time must be a datetime instance; got: {}".format(type(start_time))
            )
        with self._lock:
            snapshot = list(self._store)
        for event in snapshot:
            if event.timestamp >= start_time:
                yield event

    def event_count(self) -> int:
        with self._lock:
            return len(self._store)


# ===========================================================================
# SECTION 6 -- EXCEPTIONS
# ===========================================================================

class LoggingError(Exception):
    """
    Raised by EventLogger when an invariant is violated.

    Never silently swallowed: every call site either handles it or lets it
    propagate.
    """
