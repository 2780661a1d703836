# chainproof/utils/constants.py
# Version: 1.0.0
# Single authoritative definition of chain protocol constants.
#
# Changing any value in the PROTOCOL section changes the canonical digest
# or signature semantics and invalidates every existing chain. Such a change
# requires a protocol version increment.
#
# Standard import pattern:
#   from chainproof.utils.constants import (
#       GENESIS_PREV_HASH,
#       DIGEST_HEX_LENGTH,
#       ED25519_PUBLIC_KEY_BYTES,
#       ED25519_SIGNATURE_BYTES,
#   )

from typing import Tuple


# ---------------------------------------------------------------------------
# PROTOCOL
# ---------------------------------------------------------------------------

PROTOCOL_VERSION: str = "1.0.0"

# prevHash carried by the genesis block (index 0). Literal string, not a digest.
GENESIS_PREV_HASH: str = "0"

# SHA-256 lowercase hex digest length.
DIGEST_HEX_LENGTH: int = 64

# Ed25519 (RFC 8032) sizes in raw bytes.
ED25519_PUBLIC_KEY_BYTES: int = 32
ED25519_SIGNATURE_BYTES:  int = 64

# Field order of the canonical digest pre-image. DO NOT REORDER.
DIGEST_FIELD_ORDER: Tuple[str, ...] = (
    "index",
    "chunkHash",
    "sensorFingerprint",
    "prevHash",
    "timestamp",
    "deviceId",
)

# Field order of the signed message. deviceId is deliberately absent.
SIGNED_FIELD_ORDER: Tuple[str, ...] = (
    "index",
    "chunkHash",
    "sensorFingerprint",
    "prevHash",
    "timestamp",
)

# Block fields compared during continuity verification (signature excluded).
CONTINUITY_FIELD_ORDER: Tuple[str, ...] = DIGEST_FIELD_ORDER


# ---------------------------------------------------------------------------
# DIAGNOSTICS
# ---------------------------------------------------------------------------

# Number of hex characters shown when a digest appears in a detail string.
DETAIL_PREFIX_LENGTH: int = 16


# ---------------------------------------------------------------------------
# IO
# ---------------------------------------------------------------------------

# Read size used when fingerprinting a file on disk.
HASH_READ_CHUNK_BYTES: int = 8192

# JsonFileChainStore layout.
DEFAULT_DATA_DIR:    str = "data"
DEVICES_FILE_NAME:   str = "devices.json"
BLOCKCHAIN_FILE_NAME: str = "blockchain.json"
