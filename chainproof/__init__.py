# chainproof -- hash-chain integrity and provenance verification for signed
# content chunks.
#
# Standard import pattern:
#   from chainproof import ProvenanceEngine, InMemoryChainStore

from chainproof.utils.constants import PROTOCOL_VERSION
from chainproof.core import (
    Block,
    Device,
    ProvenanceEngine,
    VerificationReport,
)
from chainproof.storage import InMemoryChainStore, JsonFileChainStore

__version__ = "1.0.0"

__all__ = [
    "PROTOCOL_VERSION",
    "Block",
    "Device",
    "ProvenanceEngine",
    "VerificationReport",
    "InMemoryChainStore",
    "JsonFileChainStore",
]
