# usage_example.py
# Minimal usage example for chainproof.ProvenanceEngine.
# This file is not part of the chainproof package. For reference only.

import hashlib
import tempfile

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from chainproof import JsonFileChainStore, ProvenanceEngine
from chainproof.core.integrity_layer import canonical_digest, signed_message
from chainproof.core.domain import Block

# Device key (a real camera keeps this in its secure element)
key = Ed25519PrivateKey.generate()
public_hex: str = key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()

engine = ProvenanceEngine(JsonFileChainStore(tempfile.mkdtemp()))
engine.register_device("bodycam-7", public_hex)

# Record three segments
segments: list[bytes] = [b"segment-0" * 100, b"segment-1" * 100, b"segment-2" * 100]
claim: list[dict] = []
prev_hash: str = "0"

for i, segment in enumerate(segments):
    unsigned = Block(
        index=i,
        chunk_hash=hashlib.sha256(segment).hexdigest(),
        sensor_fingerprint="imx-477/serial-0042",
        prev_hash=prev_hash,
        timestamp="2024-01-01T00:00:0" + str(i) + ".000Z",
        signature="00",
        device_id="bodycam-7",
    )
    record = unsigned.to_record()
    record["signature"] = key.sign(signed_message(unsigned)).hex()
    block = engine.try_append(record)
    claim.append(record)
    prev_hash = canonical_digest(block)

# Verify genuine and edited content
genuine = engine.verify_content(segments[1], claim)
edited = engine.verify_content(segments[1] + b"!", claim)

print(f"genuine: overall={genuine.overall_valid}  {genuine.frame_hash_details}")
print(f"edited:  overall={edited.overall_valid}  {edited.frame_hash_details}")

# Expected output (hash prefixes vary):
# genuine: overall=True  Content hash matches block #1: ...
# edited:  overall=False  Content hash ... doesn't match any referenced blocks. ...
