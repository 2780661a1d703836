# chainproof/storage/base.py
# Version: 1.0.0
# Persistence collaborator contract consumed by the chain engine.

from __future__ import annotations

from typing import ContextManager, Mapping, Optional, Protocol, Tuple

from chainproof.core.domain import Block, Device


class ChainStore(Protocol):
    """
    Durable, strongly consistent device registry and canonical chain.

    Implementations must guarantee:
      - get_chain() returns an immutable snapshot; later appends never
        show up in a snapshot already handed out.
      - append_block() is a compare-and-append: it refuses a block whose
        index is not the current chain length.
      - write_lock() serializes writers. The append validator holds it
        across read-validate-commit so no two appends observe the same tail.
    """

    def write_lock(self) -> ContextManager[object]: ...

    def get_device(self, device_id: str) -> Optional[Device]: ...

    def get_devices(self) -> Mapping[str, Device]: ...

    def put_device(self, device: Device) -> Device: ...

    def get_last_block(self) -> Optional[Block]: ...

    def get_chain(self) -> Tuple[Block, ...]: ...

    def append_block(self, block: Block) -> Block: ...
