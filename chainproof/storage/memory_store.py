# chainproof/storage/memory_store.py
# Version: 1.0.0
# In-process ChainStore. Also the base of JsonFileChainStore, which only
# adds the _persist_* / load hooks.
#
# Single RLock guards both the registry and the chain. Reentrant so the
# append validator can hold write_lock() while calling append_block().

from __future__ import annotations

import threading
from typing import ContextManager, Dict, List, Mapping, Optional, Tuple

from chainproof.core.domain import Block, Device
from chainproof.core.exceptions import DeviceAlreadyRegistered, IndexMismatch


class InMemoryChainStore:
    """
    Device registry plus append-only canonical chain held in memory.

    Snapshots returned by get_chain() are tuples; appends after the call do
    not affect them.
    """

    def __init__(self) -> None:
        self._devices: Dict[str, Device] = {}
        self._chain: List[Block] = []
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    def write_lock(self) -> ContextManager[object]:
        return self._lock

    # -------------------------------------------------------------------------
    # Devices
    # -------------------------------------------------------------------------

    def get_device(self, device_id: str) -> Optional[Device]:
        with self._lock:
            return self._devices.get(device_id)

    def get_devices(self) -> Mapping[str, Device]:
        with self._lock:
            return dict(self._devices)

    def put_device(self, device: Device) -> Device:
        """
        Insert a device if its id is absent.

        Raises
        ------
        DeviceAlreadyRegistered
            If device.device_id is already present. The registry is unchanged.
        """
        with self._lock:
            if device.device_id in self._devices:
                raise DeviceAlreadyRegistered(device.device_id)
            self._devices[device.device_id] = device
            try:
                self._persist_devices()
            except Exception:
                del self._devices[device.device_id]
                raise
            return device

    # -------------------------------------------------------------------------
    # Chain
    # -------------------------------------------------------------------------

    def get_last_block(self) -> Optional[Block]:
        with self._lock:
            return self._chain[-1] if self._chain else None

    def get_chain(self) -> Tuple[Block, ...]:
        with self._lock:
            return tuple(self._chain)

    def append_block(self, block: Block) -> Block:
        """
        Compare-and-append: accept block only as the next index.

        Raises
        ------
        IndexMismatch
            If block.index != current chain length. The chain is unchanged.
        """
        with self._lock:
            expected = len(self._chain)
            if block.index != expected:
                raise IndexMismatch(expected=expected, got=block.index)
            self._chain.append(block)
            try:
                self._persist_chain()
            except Exception:
                self._chain.pop()
                raise
            return block

    # -------------------------------------------------------------------------
    # Persistence hooks (no-op in memory)
    # -------------------------------------------------------------------------

    def _persist_devices(self) -> None:
        return None

    def _persist_chain(self) -> None:
        return None
