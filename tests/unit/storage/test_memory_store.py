# tests/unit/storage/test_memory_store.py
# Target: chainproof/storage/memory_store.py

import dataclasses

import pytest

from chainproof.core.exceptions import (
    DeviceAlreadyRegistered,
    IndexMismatch,
    StorageUnavailable,
)
from chainproof.storage import InMemoryChainStore


class TestDevices:

    def test_put_and_get(self, device):
        store = InMemoryChainStore()
        assert store.put_device(device) == device
        assert store.get_device(device.device_id) == device

    def test_unknown_device_is_none(self):
        assert InMemoryChainStore().get_device("cam-404") is None

    def test_duplicate_rejected_and_first_kept(self, store, device):
        replacement = dataclasses.replace(device, public_key="ff" * 32)
        with pytest.raises(DeviceAlreadyRegistered):
            store.put_device(replacement)
        assert store.get_device(device.device_id) == device

    def test_get_devices_is_a_copy(self, store, other_device):
        snapshot = store.get_devices()
        store.put_device(other_device)
        assert other_device.device_id not in snapshot

    def test_failed_persist_rolls_back(self, store, other_device, monkeypatch):
        def _fail():
            raise StorageUnavailable("write devices.json", "disk full")

        monkeypatch.setattr(store, "_persist_devices", _fail)
        with pytest.raises(StorageUnavailable):
            store.put_device(other_device)
        assert store.get_device(other_device.device_id) is None


class TestChain:

    def test_empty(self):
        store = InMemoryChainStore()
        assert store.get_chain() == ()
        assert store.get_last_block() is None

    def test_append_and_tail(self, store, make_block):
        block = make_block(0, "0")
        store.append_block(block)
        assert store.get_last_block() == block

    def test_compare_and_append(self, store, make_block):
        store.append_block(make_block(0, "0"))
        with pytest.raises(IndexMismatch) as info:
            store.append_block(make_block(0, "0"))
        assert (info.value.expected, info.value.got) == (1, 0)
        assert len(store.get_chain()) == 1

    def test_snapshot_unaffected_by_later_appends(self, store, build_chain, make_block):
        build_chain(store, 2)
        snapshot = store.get_chain()
        store.append_block(make_block(2, "x"))
        assert len(snapshot) == 2
        assert len(store.get_chain()) == 3

    def test_failed_persist_rolls_back(self, store, make_block, monkeypatch):
        def _fail():
            raise StorageUnavailable("write blockchain.json", "disk full")

        monkeypatch.setattr(store, "_persist_chain", _fail)
        with pytest.raises(StorageUnavailable):
            store.append_block(make_block(0, "0"))
        assert store.get_chain() == ()

    def test_write_lock_is_reentrant(self, store, make_block):
        with store.write_lock():
            with store.write_lock():
                store.append_block(make_block(0, "0"))
        assert len(store.get_chain()) == 1
