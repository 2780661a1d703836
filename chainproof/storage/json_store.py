# chainproof/storage/json_store.py
# JsonFileChainStore -- InMemoryChainStore persisted to two JSON files.
#
# Layout (under data_dir):
#   devices.json     -- array of device records  {deviceId, publicKey, registeredAt}
#   blockchain.json  -- array of block records in chain order
#
# JFS-01: Missing files mean an empty registry / empty chain.
# JFS-02: data_dir is created if it does not exist.
# JFS-03: Each write replaces the whole file atomically (temp file + os.replace);
#         a failed write removes the temp file.
# JFS-04: Unreadable files, invalid JSON or records that fail to parse are a
#         hard failure: StorageUnavailable with the cause chained. Nothing is
#         silently skipped.

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, List

from chainproof.core.domain import Block, Device
from chainproof.core.exceptions import StorageUnavailable, ValidationError
from chainproof.utils.constants import BLOCKCHAIN_FILE_NAME, DEFAULT_DATA_DIR, DEVICES_FILE_NAME

from .memory_store import InMemoryChainStore


def _read_array(path: Path) -> List[Any]:
    """JFS-01/JFS-04: read a JSON array, [] if the file does not exist."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return []
    # ValueError covers both JSONDecodeError and UnicodeDecodeError.
    except (OSError, ValueError) as exc:
        raise StorageUnavailable("load " + path.name, str(exc)) from exc
    if not isinstance(data, list):
        raise StorageUnavailable(
            "load " + path.name,
            "DATA_CORRUPTION: top-level value must be an array",
        )
    return data


def _write_array(path: Path, records: List[Any]) -> None:
    """JFS-03: write records to path via a sibling temp file, removed on failure."""
    tmp = path.with_name(path.name + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
    except OSError as exc:
        try:
            tmp.unlink(missing_ok=True)
        except OSError as cleanup_exc:
            raise StorageUnavailable(
                "write " + path.name,
                str(exc) + "; could not remove " + tmp.name + ": " + str(cleanup_exc),
            ) from exc
        raise StorageUnavailable("write " + path.name, str(exc)) from exc


class JsonFileChainStore(InMemoryChainStore):
    """
    File-backed ChainStore. State is loaded once at construction and written
    through on every successful put_device / append_block.
    """

    def __init__(self, data_dir: Path = Path(DEFAULT_DATA_DIR)) -> None:
        super().__init__()
        self._data_dir = Path(data_dir)
        self._devices_path = self._data_dir / DEVICES_FILE_NAME
        self._chain_path = self._data_dir / BLOCKCHAIN_FILE_NAME

        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable("create " + str(self._data_dir), str(exc)) from exc

        self._load()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _load(self) -> None:
        try:
            devices = [Device.from_record(r) for r in _read_array(self._devices_path)]
            chain = [Block.from_record(r) for r in _read_array(self._chain_path)]
        except ValidationError as exc:
            raise StorageUnavailable(
                "load " + str(self._data_dir),
                "DATA_CORRUPTION: " + exc.message,
            ) from exc

        for position, block in enumerate(chain):
            if block.index != position:
                raise StorageUnavailable(
                    "load " + BLOCKCHAIN_FILE_NAME,
                    "DATA_CORRUPTION: block at position "
                    + str(position)
                    + " carries index "
                    + str(block.index),
                )

        self._devices = {d.device_id: d for d in devices}
        self._chain = chain

    def _persist_devices(self) -> None:
        _write_array(self._devices_path, [d.to_record() for d in self._devices.values()])

    def _persist_chain(self) -> None:
        _write_array(self._chain_path, [b.to_record() for b in self._chain])
