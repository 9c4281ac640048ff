"""
In-memory world state with the shape of the Fabric chaincode stub.

Used for local runs and tests. Each transaction gets its own stub: writes
and the chaincode event are buffered and only reach the shared state when
the transaction returns without raising, like a peer discarding the
read-write set of a failed proposal.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

log = logging.getLogger("qr.chaincode.state")


class TransactionStub:
    """Per-transaction view of the world state."""

    def __init__(self, committed: dict[str, bytes], tx_id: str):
        self.tx_id = tx_id
        self._committed = committed
        self._writes: dict[str, bytes] = {}
        self.event: Optional[tuple[str, bytes]] = None

    def get_state(self, key: str) -> Optional[bytes]:
        if key in self._writes:
            return self._writes[key]
        return self._committed.get(key)

    def put_state(self, key: str, value: bytes) -> None:
        if not key:
            raise ValueError("key must not be an empty string")
        self._writes[key] = bytes(value)

    def set_event(self, name: str, payload: bytes) -> None:
        if not name:
            raise ValueError("event name can not be empty string")
        self.event = (name, bytes(payload))

    def get_state_by_range(self, start_key: str, end_key: str) -> Iterator[tuple[str, bytes]]:
        """Committed entries with start_key <= key < end_key; empty bounds are open."""
        for key in sorted(self._committed):
            if start_key and key < start_key:
                continue
            if end_key and key >= end_key:
                break
            yield key, self._committed[key]


class MemoryWorldState:

    def __init__(self):
        self._lock = threading.Lock()
        self._data: dict[str, bytes] = {}
        self.events: list[tuple[str, str, bytes]] = []
        self._tx_counter = 0

    @contextmanager
    def transaction(self) -> Iterator[TransactionStub]:
        with self._lock:
            self._tx_counter += 1
            stub = TransactionStub(self._data, tx_id=f"memtx-{self._tx_counter:08d}")
            yield stub
            # Only reached when the body did not raise.
            self._data.update(stub._writes)
            if stub.event is not None:
                self.events.append((stub.tx_id, *stub.event))
            log.debug("committed tx=%s writes=%d", stub.tx_id, len(stub._writes))

    def read_only_stub(self) -> TransactionStub:
        """Stub over committed data whose writes are never applied."""
        return TransactionStub(self._data, tx_id="query")

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def put(self, key: str, value: bytes) -> None:
        """Write directly, bypassing the contract (fixtures, corrupt-data tests)."""
        with self._lock:
            self._data[key] = bytes(value)

    def __len__(self) -> int:
        return len(self._data)
