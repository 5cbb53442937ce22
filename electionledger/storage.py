# electionledger/storage.py
# Versioned key-value state for the ledger host: committed values, per-key history, MVCC validation
import json
import logging
import os
import threading
from collections import namedtuple
from typing import Any, Dict, List, Optional, Tuple

from .errors import MVCCConflict

logger = logging.getLogger(__name__)

# A range scan observed by a transaction: committed key -> version seen between start and end
RangeRead = namedtuple("RangeRead", ["start", "end", "versions"])


def in_range(key: str, start: str, end: str) -> bool:
    """Lexicographic range check; start inclusive, end exclusive, empty end means unbounded."""
    return key >= start and (not end or key < end)


class LedgerStore:
    """
    Committed ledger state.

    Every commit gets the next version number; each key remembers the version
    that last wrote it. Transactions record the versions they read and the
    commit is refused if any of them moved in the meantime.
    """
    name = "abstract"

    def get(self, key: str) -> Optional[Tuple[str, int]]:
        raise NotImplementedError

    def range(self, start: str, end: str) -> List[Tuple[str, str, int]]:
        raise NotImplementedError

    def history(self, key: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def commit(
        self,
        tx_id: str,
        timestamp: str,
        read_set: Dict[str, Optional[int]],
        range_reads: List[RangeRead],
        writes: Dict[str, Optional[str]],
    ) -> int:
        raise NotImplementedError

    def validate(self, read_set: Dict[str, Optional[int]], range_reads: List[RangeRead]) -> None:
        for key, seen in read_set.items():
            current = self.get(key)
            current_version = current[1] if current else None
            if current_version != seen:
                raise MVCCConflict(f"key {key} changed since it was read")
        for scan in range_reads:
            current = {key: version for key, _, version in self.range(scan.start, scan.end)}
            if current != scan.versions:
                raise MVCCConflict(f"range [{scan.start}, {scan.end}) changed since it was read")


class MemoryLedgerStore(LedgerStore):
    """
    In-process ledger state. With a path, every commit is also snapshotted to a
    JSON file and reloaded on start-up.
    """
    name = "memory"

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._lock = threading.RLock()
        self._state: Dict[str, Tuple[str, int]] = {}
        self._history: Dict[str, List[Dict[str, Any]]] = {}
        self._version = 0
        if path:
            self.name = "json"
            self._read_db()

    def _read_db(self) -> None:
        """
        Load the snapshot file.
        If the file is missing, empty or corrupted, start from an empty ledger.
        """
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.warning(f"Ledger snapshot {self.path} is unreadable, starting empty")
            return
        self._version = data.get("version", 0)
        self._state = {key: (entry["value"], entry["version"]) for key, entry in data.get("state", {}).items()}
        self._history = data.get("history", {})
        logger.info(f"Loaded {len(self._state)} keys from {self.path} at version {self._version}")

    def _write_db(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        data = {
            "version": self._version,
            "state": {key: {"value": value, "version": version} for key, (value, version) in self._state.items()},
            "history": self._history,
        }
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)

    def get(self, key: str) -> Optional[Tuple[str, int]]:
        with self._lock:
            return self._state.get(key)

    def range(self, start: str, end: str) -> List[Tuple[str, str, int]]:
        with self._lock:
            return [
                (key, value, version)
                for key, (value, version) in sorted(self._state.items())
                if in_range(key, start, end)
            ]

    def history(self, key: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(entry) for entry in self._history.get(key, [])]

    def commit(self, tx_id, timestamp, read_set, range_reads, writes) -> int:
        with self._lock:
            self.validate(read_set, range_reads)
            self._version += 1
            for key, value in writes.items():
                if value is None:
                    self._state.pop(key, None)
                else:
                    self._state[key] = (value, self._version)
                self._history.setdefault(key, []).append({
                    "txId": tx_id,
                    "timestamp": timestamp,
                    "isDelete": value is None,
                    "value": value,
                    "version": self._version,
                })
            if self.path:
                self._write_db()
            logger.debug(f"Committed {tx_id} at version {self._version} ({len(writes)} writes)")
            return self._version
